# Review Intel - Hotel Review Intelligence & Guest Recovery
# ==========================================================
# Stores hotel metadata and guest reviews, classifies reviews (spam,
# sentiment, urgency) and sends guest-recovery alerts for bad stays.
#
# ARCHITECTURE LAYERS:
# - Presentation:   FastAPI app, server launcher, alert backlog runner
# - Application:    Review intake pipeline, moderation, accounts
# - Domain:         Pure business logic (no external dependencies)
# - Infrastructure: Stores, notifiers (Twilio / WhatsApp Cloud), config
#
# Stores and notifiers sit behind small interfaces so a backend can be
# swapped by configuration without touching the pipeline.

__version__ = "1.0.0"
