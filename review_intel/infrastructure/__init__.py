# Infrastructure Layer
# ====================
# Contains all external service integrations:
# - persistence/: document stores (in-memory + JSON snapshot, SQLite)
# - messaging/:   guest alert notifiers (demo, Twilio, WhatsApp Cloud API)
# - importer/:    Excel/CSV review import
# - config/:      Environment and settings management
#
# This layer can be replaced entirely without affecting domain/application layers.
