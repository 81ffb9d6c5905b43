"""
Alert Runner - Guest Recovery Backlog
=====================================

Sends the recovery message for every non-spam, alert-worthy review that has
a guest phone number but was never alerted (provider down at intake time,
imported reviews, demo mode switched off later).

Each review is dispatched at most once per run; a delivered alert marks the
review so the next run skips it.

    python run_alerts.py            # send
    python run_alerts.py --dry-run  # list what would be sent
"""

import argparse
import logging
import time

from review_intel.application import ReviewService
from review_intel.infrastructure.config import get_settings
from review_intel.infrastructure.messaging import create_notifier
from review_intel.infrastructure.persistence import create_store

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def run_alerts(dry_run: bool = False, delay_seconds: float = 1.0) -> dict:
    """Dispatch the alert backlog and return a summary."""

    print("\n" + "=" * 60)
    print("   Review Intel - Alert Runner")
    print("=" * 60 + "\n")

    settings = get_settings()
    for warning in settings.validate():
        logger.warning(warning)

    store = create_store(settings)
    notifier = create_notifier(settings.notifier)
    service = ReviewService(store, notifier, spam_rules=settings.spam.to_rules())

    summary = {"pending": 0, "sent": 0, "failed": 0}
    try:
        pending = service.pending_alerts()
        summary["pending"] = len(pending)
        if not pending:
            print("No pending alerts. All done!")
            return summary

        print(f"Found {len(pending)} reviews awaiting a guest alert\n")

        for review in pending:
            print(f"\n{'─' * 40}")
            print(f"Review {review.id}: {review.author} ({review.author_phone}) "
                  f"- {review.rating}★ at {review.property_name or review.property_id}")

            if dry_run:
                continue

            try:
                outcome = service.resend_alert(review.id)
            except KeyboardInterrupt:
                print("\n\nInterrupted! Progress saved.")
                break
            except Exception as e:
                logger.exception(f"Error alerting for review {review.id}: {e}")
                summary["failed"] += 1
                continue

            if outcome.alert_sent:
                summary["sent"] += 1
                print("   Sent!")
            else:
                summary["failed"] += 1
                print(f"   Failed {outcome.error or ''}".rstrip())

            if review is not pending[-1] and delay_seconds:
                time.sleep(delay_seconds)
    finally:
        notifier.close()
        store.close()

    print("\n" + "=" * 60)
    print("Alert run complete!")
    print(f"   Pending: {summary['pending']} | Sent: {summary['sent']} | Failed: {summary['failed']}")
    print("=" * 60 + "\n")
    return summary


def main():
    parser = argparse.ArgumentParser(description="Send guest alerts for the review backlog")
    parser.add_argument("--dry-run", action="store_true", help="list pending alerts without sending")
    parser.add_argument("--delay", type=float, default=1.0, help="seconds to wait between alerts")
    args = parser.parse_args()
    run_alerts(dry_run=args.dry_run, delay_seconds=args.delay)


if __name__ == "__main__":
    main()
