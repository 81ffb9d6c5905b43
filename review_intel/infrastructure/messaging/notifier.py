"""
Guest Notifier - Abstraction Layer for Guest Recovery Alerts
=============================================================

Provides a unified interface for sending a guest-recovery message after a
bad stay. The pipeline only ever talks to Notifier; which provider sits
behind it is decided once, from configuration, by create_notifier().

USAGE:
    notifier = create_notifier(get_settings())
    results = notifier.send_guest_alert(
        GuestAlert(phone="9876543210", name="Asha", property_name="W Juhu", rating=1)
    )
    # [DeliveryResult(channel="demo", status="logged", ...)]

PROVIDERS:
    DemoNotifier          - logs the message (no credentials needed)
    TwilioNotifier        - SMS and/or WhatsApp through Twilio
    WhatsAppCloudNotifier - Meta WhatsApp Business Cloud API
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import List, Optional

from ...domain.models import DeliveryResult, DeliveryStatus, GuestAlert
from ..config import NotifierSettings

logger = logging.getLogger(__name__)

# ── Message Template ───────────────────────────────────────────────
GREETING = "Dear {name},"
FEEDBACK_LINE = "Thank you for your feedback about {property_name} ({stars})."
APOLOGY_LINE = (
    "We sincerely apologize your experience did not meet our standards. "
    "Our management team is personally reviewing your case and will reach out within 24 hours."
)
CLOSING_LINE = "Thank you for helping us improve."
DEFAULT_GUEST_NAME = "Valued Guest"


def rating_stars(rating: int) -> str:
    rating = max(0, min(5, int(rating)))
    return "★" * rating + "☆" * (5 - rating)


def compose_alert_message(alert: GuestAlert, settings: NotifierSettings) -> str:
    """Build the guest recovery message body."""
    lines = [
        GREETING.format(name=alert.name or DEFAULT_GUEST_NAME),
        "",
        FEEDBACK_LINE.format(property_name=alert.property_name, stars=rating_stars(alert.rating)),
        "",
        APOLOGY_LINE,
    ]
    support = [c for c in (settings.support_phone, settings.support_email) if c]
    if support:
        lines += ["", "Immediate support:"] + support
    lines += ["", CLOSING_LINE, "", f"— {settings.brand_name}"]
    return "\n".join(lines)


def normalize_phone(phone: Optional[str], default_country_code: str = "91") -> Optional[str]:
    """
    Normalize a phone number to digits with country code, no leading '+'.

    "+91 98765-43210" -> "919876543210"
    "9876543210"      -> "919876543210" (10 digits get the default country code)

    Returns None when nothing dialable is left.
    """
    if not phone:
        return None
    cleaned = re.sub(r"[\s\-()]", "", phone)
    if cleaned.startswith("+"):
        cleaned = cleaned[1:]
    elif re.fullmatch(r"\d{10}", cleaned):
        cleaned = default_country_code + cleaned
    if not re.fullmatch(r"\d{7,15}", cleaned):
        return None
    return cleaned


class Notifier(ABC):
    """
    Abstract base class for guest alert providers.
    Implement this interface to add new messaging backends.
    """

    channel = "demo"

    def __init__(self, settings: NotifierSettings):
        self._settings = settings

    @abstractmethod
    def send_guest_alert(self, alert: GuestAlert) -> List[DeliveryResult]:
        """
        Send the recovery message. Returns one result per channel tried.

        Provider/network failures come back as "failed" results; an
        unusable phone number raises NotifierError.
        """
        ...

    def compose(self, alert: GuestAlert) -> str:
        return compose_alert_message(alert, self._settings)

    def close(self) -> None:
        """Clean up resources."""


class DemoNotifier(Notifier):
    """
    Logs the alert instead of sending it.
    Used when no provider is configured, so alerting never hard-fails.
    """

    channel = "demo"

    def send_guest_alert(self, alert: GuestAlert) -> List[DeliveryResult]:
        message = self.compose(alert)
        logger.info(
            "DEMO ALERT (no messaging provider configured)\n"
            f"   Hotel  : {alert.property_name}\n"
            f"   Rating : {rating_stars(alert.rating)}\n"
            f"   To     : {alert.phone or 'No phone provided'}\n"
            + "\n".join("   " + line for line in message.split("\n")[:5])
        )
        return [DeliveryResult(
            channel=self.channel,
            status=DeliveryStatus.LOGGED.value,
            detail="Demo mode: message logged, not sent",
            to=alert.phone or "",
        )]


def create_notifier(settings: NotifierSettings) -> Notifier:
    """
    Pick the notifier from configuration.

    Falls back to DemoNotifier when the chosen provider has no credentials.
    """
    provider = settings.provider

    if provider == "twilio":
        if settings.twilio_configured:
            from .twilio_notifier import TwilioNotifier
            return TwilioNotifier(settings)
        logger.warning("Twilio not configured (TWILIO_SID/TWILIO_AUTH/TWILIO_FROM), alerts will be logged")

    elif provider == "whatsapp_cloud":
        if settings.whatsapp_configured:
            from .whatsapp_cloud import WhatsAppCloudNotifier
            return WhatsAppCloudNotifier(settings)
        logger.warning("WhatsApp Cloud API not configured (WA_TOKEN/WA_PHONE_ID), alerts will be logged")

    elif provider != "demo":
        logger.warning(f"Unknown notifier provider '{provider}', alerts will be logged")

    return DemoNotifier(settings)
