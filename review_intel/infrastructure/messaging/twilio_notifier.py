"""
Twilio Notifier - SMS and WhatsApp Guest Alerts
===============================================

Sends the recovery message over every configured Twilio sender:
- TWILIO_WA_FROM set -> WhatsApp message ("whatsapp:+<number>")
- TWILIO_FROM set    -> plain SMS

Each channel is attempted independently; one failing does not stop the other.
"""

import logging
from typing import List, Optional

import requests
from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from ...domain.errors import NotifierError
from ...domain.models import DeliveryResult, DeliveryStatus, GuestAlert
from ..config import NotifierSettings
from .notifier import Notifier, normalize_phone

logger = logging.getLogger(__name__)


class TwilioNotifier(Notifier):
    """Guest alerts through the Twilio Messages API."""

    channel = "twilio"

    def __init__(self, settings: NotifierSettings, client: Optional[Client] = None):
        super().__init__(settings)
        self._client = client or Client(settings.twilio_sid, settings.twilio_auth)

    def send_guest_alert(self, alert: GuestAlert) -> List[DeliveryResult]:
        number = normalize_phone(alert.phone, self._settings.default_country_code)
        if not number:
            raise NotifierError(f"Cannot send alert: unusable phone number '{alert.phone}'")
        to = "+" + number
        body = self.compose(alert)

        results = []
        if self._settings.twilio_whatsapp_from:
            results.append(self._send(
                "whatsapp",
                sender="whatsapp:" + self._settings.twilio_whatsapp_from,
                to="whatsapp:" + to,
                body=body,
            ))
        if self._settings.twilio_from:
            results.append(self._send("sms", sender=self._settings.twilio_from, to=to, body=body))
        return results

    def _send(self, channel: str, sender: str, to: str, body: str) -> DeliveryResult:
        try:
            message = self._client.messages.create(from_=sender, to=to, body=body)
        except (TwilioException, requests.RequestException) as e:
            logger.warning(f"Twilio {channel} to {to} failed: {e}")
            return DeliveryResult(channel=channel, status=DeliveryStatus.FAILED.value, detail=str(e), to=to)

        logger.info(f"Twilio {channel} sent to {to} (sid={message.sid})")
        return DeliveryResult(channel=channel, status=DeliveryStatus.SENT.value, detail=message.sid, to=to)
