"""
WhatsApp Cloud Notifier - Meta WhatsApp Business Cloud API
==========================================================

POST {api_url}/{phone_number_id}/messages
    Headers: Authorization: Bearer {token}
    Body: {"messaging_product": "whatsapp", "to": "<digits>", "type": "text",
           "text": {"body": "..."}}

A successful response carries messages[0].id (the WAMID). Errors come back
as {"error": {"message": ..., "code": ...}}.

NOTE: free-form text only reaches guests inside the 24h customer service
window; outside it Meta rejects the message with code 131047.
"""

import logging
from typing import List, Optional

import requests

from ...domain.errors import NotifierError
from ...domain.models import DeliveryResult, DeliveryStatus, GuestAlert
from ..config import NotifierSettings
from .notifier import Notifier, normalize_phone

logger = logging.getLogger(__name__)

# Graph API error codes worth a hint in the logs
ERROR_HINTS = {
    131047: "Message not delivered: recipient has not messaged you in the last 24h. Use a template message.",
    100: "Invalid phone number format or Phone Number ID. Check WA_PHONE_ID.",
    190: "Invalid or expired WA_TOKEN. Regenerate it in the Meta developer dashboard.",
}


class WhatsAppCloudNotifier(Notifier):
    """Guest alerts through the WhatsApp Business Cloud API."""

    channel = "whatsapp"

    def __init__(self, settings: NotifierSettings, session: Optional[requests.Session] = None):
        super().__init__(settings)
        self._session = session or requests.Session()
        self._endpoint = f"{settings.whatsapp_api_url.rstrip('/')}/{settings.whatsapp_phone_id}/messages"

    def send_guest_alert(self, alert: GuestAlert) -> List[DeliveryResult]:
        to = normalize_phone(alert.phone, self._settings.default_country_code)
        if not to:
            raise NotifierError(f"Cannot send alert: unusable phone number '{alert.phone}'")

        payload = {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "text",
            "text": {"body": self.compose(alert)},
        }
        headers = {
            "Authorization": f"Bearer {self._settings.whatsapp_token}",
            "Content-Type": "application/json",
        }

        try:
            response = self._session.post(
                self._endpoint,
                headers=headers,
                json=payload,
                timeout=self._settings.timeout_seconds,
            )
        except requests.Timeout:
            logger.warning(f"WhatsApp API timeout sending to +{to}")
            return [self._failed(to, "Timed out")]
        except requests.RequestException as e:
            logger.warning(f"WhatsApp API network error sending to +{to}: {e}")
            return [self._failed(to, str(e))]

        try:
            data = response.json()
        except ValueError:
            logger.warning(f"WhatsApp API returned non-JSON response (HTTP {response.status_code})")
            return [self._failed(to, f"Invalid response (HTTP {response.status_code})")]

        messages = data.get("messages") or []
        if messages and messages[0].get("id"):
            wamid = messages[0]["id"]
            logger.info(f"WhatsApp sent to +{to} (wamid={wamid})")
            return [DeliveryResult(channel=self.channel, status=DeliveryStatus.SENT.value,
                                   detail=wamid, to="+" + to)]

        error = data.get("error") or {}
        message = error.get("message") or str(data)
        logger.error(f"WhatsApp API error: {message}")
        hint = ERROR_HINTS.get(error.get("code"))
        if hint:
            logger.warning(hint)
        return [self._failed(to, message)]

    def _failed(self, to: str, detail: str) -> DeliveryResult:
        return DeliveryResult(channel=self.channel, status=DeliveryStatus.FAILED.value,
                              detail=detail, to="+" + to)

    def close(self) -> None:
        self._session.close()
