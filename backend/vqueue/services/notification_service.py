"""Outbound SMS / WhatsApp heads-up for customers about to be called."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import httpx

from vqueue.core.config import settings

logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"


@dataclass
class NotificationResult:
    """Result of a notification attempt."""
    success: bool
    provider: str
    recipient: str
    message: str
    error: Optional[str] = None
    sent_at: Optional[datetime] = None


class NotificationService:
    """Sends a single text message. Failures are logged and reported, never raised."""

    def __init__(
        self,
        provider: str = "log",  # "log", "twilio"
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        from_number: Optional[str] = None,
        whatsapp: bool = False,
        http_client: Optional[httpx.Client] = None,
    ):
        self.provider = provider
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.whatsapp = whatsapp
        self._http_client = http_client

    def _get_client(self) -> httpx.Client:
        if self._http_client is None:
            self._http_client = httpx.Client(timeout=10.0)
        return self._http_client

    def _address(self, number: str) -> str:
        if self.whatsapp and not number.startswith("whatsapp:"):
            return f"whatsapp:{number}"
        return number

    def send(self, destination: str, message: str) -> NotificationResult:
        if not destination:
            return NotificationResult(False, self.provider, "", message, error="No destination")
        try:
            if self.provider == "twilio":
                return self._send_twilio(destination, message)
            return self._send_log(destination, message)
        except Exception as e:
            logger.error("notification send error to %s: %s", destination, e)
            return NotificationResult(False, self.provider, destination, message, error=str(e))

    def _send_twilio(self, to: str, message: str) -> NotificationResult:
        if not self.account_sid or not self.auth_token or not self.from_number:
            logger.error("Twilio credentials not configured, dropping message to %s", to)
            return NotificationResult(False, "twilio", to, message, error="Twilio credentials not configured")

        response = self._get_client().post(
            TWILIO_MESSAGES_URL.format(sid=self.account_sid),
            auth=(self.account_sid, self.auth_token),
            data={
                "To": self._address(to),
                "From": self._address(self.from_number),
                "Body": message,
            },
        )
        if response.status_code in (200, 201):
            return NotificationResult(True, "twilio", to, message, sent_at=datetime.now(timezone.utc))

        logger.error("Twilio error %s for %s: %s", response.status_code, to, response.text)
        return NotificationResult(
            False, "twilio", to, message,
            error=f"Twilio error: {response.status_code} - {response.text}",
        )

    def _send_log(self, to: str, message: str) -> NotificationResult:
        logger.info("[notification] to=%s message=%s", to, message)
        return NotificationResult(True, "log", to, message, sent_at=datetime.now(timezone.utc))

    def notify_ticket(self, phone: str, ticket_number: int) -> NotificationResult:
        return self.send(
            phone,
            f"Heads up! Ticket #{ticket_number}, you are almost up. Please head to the counter.",
        )

    def close(self):
        if self._http_client:
            self._http_client.close()
            self._http_client = None


_notification_service: Optional[NotificationService] = None


def get_notification_service() -> NotificationService:
    """Get or create the notification service singleton."""
    global _notification_service
    if _notification_service is None:
        _notification_service = NotificationService(
            provider=settings.sms_provider,
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token,
            from_number=settings.twilio_from_number,
            whatsapp=settings.twilio_whatsapp,
        )
    return _notification_service


def close_notification_service() -> None:
    """Release the singleton's HTTP client; the next call builds a fresh service."""
    global _notification_service
    if _notification_service is not None:
        _notification_service.close()
        _notification_service = None
