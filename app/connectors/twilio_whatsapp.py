"""
Twilio WhatsApp transport

Sends WhatsApp messages through the Twilio Messages API.
"""
from typing import Optional

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client as TwilioClient

from app.config import get_settings
from app.connectors.base import BaseTransport, TransportResult
from app.utils.logger import log


class TwilioWhatsAppTransport(BaseTransport):
    """WhatsApp delivery via Twilio"""

    channel = "whatsapp"

    def __init__(
        self,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        from_number: Optional[str] = None,
        client: Optional[TwilioClient] = None,
    ):
        settings = get_settings()
        account_sid = account_sid or settings.twilio_account_sid
        auth_token = auth_token or settings.twilio_auth_token
        self.from_number = from_number or settings.twilio_whatsapp_from

        self.client = client
        if self.client is None and account_sid and auth_token:
            self.client = TwilioClient(account_sid, auth_token)

    @property
    def configured(self) -> bool:
        return self.client is not None and bool(self.from_number)

    @staticmethod
    def _whatsapp_address(number: str) -> str:
        if number.startswith("whatsapp:"):
            return number
        return f"whatsapp:{number}"

    async def send(self, to: str, body: str, subject: Optional[str] = None) -> TransportResult:
        if not self.configured:
            return TransportResult.failed("WhatsApp provider is not configured")

        try:
            message = self.client.messages.create(
                body=body,
                from_=self._whatsapp_address(self.from_number),
                to=self._whatsapp_address(to),
            )
        except TwilioRestException as exc:
            log.warning(f"Twilio rejected WhatsApp message to {to}: {exc.msg}")
            return TransportResult.failed(exc.msg or "Failed to send WhatsApp message")

        if not message.sid:
            return TransportResult.failed("Failed to send WhatsApp message")
        return TransportResult.ok(message.sid)
