"""
Resend email transport

Sends transactional email through the Resend API.
"""
from typing import Optional

import resend

from app.config import get_settings
from app.connectors.base import BaseTransport, TransportResult
from app.utils.logger import log


class ResendEmailTransport(BaseTransport):
    """Email delivery via Resend"""

    channel = "email"

    def __init__(self, api_key: Optional[str] = None, from_address: Optional[str] = None):
        settings = get_settings()
        self.api_key = api_key or settings.resend_api_key
        self.from_address = from_address or settings.email_from

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def send(self, to: str, body: str, subject: Optional[str] = None) -> TransportResult:
        if not self.configured:
            return TransportResult.failed("Email provider is not configured")

        resend.api_key = self.api_key
        try:
            response = resend.Emails.send({
                "from": self.from_address,
                "to": [to],
                "subject": subject or "",
                "html": body,
            })
        except Exception as exc:
            log.warning(f"Resend rejected email to {to}: {exc}")
            return TransportResult.failed(str(exc) or "Failed to send email")

        delivery_id = response.get("id") if isinstance(response, dict) else getattr(response, "id", None)
        if not delivery_id:
            return TransportResult.failed("Failed to send email")
        return TransportResult.ok(delivery_id)
