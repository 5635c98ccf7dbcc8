"""Outbound message transports"""

from app.connectors.base import BaseTransport, TransportResult
from app.connectors.twilio_whatsapp import TwilioWhatsAppTransport
from app.connectors.resend_email import ResendEmailTransport


def get_transport(channel: str) -> BaseTransport:
    """Build the transport for a channel name ('whatsapp' or 'email')"""
    if channel == "whatsapp":
        return TwilioWhatsAppTransport()
    if channel == "email":
        return ResendEmailTransport()
    raise ValueError(f"Unsupported channel: {channel}")


__all__ = [
    "BaseTransport",
    "TransportResult",
    "TwilioWhatsAppTransport",
    "ResendEmailTransport",
    "get_transport",
]
