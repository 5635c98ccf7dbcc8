"""
Base Transport Class

Every outbound message channel (WhatsApp, email) implements this interface.
A transport makes exactly one provider call per send and reports the
outcome; retry policy is left to the caller.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class TransportResult:
    """Outcome of a single provider call."""
    success: bool
    delivery_id: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, delivery_id: str) -> "TransportResult":
        return cls(success=True, delivery_id=delivery_id)

    @classmethod
    def failed(cls, error: str) -> "TransportResult":
        return cls(success=False, error=error)


class BaseTransport(ABC):
    """
    Base class for message transports

    Args:
        channel: Channel name stored on delivery logs ('whatsapp', 'email')
    """

    channel: str = ""

    @property
    @abstractmethod
    def configured(self) -> bool:
        """True when the provider credentials are present"""

    @abstractmethod
    async def send(self, to: str, body: str, subject: Optional[str] = None) -> TransportResult:
        """
        Send one message

        Args:
            to: Recipient address (E.164 phone or email address)
            body: Rendered message (plain text for WhatsApp, HTML for email)
            subject: Email subject; ignored by chat channels

        Returns:
            TransportResult with the provider message id or error text
        """
