from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    html: str
    text: str | None = None


@dataclass(frozen=True)
class EmailResult:
    success: bool
    message_id: str | None = None
    error: str | None = None


class EmailTransportPort(ABC):
    @abstractmethod
    def send_email(self, message: EmailMessage) -> EmailResult:
        """Deliver one email. Transport errors are reported in the result, not raised."""
        raise NotImplementedError
