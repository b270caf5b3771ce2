"""Notification sink port — abstract interface for fire-and-forget notices."""

from abc import ABC, abstractmethod
from enum import Enum


class Audience(Enum):
    PHARMACY = "pharmacy"
    SUPPLIER = "supplier"
    ADMIN = "admin"
    COURIER = "courier"


class NotificationSink(ABC):
    """Accepts (audience, message) notices. No delivery guarantee, no acknowledgment."""

    @abstractmethod
    def notify(self, audience: str, message: str, recipient_id: str | None = None) -> None:
        """Hand a notice to the delivery mechanism.

        Args:
            audience: One of the ``Audience`` values.
            message: Human-readable notice text.
            recipient_id: Specific pharmacy/supplier id when the notice targets one party.
        """
        ...
