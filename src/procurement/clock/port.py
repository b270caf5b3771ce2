"""Clock port — abstract source of the current time."""

from abc import ABC, abstractmethod
from datetime import datetime


class Clock(ABC):
    """Abstract interface for time sources used in deadline comparisons."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        ...
