"""System clock — wall-clock time in UTC."""

from datetime import UTC, datetime

from procurement.clock.port import Clock


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(UTC)
