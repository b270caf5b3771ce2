"""Frozen clock — a manually driven clock for deterministic tests."""

from datetime import UTC, datetime, timedelta

from procurement.clock.port import Clock


class FrozenClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self._now = start or datetime(2025, 1, 6, 9, 0, tzinfo=UTC)

    def now(self) -> datetime:
        return self._now

    def set(self, moment: datetime) -> None:
        self._now = moment

    def advance(self, **delta) -> datetime:
        """Move the clock forward, e.g. ``advance(days=2, hours=1)``."""
        self._now = self._now + timedelta(**delta)
        return self._now
