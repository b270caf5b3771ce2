"""Clock factory.

Provides get_clock() / set_clock() to swap implementations:
- SystemClock for normal operation
- FrozenClock for deterministic tests
"""

from datetime import UTC, datetime

from procurement.clock.port import Clock
from procurement.clock.system_clock import SystemClock

_current_clock: Clock | None = None


def get_clock() -> Clock:
    """Return the current clock. Defaults to SystemClock."""
    global _current_clock
    if _current_clock is None:
        _current_clock = SystemClock()
    return _current_clock


def set_clock(clock: Clock) -> None:
    """Override the active clock (useful for tests)."""
    global _current_clock
    _current_clock = clock


def reset_clock() -> None:
    """Reset to default clock."""
    global _current_clock
    _current_clock = None


def now() -> datetime:
    return get_clock().now()


def as_utc(moment: datetime | None) -> datetime | None:
    """Normalize a datetime for comparison; naive values are taken as UTC."""
    if moment is None:
        return None
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)
