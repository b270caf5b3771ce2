"""Notification sink factory.

Provides get_sink() / set_sink() to swap implementations:
- LogSink by default (notices go to the structured log)
- RecordingSink for tests
"""

from procurement.notification.log_sink import LogSink
from procurement.notification.port import NotificationSink

_current_sink: NotificationSink | None = None


def get_sink() -> NotificationSink:
    """Return the current notification sink. Defaults to LogSink."""
    global _current_sink
    if _current_sink is None:
        _current_sink = LogSink()
    return _current_sink


def set_sink(sink: NotificationSink) -> None:
    """Override the active sink (useful for tests)."""
    global _current_sink
    _current_sink = sink


def reset_sink() -> None:
    """Reset to default sink."""
    global _current_sink
    _current_sink = None
