"""Recording sink — keeps notices in memory for test assertions."""

from procurement.notification.port import NotificationSink


class RecordingSink(NotificationSink):
    def __init__(self):
        self.notices: list[dict] = []

    def notify(self, audience: str, message: str, recipient_id: str | None = None) -> None:
        self.notices.append({"audience": audience, "message": message, "recipient_id": recipient_id})

    def for_audience(self, audience: str) -> list[dict]:
        return [n for n in self.notices if n["audience"] == audience]

    def reset(self):
        """Clear recorded notices (useful between tests)."""
        self.notices.clear()
