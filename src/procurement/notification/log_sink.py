"""Log sink — writes notices to the structured log."""

import structlog

from procurement.notification.port import NotificationSink

logger = structlog.get_logger(__name__)


class LogSink(NotificationSink):
    def notify(self, audience: str, message: str, recipient_id: str | None = None) -> None:
        logger.info("Notification", audience=audience, recipient_id=recipient_id, message=message)
