"""Notices for shipment progress."""

from protean.utils.mixins import handle

from procurement.domain import procurement
from procurement.logistics.events import LogisticsAdvanced
from procurement.logistics.logistics import LogisticsEntry
from procurement.notification import get_sink
from procurement.notification.port import Audience


@procurement.event_handler(part_of=LogisticsEntry)
class LogisticsNotifications:
    @handle(LogisticsAdvanced)
    def on_logistics_advanced(self, event: LogisticsAdvanced) -> None:
        status = event.to_status.replace("_", " ")
        get_sink().notify(
            Audience.PHARMACY.value,
            f"Your delivery is {status}",
            recipient_id=str(event.pharmacy_id),
        )
