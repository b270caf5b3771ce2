"""Notices for demand aggregation and group order progress."""

import json

from protean.utils.mixins import handle

from procurement.domain import procurement
from procurement.group_order.events import GroupOrderCancelled, GroupOrderCreated, GroupOrderStatusChanged
from procurement.group_order.group_order import GroupOrder
from procurement.notification import get_sink
from procurement.notification.port import Audience


@procurement.event_handler(part_of=GroupOrder)
class GroupOrderNotifications:
    @handle(GroupOrderCreated)
    def on_group_order_created(self, event: GroupOrderCreated) -> None:
        sink = get_sink()
        for pharmacy_id in json.loads(event.pharmacy_ids):
            sink.notify(
                Audience.PHARMACY.value,
                f"Your demand was added to group order '{event.title}'",
                recipient_id=pharmacy_id,
            )
        sink.notify(Audience.ADMIN.value, f"Group order '{event.title}' created with {event.line_count} line(s)")

    @handle(GroupOrderStatusChanged)
    def on_status_changed(self, event: GroupOrderStatusChanged) -> None:
        get_sink().notify(
            Audience.ADMIN.value,
            f"Group order '{event.title}' moved from {event.from_status} to {event.to_status}",
        )

    @handle(GroupOrderCancelled)
    def on_group_order_cancelled(self, event: GroupOrderCancelled) -> None:
        reason = f": {event.reason}" if event.reason else ""
        get_sink().notify(Audience.ADMIN.value, f"Group order '{event.title}' cancelled{reason}")
