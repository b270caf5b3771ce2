"""Notices for escrow funding and settlement."""

from protean.utils.mixins import handle

from procurement.domain import procurement
from procurement.escrow.escrow import Escrow
from procurement.escrow.events import EscrowFunded, EscrowRefunded, EscrowReleased, EscrowToppedUp
from procurement.notification import get_sink
from procurement.notification.port import Audience


@procurement.event_handler(part_of=Escrow)
class EscrowNotifications:
    @handle(EscrowFunded)
    def on_escrow_funded(self, event: EscrowFunded) -> None:
        get_sink().notify(
            Audience.PHARMACY.value,
            f"Payment of {event.amount:.2f} is held in escrow",
            recipient_id=str(event.pharmacy_id),
        )

    @handle(EscrowToppedUp)
    def on_escrow_topped_up(self, event: EscrowToppedUp) -> None:
        get_sink().notify(
            Audience.PHARMACY.value,
            f"A further {event.added_amount:.2f} is held in escrow, {event.amount:.2f} in total",
            recipient_id=str(event.pharmacy_id),
        )

    @handle(EscrowReleased)
    def on_escrow_released(self, event: EscrowReleased) -> None:
        get_sink().notify(Audience.ADMIN.value, f"Escrow of {event.amount:.2f} released: {event.reason}")

    @handle(EscrowRefunded)
    def on_escrow_refunded(self, event: EscrowRefunded) -> None:
        get_sink().notify(
            Audience.PHARMACY.value,
            f"Escrow of {event.amount:.2f} refunded: {event.reason}",
            recipient_id=str(event.pharmacy_id),
        )
