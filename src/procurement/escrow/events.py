"""Domain events for the Escrow aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from procurement.domain import procurement


@procurement.event(part_of="Escrow")
class EscrowOpened:
    __version__ = 1

    escrow_id = Identifier(required=True)
    rfq_id = Identifier(required=True)
    pharmacy_id = Identifier(required=True)
    pharmacy_order_id = Identifier(required=True)
    amount = Float(required=True)
    currency = String(max_length=3)
    opened_at = DateTime(required=True)


@procurement.event(part_of="Escrow")
class EscrowFunded:
    __version__ = 1

    escrow_id = Identifier(required=True)
    rfq_id = Identifier(required=True)
    pharmacy_id = Identifier(required=True)
    amount = Float(required=True)
    funded_at = DateTime(required=True)


@procurement.event(part_of="Escrow")
class EscrowToppedUp:
    """Lines merged into a confirmed order raised the amount held."""

    __version__ = 1

    escrow_id = Identifier(required=True)
    rfq_id = Identifier(required=True)
    pharmacy_id = Identifier(required=True)
    added_amount = Float(required=True)
    amount = Float(required=True)
    topped_up_at = DateTime(required=True)


@procurement.event(part_of="Escrow")
class EscrowReleased:
    """Funds were paid out after a completed delivery."""

    __version__ = 1

    escrow_id = Identifier(required=True)
    rfq_id = Identifier(required=True)
    pharmacy_id = Identifier(required=True)
    amount = Float(required=True)
    reason = String(required=True)
    released_at = DateTime(required=True)


@procurement.event(part_of="Escrow")
class EscrowRefunded:
    """Funds were returned to the pharmacy."""

    __version__ = 1

    escrow_id = Identifier(required=True)
    rfq_id = Identifier(required=True)
    pharmacy_id = Identifier(required=True)
    amount = Float(required=True)
    reason = String(required=True)
    refunded_at = DateTime(required=True)
