"""Domain events for the PharmacyOrder and SupplierOrder aggregates."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from procurement.domain import procurement


@procurement.event(part_of="PharmacyOrder")
class PharmacyOrderGenerated:
    """Awarded lines were fanned out to a pharmacy for confirmation."""

    __version__ = 1

    pharmacy_order_id = Identifier(required=True)
    rfq_id = Identifier(required=True)
    pharmacy_id = Identifier(required=True)
    line_count = Integer(required=True)
    total_value = Float(required=True)
    generated_at = DateTime(required=True)


@procurement.event(part_of="PharmacyOrder")
class PharmacyOrderLinesMerged:
    """Newly awarded lines were merged into an existing pending or confirmed order."""

    __version__ = 1

    pharmacy_order_id = Identifier(required=True)
    rfq_id = Identifier(required=True)
    pharmacy_id = Identifier(required=True)
    order_status = String(required=True)
    added_lines = Integer(required=True)
    total_value = Float(required=True)
    merged_at = DateTime(required=True)


@procurement.event(part_of="PharmacyOrder")
class PharmacyOrderConfirmed:
    __version__ = 1

    pharmacy_order_id = Identifier(required=True)
    rfq_id = Identifier(required=True)
    pharmacy_id = Identifier(required=True)
    total_value = Float(required=True)
    payment_terms = Integer(required=True)
    confirmed_at = DateTime(required=True)


@procurement.event(part_of="PharmacyOrder")
class PharmacyOrderDeclined:
    __version__ = 1

    pharmacy_order_id = Identifier(required=True)
    rfq_id = Identifier(required=True)
    pharmacy_id = Identifier(required=True)
    reason = String()
    declined_at = DateTime(required=True)


@procurement.event(part_of="SupplierOrder")
class SupplierOrderAssigned:
    __version__ = 1

    supplier_order_id = Identifier(required=True)
    rfq_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    line_count = Integer(required=True)
    total_value = Float(required=True)
    assigned_at = DateTime(required=True)


@procurement.event(part_of="SupplierOrder")
class SupplierOrderLinesMerged:
    __version__ = 1

    supplier_order_id = Identifier(required=True)
    rfq_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    added_lines = Integer(required=True)
    total_value = Float(required=True)
    merged_at = DateTime(required=True)


@procurement.event(part_of="SupplierOrder")
class SupplierOrderAdvanced:
    __version__ = 1

    supplier_order_id = Identifier(required=True)
    rfq_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    from_status = String(required=True)
    to_status = String(required=True)
    tracking_number = String()
    advanced_at = DateTime(required=True)


@procurement.event(part_of="SupplierOrder")
class SupplierOrderCancelled:
    """The round was called off before the supplier shipped."""

    __version__ = 1

    supplier_order_id = Identifier(required=True)
    rfq_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String()
    cancelled_at = DateTime(required=True)
