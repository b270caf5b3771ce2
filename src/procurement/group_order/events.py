"""Domain events for the GroupOrder aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from procurement.domain import procurement


@procurement.event(part_of="GroupOrder")
class GroupOrderCreated:
    """Submitted demands were combined into a new draft group order."""

    __version__ = 1

    group_order_id = Identifier(required=True)
    title = String(required=True)
    demand_ids = Text(required=True)  # JSON list
    pharmacy_ids = Text(required=True)  # JSON list of distinct pharmacies
    line_count = Integer(required=True)
    created_at = DateTime(required=True)


@procurement.event(part_of="GroupOrder")
class GroupOrderStatusChanged:
    __version__ = 1

    group_order_id = Identifier(required=True)
    title = String()
    from_status = String(required=True)
    to_status = String(required=True)
    changed_at = DateTime(required=True)


@procurement.event(part_of="GroupOrder")
class GroupOrderLineAwarded:
    __version__ = 1

    group_order_id = Identifier(required=True)
    sku_id = Identifier(required=True)
    bid_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    awarded_price = Float(required=True)
    awarded_quantity = Integer(required=True)
    total_value = Float(required=True)
    awarded_at = DateTime(required=True)


@procurement.event(part_of="GroupOrder")
class GroupOrderCancelled:
    __version__ = 1

    group_order_id = Identifier(required=True)
    title = String()
    previous_status = String(required=True)
    reason = String()
    cancelled_at = DateTime(required=True)
