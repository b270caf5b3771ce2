"""Domain events for the Demand aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer

from procurement.domain import procurement


@procurement.event(part_of="Demand")
class DemandRecorded:
    """A pharmacy recorded a draft demand line."""

    __version__ = 1

    demand_id = Identifier(required=True)
    pharmacy_id = Identifier(required=True)
    sku_id = Identifier(required=True)
    quantity = Integer(required=True)
    max_unit_price = Float()
    recorded_at = DateTime(required=True)


@procurement.event(part_of="Demand")
class DemandSubmitted:
    """A draft demand was submitted for aggregation."""

    __version__ = 1

    demand_id = Identifier(required=True)
    pharmacy_id = Identifier(required=True)
    sku_id = Identifier(required=True)
    quantity = Integer(required=True)
    submitted_at = DateTime(required=True)


@procurement.event(part_of="Demand")
class DemandConsumed:
    """A submitted demand was folded into a group order."""

    __version__ = 1

    demand_id = Identifier(required=True)
    pharmacy_id = Identifier(required=True)
    group_order_id = Identifier(required=True)
    consumed_at = DateTime(required=True)
