"""Domain events for the LogisticsEntry aggregate."""

from protean.fields import DateTime, Identifier, String

from procurement.domain import procurement


@procurement.event(part_of="LogisticsEntry")
class LogisticsAssigned:
    __version__ = 1

    logistics_entry_id = Identifier(required=True)
    rfq_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    pharmacy_id = Identifier(required=True)
    tracking_number = String()
    assigned_at = DateTime(required=True)


@procurement.event(part_of="LogisticsEntry")
class LogisticsAdvanced:
    __version__ = 1

    logistics_entry_id = Identifier(required=True)
    rfq_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    pharmacy_id = Identifier(required=True)
    from_status = String(required=True)
    to_status = String(required=True)
    tracking_number = String()
    advanced_at = DateTime(required=True)
