"""Domain events for the Supplier aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from procurement.domain import procurement


@procurement.event(part_of="Supplier")
class SupplierRegistered:
    __version__ = 1

    supplier_id: Identifier(required=True)
    name: String(required=True)
    registered_at: DateTime(required=True)


@procurement.event(part_of="Supplier")
class SupplierRated:
    __version__ = 1

    supplier_id: Identifier(required=True)
    previous_rating: Float()
    rating: Float(required=True)
