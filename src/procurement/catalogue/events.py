"""Domain events for the Sku aggregate."""

from protean.fields import DateTime, Identifier, String

from procurement.domain import procurement


@procurement.event(part_of="Sku")
class SkuRegistered:
    """A product was added to the shared catalogue."""

    __version__ = 1

    sku_id: Identifier(required=True)
    code: String(required=True)
    name: String(required=True)
    category: String(required=True)
    registered_at: DateTime(required=True)


@procurement.event(part_of="Sku")
class SkuDetailsUpdated:
    __version__ = 1

    sku_id: Identifier(required=True)
    code: String(required=True)
    updated_at: DateTime(required=True)


@procurement.event(part_of="Sku")
class SkuDeactivated:
    """The SKU can no longer receive new demand."""

    __version__ = 1

    sku_id: Identifier(required=True)
    code: String(required=True)
    deactivated_at: DateTime(required=True)


@procurement.event(part_of="Sku")
class SkuReactivated:
    __version__ = 1

    sku_id: Identifier(required=True)
    code: String(required=True)
    reactivated_at: DateTime(required=True)
