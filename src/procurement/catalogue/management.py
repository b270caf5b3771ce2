"""Catalogue management — SKU registration, detail updates and activation."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from procurement.catalogue.sku import Sku
from procurement.domain import procurement
from procurement.store import find_all, load


@procurement.command(part_of="Sku")
class RegisterSku:
    code: String(required=True, max_length=50)
    name: String(required=True, max_length=255)
    category: String(required=True, max_length=100)
    unit: String(required=True, max_length=30)
    strength: String(max_length=50)
    description: Text()
    metadata: Text()  # JSON object
    created_by: Identifier()


@procurement.command(part_of="Sku")
class UpdateSku:
    sku_id: Identifier(required=True)
    description: Text()
    metadata: Text()  # JSON object, merged into existing metadata


@procurement.command(part_of="Sku")
class DeactivateSku:
    sku_id: Identifier(required=True)


@procurement.command(part_of="Sku")
class ReactivateSku:
    sku_id: Identifier(required=True)


def _parse_metadata(raw):
    if raw is None:
        return None
    try:
        value = json.loads(raw) if isinstance(raw, str) else raw
    except json.JSONDecodeError:
        raise ValidationError({"metadata": ["Metadata must be valid JSON"]}) from None
    if not isinstance(value, dict):
        raise ValidationError({"metadata": ["Metadata must be a JSON object"]})
    return value


@procurement.command_handler(part_of=Sku)
class CatalogueHandler:
    @handle(RegisterSku)
    def register_sku(self, command):
        code = command.code.strip().upper()
        if find_all(Sku, code=code):
            raise ValidationError({"code": [f"SKU code {code} is already registered"]})

        sku = Sku.register(
            code=code,
            name=command.name,
            category=command.category,
            unit=command.unit,
            strength=command.strength,
            description=command.description,
            metadata=_parse_metadata(command.metadata),
            created_by=command.created_by,
        )
        current_domain.repository_for(Sku).add(sku)
        return str(sku.id)

    @handle(UpdateSku)
    def update_sku(self, command):
        sku = load(Sku, command.sku_id)
        sku.update_details(
            description=command.description,
            metadata=_parse_metadata(command.metadata),
        )
        current_domain.repository_for(Sku).add(sku)

    @handle(DeactivateSku)
    def deactivate_sku(self, command):
        sku = load(Sku, command.sku_id)
        sku.deactivate()
        current_domain.repository_for(Sku).add(sku)

    @handle(ReactivateSku)
    def reactivate_sku(self, command):
        sku = load(Sku, command.sku_id)
        sku.reactivate()
        current_domain.repository_for(Sku).add(sku)


def active_skus() -> list[Sku]:
    return sorted(find_all(Sku, is_active=True), key=lambda s: s.name)
