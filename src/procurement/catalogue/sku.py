"""Sku aggregate — a product in the shared pharmacy catalogue.

Code and name form the product's identity and never change once
registered. Description, free-form metadata and the active flag are
maintained by the catalogue owner. Everything else in the system references
a SKU by id, never by copying its details.
"""

import json

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String, Text

from procurement.clock import now as clock_now
from procurement.domain import procurement


@procurement.aggregate
class Sku:
    code: String(required=True, max_length=50)
    name: String(required=True, max_length=255)
    description: Text()
    category: String(required=True, max_length=100)
    strength: String(max_length=50, default="")
    unit: String(required=True, max_length=30)
    attributes: Text()  # JSON object: dosage_form, pack_size, manufacturer, ...
    is_active: Boolean(default=True)
    created_by: Identifier()
    created_at: DateTime()
    updated_at: DateTime()

    @classmethod
    def register(
        cls,
        code,
        name,
        category,
        unit,
        strength=None,
        description=None,
        metadata=None,
        created_by=None,
    ):
        from procurement.catalogue.events import SkuRegistered

        if not code or not code.strip():
            raise ValidationError({"code": ["SKU code is required"]})

        now = clock_now()
        sku = cls(
            code=code.strip().upper(),
            name=name,
            category=category,
            unit=unit,
            strength=strength or "",
            description=description,
            attributes=json.dumps(metadata or {}),
            is_active=True,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        sku.raise_(
            SkuRegistered(
                sku_id=sku.id,
                code=sku.code,
                name=name,
                category=category,
                registered_at=now,
            )
        )
        return sku

    @property
    def metadata(self) -> dict:
        return json.loads(self.attributes) if self.attributes else {}

    def update_details(self, description=None, metadata=None):
        """Update mutable catalogue details. Metadata keys are merged, not replaced."""
        from procurement.catalogue.events import SkuDetailsUpdated

        if description is not None:
            self.description = description
        if metadata is not None:
            merged = self.metadata
            merged.update(metadata)
            self.attributes = json.dumps(merged)

        now = clock_now()
        self.updated_at = now
        self.raise_(SkuDetailsUpdated(sku_id=self.id, code=self.code, updated_at=now))

    def deactivate(self):
        from procurement.catalogue.events import SkuDeactivated

        if not self.is_active:
            raise ValidationError({"is_active": ["SKU is already inactive"]})

        now = clock_now()
        self.is_active = False
        self.updated_at = now
        self.raise_(SkuDeactivated(sku_id=self.id, code=self.code, deactivated_at=now))

    def reactivate(self):
        from procurement.catalogue.events import SkuReactivated

        if self.is_active:
            raise ValidationError({"is_active": ["SKU is already active"]})

        now = clock_now()
        self.is_active = True
        self.updated_at = now
        self.raise_(SkuReactivated(sku_id=self.id, code=self.code, reactivated_at=now))
