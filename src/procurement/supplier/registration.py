"""Supplier registration and rating — commands and handler."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from procurement.domain import procurement
from procurement.store import find_all, load
from procurement.supplier.supplier import Supplier


@procurement.command(part_of="Supplier")
class RegisterSupplier:
    name: String(required=True, max_length=255)
    email: String(max_length=255)
    rating: Float(min_value=0.0, max_value=5.0)
    categories: Text()  # JSON list of category names


@procurement.command(part_of="Supplier")
class RateSupplier:
    supplier_id: Identifier(required=True)
    rating: Float(required=True)


@procurement.command_handler(part_of=Supplier)
class SupplierHandler:
    @handle(RegisterSupplier)
    def register_supplier(self, command):
        try:
            categories = json.loads(command.categories) if command.categories else []
        except json.JSONDecodeError:
            raise ValidationError({"categories": ["Categories must be valid JSON"]}) from None
        if not isinstance(categories, list):
            raise ValidationError({"categories": ["Categories must be a JSON list"]})

        supplier = Supplier.register(
            name=command.name,
            email=command.email,
            rating=command.rating,
            categories=categories,
        )
        current_domain.repository_for(Supplier).add(supplier)
        return str(supplier.id)

    @handle(RateSupplier)
    def rate_supplier(self, command):
        supplier = load(Supplier, command.supplier_id)
        supplier.rate(command.rating)
        current_domain.repository_for(Supplier).add(supplier)


def supplier_ratings() -> dict[str, float]:
    """Map of supplier id to rating, for bid ranking."""
    return {str(s.id): s.rating or 0.0 for s in find_all(Supplier)}
