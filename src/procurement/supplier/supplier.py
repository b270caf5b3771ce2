"""Supplier aggregate — the bidding party's profile.

Carries the rating used to break ties when ranking bids, and the product
categories the supplier serves. ``"ALL"`` in categories matches every
category.
"""

import json

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, String, Text

from procurement.clock import now as clock_now
from procurement.domain import procurement

ALL_CATEGORIES = "ALL"
MAX_RATING = 5.0


@procurement.aggregate
class Supplier:
    name: String(required=True, max_length=255)
    email: String(max_length=255)
    rating: Float(default=0.0, min_value=0.0, max_value=MAX_RATING)
    categories: Text()  # JSON list of category names
    registered_at: DateTime()

    @classmethod
    def register(cls, name, email=None, rating=None, categories=None):
        from procurement.supplier.events import SupplierRegistered

        now = clock_now()
        supplier = cls(
            name=name,
            email=email,
            rating=rating or 0.0,
            categories=json.dumps(categories or []),
            registered_at=now,
        )
        supplier.raise_(SupplierRegistered(supplier_id=supplier.id, name=name, registered_at=now))
        return supplier

    @property
    def category_list(self) -> list[str]:
        return json.loads(self.categories) if self.categories else []

    def serves(self, category: str) -> bool:
        cats = self.category_list
        return ALL_CATEGORIES in cats or category in cats

    def rate(self, rating: float):
        from procurement.supplier.events import SupplierRated

        if rating is None or not 0.0 <= rating <= MAX_RATING:
            raise ValidationError({"rating": [f"Rating must be between 0 and {MAX_RATING:g}"]})

        previous = self.rating
        self.rating = rating
        self.raise_(SupplierRated(supplier_id=self.id, previous_rating=previous, rating=rating))
