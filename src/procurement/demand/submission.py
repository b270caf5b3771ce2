"""Demand entry — record a draft demand and submit it for aggregation."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, Integer, Text
from protean.utils.globals import current_domain

from procurement.catalogue.sku import Sku
from procurement.demand.demand import Demand, DemandStatus
from procurement.domain import procurement
from procurement.store import find_all, load


@procurement.command(part_of="Demand")
class CreateDemand:
    pharmacy_id = Identifier(required=True)
    sku_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    max_unit_price = Float(min_value=0.0)
    notes = Text()


@procurement.command(part_of="Demand")
class SubmitDemand:
    demand_id = Identifier(required=True)


@procurement.command_handler(part_of=Demand)
class DemandHandler:
    @handle(CreateDemand)
    def create_demand(self, command):
        sku = load(Sku, command.sku_id)
        if not sku.is_active:
            raise ValidationError({"sku_id": [f"SKU {sku.code} is not active"]})

        demand = Demand.record(
            pharmacy_id=command.pharmacy_id,
            sku_id=command.sku_id,
            quantity=command.quantity,
            max_unit_price=command.max_unit_price,
            notes=command.notes,
        )
        current_domain.repository_for(Demand).add(demand)
        return str(demand.id)

    @handle(SubmitDemand)
    def submit_demand(self, command):
        demand = load(Demand, command.demand_id)
        demand.submit()
        current_domain.repository_for(Demand).add(demand)
        return str(demand.id)


def pending_demands(pharmacy_id=None) -> list[Demand]:
    """Submitted demands not yet consumed by a group order, oldest first."""
    filters = {"status": DemandStatus.SUBMITTED.value}
    if pharmacy_id:
        filters["pharmacy_id"] = str(pharmacy_id)
    return sorted(find_all(Demand, **filters), key=lambda d: d.submitted_at or d.created_at)
