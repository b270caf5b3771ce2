"""Demand aggregation — combine submitted demands into a draft group order.

Demands are grouped by SKU in selection order. Each demand becomes its own
breakdown entry, so two demands from the same pharmacy for the same SKU stay
separate until fan-out merges them into one order line.
"""

import json

from protean import handle
from protean.fields import DateTime, String, Text
from protean.utils.globals import current_domain

from procurement.demand.demand import Demand
from procurement.domain import logger, procurement
from procurement.errors import ValidationError
from procurement.group_order.group_order import GroupOrder
from procurement.store import load


@procurement.command(part_of="GroupOrder")
class AggregateDemands:
    demand_ids = Text(required=True)  # JSON list of demand ids
    title = String(required=True, max_length=255)
    description = Text()
    bidding_deadline = DateTime()
    delivery_deadline = DateTime()


def build_lines(demands) -> list[dict]:
    """Group demands by SKU, keeping first-seen SKU order and demand order within a SKU."""
    lines: dict[str, list[dict]] = {}
    for demand in demands:
        lines.setdefault(str(demand.sku_id), []).append(
            {
                "demand_id": str(demand.id),
                "pharmacy_id": str(demand.pharmacy_id),
                "quantity": demand.quantity,
            }
        )
    return [{"sku_id": sku_id, "breakdown": breakdown} for sku_id, breakdown in lines.items()]


@procurement.command_handler(part_of=GroupOrder)
class AggregationHandler:
    @handle(AggregateDemands)
    def aggregate_demands(self, command):
        demand_ids = json.loads(command.demand_ids) if isinstance(command.demand_ids, str) else command.demand_ids
        if not demand_ids:
            raise ValidationError({"demand_ids": ["Select at least one demand"]})
        if len(set(map(str, demand_ids))) != len(demand_ids):
            raise ValidationError({"demand_ids": ["Each demand can be selected only once"]})
        if not command.title or not command.title.strip():
            raise ValidationError({"title": ["Title is required"]})

        demands = [load(Demand, demand_id) for demand_id in demand_ids]
        not_pending = [str(d.id) for d in demands if not d.is_pending]
        if not_pending:
            raise ValidationError({"demand_ids": [f"Demands not awaiting aggregation: {', '.join(not_pending)}"]})

        group_order = GroupOrder.create(
            title=command.title,
            description=command.description,
            lines_data=build_lines(demands),
            bidding_deadline=command.bidding_deadline,
            delivery_deadline=command.delivery_deadline,
        )

        demand_repo = current_domain.repository_for(Demand)
        for demand in demands:
            demand.consume(group_order.id)
            demand_repo.add(demand)
        current_domain.repository_for(GroupOrder).add(group_order)

        logger.info(
            "Demands aggregated",
            group_order_id=str(group_order.id),
            demand_count=len(demands),
            line_count=len(group_order.lines),
        )
        return str(group_order.id)
