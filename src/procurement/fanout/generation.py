"""Fan-out — derive pharmacy and supplier orders from awarded group order lines.

Generation is an upsert keyed by (RFQ, pharmacy) and (RFQ, supplier): a
record that already exists only gains lines for SKUs it does not carry yet,
so running it again after every award is always safe. Lines merged into a
confirmed pharmacy order raise its escrow to the new total; a declined
pharmacy order takes no further lines.

An awarded quantity is shared out over the line's demand breakdown in
order, each entry receiving its full quantity until the award runs out.
Entries of the same pharmacy are summed into a single line, so per SKU the
pharmacy order totals add up to exactly ``awarded_price * awarded_quantity``.
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from procurement import lifecycle
from procurement.domain import logger, procurement
from procurement.group_order.group_order import GroupOrder
from procurement.order.confirmation import cover_order_total
from procurement.order.pharmacy_order import PharmacyOrder, PharmacyOrderStatus
from procurement.order.supplier_order import SupplierOrder
from procurement.rfq.rfq import Rfq
from procurement.store import find_all, load


def allocate(line) -> list[dict]:
    """Split an awarded line's quantity over its breakdown, one entry per pharmacy."""
    remaining = line.awarded_quantity or 0
    shares: dict[str, int] = {}
    for entry in line.breakdown:
        if remaining <= 0:
            break
        share = min(entry["quantity"], remaining)
        remaining -= share
        shares[entry["pharmacy_id"]] = shares.get(entry["pharmacy_id"], 0) + share
    return [{"pharmacy_id": pharmacy_id, "quantity": quantity} for pharmacy_id, quantity in shares.items()]


def upsert_pharmacy_orders(rfq_id, group_order) -> list[PharmacyOrder]:
    """Create or extend one order per pharmacy with a share of an awarded line."""
    lines_by_pharmacy: dict[str, list[dict]] = {}
    for line in group_order.awarded_lines:
        for share in allocate(line):
            lines_by_pharmacy.setdefault(share["pharmacy_id"], []).append(
                {"sku_id": str(line.sku_id), "quantity": share["quantity"], "unit_price": line.awarded_price}
            )

    existing = {str(order.pharmacy_id): order for order in find_all(PharmacyOrder, rfq_id=str(rfq_id))}
    repo = current_domain.repository_for(PharmacyOrder)
    for pharmacy_id, lines_data in lines_by_pharmacy.items():
        order = existing.get(pharmacy_id)
        if order is None:
            order = PharmacyOrder.generate(
                rfq_id=rfq_id,
                group_order_id=group_order.id,
                pharmacy_id=pharmacy_id,
                lines_data=lines_data,
            )
            existing[pharmacy_id] = order
            repo.add(order)
        elif order.merge_lines(lines_data):
            if order.status == PharmacyOrderStatus.CONFIRMED.value:
                cover_order_total(order)
            repo.add(order)

    return list(existing.values())


def upsert_supplier_orders(rfq_id, group_order) -> list[SupplierOrder]:
    """Create or extend one assigned order per awarded supplier."""
    lines_by_supplier: dict[str, list[dict]] = {}
    for line in group_order.awarded_lines:
        lines_by_supplier.setdefault(str(line.awarded_supplier_id), []).append(
            {
                "sku_id": str(line.sku_id),
                "quantity": line.awarded_quantity,
                "unit_price": line.awarded_price,
                "breakdown": allocate(line),
            }
        )

    existing = {str(order.supplier_id): order for order in find_all(SupplierOrder, rfq_id=str(rfq_id))}
    repo = current_domain.repository_for(SupplierOrder)
    for supplier_id, lines_data in lines_by_supplier.items():
        order = existing.get(supplier_id)
        if order is None:
            order = SupplierOrder.assign(
                rfq_id=rfq_id,
                group_order_id=group_order.id,
                supplier_id=supplier_id,
                lines_data=lines_data,
            )
            existing[supplier_id] = order
            repo.add(order)
        elif order.merge_lines(lines_data):
            repo.add(order)

    return list(existing.values())


@procurement.command(part_of="PharmacyOrder")
class GeneratePharmacyOrders:
    rfq_id = Identifier(required=True)


@procurement.command(part_of="SupplierOrder")
class GenerateSupplierOrders:
    rfq_id = Identifier(required=True)


@procurement.command_handler(part_of=PharmacyOrder)
class PharmacyOrderGenerationHandler:
    @handle(GeneratePharmacyOrders)
    def generate_pharmacy_orders(self, command):
        rfq = load(Rfq, command.rfq_id)
        group_order = load(GroupOrder, rfq.group_order_id)
        orders = upsert_pharmacy_orders(rfq.id, group_order)
        if lifecycle.after_fanout(group_order, orders):
            current_domain.repository_for(GroupOrder).add(group_order)
        logger.info("Pharmacy orders generated", rfq_id=str(rfq.id), order_count=len(orders))
        return [str(order.id) for order in orders]


@procurement.command_handler(part_of=SupplierOrder)
class SupplierOrderGenerationHandler:
    @handle(GenerateSupplierOrders)
    def generate_supplier_orders(self, command):
        rfq = load(Rfq, command.rfq_id)
        group_order = load(GroupOrder, rfq.group_order_id)
        orders = upsert_supplier_orders(rfq.id, group_order)
        logger.info("Supplier orders generated", rfq_id=str(rfq.id), order_count=len(orders))
        return [str(order.id) for order in orders]
