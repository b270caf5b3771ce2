"""RFQ publication — put a group order out to bid, and list RFQs open to a supplier."""

from protean import handle
from protean.fields import DateTime, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from procurement.catalogue.sku import Sku
from procurement.domain import logger, procurement
from procurement.errors import InvalidStateTransitionError
from procurement.group_order.group_order import GroupOrder
from procurement.rfq.rfq import Rfq, RfqStatus
from procurement.store import find_all, load
from procurement.supplier.supplier import Supplier


@procurement.command(part_of="Rfq")
class PublishRfq:
    group_order_id = Identifier(required=True)
    bidding_deadline = DateTime(required=True)
    title = String(max_length=255)
    description = Text()
    terms = Text()
    delivery_requirement = String(max_length=500)
    estimated_value = Float(min_value=0.0)


@procurement.command_handler(part_of=Rfq)
class PublicationHandler:
    @handle(PublishRfq)
    def publish_rfq(self, command):
        group_order = load(GroupOrder, command.group_order_id)

        active = [rfq for rfq in find_all(Rfq, group_order_id=str(group_order.id)) if rfq.is_active]
        if active:
            raise InvalidStateTransitionError(
                {"group_order_id": [f"Group order already has an {active[0].status} RFQ ({active[0].id})"]}
            )

        rfq = Rfq.publish(
            group_order,
            bidding_deadline=command.bidding_deadline,
            title=command.title,
            description=command.description,
            terms=command.terms,
            delivery_requirement=command.delivery_requirement,
            estimated_value=command.estimated_value,
        )
        group_order.open_rfq(rfq.id, command.bidding_deadline)

        current_domain.repository_for(Rfq).add(rfq)
        current_domain.repository_for(GroupOrder).add(group_order)

        logger.info(
            "RFQ published",
            rfq_id=str(rfq.id),
            group_order_id=str(group_order.id),
            bidding_deadline=str(command.bidding_deadline),
        )
        return str(rfq.id)


def open_rfqs_for_supplier(supplier_id) -> list[Rfq]:
    """Open RFQs, still before their deadline, with at least one line in a category the supplier serves."""
    supplier = load(Supplier, supplier_id)
    relevant = []
    for rfq in find_all(Rfq, status=RfqStatus.OPEN.value):
        if rfq.deadline_passed():
            continue
        categories = {load(Sku, line.sku_id).category for line in rfq.lines}
        if any(supplier.serves(category) for category in categories):
            relevant.append(rfq)
    return sorted(relevant, key=lambda r: r.bidding_deadline)
