"""Group order progression driven by its downstream records.

The group order moves on when the records fanned out from its RFQ reach
certain points:

* pharmacy orders exist → AWAITING_CONFIRMATIONS
* a later award adds a pending pharmacy order to a scheduled round → AWAITING_CONFIRMATIONS
* every pharmacy order settled, at least one confirmed → SCHEDULED
  (straight on to IN_DELIVERY if a supplier already shipped)
* every pharmacy order declined → CANCELLED
* a supplier order ships → IN_DELIVERY
* every escrow released or refunded → CLOSED

Callers pass the group order and the records they have in hand, including
any modified in the current unit of work, and persist the group order when
a function returns True.
"""

from procurement.domain import logger
from procurement.group_order.group_order import GroupOrderStatus
from procurement.order.pharmacy_order import PharmacyOrderStatus


def after_fanout(group_order, pharmacy_orders) -> bool:
    if not pharmacy_orders:
        return False
    if group_order.status == GroupOrderStatus.BIDDING_CLOSED.value:
        group_order.await_confirmations()
        return True
    if group_order.status == GroupOrderStatus.SCHEDULED.value and any(order.is_pending for order in pharmacy_orders):
        group_order.await_confirmations()
        logger.info("Group order reopened for confirmations", group_order_id=str(group_order.id))
        return True
    return False


def after_pharmacy_decision(group_order, pharmacy_orders, shipped=False) -> bool:
    if group_order.status != GroupOrderStatus.AWAITING_CONFIRMATIONS.value:
        return False
    if not pharmacy_orders or any(order.is_pending for order in pharmacy_orders):
        return False

    if any(order.status == PharmacyOrderStatus.CONFIRMED.value for order in pharmacy_orders):
        group_order.schedule()
        if shipped:
            group_order.start_delivery()
    else:
        group_order.cancel(reason="Every pharmacy declined its order")
        logger.info("Group order cancelled after all pharmacies declined", group_order_id=str(group_order.id))
    return True


def after_shipment(group_order) -> bool:
    if group_order.status == GroupOrderStatus.SCHEDULED.value:
        group_order.start_delivery()
        return True
    return False


def after_escrow_settlement(group_order, escrows) -> bool:
    if not escrows or not all(escrow.is_terminal for escrow in escrows):
        return False
    if not group_order.can_transition_to(GroupOrderStatus.CLOSED):
        return False
    group_order.close()
    logger.info("Group order closed", group_order_id=str(group_order.id), escrow_count=len(escrows))
    return True
