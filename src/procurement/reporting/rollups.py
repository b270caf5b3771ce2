"""Simple reporting rollups over the procurement records."""

from procurement.escrow.escrow import Escrow, EscrowStatus
from procurement.group_order.group_order import GroupOrder
from procurement.order.pharmacy_order import PharmacyOrder, PharmacyOrderStatus
from procurement.rfq.bid import Bid, BidStatus
from procurement.store import find_all, load
from procurement.supplier.supplier import Supplier


def supplier_performance(supplier_id) -> dict:
    """Bid volume, wins and rating for one supplier."""
    supplier = load(Supplier, supplier_id)
    bids = find_all(Bid, supplier_id=str(supplier_id))
    awarded = [bid for bid in bids if bid.status == BidStatus.AWARDED.value]
    decided = [bid for bid in bids if bid.status != BidStatus.SUBMITTED.value]
    return {
        "supplier_id": str(supplier.id),
        "name": supplier.name,
        "rating": supplier.rating or 0.0,
        "total_bids": len(bids),
        "awarded_bids": len(awarded),
        "win_rate": round(len(awarded) / len(decided), 4) if decided else 0.0,
        "awarded_value": round(sum(bid.line_value for bid in awarded), 2),
    }


def pharmacy_participation(pharmacy_id) -> dict:
    orders = find_all(PharmacyOrder, pharmacy_id=str(pharmacy_id))
    confirmed = [order for order in orders if order.status == PharmacyOrderStatus.CONFIRMED.value]
    declined = [order for order in orders if order.status == PharmacyOrderStatus.DECLINED.value]
    return {
        "pharmacy_id": str(pharmacy_id),
        "total_orders": len(orders),
        "confirmed_orders": len(confirmed),
        "declined_orders": len(declined),
        "confirmed_value": round(sum(order.total_value for order in confirmed), 2),
    }


def escrow_summary(rfq_id=None) -> dict:
    """Escrow amounts by status, across every RFQ or for one."""
    filters = {"rfq_id": str(rfq_id)} if rfq_id else {}
    escrows = find_all(Escrow, **filters)

    def _total(status):
        return round(sum(e.amount for e in escrows if e.status == status.value), 2)

    return {
        "count": len(escrows),
        "total": round(sum(e.amount for e in escrows), 2),
        "funded": _total(EscrowStatus.FUNDED),
        "released": _total(EscrowStatus.RELEASED),
        "refunded": _total(EscrowStatus.REFUNDED),
    }


def group_order_value(group_order_id) -> dict:
    group_order = load(GroupOrder, group_order_id)
    return {
        "group_order_id": str(group_order.id),
        "status": group_order.status,
        "total_value": group_order.total_value or 0.0,
        "awarded_lines": len(group_order.awarded_lines),
        "total_lines": len(group_order.lines),
    }
