"""Procurement domain API package."""

from procurement.api.errors import register_error_handlers
from procurement.api.routes import (
    bid_router,
    catalogue_router,
    demand_router,
    escrow_router,
    group_order_router,
    logistics_router,
    pharmacy_order_router,
    report_router,
    rfq_router,
    supplier_order_router,
    supplier_router,
)

routers = [
    catalogue_router,
    supplier_router,
    demand_router,
    group_order_router,
    rfq_router,
    bid_router,
    pharmacy_order_router,
    supplier_order_router,
    escrow_router,
    logistics_router,
    report_router,
]

__all__ = ["register_error_handlers", "routers"]
