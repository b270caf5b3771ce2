"""FastAPI endpoints for the Procurement domain.

Write endpoints translate a request into a command and process it
synchronously. Read endpoints query the repositories directly.
"""

import json

from fastapi import APIRouter
from protean.utils.globals import current_domain

from procurement.api.schemas import (
    AdvanceLogisticsRequest,
    AdvanceSupplierOrderRequest,
    AggregateDemandsRequest,
    AssignLogisticsRequest,
    CancelGroupOrderRequest,
    CloseExpiredBiddingRequest,
    ConfirmPharmacyOrderRequest,
    CreateDemandRequest,
    DeclinePharmacyOrderRequest,
    IdListResponse,
    IdResponse,
    PublishRfqRequest,
    RankedBidResponse,
    RateSupplierRequest,
    RecordListResponse,
    RegisterSkuRequest,
    RegisterSupplierRequest,
    SettleEscrowRequest,
    StatusResponse,
    SubmitBidRequest,
    UpdateSkuRequest,
)
from procurement.catalogue.management import DeactivateSku, ReactivateSku, RegisterSku, UpdateSku, active_skus
from procurement.catalogue.sku import Sku
from procurement.demand.demand import Demand
from procurement.demand.submission import CreateDemand, SubmitDemand, pending_demands
from procurement.escrow.escrow import Escrow
from procurement.escrow.settlement import RefundEscrow, ReleaseEscrow
from procurement.fanout.generation import GeneratePharmacyOrders, GenerateSupplierOrders
from procurement.group_order.aggregation import AggregateDemands
from procurement.group_order.cancellation import CancelGroupOrder
from procurement.group_order.group_order import GroupOrder
from procurement.logistics.logistics import LogisticsEntry
from procurement.logistics.tracking import AdvanceLogistics, AssignLogistics, entries_for
from procurement.order.confirmation import ConfirmPharmacyOrder, DeclinePharmacyOrder
from procurement.order.fulfillment import AdvanceSupplierOrder
from procurement.order.pharmacy_order import PharmacyOrder
from procurement.order.supplier_order import SupplierOrder
from procurement.reporting.rollups import (
    escrow_summary,
    group_order_value,
    pharmacy_participation,
    supplier_performance,
)
from procurement.rfq.award import AwardBid
from procurement.rfq.bidding import SubmitBid, bids_for
from procurement.rfq.closing import CloseBidding, CloseExpiredBidding
from procurement.rfq.publication import PublishRfq, open_rfqs_for_supplier
from procurement.rfq.ranking import ranked_bids
from procurement.rfq.rfq import Rfq
from procurement.store import find_all, load
from procurement.supplier.registration import RateSupplier, RegisterSupplier, supplier_ratings

catalogue_router = APIRouter(prefix="/skus", tags=["catalogue"])
supplier_router = APIRouter(prefix="/suppliers", tags=["suppliers"])
demand_router = APIRouter(prefix="/demands", tags=["demands"])
group_order_router = APIRouter(prefix="/group-orders", tags=["group-orders"])
rfq_router = APIRouter(prefix="/rfqs", tags=["rfqs"])
bid_router = APIRouter(prefix="/bids", tags=["bids"])
pharmacy_order_router = APIRouter(prefix="/pharmacy-orders", tags=["pharmacy-orders"])
supplier_order_router = APIRouter(prefix="/supplier-orders", tags=["supplier-orders"])
escrow_router = APIRouter(prefix="/escrows", tags=["escrows"])
logistics_router = APIRouter(prefix="/logistics", tags=["logistics"])
report_router = APIRouter(prefix="/reports", tags=["reports"])


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _records(records) -> RecordListResponse:
    return RecordListResponse(items=[record.to_dict() for record in records])


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------
@catalogue_router.post("", status_code=201, response_model=IdResponse)
async def register_sku(body: RegisterSkuRequest) -> IdResponse:
    command = RegisterSku(
        code=body.code,
        name=body.name,
        category=body.category,
        unit=body.unit,
        strength=body.strength,
        description=body.description,
        metadata=json.dumps(body.metadata) if body.metadata is not None else None,
        created_by=body.created_by,
    )
    return IdResponse(id=_process(command))


@catalogue_router.get("", response_model=RecordListResponse)
async def list_active_skus() -> RecordListResponse:
    return _records(active_skus())


@catalogue_router.get("/{sku_id}")
async def get_sku(sku_id: str) -> dict:
    return load(Sku, sku_id).to_dict()


@catalogue_router.put("/{sku_id}", response_model=StatusResponse)
async def update_sku(sku_id: str, body: UpdateSkuRequest) -> StatusResponse:
    _process(
        UpdateSku(
            sku_id=sku_id,
            description=body.description,
            metadata=json.dumps(body.metadata) if body.metadata is not None else None,
        )
    )
    return StatusResponse()


@catalogue_router.put("/{sku_id}/deactivate", response_model=StatusResponse)
async def deactivate_sku(sku_id: str) -> StatusResponse:
    _process(DeactivateSku(sku_id=sku_id))
    return StatusResponse()


@catalogue_router.put("/{sku_id}/reactivate", response_model=StatusResponse)
async def reactivate_sku(sku_id: str) -> StatusResponse:
    _process(ReactivateSku(sku_id=sku_id))
    return StatusResponse()


# ---------------------------------------------------------------------------
# Suppliers
# ---------------------------------------------------------------------------
@supplier_router.post("", status_code=201, response_model=IdResponse)
async def register_supplier(body: RegisterSupplierRequest) -> IdResponse:
    command = RegisterSupplier(
        name=body.name,
        email=body.email,
        rating=body.rating,
        categories=json.dumps(body.categories),
    )
    return IdResponse(id=_process(command))


@supplier_router.put("/{supplier_id}/rating", response_model=StatusResponse)
async def rate_supplier(supplier_id: str, body: RateSupplierRequest) -> StatusResponse:
    _process(RateSupplier(supplier_id=supplier_id, rating=body.rating))
    return StatusResponse()


@supplier_router.get("/{supplier_id}/rfqs", response_model=RecordListResponse)
async def list_open_rfqs_for_supplier(supplier_id: str) -> RecordListResponse:
    return _records(open_rfqs_for_supplier(supplier_id))


# ---------------------------------------------------------------------------
# Demand
# ---------------------------------------------------------------------------
@demand_router.post("", status_code=201, response_model=IdResponse)
async def create_demand(body: CreateDemandRequest) -> IdResponse:
    command = CreateDemand(
        pharmacy_id=body.pharmacy_id,
        sku_id=body.sku_id,
        quantity=body.quantity,
        max_unit_price=body.max_unit_price,
        notes=body.notes,
    )
    return IdResponse(id=_process(command))


@demand_router.put("/{demand_id}/submit", response_model=StatusResponse)
async def submit_demand(demand_id: str) -> StatusResponse:
    _process(SubmitDemand(demand_id=demand_id))
    return StatusResponse()


@demand_router.get("/pending", response_model=RecordListResponse)
async def list_pending_demands(pharmacy_id: str | None = None) -> RecordListResponse:
    return _records(pending_demands(pharmacy_id))


@demand_router.get("/{demand_id}")
async def get_demand(demand_id: str) -> dict:
    return load(Demand, demand_id).to_dict()


# ---------------------------------------------------------------------------
# Group orders
# ---------------------------------------------------------------------------
@group_order_router.post("", status_code=201, response_model=IdResponse)
async def aggregate_demands(body: AggregateDemandsRequest) -> IdResponse:
    command = AggregateDemands(
        demand_ids=json.dumps(body.demand_ids),
        title=body.title,
        description=body.description,
        bidding_deadline=body.bidding_deadline,
        delivery_deadline=body.delivery_deadline,
    )
    return IdResponse(id=_process(command))


@group_order_router.get("/{group_order_id}")
async def get_group_order(group_order_id: str) -> dict:
    return load(GroupOrder, group_order_id).to_dict()


@group_order_router.put("/{group_order_id}/cancel", response_model=StatusResponse)
async def cancel_group_order(group_order_id: str, body: CancelGroupOrderRequest) -> StatusResponse:
    _process(CancelGroupOrder(group_order_id=group_order_id, reason=body.reason))
    return StatusResponse()


# ---------------------------------------------------------------------------
# RFQs and bids
# ---------------------------------------------------------------------------
@rfq_router.post("", status_code=201, response_model=IdResponse)
async def publish_rfq(body: PublishRfqRequest) -> IdResponse:
    command = PublishRfq(
        group_order_id=body.group_order_id,
        bidding_deadline=body.bidding_deadline,
        title=body.title,
        description=body.description,
        terms=body.terms,
        delivery_requirement=body.delivery_requirement,
        estimated_value=body.estimated_value,
    )
    return IdResponse(id=_process(command))


@rfq_router.post("/close-expired", response_model=IdListResponse)
async def close_expired_bidding(body: CloseExpiredBiddingRequest) -> IdListResponse:
    return IdListResponse(ids=_process(CloseExpiredBidding(as_of=body.as_of)))


@rfq_router.get("/{rfq_id}")
async def get_rfq(rfq_id: str) -> dict:
    return load(Rfq, rfq_id).to_dict()


@rfq_router.post("/{rfq_id}/bids", status_code=201, response_model=IdResponse)
async def submit_bid(rfq_id: str, body: SubmitBidRequest) -> IdResponse:
    command = SubmitBid(
        rfq_id=rfq_id,
        supplier_id=body.supplier_id,
        sku_id=body.sku_id,
        unit_price=body.unit_price,
        quantity=body.quantity,
        lead_time_days=body.lead_time_days,
        min_quantity=body.min_quantity,
        notes=body.notes,
    )
    return IdResponse(id=_process(command))


@rfq_router.get("/{rfq_id}/bids", response_model=RecordListResponse)
async def list_bids(rfq_id: str, sku_id: str | None = None) -> RecordListResponse:
    return _records(bids_for(rfq_id, sku_id))


@rfq_router.get("/{rfq_id}/bids/ranked", response_model=list[RankedBidResponse])
async def list_ranked_bids(rfq_id: str, sku_id: str | None = None) -> list[RankedBidResponse]:
    ratings = supplier_ratings()
    return [
        RankedBidResponse(
            bid_id=str(bid.id),
            supplier_id=str(bid.supplier_id),
            sku_id=str(bid.sku_id),
            unit_price=bid.unit_price,
            quantity=bid.quantity,
            lead_time_days=bid.lead_time_days,
            supplier_rating=ratings.get(str(bid.supplier_id), 0.0),
        )
        for bid in ranked_bids(rfq_id, sku_id)
    ]


@rfq_router.put("/{rfq_id}/close", response_model=StatusResponse)
async def close_bidding(rfq_id: str) -> StatusResponse:
    _process(CloseBidding(rfq_id=rfq_id))
    return StatusResponse()


@rfq_router.post("/{rfq_id}/pharmacy-orders", response_model=IdListResponse)
async def generate_pharmacy_orders(rfq_id: str) -> IdListResponse:
    return IdListResponse(ids=_process(GeneratePharmacyOrders(rfq_id=rfq_id)))


@rfq_router.post("/{rfq_id}/supplier-orders", response_model=IdListResponse)
async def generate_supplier_orders(rfq_id: str) -> IdListResponse:
    return IdListResponse(ids=_process(GenerateSupplierOrders(rfq_id=rfq_id)))


@bid_router.put("/{bid_id}/award", response_model=StatusResponse)
async def award_bid(bid_id: str) -> StatusResponse:
    _process(AwardBid(bid_id=bid_id))
    return StatusResponse()


# ---------------------------------------------------------------------------
# Pharmacy and supplier orders
# ---------------------------------------------------------------------------
@pharmacy_order_router.get("", response_model=RecordListResponse)
async def list_pharmacy_orders(rfq_id: str | None = None, pharmacy_id: str | None = None) -> RecordListResponse:
    filters = {key: value for key, value in {"rfq_id": rfq_id, "pharmacy_id": pharmacy_id}.items() if value}
    return _records(find_all(PharmacyOrder, **filters))


@pharmacy_order_router.get("/{pharmacy_order_id}")
async def get_pharmacy_order(pharmacy_order_id: str) -> dict:
    return load(PharmacyOrder, pharmacy_order_id).to_dict()


@pharmacy_order_router.put("/{pharmacy_order_id}/confirm", response_model=StatusResponse)
async def confirm_pharmacy_order(pharmacy_order_id: str, body: ConfirmPharmacyOrderRequest) -> StatusResponse:
    command = ConfirmPharmacyOrder(
        pharmacy_order_id=pharmacy_order_id,
        payment_terms=body.payment_terms,
        delivery_address=body.delivery_address,
    )
    _process(command)
    return StatusResponse()


@pharmacy_order_router.put("/{pharmacy_order_id}/decline", response_model=StatusResponse)
async def decline_pharmacy_order(pharmacy_order_id: str, body: DeclinePharmacyOrderRequest) -> StatusResponse:
    _process(DeclinePharmacyOrder(pharmacy_order_id=pharmacy_order_id, reason=body.reason))
    return StatusResponse()


@supplier_order_router.get("", response_model=RecordListResponse)
async def list_supplier_orders(rfq_id: str | None = None, supplier_id: str | None = None) -> RecordListResponse:
    filters = {key: value for key, value in {"rfq_id": rfq_id, "supplier_id": supplier_id}.items() if value}
    return _records(find_all(SupplierOrder, **filters))


@supplier_order_router.put("/{supplier_order_id}/status", response_model=StatusResponse)
async def advance_supplier_order(supplier_order_id: str, body: AdvanceSupplierOrderRequest) -> StatusResponse:
    command = AdvanceSupplierOrder(
        supplier_order_id=supplier_order_id,
        status=body.status,
        tracking_number=body.tracking_number,
        expected_delivery=body.expected_delivery,
        shipping_info=body.shipping_info,
    )
    _process(command)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Escrow
# ---------------------------------------------------------------------------
@escrow_router.get("", response_model=RecordListResponse)
async def list_escrows(rfq_id: str | None = None) -> RecordListResponse:
    return _records(find_all(Escrow, rfq_id=rfq_id) if rfq_id else find_all(Escrow))


@escrow_router.put("/{escrow_id}/release", response_model=StatusResponse)
async def release_escrow(escrow_id: str, body: SettleEscrowRequest) -> StatusResponse:
    _process(ReleaseEscrow(escrow_id=escrow_id, reason=body.reason))
    return StatusResponse()


@escrow_router.put("/{escrow_id}/refund", response_model=StatusResponse)
async def refund_escrow(escrow_id: str, body: SettleEscrowRequest) -> StatusResponse:
    _process(RefundEscrow(escrow_id=escrow_id, reason=body.reason))
    return StatusResponse()


# ---------------------------------------------------------------------------
# Logistics
# ---------------------------------------------------------------------------
@logistics_router.post("", status_code=201, response_model=IdResponse)
async def assign_logistics(body: AssignLogisticsRequest) -> IdResponse:
    command = AssignLogistics(
        rfq_id=body.rfq_id,
        supplier_id=body.supplier_id,
        pharmacy_id=body.pharmacy_id,
        tracking_number=body.tracking_number,
        estimated_delivery=body.estimated_delivery,
        notes=body.notes,
    )
    return IdResponse(id=_process(command))


@logistics_router.get("", response_model=RecordListResponse)
async def list_logistics(rfq_id: str, pharmacy_id: str | None = None) -> RecordListResponse:
    return _records(entries_for(rfq_id, pharmacy_id=pharmacy_id))


@logistics_router.get("/{logistics_entry_id}")
async def get_logistics_entry(logistics_entry_id: str) -> dict:
    return load(LogisticsEntry, logistics_entry_id).to_dict()


@logistics_router.put("/{logistics_entry_id}/status", response_model=StatusResponse)
async def advance_logistics(logistics_entry_id: str, body: AdvanceLogisticsRequest) -> StatusResponse:
    command = AdvanceLogistics(
        logistics_entry_id=logistics_entry_id,
        status=body.status,
        tracking_number=body.tracking_number,
        notes=body.notes,
    )
    _process(command)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------
@report_router.get("/suppliers/{supplier_id}")
async def supplier_report(supplier_id: str) -> dict:
    return supplier_performance(supplier_id)


@report_router.get("/pharmacies/{pharmacy_id}")
async def pharmacy_report(pharmacy_id: str) -> dict:
    return pharmacy_participation(pharmacy_id)


@report_router.get("/escrow")
async def escrow_report(rfq_id: str | None = None) -> dict:
    return escrow_summary(rfq_id)


@report_router.get("/group-orders/{group_order_id}")
async def group_order_report(group_order_id: str) -> dict:
    return group_order_value(group_order_id)
