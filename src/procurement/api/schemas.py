"""Pydantic request/response schemas for the Procurement API.

These are external contracts, kept separate from the internal Protean
commands. Route handlers translate one into the other.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Catalogue and suppliers
# ---------------------------------------------------------------------------
class RegisterSkuRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=100)
    unit: str = Field(..., min_length=1, max_length=30)
    strength: str | None = None
    description: str | None = None
    metadata: dict[str, Any] | None = None
    created_by: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "code": "PARA500",
                    "name": "Paracetamol",
                    "category": "Analgesics",
                    "unit": "box",
                    "strength": "500mg",
                    "metadata": {"dosage_form": "tablet", "pack_size": 20},
                }
            ]
        }
    }


class UpdateSkuRequest(BaseModel):
    description: str | None = None
    metadata: dict[str, Any] | None = None


class RegisterSupplierRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str | None = None
    rating: float | None = Field(None, ge=0, le=5)
    categories: list[str] = []


class RateSupplierRequest(BaseModel):
    rating: float = Field(..., ge=0, le=5)


# ---------------------------------------------------------------------------
# Demand and group orders
# ---------------------------------------------------------------------------
class CreateDemandRequest(BaseModel):
    pharmacy_id: str
    sku_id: str
    quantity: int = Field(..., ge=1)
    max_unit_price: float | None = Field(None, ge=0)
    notes: str | None = None


class AggregateDemandsRequest(BaseModel):
    demand_ids: list[str]
    title: str
    description: str | None = None
    bidding_deadline: datetime | None = None
    delivery_deadline: datetime | None = None


class CancelGroupOrderRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


# ---------------------------------------------------------------------------
# RFQs and bids
# ---------------------------------------------------------------------------
class PublishRfqRequest(BaseModel):
    group_order_id: str
    bidding_deadline: datetime
    title: str | None = None
    description: str | None = None
    terms: str | None = None
    delivery_requirement: str | None = None
    estimated_value: float | None = Field(None, ge=0)


class SubmitBidRequest(BaseModel):
    supplier_id: str
    sku_id: str
    unit_price: float
    quantity: int = Field(..., ge=1)
    lead_time_days: int = Field(..., ge=0)
    min_quantity: int | None = Field(None, ge=1)
    notes: str | None = None


class CloseExpiredBiddingRequest(BaseModel):
    as_of: datetime | None = None


# ---------------------------------------------------------------------------
# Orders, escrow, logistics
# ---------------------------------------------------------------------------
class ConfirmPharmacyOrderRequest(BaseModel):
    payment_terms: int = Field(..., examples=[30, 60, 90])
    delivery_address: str = Field(..., min_length=1)


class DeclinePharmacyOrderRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class AdvanceSupplierOrderRequest(BaseModel):
    status: str = Field(..., examples=["in_fulfillment", "shipped", "delivered", "invoiced"])
    tracking_number: str | None = None
    expected_delivery: datetime | None = None
    shipping_info: str | None = None


class SettleEscrowRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class AssignLogisticsRequest(BaseModel):
    rfq_id: str
    supplier_id: str
    pharmacy_id: str
    tracking_number: str | None = None
    estimated_delivery: datetime | None = None
    notes: str | None = None


class AdvanceLogisticsRequest(BaseModel):
    status: str = Field(..., examples=["picked_up", "in_transit", "delivered"])
    tracking_number: str | None = None
    notes: str | None = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------
class IdResponse(BaseModel):
    id: str


class IdListResponse(BaseModel):
    ids: list[str]


class StatusResponse(BaseModel):
    status: str = "ok"


class RankedBidResponse(BaseModel):
    bid_id: str
    supplier_id: str
    sku_id: str
    unit_price: float
    quantity: int
    lead_time_days: int
    supplier_rating: float


class RecordListResponse(BaseModel):
    items: list[dict[str, Any]]
