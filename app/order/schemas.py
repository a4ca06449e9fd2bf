"""
app/order/schemas.py

Defines Pydantic models for orders:
- Checkout payload used by payment verification
- Order read models with item snapshots
- Tracking and cancellation payloads
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, model_validator

from app.order.models import OrderStatus, PaymentStatus


# ---------------------------------------------------
# Checkout Schemas
# ---------------------------------------------------
PaymentReference = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True, min_length=1, max_length=100, pattern=r"^[A-Za-z0-9._=-]+$"
    ),
]


class CheckoutItem(BaseModel):
    menu_item_id: UUID = Field(..., description="Menu item to order")
    quantity: int = Field(..., ge=1, le=100, description="Number of units")


class CheckoutRequest(BaseModel):
    """
    Order placement payload. The drop-off is either a saved address or an
    inline address with optional coordinates.
    """

    reference: PaymentReference = Field(..., description="Payment reference")
    items: list[CheckoutItem] = Field(..., min_length=1, description="Items to order")
    address_id: UUID | None = Field(None, description="Saved delivery address")
    delivery_address: str | None = Field(
        None, min_length=1, max_length=255, description="Inline delivery address"
    )
    delivery_latitude: float | None = Field(None, ge=-90, le=90)
    delivery_longitude: float | None = Field(None, ge=-180, le=180)
    notes: str | None = Field(None, max_length=500, description="Instructions for the vendor")
    scheduled_pickup: datetime | None = Field(None, description="Requested pickup time")

    @model_validator(mode="after")
    def require_drop_off(self) -> "CheckoutRequest":
        if self.address_id is None and not self.delivery_address:
            raise ValueError("Either address_id or delivery_address is required.")
        return self


# ---------------------------------------------------
# Read Schemas
# ---------------------------------------------------
class OrderItemRead(BaseModel):
    id: UUID
    menu_item_id: UUID | None = None
    name: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderRead(BaseModel):
    id: UUID
    user_id: UUID
    vendor_id: UUID
    rider_id: UUID | None = None
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: str
    payment_reference: str | None = None
    subtotal: Decimal
    delivery_fee: Decimal
    total_amount: Decimal
    delivery_address: str
    delivery_latitude: float | None = None
    delivery_longitude: float | None = None
    distance_km: float | None = None
    notes: str | None = None
    scheduled_pickup: datetime | None = None
    assigned_at: datetime | None = None
    delivered_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancel_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    items: list[OrderItemRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class OrderTrackRead(BaseModel):
    """Live position of an order's rider relative to the drop-off."""

    order_id: UUID
    status: OrderStatus
    rider_id: UUID | None = None
    rider_latitude: float | None = None
    rider_longitude: float | None = None
    rider_location_at: datetime | None = None
    distance_to_dropoff_km: float | None = None


# ---------------------------------------------------
# Action Schemas
# ---------------------------------------------------
class CancelOrderRequest(BaseModel):
    reason: str | None = Field(None, max_length=255, description="Why the order is cancelled")
