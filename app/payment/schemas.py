"""
app/payment/schemas.py

Request and response models for Paystack verification and webhooks.
"""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from app.order.models import OrderStatus
from app.order.schemas import CheckoutRequest


class PaystackVerifyRequest(CheckoutRequest):
    """Checkout body submitted after the Paystack popup returns a reference."""


class PaystackVerifyResponse(BaseModel):
    success: bool = True
    order_id: UUID
    status: OrderStatus


class PaystackWebhookEvent(BaseModel):
    event: str
    data: dict[str, Any] = Field(default_factory=dict)
