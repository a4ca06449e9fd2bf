"""
app/cart/schemas.py

Pydantic models for the shopping cart.
"""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class CartItemAdd(BaseModel):
    menu_item_id: UUID = Field(..., description="Menu item to add")
    quantity: int = Field(1, ge=1, le=100, description="Units to add")
    notes: str | None = Field(None, max_length=255, description="Preparation notes")


class CartItemUpdate(BaseModel):
    quantity: int | None = Field(None, ge=1, le=100, description="New quantity")
    notes: str | None = Field(None, max_length=255)


class CartItemRead(BaseModel):
    id: UUID
    menu_item_id: UUID
    vendor_id: UUID
    name: str
    unit_price: Decimal
    quantity: int
    notes: str | None = None
    is_available: bool
    line_total: Decimal


class CartRead(BaseModel):
    id: UUID
    user_id: UUID
    items: list[CartItemRead] = Field(default_factory=list)
    subtotal: Decimal = Decimal("0.00")
