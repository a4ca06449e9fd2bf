"""
app/admin/schemas.py

Admin Schemas

Defines Pydantic models for administrative actions:
- User management views and status responses
- Vendor/rider approval results
- Order payment status updates
- Delivery pricing settings
- Platform summary
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.database.enums import ApprovalStatus, UserRole
from app.order.models import PaymentStatus


# -----------------------------------------------------
# User Management Schemas
# -----------------------------------------------------
class AdminUserView(BaseModel):
    """
    Detailed view of a user for administrative purposes.
    """

    id: UUID = Field(..., description="Unique ID of the user")
    email: EmailStr = Field(..., description="User's email address")
    phone_number: str = Field(..., description="User's phone number")
    first_name: str = Field(..., description="User's first name")
    last_name: str = Field(..., description="User's last name")
    role: UserRole = Field(..., description="Role of the user")
    is_active: bool = Field(..., description="False when the account is suspended")
    is_verified: bool = Field(..., description="Whether the email is verified")
    created_at: datetime = Field(..., description="Account creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)


class UserStatusUpdateResponse(BaseModel):
    """
    Schema returned after an admin suspends or re-activates an account.
    """

    user_id: UUID = Field(..., description="ID of the user affected by the action")
    action: str = Field(..., description="Action taken on the user ('suspended', 'activated')")
    success: bool = Field(..., description="Indicates if the action was successful")
    timestamp: datetime = Field(..., description="Timestamp of when the update occurred")


# -----------------------------------------------------
# Approval Schemas
# -----------------------------------------------------
class ApprovalActionResponse(BaseModel):
    """
    Schema returned after an admin approves or rejects a vendor or rider profile.
    """

    user_id: UUID = Field(..., description="Owner of the reviewed profile")
    profile_type: Literal["vendor", "rider"]
    status: ApprovalStatus = Field(..., description="Updated approval status")
    reviewed_at: datetime = Field(..., description="When the review happened")


class PendingApprovalItem(BaseModel):
    user_id: UUID
    profile_type: Literal["vendor", "rider"]
    display_name: str = Field(..., description="Business name or rider full name")
    email: EmailStr
    submitted_at: datetime


# -----------------------------------------------------
# Order Schemas
# -----------------------------------------------------
class PaymentStatusUpdate(BaseModel):
    payment_status: PaymentStatus = Field(..., description="New payment status")


# -----------------------------------------------------
# Delivery Pricing Schemas
# -----------------------------------------------------
class DeliveryPricingRead(BaseModel):
    price_per_km_low: Decimal
    price_per_km_high: Decimal
    distance_threshold_km: Decimal
    flat_delivery_fee: Decimal


class DeliveryPricingUpdate(BaseModel):
    """Each value is checked on its own; the low rate is not required to be below the high rate."""

    price_per_km_low: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    price_per_km_high: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    distance_threshold_km: Decimal | None = Field(None, gt=0, max_digits=8, decimal_places=2)
    flat_delivery_fee: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)


# -----------------------------------------------------
# Summary Schema
# -----------------------------------------------------
class AdminSummary(BaseModel):
    users_by_role: dict[str, int] = Field(default_factory=dict)
    orders_by_status: dict[str, int] = Field(default_factory=dict)
    revenue: Decimal = Field(..., description="Total amount of PAID orders")
    pending_vendor_approvals: int
    pending_rider_approvals: int
