"""
app/user/schemas.py

Pydantic models for the customer profile and saved delivery addresses.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.auth.schemas import PhoneStr
from app.database.enums import UserRole


# ---------------------------------------------------
# Profile Schemas
# ---------------------------------------------------
class UserProfileRead(BaseModel):
    """Profile of the authenticated account."""

    id: UUID
    email: EmailStr
    phone_number: str
    first_name: str
    last_name: str
    role: UserRole
    address: str | None = None
    profile_picture: str | None = None
    is_verified: bool = False
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserProfileUpdate(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=50)
    last_name: str | None = Field(None, min_length=1, max_length=50)
    phone_number: PhoneStr | None = Field(None, description="New phone number")
    address: str | None = Field(None, max_length=255, description="Free-text contact address")


# ---------------------------------------------------
# Delivery Address Schemas
# ---------------------------------------------------
class DeliveryAddressBase(BaseModel):
    street: str = Field(..., min_length=1, max_length=255)
    city: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=100)
    postal_code: str | None = Field(None, max_length=20)
    country: str | None = Field(None, max_length=100)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)


class DeliveryAddressCreate(DeliveryAddressBase):
    is_default: bool = Field(False, description="Make this the default drop-off address")


class DeliveryAddressUpdate(BaseModel):
    street: str | None = Field(None, min_length=1, max_length=255)
    city: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=100)
    postal_code: str | None = Field(None, max_length=20)
    country: str | None = Field(None, max_length=100)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)


class DeliveryAddressRead(DeliveryAddressBase):
    id: UUID
    user_id: UUID
    is_default: bool
    full_address: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
