"""
app/rider/schemas.py

Pydantic models for rider profiles, availability and location pings.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.database.enums import ApprovalStatus


class RiderProfileRead(BaseModel):
    id: UUID
    user_id: UUID
    vehicle_type: str | None = None
    license_plate: str | None = None
    nin: str | None = None
    approval_status: ApprovalStatus
    is_available: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RiderProfileUpdate(BaseModel):
    vehicle_type: str | None = Field(None, max_length=50, description="bike, car, bicycle, ...")
    license_plate: str | None = Field(None, max_length=20)
    nin: str | None = Field(None, min_length=11, max_length=11, pattern=r"^\d{11}$")


class AvailabilityUpdate(BaseModel):
    is_available: bool = Field(..., description="Whether the rider can take pickups")


class LocationUpdate(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class RiderLocationRead(BaseModel):
    id: UUID
    rider_id: UUID
    latitude: float
    longitude: float
    recorded_at: datetime

    model_config = ConfigDict(from_attributes=True)
