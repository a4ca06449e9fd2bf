"""
app/rider/models.py

Defines SQLAlchemy models for the Rider module:
- RiderProfile: Vehicle, identity and availability details for a rider
- RiderLocation: Append-only GPS pings; the newest row is the rider's position
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Enum, Float, ForeignKey, Index, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database.base import Base
from app.database.enums import ApprovalStatus

if TYPE_CHECKING:
    from app.database.models import User


# ------------------------------------------------------
# RiderProfile Model
# ------------------------------------------------------
class RiderProfile(Base):
    """
    Additional profile information for users with the 'RIDER' role.
    Only APPROVED and available riders are considered for dispatch.
    """

    __tablename__ = "rider_profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier for the rider profile",
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        comment="Reference to the owning rider account",
    )
    vehicle_type: Mapped[str | None] = mapped_column(
        String(50), nullable=True, comment="Vehicle type (bike, car, bicycle, ...)"
    )
    license_plate: Mapped[str | None] = mapped_column(
        String(20), nullable=True, comment="Vehicle licence plate"
    )
    nin: Mapped[str | None] = mapped_column(
        String(20), nullable=True, comment="National Identification Number"
    )
    approval_status: Mapped[ApprovalStatus] = mapped_column(
        Enum(ApprovalStatus),
        default=ApprovalStatus.PENDING,
        nullable=False,
        comment="Admin review state",
    )
    is_available: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False, comment="Rider is on shift and can take pickups"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), comment="Profile creation time"
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        comment="Profile last update time",
    )

    user: Mapped["User"] = relationship("User", back_populates="rider_profile")


# ------------------------------------------------------
# RiderLocation Model
# ------------------------------------------------------
class RiderLocation(Base):
    __tablename__ = "rider_locations"
    __table_args__ = (Index("ix_rider_locations_rider_recorded", "rider_id", "recorded_at"),)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    rider_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        comment="Rider account that reported the position",
    )
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="Time the position was reported",
    )
