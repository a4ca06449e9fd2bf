"""
app/database/models.py

Core SQLAlchemy ORM Models

Defines:
- User: Authenticated account for every role (user, vendor, rider, admin)

Includes relationships with:
- VendorProfile (one-to-one, VENDOR accounts)
- RiderProfile (one-to-one, RIDER accounts)
- DeliveryAddress (saved drop-off addresses)

Importing this module registers every domain table with the shared metadata.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database.base import Base
from app.database.enums import UserRole
from app.rider.models import RiderProfile
from app.user.models import DeliveryAddress
from app.vendor.models import VendorProfile

# Registered here so every table is on Base.metadata once User is importable
from app.admin.models import PlatformSetting  # noqa: F401
from app.cart.models import Cart, CartItem  # noqa: F401
from app.conversation.models import Conversation, ConversationParticipant, Message  # noqa: F401
from app.notification.models import Notification  # noqa: F401
from app.order.models import Order, OrderItem  # noqa: F401

# ---------------------------------------------------
# User Model: Authenticated Platform User
# ---------------------------------------------------


class User(Base):
    __tablename__ = "users"

    # -------------------------------------
    # Fields
    # -------------------------------------
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier for the user",
    )
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, comment="User's email address"
    )
    phone_number: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, comment="User's phone number"
    )
    hashed_password: Mapped[str] = mapped_column(
        String, nullable=False, comment="Hashed password for authentication"
    )
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole), nullable=False, comment="User role (USER, VENDOR, RIDER, ADMIN)"
    )
    first_name: Mapped[str] = mapped_column(
        String(100), nullable=False, comment="User's first name"
    )
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, comment="User's last name")
    profile_picture: Mapped[str | None] = mapped_column(
        String, nullable=True, comment="URL of the user's profile picture"
    )
    address: Mapped[str | None] = mapped_column(
        String, nullable=True, comment="Free-text contact address"
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, comment="False when the account is suspended"
    )
    is_verified: Mapped[bool] = mapped_column(
        Boolean, default=False, comment="Whether the user's email is verified"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        comment="Timestamp when the user was created",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        comment="Timestamp when the user was last updated",
    )

    # -------------------------------------
    # Relationships
    # -------------------------------------

    # One-to-One: present when role is VENDOR
    vendor_profile: Mapped["VendorProfile"] = relationship(
        "VendorProfile", back_populates="user", uselist=False
    )

    # One-to-One: present when role is RIDER
    rider_profile: Mapped["RiderProfile"] = relationship(
        "RiderProfile", back_populates="user", uselist=False
    )

    # One-to-Many: saved delivery addresses
    addresses: Mapped[list["DeliveryAddress"]] = relationship(
        "DeliveryAddress", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
