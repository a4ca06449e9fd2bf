"""
app/admin/models.py

Defines SQLAlchemy models managed from the admin console:
- PlatformSetting: Key/value runtime configuration (delivery pricing, ...)
"""

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database.base import Base


class PlatformSetting(Base):
    __tablename__ = "platform_settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True, comment="Setting name")
    value: Mapped[str] = mapped_column(String(255), nullable=False, comment="Raw setting value")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
