"""
app/notification/schemas.py

Pydantic models for in-app notifications.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.notification.models import NotificationType


class NotificationRead(BaseModel):
    id: UUID
    user_id: UUID
    title: str
    body: str
    type: NotificationType
    data: dict[str, Any] = Field(default_factory=dict, description="Structured payload")
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UnreadCountResponse(BaseModel):
    unread_count: int = Field(..., ge=0)
