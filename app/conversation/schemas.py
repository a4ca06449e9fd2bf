"""
app/conversation/schemas.py

Defines Pydantic schemas for chat:
- Participant and message read models
- Conversation creation and message payloads
- Inbox summaries and full conversation views
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from app.conversation.models import ConversationType
from app.database.enums import UserRole

MessageText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=2000)]


# ---------------------------------------------------
# Participant Schemas
# ---------------------------------------------------
class ParticipantInfo(BaseModel):
    """Basic information about an account taking part in a conversation."""

    id: UUID = Field(..., description="User ID")
    first_name: str
    last_name: str
    role: UserRole
    profile_picture: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ConversationParticipantRead(BaseModel):
    user: ParticipantInfo
    joined_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------
# Message Schemas
# ---------------------------------------------------
class MessageCreate(BaseModel):
    content: MessageText = Field(..., description="Message text")


class MessageRead(BaseModel):
    id: UUID
    conversation_id: UUID
    sender: ParticipantInfo
    content: str
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------
# Conversation Schemas
# ---------------------------------------------------
class ConversationCreate(BaseModel):
    """
    Starts a conversation. Customers, vendors and riders name exactly one
    other account; admins may open a support thread with several.
    """

    participant_ids: list[UUID] = Field(
        ..., min_length=1, max_length=10, description="Accounts to add besides the sender"
    )
    content: MessageText | None = Field(None, description="Optional opening message")


class ConversationSummary(BaseModel):
    """Inbox entry: participants and the latest message only."""

    id: UUID
    type: ConversationType
    created_at: datetime
    last_activity: datetime
    participants: list[ConversationParticipantRead] = Field(default_factory=list)
    last_message: MessageRead | None = None


class ConversationRead(BaseModel):
    """Full conversation with messages ordered oldest first."""

    id: UUID
    type: ConversationType
    created_at: datetime
    last_activity: datetime
    participants: list[ConversationParticipantRead] = Field(default_factory=list)
    messages: list[MessageRead] = Field(default_factory=list)
