"""
app/conversation/services.py

Conversation Service Layer

Handles in-app chat between accounts:
- Start private conversations (reused per pair) and admin support threads
- Send messages and push them live to the other participants
- Cached inbox listing and participant-only conversation detail
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.conversation import schemas
from app.conversation.models import (
    Conversation,
    ConversationParticipant,
    ConversationType,
    Message,
)
from app.core.blacklist import redis_client
from app.core.cache import CACHE_PREFIX, _paginated_cache_key, invalidate_pattern
from app.database.enums import UserRole
from app.database.models import User
from app.notification.manager import ConnectionManager, manager

logger = logging.getLogger(__name__)

CONVERSATION_LIST_NS = "conversation:list:user"
SHORT_CACHE_TTL = 15


class ConversationService:
    def __init__(self, db: AsyncSession, connections: ConnectionManager | None = None):
        self.db = db
        self.connections = connections or manager
        self.cache = redis_client

    # ---------------------------------------------------
    # Cache Helpers
    # ---------------------------------------------------
    async def invalidate_inboxes(self, user_ids: list[UUID]) -> None:
        if not self.cache:
            return
        for user_id in user_ids:
            await invalidate_pattern(f"{CACHE_PREFIX}{CONVERSATION_LIST_NS}:{user_id}:*")

    # ---------------------------------------------------
    # Lookup Helpers
    # ---------------------------------------------------
    async def get_participating_or_404(self, conversation_id: UUID, user_id: UUID) -> Conversation:
        """The conversation, if `user_id` takes part in it. Others get 404."""
        result = await self.db.execute(
            select(Conversation)
            .join(ConversationParticipant, ConversationParticipant.conversation_id == Conversation.id)
            .filter(Conversation.id == conversation_id, ConversationParticipant.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        conversation = result.unique().scalar_one_or_none()
        if not conversation:
            logger.warning(
                f"[CHAT] Conversation {conversation_id} not found or not joined by {user_id}"
            )
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found"
            )
        return conversation

    async def find_private(self, user_a: UUID, user_b: UUID) -> Conversation | None:
        joined_by_a = select(ConversationParticipant.conversation_id).filter(
            ConversationParticipant.user_id == user_a
        )
        joined_by_b = select(ConversationParticipant.conversation_id).filter(
            ConversationParticipant.user_id == user_b
        )
        result = await self.db.execute(
            select(Conversation)
            .filter(
                Conversation.type == ConversationType.PRIVATE,
                Conversation.id.in_(joined_by_a),
                Conversation.id.in_(joined_by_b),
            )
            .limit(1)
        )
        return result.unique().scalar_one_or_none()

    async def _load_participants(self, user_ids: list[UUID]) -> list[User]:
        result = await self.db.execute(select(User).filter(User.id.in_(user_ids)))
        users = list(result.unique().scalars().all())
        if len(users) != len(user_ids):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Participant not found")
        if any(not u.is_active for u in users):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Participant account is suspended."
            )
        return users

    async def _commit(self, context: str) -> None:
        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"[CHAT] Commit failed while {context}: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Could not save conversation.",
            )

    async def _push(self, recipients: list[UUID], message: schemas.MessageRead) -> None:
        payload = {"event": "message", "data": message.model_dump(mode="json")}
        for user_id in recipients:
            try:
                await self.connections.send_to_user(user_id, payload)
            except Exception as e:
                logger.error(f"[CHAT] Live push failed for user {user_id}: {e}", exc_info=True)

    # ---------------------------------------------------
    # Conversations
    # ---------------------------------------------------
    async def create_conversation(
        self, creator: User, data: schemas.ConversationCreate
    ) -> schemas.ConversationRead:
        """
        Start a conversation. A private conversation between the same two
        accounts is reused; only admins may open multi-party support threads.
        """
        other_ids = list(dict.fromkeys(data.participant_ids))
        if creator.id in other_ids:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot start a conversation with yourself.",
            )

        is_support = creator.role == UserRole.ADMIN
        if not is_support and len(other_ids) != 1:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Private conversations have exactly one other participant.",
            )
        await self._load_participants(other_ids)

        conversation = None
        if not is_support:
            conversation = await self.find_private(creator.id, other_ids[0])
            if conversation:
                logger.info(f"[CHAT] Reusing conversation {conversation.id} for {creator.id}")

        if conversation is None:
            now = datetime.now(timezone.utc)
            conversation = Conversation(
                id=uuid.uuid4(),
                type=ConversationType.SUPPORT if is_support else ConversationType.PRIVATE,
                created_at=now,
                last_activity=now,
                participants=[
                    ConversationParticipant(user_id=user_id, joined_at=now)
                    for user_id in [creator.id, *other_ids]
                ],
            )
            self.db.add(conversation)
            await self._commit(f"creating conversation for {creator.id}")
            await self.invalidate_inboxes([creator.id, *other_ids])
            logger.info(
                f"[CHAT] Conversation {conversation.id} ({conversation.type.value}) "
                f"started by {creator.id} with {len(other_ids)} participant(s)"
            )

        if data.content:
            await self.send_message(
                creator, conversation.id, schemas.MessageCreate(content=data.content)
            )
        return await self.get_conversation(conversation.id, creator.id)

    async def send_message(
        self, sender: User, conversation_id: UUID, data: schemas.MessageCreate
    ) -> schemas.MessageRead:
        conversation = await self.get_participating_or_404(conversation_id, sender.id)
        recipients = [p.user_id for p in conversation.participants if p.user_id != sender.id]

        message = Message(
            id=uuid.uuid4(),
            conversation_id=conversation_id,
            sender_id=sender.id,
            sender=sender,
            content=data.content,
            timestamp=datetime.now(timezone.utc),
        )
        self.db.add(message)
        conversation.last_activity = message.timestamp
        await self._commit(f"sending message in {conversation_id}")

        message_read = schemas.MessageRead.model_validate(message)
        await self.invalidate_inboxes([sender.id, *recipients])
        await self._push(recipients, message_read)
        logger.info(f"[CHAT] Message {message.id} sent in {conversation_id} by {sender.id}")
        return message_read

    async def list_conversations(
        self, user_id: UUID, skip: int = 0, limit: int = 50
    ) -> tuple[list[schemas.ConversationSummary], int]:
        """Inbox of `user_id`, most recent activity first."""
        cache_key = _paginated_cache_key(CONVERSATION_LIST_NS, user_id, skip, limit)
        cached = await self._cache_get(cache_key)
        if cached is not None:
            return (
                [schemas.ConversationSummary.model_validate(c) for c in cached["items"]],
                cached["total"],
            )

        joined = select(ConversationParticipant.conversation_id).filter(
            ConversationParticipant.user_id == user_id
        )
        total = (
            await self.db.execute(
                select(func.count()).select_from(Conversation).filter(Conversation.id.in_(joined))
            )
        ).scalar_one()
        result = await self.db.execute(
            select(Conversation)
            .filter(Conversation.id.in_(joined))
            .order_by(Conversation.last_activity.desc(), Conversation.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        conversations = list(result.unique().scalars().all())

        latest: dict[UUID, Message] = {}
        if conversations:
            latest_result = await self.db.execute(
                select(Message)
                .filter(Message.conversation_id.in_([c.id for c in conversations]))
                .order_by(Message.conversation_id, Message.timestamp.desc())
                .distinct(Message.conversation_id)
            )
            latest = {m.conversation_id: m for m in latest_result.unique().scalars().all()}

        items = [
            schemas.ConversationSummary(
                id=c.id,
                type=c.type,
                created_at=c.created_at,
                last_activity=c.last_activity,
                participants=[
                    schemas.ConversationParticipantRead.model_validate(p) for p in c.participants
                ],
                last_message=(
                    schemas.MessageRead.model_validate(latest[c.id]) if c.id in latest else None
                ),
            )
            for c in conversations
        ]
        await self._cache_set(
            cache_key,
            json.dumps({"total": total, "items": [i.model_dump(mode="json") for i in items]}),
        )
        logger.info(f"[CHAT] Found {len(items)} conversations for {user_id} (Total: {total})")
        return items, total

    async def get_conversation(
        self, conversation_id: UUID, user_id: UUID
    ) -> schemas.ConversationRead:
        conversation = await self.get_participating_or_404(conversation_id, user_id)
        result = await self.db.execute(
            select(Message)
            .filter(Message.conversation_id == conversation_id)
            .order_by(Message.timestamp.asc())
        )
        return schemas.ConversationRead(
            id=conversation.id,
            type=conversation.type,
            created_at=conversation.created_at,
            last_activity=conversation.last_activity,
            participants=[
                schemas.ConversationParticipantRead.model_validate(p)
                for p in conversation.participants
            ],
            messages=[schemas.MessageRead.model_validate(m) for m in result.unique().scalars().all()],
        )

    # ---------------------------------------------------
    # Inbox Cache
    # ---------------------------------------------------
    async def _cache_get(self, key: str) -> Any | None:
        if not self.cache:
            return None
        try:
            data = await self.cache.get(key)
        except Exception as e:
            logger.error(f"[CACHE ASYNC CHAT ERROR] Read failed for {key}: {e}")
            return None
        if data:
            logger.info(f"[CACHE ASYNC HIT] {key}")
            return json.loads(data)
        return None

    async def _cache_set(self, key: str, payload: str) -> None:
        if not self.cache:
            return
        try:
            await self.cache.set(key, payload, ex=SHORT_CACHE_TTL)
        except Exception as e:
            logger.error(f"[CACHE ASYNC CHAT ERROR] Write failed for {key}: {e}")
