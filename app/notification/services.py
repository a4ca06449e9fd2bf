"""
app/notification/services.py

Notification persistence and live fan-out.

Rows are staged on the caller's session so they commit atomically with the
change that produced them; the websocket push happens only after commit.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.notification.manager import ConnectionManager, manager
from app.notification.models import Notification, NotificationType
from app.notification.schemas import NotificationRead

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, db: AsyncSession, connections: ConnectionManager | None = None):
        self.db = db
        self.connections = connections or manager
        self._staged: list[Notification] = []

    # ---------------------------------------------------
    # Creation and Fan-out
    # ---------------------------------------------------
    def stage(
        self,
        user_id: UUID,
        title: str,
        body: str,
        type: NotificationType = NotificationType.INFO,
        data: dict[str, Any] | None = None,
    ) -> Notification:
        """Add a notification to the session and queue it for a push after commit."""
        notification = Notification(
            id=uuid.uuid4(),
            user_id=user_id,
            title=title,
            body=body,
            type=type,
            data=data or {},
            is_read=False,
            created_at=datetime.now(timezone.utc),
        )
        self.db.add(notification)
        self._staged.append(notification)
        logger.debug(f"[NOTIFY] Staged '{title}' for user {user_id}")
        return notification

    async def push_staged(self) -> int:
        """Send queued notifications to connected sockets. Returns how many sockets were reached."""
        staged, self._staged = self._staged, []
        reached = 0
        for notification in staged:
            payload = NotificationRead.model_validate(notification).model_dump(mode="json")
            try:
                reached += await self.connections.send_to_user(notification.user_id, payload)
            except Exception as e:
                logger.error(
                    f"[NOTIFY] Live push failed for user {notification.user_id}: {e}", exc_info=True
                )
        if staged:
            logger.info(f"[NOTIFY] Pushed {len(staged)} notification(s), {reached} socket(s) reached")
        return reached

    def discard_staged(self) -> None:
        self._staged = []

    async def notify(
        self,
        user_id: UUID,
        title: str,
        body: str,
        type: NotificationType = NotificationType.INFO,
        data: dict[str, Any] | None = None,
    ) -> NotificationRead:
        """Stage, commit and push a single notification."""
        notification = self.stage(user_id, title, body, type=type, data=data)
        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            self.discard_staged()
            logger.error(f"[NOTIFY] Failed to save notification for {user_id}: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to save notification.",
            )
        await self.push_staged()
        return NotificationRead.model_validate(notification)

    # ---------------------------------------------------
    # Inbox Operations
    # ---------------------------------------------------
    async def list_notifications(
        self, user_id: UUID, unread_only: bool = False, skip: int = 0, limit: int = 50
    ) -> tuple[list[NotificationRead], int]:
        filters = [Notification.user_id == user_id]
        if unread_only:
            filters.append(Notification.is_read.is_(False))

        total = (
            await self.db.execute(select(func.count()).select_from(Notification).filter(*filters))
        ).scalar_one()
        result = await self.db.execute(
            select(Notification)
            .filter(*filters)
            .order_by(Notification.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        items = [NotificationRead.model_validate(n) for n in result.scalars().all()]
        return items, total

    async def unread_count(self, user_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(Notification)
            .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        )
        return int(result.scalar_one())

    async def _get_owned_or_404(self, user_id: UUID, notification_id: UUID) -> Notification:
        notification = await self.db.get(Notification, notification_id)
        if not notification or notification.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found"
            )
        return notification

    async def mark_read(self, user_id: UUID, notification_id: UUID) -> NotificationRead:
        notification = await self._get_owned_or_404(user_id, notification_id)
        if not notification.is_read:
            notification.is_read = True
            await self.db.commit()
            await self.db.refresh(notification)
        return NotificationRead.model_validate(notification)

    async def mark_all_read(self, user_id: UUID) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        await self.db.commit()
        updated = result.rowcount or 0
        logger.info(f"[NOTIFY] Marked {updated} notification(s) read for user {user_id}")
        return updated

    async def delete(self, user_id: UUID, notification_id: UUID) -> None:
        notification = await self._get_owned_or_404(user_id, notification_id)
        await self.db.delete(notification)
        await self.db.commit()
