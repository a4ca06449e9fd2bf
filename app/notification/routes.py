"""
app/notification/routes.py

Inbox endpoints for the authenticated account.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from app.core.dependencies import CurrentUserDep, DBDep, PaginationParams
from app.core.limiter import limiter
from app.core.schemas import MessageResponse, PaginatedResponse
from app.notification import schemas
from app.notification.services import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get(
    "",
    response_model=PaginatedResponse[schemas.NotificationRead],
    summary="List My Notifications",
)
@limiter.limit("30/minute")
async def list_my_notifications(
    request: Request,
    db: DBDep,
    current_user: CurrentUserDep,
    pagination: Annotated[PaginationParams, Depends()],
    unread_only: bool = Query(False, description="Only return unread notifications"),
) -> PaginatedResponse[schemas.NotificationRead]:
    items, total = await NotificationService(db).list_notifications(
        current_user.id, unread_only=unread_only, skip=pagination.skip, limit=pagination.limit
    )
    return PaginatedResponse.from_page(items, total, pagination.skip, pagination.limit)


@router.get(
    "/unread-count",
    response_model=schemas.UnreadCountResponse,
    summary="Unread Notification Count",
)
@limiter.limit("60/minute")
async def get_unread_count(
    request: Request, db: DBDep, current_user: CurrentUserDep
) -> schemas.UnreadCountResponse:
    count = await NotificationService(db).unread_count(current_user.id)
    return schemas.UnreadCountResponse(unread_count=count)


@router.patch(
    "/{notification_id}/read",
    response_model=schemas.NotificationRead,
    summary="Mark Notification Read",
)
@limiter.limit("60/minute")
async def mark_notification_read(
    request: Request, notification_id: UUID, db: DBDep, current_user: CurrentUserDep
) -> schemas.NotificationRead:
    return await NotificationService(db).mark_read(current_user.id, notification_id)


@router.post("/read-all", response_model=MessageResponse, summary="Mark All Notifications Read")
@limiter.limit("10/minute")
async def mark_all_notifications_read(
    request: Request, db: DBDep, current_user: CurrentUserDep
) -> MessageResponse:
    updated = await NotificationService(db).mark_all_read(current_user.id)
    return MessageResponse(detail=f"{updated} notification(s) marked as read.")


@router.delete(
    "/{notification_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Notification",
)
@limiter.limit("30/minute")
async def delete_notification(
    request: Request, notification_id: UUID, db: DBDep, current_user: CurrentUserDep
) -> None:
    await NotificationService(db).delete(current_user.id, notification_id)
