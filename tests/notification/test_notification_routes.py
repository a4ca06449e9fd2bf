"""
tests/notification/test_notification_routes.py
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from fastapi import HTTPException, status
from httpx import AsyncClient

from app.database.models import User
from app.notification import services as notification_services
from app.notification.models import NotificationType
from app.notification.schemas import NotificationRead


def make_notification(user_id, is_read: bool = False) -> NotificationRead:
    return NotificationRead(
        id=uuid4(),
        user_id=user_id,
        title="New Order Received",
        body="Order placed.",
        type=NotificationType.ORDER_UPDATE,
        data={"orderId": str(uuid4())},
        is_read=is_read,
        created_at=datetime.now(timezone.utc),
    )


@pytest.mark.asyncio
@patch.object(notification_services.NotificationService, "list_notifications", new_callable=AsyncMock)
async def test_list_notifications(
    mock_list: AsyncMock,
    async_client: AsyncClient,
    override_get_db: AsyncMock,
    mock_current_vendor_user: User,
) -> None:
    items = [make_notification(mock_current_vendor_user.id) for _ in range(2)]
    mock_list.return_value = (items, 2)
    response = await async_client.get("/notifications?unread_only=true")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total_count"] == 2
    assert data["has_next_page"] is False
    assert data["items"][0]["data"]["orderId"] == items[0].data["orderId"]
    mock_list.assert_awaited_once_with(
        mock_current_vendor_user.id, unread_only=True, skip=0, limit=50
    )


@pytest.mark.asyncio
@patch.object(notification_services.NotificationService, "unread_count", new_callable=AsyncMock)
async def test_unread_count(
    mock_count: AsyncMock,
    async_client: AsyncClient,
    override_get_db: AsyncMock,
    mock_current_rider_user: User,
) -> None:
    mock_count.return_value = 4
    response = await async_client.get("/notifications/unread-count")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"unread_count": 4}


@pytest.mark.asyncio
@patch.object(notification_services.NotificationService, "mark_read", new_callable=AsyncMock)
async def test_mark_read(
    mock_mark: AsyncMock,
    async_client: AsyncClient,
    override_get_db: AsyncMock,
    mock_current_customer_user: User,
) -> None:
    notification = make_notification(mock_current_customer_user.id, is_read=True)
    mock_mark.return_value = notification
    response = await async_client.patch(f"/notifications/{notification.id}/read")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["is_read"] is True
    mock_mark.assert_awaited_once_with(mock_current_customer_user.id, notification.id)


@pytest.mark.asyncio
@patch.object(notification_services.NotificationService, "mark_read", new_callable=AsyncMock)
async def test_mark_read_someone_elses(
    mock_mark: AsyncMock,
    async_client: AsyncClient,
    override_get_db: AsyncMock,
    mock_current_customer_user: User,
) -> None:
    mock_mark.side_effect = HTTPException(status_code=404, detail="Notification not found")
    response = await async_client.patch(f"/notifications/{uuid4()}/read")
    assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
@patch.object(notification_services.NotificationService, "mark_all_read", new_callable=AsyncMock)
async def test_mark_all_read(
    mock_mark_all: AsyncMock,
    async_client: AsyncClient,
    override_get_db: AsyncMock,
    mock_current_customer_user: User,
) -> None:
    mock_mark_all.return_value = 3
    response = await async_client.post("/notifications/read-all")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["detail"] == "3 notification(s) marked as read."


@pytest.mark.asyncio
@patch.object(notification_services.NotificationService, "delete", new_callable=AsyncMock)
async def test_delete_notification(
    mock_delete: AsyncMock,
    async_client: AsyncClient,
    override_get_db: AsyncMock,
    mock_current_customer_user: User,
) -> None:
    notification_id = uuid4()
    response = await async_client.delete(f"/notifications/{notification_id}")
    assert response.status_code == status.HTTP_204_NO_CONTENT
    mock_delete.assert_awaited_once_with(mock_current_customer_user.id, notification_id)
