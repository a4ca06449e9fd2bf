"""
tests/order/test_order_routes.py

Route tests for order/routes.py: listing, detail, tracking, receipt
confirmation and cancellation. Service calls are mocked.
"""

from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from fastapi import HTTPException, status
from httpx import AsyncClient

from app.database.models import User
from app.order import services as order_services
from app.order.models import OrderStatus
from app.order.schemas import OrderRead, OrderTrackRead


@pytest.mark.asyncio
@patch.object(order_services.OrderService, "list_orders", new_callable=AsyncMock)
async def test_list_my_orders(
    mock_list: AsyncMock,
    async_client: AsyncClient,
    override_get_db: AsyncMock,
    mock_current_customer_user: User,
    fake_order_read: OrderRead,
) -> None:
    mock_list.return_value = ([fake_order_read], 3)
    response = await async_client.get("/orders?skip=0&limit=1&status=ASSIGNED")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total_count"] == 3
    assert data["has_next_page"] is True
    assert data["items"][0]["id"] == str(fake_order_read.id)
    assert data["items"][0]["items"][0]["line_total"] == "3000.00"
    mock_list.assert_awaited_once_with(
        user_id=mock_current_customer_user.id,
        statuses=[OrderStatus.ASSIGNED],
        skip=0,
        limit=1,
    )


@pytest.mark.asyncio
async def test_list_my_orders_requires_customer_role(
    async_client: AsyncClient, override_get_db: AsyncMock, mock_current_rider_user: User
) -> None:
    response = await async_client.get("/orders")
    assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.asyncio
@patch.object(order_services.OrderService, "get_order", new_callable=AsyncMock)
async def test_get_order_detail(
    mock_get: AsyncMock,
    async_client: AsyncClient,
    override_get_db: AsyncMock,
    mock_current_vendor_user: User,
    fake_order_read: OrderRead,
) -> None:
    mock_get.return_value = fake_order_read
    response = await async_client.get(f"/orders/{fake_order_read.id}")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["total_amount"] == "3250.00"
    mock_get.assert_awaited_once_with(mock_current_vendor_user, fake_order_read.id)


@pytest.mark.asyncio
@patch.object(order_services.OrderService, "get_order", new_callable=AsyncMock)
async def test_get_order_not_visible(
    mock_get: AsyncMock,
    async_client: AsyncClient,
    override_get_db: AsyncMock,
    mock_current_customer_user: User,
) -> None:
    mock_get.side_effect = HTTPException(status_code=404, detail="Order not found")
    response = await async_client.get(f"/orders/{uuid4()}")
    assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
@patch.object(order_services.OrderService, "track", new_callable=AsyncMock)
async def test_track_order(
    mock_track: AsyncMock,
    async_client: AsyncClient,
    override_get_db: AsyncMock,
    mock_current_customer_user: User,
    fake_order_read: OrderRead,
) -> None:
    mock_track.return_value = OrderTrackRead(
        order_id=fake_order_read.id,
        status=OrderStatus.ASSIGNED,
        rider_id=fake_order_read.rider_id,
        rider_latitude=6.6,
        rider_longitude=3.35,
        distance_to_dropoff_km=0.4,
    )
    response = await async_client.get(f"/orders/{fake_order_read.id}/track")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["distance_to_dropoff_km"] == 0.4


@pytest.mark.asyncio
@patch.object(order_services.OrderService, "confirm_receipt", new_callable=AsyncMock)
async def test_confirm_receipt(
    mock_confirm: AsyncMock,
    async_client: AsyncClient,
    override_get_db: AsyncMock,
    mock_current_customer_user: User,
    fake_order_read: OrderRead,
) -> None:
    mock_confirm.return_value = fake_order_read.model_copy(
        update={"status": OrderStatus.COMPLETED}
    )
    response = await async_client.post(f"/orders/{fake_order_read.id}/confirm")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "COMPLETED"


@pytest.mark.asyncio
@patch.object(order_services.OrderService, "cancel", new_callable=AsyncMock)
async def test_cancel_order_with_reason(
    mock_cancel: AsyncMock,
    async_client: AsyncClient,
    override_get_db: AsyncMock,
    mock_current_customer_user: User,
    fake_order_read: OrderRead,
) -> None:
    mock_cancel.return_value = fake_order_read.model_copy(
        update={"status": OrderStatus.CANCELLED, "cancel_reason": "Changed my mind"}
    )
    response = await async_client.post(
        f"/orders/{fake_order_read.id}/cancel", json={"reason": "Changed my mind"}
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "CANCELLED"
    mock_cancel.assert_awaited_once_with(
        mock_current_customer_user, fake_order_read.id, "Changed my mind"
    )


@pytest.mark.asyncio
@patch.object(order_services.OrderService, "cancel", new_callable=AsyncMock)
async def test_cancel_order_without_body(
    mock_cancel: AsyncMock,
    async_client: AsyncClient,
    override_get_db: AsyncMock,
    mock_current_customer_user: User,
    fake_order_read: OrderRead,
) -> None:
    mock_cancel.return_value = fake_order_read.model_copy(update={"status": OrderStatus.CANCELLED})
    response = await async_client.post(f"/orders/{fake_order_read.id}/cancel")
    assert response.status_code == status.HTTP_200_OK
    mock_cancel.assert_awaited_once_with(mock_current_customer_user, fake_order_read.id, None)
