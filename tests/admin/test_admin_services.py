"""
tests/admin/test_admin_services.py

AdminService rules that do not need a database: suspension guard and
the order advance state machine.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from fastapi import HTTPException, status

from app.admin import services as admin_services
from app.database.models import User
from app.order.dispatch import DispatchService, RiderCandidate
from app.order.models import Order, OrderStatus, PaymentStatus
from app.order.schemas import OrderRead


@pytest.fixture
def db() -> AsyncMock:
    session = AsyncMock()
    session.add = MagicMock()
    return session


def make_order(status_: OrderStatus, rider_id=None) -> Order:
    return Order(
        id=uuid4(),
        user_id=uuid4(),
        vendor_id=uuid4(),
        rider_id=rider_id,
        status=status_,
        payment_status=PaymentStatus.PAID,
        payment_method="paystack",
        payment_reference=f"ref_{uuid4().hex[:6]}",
        subtotal=Decimal("1000"),
        delivery_fee=Decimal("100"),
        total_amount=Decimal("1100"),
        delivery_address="1 Marina Road",
    )


@pytest.mark.asyncio
async def test_suspend_admin_forbidden(db: AsyncMock, fake_admin_user: User) -> None:
    db.get.return_value = fake_admin_user
    with pytest.raises(HTTPException) as exc:
        await admin_services.AdminService(db).suspend_user(fake_admin_user.id)
    assert exc.value.status_code == status.HTTP_400_BAD_REQUEST
    assert fake_admin_user.is_active is True


@pytest.mark.asyncio
async def test_suspend_user(db: AsyncMock, fake_rider_user: User) -> None:
    db.get.return_value = fake_rider_user
    result = await admin_services.AdminService(db).suspend_user(fake_rider_user.id)
    assert result.action == "suspended"
    assert fake_rider_user.is_active is False
    db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_activate_already_active_user_is_noop(db: AsyncMock, fake_rider_user: User) -> None:
    db.get.return_value = fake_rider_user
    result = await admin_services.AdminService(db).activate_user(fake_rider_user.id)
    assert result.action == "activated"
    db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_get_missing_user(db: AsyncMock) -> None:
    db.get.return_value = None
    with pytest.raises(HTTPException) as exc:
        await admin_services.AdminService(db).get_user(uuid4())
    assert exc.value.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
@pytest.mark.parametrize("terminal", [OrderStatus.COMPLETED, OrderStatus.CANCELLED])
async def test_advance_terminal_order(db: AsyncMock, terminal: OrderStatus) -> None:
    service = admin_services.AdminService(db)
    order = make_order(terminal)
    with patch.object(service.orders, "get_order_or_404", new_callable=AsyncMock, return_value=order):
        with pytest.raises(HTTPException) as exc:
            await service.advance_order(order.id)
    assert exc.value.status_code == status.HTTP_400_BAD_REQUEST
    db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_advance_pending_without_rider(db: AsyncMock) -> None:
    service = admin_services.AdminService(db)
    order = make_order(OrderStatus.PENDING)
    with (
        patch.object(service.orders, "get_order_or_404", new_callable=AsyncMock, return_value=order),
        patch.object(service.orders, "get_vendor_profile", new_callable=AsyncMock),
        patch.object(DispatchService, "assign_nearest", new_callable=AsyncMock, return_value=None),
    ):
        with pytest.raises(HTTPException) as exc:
            await service.advance_order(order.id)
    assert exc.value.status_code == status.HTTP_409_CONFLICT
    assert order.status == OrderStatus.PENDING
    db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_advance_pending_dispatches(db: AsyncMock, fake_order_read: OrderRead) -> None:
    service = admin_services.AdminService(db)
    order = make_order(OrderStatus.PENDING)
    chosen = MagicMock(spec=RiderCandidate)
    with (
        patch.object(
            service.orders,
            "get_order_or_404",
            new_callable=AsyncMock,
            side_effect=[order, fake_order_read],
        ),
        patch.object(service.orders, "get_vendor_profile", new_callable=AsyncMock),
        patch.object(
            DispatchService, "assign_nearest", new_callable=AsyncMock, return_value=chosen
        ) as mock_dispatch,
    ):
        result = await service.advance_order(order.id)
    assert result == fake_order_read
    mock_dispatch.assert_awaited_once()
    db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_advance_assigned_to_delivered_notifies_parties(
    db: AsyncMock, fake_order_read: OrderRead
) -> None:
    service = admin_services.AdminService(db)
    rider_id = uuid4()
    order = make_order(OrderStatus.ASSIGNED, rider_id=rider_id)
    with patch.object(
        service.orders,
        "get_order_or_404",
        new_callable=AsyncMock,
        side_effect=[order, fake_order_read],
    ):
        await service.advance_order(order.id)

    assert order.status == OrderStatus.DELIVERED
    assert order.delivered_at is not None
    notified = {call.args[0].user_id for call in db.add.call_args_list}
    assert notified == {order.user_id, order.vendor_id, rider_id}
