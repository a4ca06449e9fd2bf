"""
tests/order/test_dispatch.py

Nearest-rider selection and assignment.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from app.database.enums import ApprovalStatus
from app.notification.services import NotificationService
from app.order import dispatch
from app.order.dispatch import DispatchService, RiderCandidate, rank_riders, select_nearest_rider
from app.order.models import Order, OrderStatus, PaymentStatus
from app.vendor.models import VendorProfile

VENDOR_LAT, VENDOR_LNG = 6.5244, 3.3792
NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def candidate(lat: float, lng: float, minutes_ago: int = 0) -> RiderCandidate:
    return RiderCandidate(
        rider_id=uuid4(),
        latitude=lat,
        longitude=lng,
        recorded_at=NOW - timedelta(minutes=minutes_ago),
    )


def test_rank_riders_nearest_first() -> None:
    far = candidate(6.60, 3.35)
    near = candidate(6.525, 3.380)
    middle = candidate(6.55, 3.39)
    ranked = rank_riders(VENDOR_LAT, VENDOR_LNG, [far, near, middle])
    assert [c.rider_id for c in ranked] == [near.rider_id, middle.rider_id, far.rider_id]
    assert ranked[0].distance_km is not None
    assert ranked[0].distance_km < ranked[1].distance_km


def test_rank_riders_skips_unset_and_excluded() -> None:
    unset = candidate(0.0, 0.0)
    excluded = candidate(6.5245, 3.3793)
    kept = candidate(6.53, 3.38)
    ranked = rank_riders(VENDOR_LAT, VENDOR_LNG, [unset, excluded, kept], exclude=[excluded.rider_id])
    assert [c.rider_id for c in ranked] == [kept.rider_id]


def test_rank_riders_tie_prefers_most_recent() -> None:
    older = candidate(6.53, 3.38, minutes_ago=30)
    newer = candidate(6.53, 3.38, minutes_ago=1)
    ranked = rank_riders(VENDOR_LAT, VENDOR_LNG, [older, newer])
    assert ranked[0].rider_id == newer.rider_id


def test_select_nearest_rider_without_origin() -> None:
    assert select_nearest_rider(None, VENDOR_LNG, [candidate(6.53, 3.38)]) is None


def test_select_nearest_rider_empty() -> None:
    assert select_nearest_rider(VENDOR_LAT, VENDOR_LNG, []) is None


def make_order(status: OrderStatus = OrderStatus.PENDING, rider_id=None) -> Order:
    return Order(
        id=uuid4(),
        user_id=uuid4(),
        vendor_id=uuid4(),
        rider_id=rider_id,
        status=status,
        payment_status=PaymentStatus.PAID,
        payment_method="paystack",
        payment_reference="ref_dispatch",
        subtotal=Decimal("1000"),
        delivery_fee=Decimal("100"),
        total_amount=Decimal("1100"),
        delivery_address="5 Broad Street",
    )


def make_vendor(lat: float | None = VENDOR_LAT, lng: float | None = VENDOR_LNG) -> VendorProfile:
    return VendorProfile(
        id=uuid4(),
        user_id=uuid4(),
        business_name="Mama Put",
        approval_status=ApprovalStatus.APPROVED,
        is_open=True,
        latitude=lat,
        longitude=lng,
    )


@pytest.fixture
def notifications() -> NotificationService:
    db = AsyncMock()
    db.add = MagicMock()
    return NotificationService(db)


@pytest.mark.asyncio
async def test_assign_nearest_sets_rider_and_stages_pickup(notifications: NotificationService) -> None:
    order = make_order()
    near = candidate(6.525, 3.380)
    far = candidate(6.60, 3.35)
    with patch.object(
        dispatch, "load_rider_candidates", new_callable=AsyncMock, return_value=[far, near]
    ):
        chosen = await DispatchService(AsyncMock(), notifications).assign_nearest(order, make_vendor())

    assert chosen is not None
    assert chosen.rider_id == near.rider_id
    assert order.rider_id == near.rider_id
    assert order.status == OrderStatus.ASSIGNED
    assert order.assigned_at is not None

    [staged] = notifications._staged
    assert staged.user_id == near.rider_id
    assert staged.title == "New Pickup Assigned"
    assert staged.data["orderId"] == str(order.id)
    assert staged.data["vendorLat"] == VENDOR_LAT
    assert staged.data["userAddress"] == "5 Broad Street"
    assert staged.data["distanceKm"] == chosen.distance_km


@pytest.mark.asyncio
async def test_assign_nearest_no_candidates(notifications: NotificationService) -> None:
    order = make_order()
    with patch.object(dispatch, "load_rider_candidates", new_callable=AsyncMock, return_value=[]):
        chosen = await DispatchService(AsyncMock(), notifications).assign_nearest(order, make_vendor())
    assert chosen is None
    assert order.status == OrderStatus.PENDING
    assert order.rider_id is None
    assert notifications._staged == []


@pytest.mark.asyncio
async def test_assign_nearest_vendor_without_coordinates(notifications: NotificationService) -> None:
    order = make_order()
    with patch.object(dispatch, "load_rider_candidates", new_callable=AsyncMock) as mock_load:
        chosen = await DispatchService(AsyncMock(), notifications).assign_nearest(
            order, make_vendor(lat=None, lng=None)
        )
    assert chosen is None
    mock_load.assert_not_awaited()


@pytest.mark.asyncio
async def test_assign_nearest_passes_exclusions(notifications: NotificationService) -> None:
    order = make_order()
    declined = candidate(6.5245, 3.3793)
    other = candidate(6.55, 3.39)
    with patch.object(
        dispatch, "load_rider_candidates", new_callable=AsyncMock, return_value=[declined, other]
    ) as mock_load:
        chosen = await DispatchService(AsyncMock(), notifications).assign_nearest(
            order, make_vendor(), exclude=[declined.rider_id]
        )
    assert chosen is not None
    assert chosen.rider_id == other.rider_id
    assert mock_load.await_args.args[1] == [declined.rider_id]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "order_status", [OrderStatus.ASSIGNED, OrderStatus.DELIVERED, OrderStatus.CANCELLED]
)
async def test_assign_nearest_leaves_non_pending_order_alone(
    notifications: NotificationService, order_status: OrderStatus
) -> None:
    current_rider = uuid4()
    order = make_order(status=order_status, rider_id=current_rider)
    with patch.object(
        dispatch,
        "load_rider_candidates",
        new_callable=AsyncMock,
        return_value=[candidate(6.525, 3.380)],
    ) as mock_load:
        chosen = await DispatchService(AsyncMock(), notifications).assign_nearest(order, make_vendor())
    assert chosen is None
    assert order.status == order_status
    assert order.rider_id == current_rider
    assert order.assigned_at is None
    assert notifications._staged == []
    mock_load.assert_not_awaited()
