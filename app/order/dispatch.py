"""
app/order/dispatch.py

Nearest-rider dispatch.

- RiderCandidate: a rider with a usable last-known position
- rank_riders / select_nearest_rider: pure ranking by straight-line distance
- load_rider_candidates: eligible riders with their newest location
- DispatchService: assigns the nearest rider to an order
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.geo import haversine_km, is_unset_location, round_km
from app.database.enums import ApprovalStatus, UserRole
from app.database.models import User
from app.notification.models import NotificationType
from app.notification.services import NotificationService
from app.order.models import Order, OrderStatus, can_transition
from app.order.transitions import apply_transition
from app.rider.models import RiderLocation, RiderProfile
from app.vendor.models import VendorProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RiderCandidate:
    rider_id: UUID
    latitude: float
    longitude: float
    recorded_at: datetime
    distance_km: float | None = None


# ---------------------------------------------------
# Ranking
# ---------------------------------------------------
def rank_riders(
    origin_lat: float | None,
    origin_lng: float | None,
    candidates: Iterable[RiderCandidate],
    exclude: Iterable[UUID] = (),
) -> list[RiderCandidate]:
    """
    Candidates with their distance to the origin, nearest first.
    Ties go to the most recently reported position.
    """
    if origin_lat is None or origin_lng is None:
        return []
    excluded = set(exclude)
    ranked: list[RiderCandidate] = []
    for candidate in candidates:
        if candidate.rider_id in excluded:
            continue
        if is_unset_location(candidate.latitude, candidate.longitude):
            continue
        distance = haversine_km(origin_lat, origin_lng, candidate.latitude, candidate.longitude)
        if distance is None:
            continue
        ranked.append(replace(candidate, distance_km=round_km(distance)))

    ranked.sort(key=lambda c: (c.distance_km, -c.recorded_at.timestamp()))
    return ranked


def select_nearest_rider(
    origin_lat: float | None,
    origin_lng: float | None,
    candidates: Iterable[RiderCandidate],
    exclude: Iterable[UUID] = (),
) -> RiderCandidate | None:
    ranked = rank_riders(origin_lat, origin_lng, candidates, exclude)
    return ranked[0] if ranked else None


# ---------------------------------------------------
# Candidate Loading
# ---------------------------------------------------
async def load_rider_candidates(
    db: AsyncSession, exclude: Iterable[UUID] = ()
) -> list[RiderCandidate]:
    """
    Newest location of every rider who can take a pickup right now:
    active RIDER accounts, approved and available, with a fresh position
    and no ASSIGNED order.
    """
    cutoff = datetime.now(timezone.utc) - timedelta(minutes=settings.RIDER_LOCATION_MAX_AGE_MINUTES)

    latest = (
        select(
            RiderLocation.rider_id.label("rider_id"),
            func.max(RiderLocation.recorded_at).label("recorded_at"),
        )
        .filter(RiderLocation.recorded_at >= cutoff)
        .group_by(RiderLocation.rider_id)
        .subquery()
    )
    busy = select(Order.rider_id).filter(
        Order.status == OrderStatus.ASSIGNED, Order.rider_id.is_not(None)
    )

    stmt = (
        select(
            RiderLocation.rider_id,
            RiderLocation.latitude,
            RiderLocation.longitude,
            RiderLocation.recorded_at,
        )
        .join(
            latest,
            (RiderLocation.rider_id == latest.c.rider_id)
            & (RiderLocation.recorded_at == latest.c.recorded_at),
        )
        .join(User, User.id == RiderLocation.rider_id)
        .join(RiderProfile, RiderProfile.user_id == User.id)
        .filter(
            User.role == UserRole.RIDER,
            User.is_active.is_(True),
            RiderProfile.approval_status == ApprovalStatus.APPROVED,
            RiderProfile.is_available.is_(True),
            RiderLocation.rider_id.not_in(busy),
        )
    )
    excluded = list(exclude)
    if excluded:
        stmt = stmt.filter(RiderLocation.rider_id.not_in(excluded))

    result = await db.execute(stmt)
    seen: set[UUID] = set()
    candidates: list[RiderCandidate] = []
    for row in result.all():
        # identical timestamps can return two rows for one rider
        if row.rider_id in seen:
            continue
        seen.add(row.rider_id)
        candidates.append(
            RiderCandidate(
                rider_id=row.rider_id,
                latitude=row.latitude,
                longitude=row.longitude,
                recorded_at=row.recorded_at,
            )
        )
    return candidates


# ---------------------------------------------------
# Assignment
# ---------------------------------------------------
class DispatchService:
    """Assigns riders to orders. Changes are staged on the session; callers commit."""

    def __init__(self, db: AsyncSession, notifications: NotificationService):
        self.db = db
        self.notifications = notifications

    async def assign_nearest(
        self,
        order: Order,
        vendor_profile: VendorProfile | None,
        exclude: Iterable[UUID] = (),
    ) -> RiderCandidate | None:
        """
        Assign the nearest eligible rider to a PENDING order.

        Returns:
            RiderCandidate | None: The chosen rider, or None when no assignment was made.
        """
        if not can_transition(order.status, OrderStatus.ASSIGNED):
            logger.warning(
                f"[DISPATCH] Order {order.id} is {order.status.value}, not eligible for assignment"
            )
            return None
        if vendor_profile is None or vendor_profile.latitude is None or vendor_profile.longitude is None:
            logger.warning(f"[DISPATCH] Order {order.id}: vendor has no coordinates, cannot dispatch")
            return None

        excluded = list(exclude)
        candidates = await load_rider_candidates(self.db, excluded)
        chosen = select_nearest_rider(
            vendor_profile.latitude, vendor_profile.longitude, candidates, excluded
        )
        if chosen is None:
            logger.warning(
                f"[DISPATCH] Order {order.id}: no eligible rider among {len(candidates)} candidate(s)"
            )
            return None

        apply_transition(order, OrderStatus.ASSIGNED)
        order.rider_id = chosen.rider_id

        self.notifications.stage(
            chosen.rider_id,
            "New Pickup Assigned",
            f"Pickup order {order.id} at your nearest vendor.",
            type=NotificationType.ORDER_UPDATE,
            data={
                "orderId": str(order.id),
                "vendorLat": vendor_profile.latitude,
                "vendorLng": vendor_profile.longitude,
                "userAddress": order.delivery_address,
                "distanceKm": chosen.distance_km,
            },
        )
        logger.info(
            f"[DISPATCH] Order {order.id} assigned to rider {chosen.rider_id} "
            f"({chosen.distance_km} km from vendor)"
        )
        return chosen
