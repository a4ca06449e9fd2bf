"""
app/rider/services.py

Rider Service Layer
Handles rider profile and availability, location reporting, the rider's
assignments and the delivery/decline actions on assigned orders.
"""

import logging
import uuid
from datetime import datetime, timezone
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.enums import ApprovalStatus
from app.notification.models import NotificationType
from app.notification.services import NotificationService
from app.order.dispatch import DispatchService
from app.order.models import HISTORY_STATUSES, Order, OrderStatus
from app.order.schemas import OrderRead
from app.order.services import OrderService
from app.order.transitions import apply_transition
from app.rider import schemas
from app.rider.models import RiderLocation, RiderProfile

logger = logging.getLogger(__name__)


class RiderService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)
        self.orders = OrderService(db, self.notifications)

    async def _get_profile_or_404(self, rider_id: UUID) -> RiderProfile:
        result = await self.db.execute(
            select(RiderProfile).filter(RiderProfile.user_id == rider_id)
        )
        profile = result.scalar_one_or_none()
        if not profile:
            logger.warning(f"[RIDER] Profile not found for rider {rider_id}")
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Rider profile not found"
            )
        return profile

    async def _get_assigned_order(self, rider_id: UUID, order_id: UUID) -> Order:
        order = await self.orders.get_order_or_404(order_id)
        if order.rider_id != rider_id:
            logger.warning(f"[RIDER] Rider {rider_id} acted on order {order_id} not assigned to them")
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
        return order

    # ---------------------------------------------------
    # Profile and Availability
    # ---------------------------------------------------
    async def get_profile(self, rider_id: UUID) -> schemas.RiderProfileRead:
        return schemas.RiderProfileRead.model_validate(await self._get_profile_or_404(rider_id))

    async def update_profile(
        self, rider_id: UUID, data: schemas.RiderProfileUpdate
    ) -> schemas.RiderProfileRead:
        profile = await self._get_profile_or_404(rider_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(profile, key, value)
        await self.orders.commit_or_500(f"updating rider profile {rider_id}")
        await self.db.refresh(profile)
        return schemas.RiderProfileRead.model_validate(profile)

    async def set_availability(self, rider_id: UUID, is_available: bool) -> schemas.RiderProfileRead:
        profile = await self._get_profile_or_404(rider_id)
        profile.is_available = is_available
        await self.orders.commit_or_500(f"setting availability of {rider_id}")
        await self.db.refresh(profile)
        logger.info(f"[RIDER] Rider {rider_id} availability set to {is_available}")
        return schemas.RiderProfileRead.model_validate(profile)

    # ---------------------------------------------------
    # Location
    # ---------------------------------------------------
    async def record_location(
        self, rider_id: UUID, latitude: float, longitude: float
    ) -> schemas.RiderLocationRead:
        profile = await self._get_profile_or_404(rider_id)
        if profile.approval_status != ApprovalStatus.APPROVED:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Rider account is not approved yet.",
            )

        location = RiderLocation(
            id=uuid.uuid4(),
            rider_id=rider_id,
            latitude=latitude,
            longitude=longitude,
            recorded_at=datetime.now(timezone.utc),
        )
        self.db.add(location)
        await self.orders.commit_or_500(f"recording location of {rider_id}")
        logger.debug(f"[RIDER] Location of {rider_id}: ({latitude}, {longitude})")
        return schemas.RiderLocationRead.model_validate(location)

    # ---------------------------------------------------
    # Assignments
    # ---------------------------------------------------
    async def current_orders(self, rider_id: UUID) -> list[OrderRead]:
        orders, _ = await self.orders.list_orders(
            rider_id=rider_id, statuses=[OrderStatus.ASSIGNED], limit=100
        )
        return orders

    async def history(self, rider_id: UUID, skip: int, limit: int) -> tuple[list[OrderRead], int]:
        return await self.orders.list_orders(
            rider_id=rider_id, statuses=HISTORY_STATUSES, skip=skip, limit=limit
        )

    async def mark_delivered(self, rider_id: UUID, order_id: UUID) -> OrderRead:
        order = await self._get_assigned_order(rider_id, order_id)
        apply_transition(order, OrderStatus.DELIVERED)

        for recipient, body in (
            (order.user_id, f"Your order {order.id} has been delivered."),
            (order.vendor_id, f"Order {order.id} was delivered to the customer."),
        ):
            self.notifications.stage(
                recipient,
                "Order Delivered",
                body,
                type=NotificationType.ORDER_UPDATE,
                data={"orderId": str(order.id)},
            )
        await self.orders.commit_or_500(f"marking {order_id} delivered")
        await self.notifications.push_staged()
        logger.info(f"[RIDER] Rider {rider_id} delivered order {order_id}")
        return OrderRead.model_validate(await self.orders.get_order_or_404(order_id))

    async def decline(self, rider_id: UUID, order_id: UUID) -> OrderRead:
        """Hand an assignment back and try the next nearest rider."""
        order = await self._get_assigned_order(rider_id, order_id)
        apply_transition(order, OrderStatus.PENDING)

        vendor_profile = await self.orders.get_vendor_profile(order.vendor_id)
        chosen = await DispatchService(self.db, self.notifications).assign_nearest(
            order, vendor_profile, exclude=[rider_id]
        )
        if chosen:
            body = f"Order {order.id} was declined by a rider and reassigned."
        else:
            body = f"Order {order.id} was declined by a rider and is waiting for a new rider."
        self.notifications.stage(
            order.vendor_id,
            "Rider Declined",
            body,
            type=NotificationType.ORDER_UPDATE,
            data={"orderId": str(order.id)},
        )
        await self.orders.commit_or_500(f"declining {order_id}")
        await self.notifications.push_staged()
        logger.info(
            f"[RIDER] Rider {rider_id} declined order {order_id}; "
            f"reassigned to {chosen.rider_id if chosen else 'nobody'}"
        )
        return OrderRead.model_validate(await self.orders.get_order_or_404(order_id))
