"""
app/admin/services.py

Admin Service Layer

Handles administrative operations:
- User listing, suspension and re-activation
- Vendor and rider approval
- Order oversight: listing, advancing status, payment status
- Delivery pricing settings
- Platform summary figures
"""

import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from decimal import Decimal
from typing import Literal
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.admin import schemas
from app.admin.models import PlatformSetting
from app.database.enums import ApprovalStatus, UserRole
from app.database.models import User
from app.notification.models import NotificationType
from app.notification.services import NotificationService
from app.order.dispatch import DispatchService
from app.order.models import NEXT_STATUS, Order, OrderStatus, PaymentStatus
from app.order.pricing import load_delivery_pricing
from app.order.schemas import OrderRead
from app.order.services import OrderService
from app.order.transitions import apply_transition
from app.rider.models import RiderProfile
from app.vendor.models import VendorProfile
from app.vendor.services import VendorService

logger = logging.getLogger(__name__)

ProfileType = Literal["vendor", "rider"]


class AdminService:
    """Service layer for admin-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)
        self.orders = OrderService(db, self.notifications)

    async def _get_user_or_404(self, user_id: UUID) -> User:
        user = await self.db.get(User, user_id)
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return user

    # ---------------------------------------------------
    # User Management
    # ---------------------------------------------------
    async def list_users(
        self,
        role: UserRole | None = None,
        is_active: bool | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[schemas.AdminUserView], int]:
        filters = []
        if role is not None:
            filters.append(User.role == role)
        if is_active is not None:
            filters.append(User.is_active.is_(is_active))

        total = (
            await self.db.execute(select(func.count()).select_from(User).filter(*filters))
        ).scalar_one()
        result = await self.db.execute(
            select(User).filter(*filters).order_by(User.created_at.desc()).offset(skip).limit(limit)
        )
        users = [schemas.AdminUserView.model_validate(u) for u in result.unique().scalars().all()]
        return users, total

    async def get_user(self, user_id: UUID) -> schemas.AdminUserView:
        return schemas.AdminUserView.model_validate(await self._get_user_or_404(user_id))

    async def _set_active(self, user_id: UUID, is_active: bool) -> schemas.UserStatusUpdateResponse:
        user = await self._get_user_or_404(user_id)
        if not is_active and user.role == UserRole.ADMIN:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Admin accounts cannot be suspended."
            )
        action = "activated" if is_active else "suspended"
        if user.is_active == is_active:
            logger.info(f"[ADMIN] No status change needed for user {user_id}")
        else:
            user.is_active = is_active
            await self.orders.commit_or_500(f"setting is_active={is_active} for {user_id}")
            logger.info(f"[ADMIN] User {user_id} {action}")

        return schemas.UserStatusUpdateResponse(
            user_id=user_id, action=action, success=True, timestamp=datetime.now(timezone.utc)
        )

    async def suspend_user(self, user_id: UUID) -> schemas.UserStatusUpdateResponse:
        return await self._set_active(user_id, False)

    async def activate_user(self, user_id: UUID) -> schemas.UserStatusUpdateResponse:
        return await self._set_active(user_id, True)

    # ---------------------------------------------------
    # Approvals
    # ---------------------------------------------------
    async def list_pending_approvals(
        self, profile_type: ProfileType, skip: int = 0, limit: int = 50
    ) -> tuple[list[schemas.PendingApprovalItem], int]:
        model = VendorProfile if profile_type == "vendor" else RiderProfile
        pending = model.approval_status == ApprovalStatus.PENDING

        total = (
            await self.db.execute(select(func.count()).select_from(model).filter(pending))
        ).scalar_one()
        result = await self.db.execute(
            select(model, User)
            .join(User, User.id == model.user_id)
            .filter(pending)
            .order_by(model.created_at)
            .offset(skip)
            .limit(limit)
        )
        items = [
            schemas.PendingApprovalItem(
                user_id=user.id,
                profile_type=profile_type,
                display_name=(
                    profile.business_name if isinstance(profile, VendorProfile) else user.full_name
                ),
                email=user.email,
                submitted_at=profile.created_at,
            )
            for profile, user in result.all()
        ]
        return items, total

    async def _review_profile(
        self, profile_type: ProfileType, user_id: UUID, new_status: ApprovalStatus
    ) -> schemas.ApprovalActionResponse:
        model = VendorProfile if profile_type == "vendor" else RiderProfile
        profile = (
            await self.db.execute(select(model).filter(model.user_id == user_id))
        ).scalar_one_or_none()
        if not profile:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{profile_type.capitalize()} profile not found",
            )
        if profile.approval_status == new_status:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{profile_type.capitalize()} already {new_status.value.lower()}",
            )

        profile.approval_status = new_status
        approved = new_status == ApprovalStatus.APPROVED
        self.notifications.stage(
            user_id,
            f"{profile_type.capitalize()} Account {'Approved' if approved else 'Rejected'}",
            (
                f"Your {profile_type} account has been approved."
                if approved
                else f"Your {profile_type} account application was not approved."
            ),
            type=NotificationType.SYSTEM,
            data={"approvalStatus": new_status.value},
        )
        await self.orders.commit_or_500(f"reviewing {profile_type} {user_id}")
        await self.notifications.push_staged()

        if profile_type == "vendor":
            await VendorService(self.db).invalidate_vendor_caches(user_id)
        logger.info(f"[ADMIN] {profile_type} {user_id} set to {new_status.value}")
        return schemas.ApprovalActionResponse(
            user_id=user_id,
            profile_type=profile_type,
            status=new_status,
            reviewed_at=datetime.now(timezone.utc),
        )

    async def approve_vendor(self, user_id: UUID) -> schemas.ApprovalActionResponse:
        return await self._review_profile("vendor", user_id, ApprovalStatus.APPROVED)

    async def reject_vendor(self, user_id: UUID) -> schemas.ApprovalActionResponse:
        return await self._review_profile("vendor", user_id, ApprovalStatus.REJECTED)

    async def approve_rider(self, user_id: UUID) -> schemas.ApprovalActionResponse:
        return await self._review_profile("rider", user_id, ApprovalStatus.APPROVED)

    async def reject_rider(self, user_id: UUID) -> schemas.ApprovalActionResponse:
        return await self._review_profile("rider", user_id, ApprovalStatus.REJECTED)

    # ---------------------------------------------------
    # Orders
    # ---------------------------------------------------
    async def list_orders(
        self, status_filter: OrderStatus | None, skip: int, limit: int
    ) -> tuple[list[OrderRead], int]:
        return await self.orders.list_orders(
            statuses=[status_filter] if status_filter else None, skip=skip, limit=limit
        )

    async def advance_order(self, order_id: UUID) -> OrderRead:
        """
        Move an order one step along pending -> assigned -> delivered -> completed.
        Advancing a pending order dispatches the nearest rider.
        """
        order = await self.orders.get_order_or_404(order_id)
        target = NEXT_STATUS.get(order.status)
        if target is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Order is {order.status.value} and cannot be advanced.",
            )

        if target == OrderStatus.ASSIGNED:
            vendor_profile = await self.orders.get_vendor_profile(order.vendor_id)
            chosen = await DispatchService(self.db, self.notifications).assign_nearest(
                order, vendor_profile
            )
            if chosen is None:
                self.notifications.discard_staged()
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT, detail="No rider available."
                )
        else:
            apply_transition(order, target)

        recipients: Sequence[UUID | None] = (order.user_id, order.vendor_id)
        if target != OrderStatus.ASSIGNED:
            recipients = (*recipients, order.rider_id)
        for recipient in recipients:
            if recipient is None:
                continue
            self.notifications.stage(
                recipient,
                "Order Status Updated",
                f"Order {order.id} is now {target.value}.",
                type=NotificationType.ORDER_UPDATE,
                data={"orderId": str(order.id), "status": target.value},
            )
        await self.orders.commit_or_500(f"advancing {order_id} to {target.value}")
        await self.notifications.push_staged()
        logger.info(f"[ADMIN] Order {order_id} advanced to {target.value}")
        return OrderRead.model_validate(await self.orders.get_order_or_404(order_id))

    async def update_payment_status(self, order_id: UUID, payment_status: PaymentStatus) -> OrderRead:
        order = await self.orders.get_order_or_404(order_id)
        order.payment_status = payment_status
        await self.orders.commit_or_500(f"updating payment status of {order_id}")
        logger.info(f"[ADMIN] Order {order_id} payment status set to {payment_status.value}")
        return OrderRead.model_validate(await self.orders.get_order_or_404(order_id))

    # ---------------------------------------------------
    # Delivery Pricing
    # ---------------------------------------------------
    async def get_delivery_pricing(self) -> schemas.DeliveryPricingRead:
        pricing = await load_delivery_pricing(self.db)
        return schemas.DeliveryPricingRead(
            price_per_km_low=pricing.price_per_km_low,
            price_per_km_high=pricing.price_per_km_high,
            distance_threshold_km=pricing.distance_threshold_km,
            flat_delivery_fee=pricing.flat_fee,
        )

    async def update_delivery_pricing(
        self, data: schemas.DeliveryPricingUpdate
    ) -> schemas.DeliveryPricingRead:
        for key, value in data.model_dump(exclude_none=True).items():
            setting = await self.db.get(PlatformSetting, key)
            if setting:
                setting.value = str(value)
            else:
                self.db.add(PlatformSetting(key=key, value=str(value)))
        await self.orders.commit_or_500("updating delivery pricing")
        logger.info(f"[ADMIN] Delivery pricing updated: {data.model_dump(exclude_none=True)}")
        return await self.get_delivery_pricing()

    # ---------------------------------------------------
    # Summary
    # ---------------------------------------------------
    async def summary(self) -> schemas.AdminSummary:
        users_by_role = {r.value: 0 for r in UserRole}
        for role, count in (
            await self.db.execute(select(User.role, func.count()).group_by(User.role))
        ).all():
            users_by_role[role.value] = count

        orders_by_status = {s.value: 0 for s in OrderStatus}
        for order_status, count in (
            await self.db.execute(select(Order.status, func.count()).group_by(Order.status))
        ).all():
            orders_by_status[order_status.value] = count

        revenue = (
            await self.db.execute(
                select(func.coalesce(func.sum(Order.total_amount), 0)).filter(
                    Order.payment_status == PaymentStatus.PAID
                )
            )
        ).scalar_one()

        pending_vendors = (
            await self.db.execute(
                select(func.count())
                .select_from(VendorProfile)
                .filter(VendorProfile.approval_status == ApprovalStatus.PENDING)
            )
        ).scalar_one()
        pending_riders = (
            await self.db.execute(
                select(func.count())
                .select_from(RiderProfile)
                .filter(RiderProfile.approval_status == ApprovalStatus.PENDING)
            )
        ).scalar_one()

        return schemas.AdminSummary(
            users_by_role=users_by_role,
            orders_by_status=orders_by_status,
            revenue=Decimal(str(revenue)).quantize(Decimal("0.01")),
            pending_vendor_approvals=pending_vendors,
            pending_rider_approvals=pending_riders,
        )
