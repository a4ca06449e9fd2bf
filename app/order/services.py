"""
app/order/services.py

Order Service Layer

- Single order placement path (after payment verification)
- Order listing, detail and tracking with party-based visibility
- Customer receipt confirmation and cancellation
"""

import logging
import uuid
from collections import OrderedDict
from collections.abc import Iterable
from decimal import Decimal
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.cart.models import Cart, CartItem
from app.core.geo import haversine_km, round_km
from app.database.enums import ApprovalStatus, UserRole
from app.database.models import User
from app.notification.models import NotificationType
from app.notification.services import NotificationService
from app.order import schemas
from app.order.dispatch import DispatchService
from app.order.models import Order, OrderItem, OrderStatus, PaymentStatus
from app.order.pricing import load_delivery_pricing
from app.order.transitions import apply_transition
from app.rider.models import RiderLocation
from app.user.models import DeliveryAddress
from app.vendor.models import MenuItem, VendorProfile

logger = logging.getLogger(__name__)


class OrderService:
    def __init__(self, db: AsyncSession, notifications: NotificationService | None = None):
        self.db = db
        self.notifications = notifications or NotificationService(db)

    # ---------------------------------------------------
    # Helpers
    # ---------------------------------------------------
    async def get_order_or_404(self, order_id: UUID) -> Order:
        result = await self.db.execute(
            select(Order)
            .options(selectinload(Order.items))
            .filter(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        order = result.unique().scalar_one_or_none()
        if not order:
            logger.warning(f"[ORDER] Order not found: {order_id}")
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
        return order

    async def get_by_reference(self, reference: str) -> Order | None:
        result = await self.db.execute(
            select(Order)
            .options(selectinload(Order.items))
            .filter(Order.payment_reference == reference)
            .execution_options(populate_existing=True)
        )
        return result.unique().scalar_one_or_none()

    def resolve_existing(self, existing: Order, user_id: UUID) -> schemas.OrderRead:
        """Idempotent replay of a placement: same owner gets the order, anyone else a 409."""
        if existing.user_id != user_id:
            logger.warning(
                f"[ORDER] Reference {existing.payment_reference} already used by another account"
            )
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Payment reference has already been used.",
            )
        logger.info(f"[ORDER] Reference {existing.payment_reference} already placed as {existing.id}")
        return schemas.OrderRead.model_validate(existing)

    def _can_view(self, order: Order, user: User) -> bool:
        if user.role == UserRole.ADMIN:
            return True
        return user.id in (order.user_id, order.vendor_id, order.rider_id)

    async def get_visible_order(self, user: User, order_id: UUID) -> Order:
        order = await self.get_order_or_404(order_id)
        if not self._can_view(order, user):
            logger.warning(f"[ORDER] User {user.id} tried to view order {order_id}")
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
        return order

    async def commit_or_500(self, context: str) -> None:
        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            self.notifications.discard_staged()
            logger.error(f"[ORDER] Commit failed while {context}: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update order.",
            )

    async def get_vendor_profile(self, vendor_id: UUID) -> VendorProfile | None:
        result = await self.db.execute(
            select(VendorProfile).filter(VendorProfile.user_id == vendor_id)
        )
        return result.scalar_one_or_none()

    # ---------------------------------------------------
    # Placement
    # ---------------------------------------------------
    async def _load_checkout_items(
        self, payload: schemas.CheckoutRequest
    ) -> tuple[list[tuple[MenuItem, int]], UUID]:
        quantities: "OrderedDict[UUID, int]" = OrderedDict()
        for line in payload.items:
            quantities[line.menu_item_id] = quantities.get(line.menu_item_id, 0) + line.quantity

        result = await self.db.execute(select(MenuItem).filter(MenuItem.id.in_(quantities.keys())))
        menu_items = {item.id: item for item in result.scalars().all()}

        missing = [str(i) for i in quantities if i not in menu_items]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Menu item(s) not found: {', '.join(missing)}",
            )
        unavailable = [menu_items[i].name for i in quantities if not menu_items[i].is_available]
        if unavailable:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Menu item(s) not available: {', '.join(unavailable)}",
            )
        vendor_ids = {item.vendor_id for item in menu_items.values()}
        if len(vendor_ids) != 1:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="All items in an order must come from the same vendor.",
            )
        lines = [(menu_items[item_id], qty) for item_id, qty in quantities.items()]
        return lines, vendor_ids.pop()

    async def _resolve_drop_off(
        self, user_id: UUID, payload: schemas.CheckoutRequest
    ) -> tuple[str, float | None, float | None]:
        if payload.address_id is not None:
            result = await self.db.execute(
                select(DeliveryAddress).filter(
                    DeliveryAddress.id == payload.address_id, DeliveryAddress.user_id == user_id
                )
            )
            address = result.scalar_one_or_none()
            if not address:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND, detail="Delivery address not found"
                )
            return address.full_address, address.latitude, address.longitude
        return (
            payload.delivery_address or "",
            payload.delivery_latitude,
            payload.delivery_longitude,
        )

    async def _clear_cart(self, user_id: UUID) -> None:
        cart_ids = select(Cart.id).filter(Cart.user_id == user_id)
        await self.db.execute(delete(CartItem).where(CartItem.cart_id.in_(cart_ids)))

    async def place_order(
        self, user: User, payload: schemas.CheckoutRequest, amount_paid: Decimal
    ) -> schemas.OrderRead:
        """
        Create a paid order from a verified checkout.

        The payment reference is the idempotency key: replaying a placed
        reference returns the stored order. After the insert the vendor and
        customer are notified and the nearest rider is assigned when one is
        available; otherwise the order stays PENDING.

        Raises:
            HTTPException 403: Caller is not a customer.
            HTTPException 400: Invalid items or vendor not accepting orders.
            HTTPException 402: Amount paid does not cover the order total.
            HTTPException 404: Saved address not found.
            HTTPException 409: Reference already used by another account.
        """
        if user.role != UserRole.USER:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail="Only customers can place orders."
            )

        existing = await self.get_by_reference(payload.reference)
        if existing:
            return self.resolve_existing(existing, user.id)

        lines, vendor_id = await self._load_checkout_items(payload)

        vendor_profile = await self.get_vendor_profile(vendor_id)
        if not vendor_profile or vendor_profile.approval_status != ApprovalStatus.APPROVED:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Vendor is not approved."
            )
        if not vendor_profile.is_open:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Vendor is not accepting orders right now.",
            )

        address_text, drop_lat, drop_lng = await self._resolve_drop_off(user.id, payload)

        distance = haversine_km(vendor_profile.latitude, vendor_profile.longitude, drop_lat, drop_lng)
        distance_km = round_km(distance) if distance is not None else None

        pricing = await load_delivery_pricing(self.db)
        delivery_fee = pricing.fee_for(distance_km)
        subtotal = sum((item.price * qty for item, qty in lines), Decimal("0"))
        total = subtotal + delivery_fee

        if amount_paid < total:
            logger.warning(
                f"[ORDER] Underpayment on {payload.reference}: paid {amount_paid}, total {total}"
            )
            raise HTTPException(
                status_code=status.HTTP_402_PAYMENT_REQUIRED,
                detail=f"Amount paid ({amount_paid}) does not cover the order total ({total}).",
            )

        order = Order(
            id=uuid.uuid4(),
            user_id=user.id,
            vendor_id=vendor_id,
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PAID,
            payment_method="paystack",
            payment_reference=payload.reference,
            subtotal=subtotal,
            delivery_fee=delivery_fee,
            total_amount=total,
            delivery_address=address_text,
            delivery_latitude=drop_lat,
            delivery_longitude=drop_lng,
            distance_km=distance_km,
            notes=payload.notes,
            scheduled_pickup=payload.scheduled_pickup,
            items=[
                OrderItem(menu_item_id=item.id, name=item.name, unit_price=item.price, quantity=qty)
                for item, qty in lines
            ],
        )
        self.db.add(order)

        self.notifications.stage(
            user.id,
            "Order Confirmed",
            f"Your order {order.id} is confirmed!",
            type=NotificationType.SUCCESS,
            data={"orderId": str(order.id)},
        )
        self.notifications.stage(
            vendor_id,
            "New Order Received",
            f"Order {order.id} has been placed.",
            type=NotificationType.ORDER_UPDATE,
            data={"orderId": str(order.id)},
        )

        try:
            await self.db.flush()
            await DispatchService(self.db, self.notifications).assign_nearest(order, vendor_profile)
            await self._clear_cart(user.id)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            self.notifications.discard_staged()
            logger.warning(f"[ORDER] Concurrent placement for reference {payload.reference}: {e}")
            winner = await self.get_by_reference(payload.reference)
            if winner is None:
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail="Failed to place order.",
                )
            return self.resolve_existing(winner, user.id)
        except Exception as e:
            await self.db.rollback()
            self.notifications.discard_staged()
            logger.error(f"[ORDER] Failed to place order {payload.reference}: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to place order."
            )

        logger.info(
            f"[ORDER] Order {order.id} placed by {user.id} for vendor {vendor_id}: "
            f"subtotal={subtotal} fee={delivery_fee} total={total} status={order.status.value}"
        )
        await self.notifications.push_staged()
        return schemas.OrderRead.model_validate(await self.get_order_or_404(order.id))

    # ---------------------------------------------------
    # Listing
    # ---------------------------------------------------
    async def list_orders(
        self,
        *,
        user_id: UUID | None = None,
        vendor_id: UUID | None = None,
        rider_id: UUID | None = None,
        statuses: Iterable[OrderStatus] | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[schemas.OrderRead], int]:
        filters = []
        if user_id is not None:
            filters.append(Order.user_id == user_id)
        if vendor_id is not None:
            filters.append(Order.vendor_id == vendor_id)
        if rider_id is not None:
            filters.append(Order.rider_id == rider_id)
        if statuses is not None:
            filters.append(Order.status.in_(list(statuses)))

        total = (
            await self.db.execute(select(func.count()).select_from(Order).filter(*filters))
        ).scalar_one()
        result = await self.db.execute(
            select(Order)
            .options(selectinload(Order.items))
            .filter(*filters)
            .order_by(Order.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        orders = [schemas.OrderRead.model_validate(o) for o in result.unique().scalars().all()]
        return orders, total

    # ---------------------------------------------------
    # Detail and Tracking
    # ---------------------------------------------------
    async def get_order(self, user: User, order_id: UUID) -> schemas.OrderRead:
        order = await self.get_visible_order(user, order_id)
        return schemas.OrderRead.model_validate(order)

    async def track(self, user: User, order_id: UUID) -> schemas.OrderTrackRead:
        order = await self.get_visible_order(user, order_id)
        track = schemas.OrderTrackRead(order_id=order.id, status=order.status, rider_id=order.rider_id)
        if order.rider_id is None:
            return track

        result = await self.db.execute(
            select(RiderLocation)
            .filter(RiderLocation.rider_id == order.rider_id)
            .order_by(RiderLocation.recorded_at.desc())
            .limit(1)
        )
        location = result.scalar_one_or_none()
        if location is None:
            return track

        distance = haversine_km(
            location.latitude, location.longitude, order.delivery_latitude, order.delivery_longitude
        )
        track.rider_latitude = location.latitude
        track.rider_longitude = location.longitude
        track.rider_location_at = location.recorded_at
        track.distance_to_dropoff_km = round_km(distance) if distance is not None else None
        return track

    # ---------------------------------------------------
    # Customer Actions
    # ---------------------------------------------------
    async def _get_own_order(self, user: User, order_id: UUID) -> Order:
        if user.role != UserRole.USER:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail="Only the customer can do this."
            )
        order = await self.get_order_or_404(order_id)
        if order.user_id != user.id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
        return order

    async def confirm_receipt(self, user: User, order_id: UUID) -> schemas.OrderRead:
        order = await self._get_own_order(user, order_id)
        apply_transition(order, OrderStatus.COMPLETED)
        self.notifications.stage(
            order.vendor_id,
            "Order Completed",
            f"Order {order.id} was received by the customer.",
            type=NotificationType.ORDER_UPDATE,
            data={"orderId": str(order.id)},
        )
        await self.commit_or_500(f"confirming receipt of {order_id}")
        await self.notifications.push_staged()
        logger.info(f"[ORDER] Order {order_id} completed by customer {user.id}")
        return schemas.OrderRead.model_validate(await self.get_order_or_404(order_id))

    async def cancel(self, user: User, order_id: UUID, reason: str | None) -> schemas.OrderRead:
        order = await self._get_own_order(user, order_id)
        rider_id = order.rider_id
        apply_transition(order, OrderStatus.CANCELLED)
        order.cancel_reason = reason

        body = f"Order {order.id} was cancelled by the customer."
        self.notifications.stage(
            order.vendor_id,
            "Order Cancelled",
            body,
            type=NotificationType.ORDER_UPDATE,
            data={"orderId": str(order.id)},
        )
        if rider_id:
            self.notifications.stage(
                rider_id,
                "Pickup Cancelled",
                body,
                type=NotificationType.ORDER_UPDATE,
                data={"orderId": str(order.id)},
            )
        await self.commit_or_500(f"cancelling {order_id}")
        await self.notifications.push_staged()
        logger.info(f"[ORDER] Order {order_id} cancelled by customer {user.id}")
        return schemas.OrderRead.model_validate(await self.get_order_or_404(order_id))
