"""
app/order/transitions.py

Order status changes shared by placement, dispatch, rider, vendor and admin
flows. Allowed moves live in `ORDER_TRANSITIONS`.
"""

import logging
from datetime import datetime, timezone

from fastapi import HTTPException, status

from app.order.models import Order, OrderStatus, can_transition

logger = logging.getLogger(__name__)

_TIMESTAMP_FIELDS: dict[OrderStatus, str] = {
    OrderStatus.ASSIGNED: "assigned_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.COMPLETED: "completed_at",
    OrderStatus.CANCELLED: "cancelled_at",
}


def apply_transition(order: Order, target: OrderStatus) -> None:
    """
    Move an order to `target`, stamping the matching lifecycle timestamp.

    Raises:
        HTTPException 400: If the move is not allowed from the current status.
    """
    if not can_transition(order.status, target):
        logger.warning(
            f"[ORDER] Rejected transition {order.status.value} -> {target.value} for order {order.id}"
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot change order status from {order.status.value} to {target.value}.",
        )
    order.status = target
    stamp = _TIMESTAMP_FIELDS.get(target)
    if stamp:
        setattr(order, stamp, datetime.now(timezone.utc))
    if target == OrderStatus.PENDING:
        order.rider_id = None
        order.assigned_at = None

