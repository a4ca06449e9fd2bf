"""
app/order/routes.py

Order endpoints. Orders are created through payment verification
(`POST /paystack/verify`); this router covers reading and customer actions.
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from app.core.dependencies import (
    AuthenticatedUserDep,
    CurrentUserDep,
    DBDep,
    PaginationParams,
)
from app.core.limiter import limiter
from app.core.schemas import PaginatedResponse
from app.order import schemas
from app.order.models import OrderStatus
from app.order.services import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])
logger = logging.getLogger(__name__)


@router.get(
    "",
    response_model=PaginatedResponse[schemas.OrderRead],
    summary="List My Orders",
    description="Orders placed by the authenticated customer, newest first.",
)
@limiter.limit("30/minute")
async def list_my_orders(
    request: Request,
    db: DBDep,
    current_user: AuthenticatedUserDep,
    pagination: Annotated[PaginationParams, Depends()],
    status_filter: OrderStatus | None = Query(None, alias="status"),
) -> PaginatedResponse[schemas.OrderRead]:
    orders, total = await OrderService(db).list_orders(
        user_id=current_user.id,
        statuses=[status_filter] if status_filter else None,
        skip=pagination.skip,
        limit=pagination.limit,
    )
    return PaginatedResponse.from_page(orders, total, pagination.skip, pagination.limit)


@router.get("/{order_id}", response_model=schemas.OrderRead, summary="Get Order Detail")
@limiter.limit("60/minute")
async def get_order(
    request: Request, order_id: UUID, db: DBDep, current_user: CurrentUserDep
) -> schemas.OrderRead:
    return await OrderService(db).get_order(current_user, order_id)


@router.get(
    "/{order_id}/track",
    response_model=schemas.OrderTrackRead,
    summary="Track Order",
    description="Order status with the assigned rider's latest position.",
)
@limiter.limit("60/minute")
async def track_order(
    request: Request, order_id: UUID, db: DBDep, current_user: CurrentUserDep
) -> schemas.OrderTrackRead:
    return await OrderService(db).track(current_user, order_id)


@router.post(
    "/{order_id}/confirm",
    response_model=schemas.OrderRead,
    summary="Confirm Receipt",
    description="Customer confirms a delivered order, completing it.",
)
@limiter.limit("10/minute")
async def confirm_receipt(
    request: Request, order_id: UUID, db: DBDep, current_user: CurrentUserDep
) -> schemas.OrderRead:
    return await OrderService(db).confirm_receipt(current_user, order_id)


@router.post("/{order_id}/cancel", response_model=schemas.OrderRead, summary="Cancel Order")
@limiter.limit("10/minute")
async def cancel_order(
    request: Request,
    order_id: UUID,
    db: DBDep,
    current_user: CurrentUserDep,
    payload: schemas.CancelOrderRequest | None = None,
) -> schemas.OrderRead:
    reason = payload.reason if payload else None
    return await OrderService(db).cancel(current_user, order_id, reason)
