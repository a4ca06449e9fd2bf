"""
app/rider/routes.py

Rider endpoints: profile, availability, location pings and assignments.
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from app.core.dependencies import AuthenticatedRiderDep, DBDep, PaginationParams
from app.core.limiter import limiter
from app.core.schemas import PaginatedResponse
from app.order.schemas import OrderRead
from app.rider import schemas
from app.rider.services import RiderService

router = APIRouter(prefix="/riders", tags=["Riders"])
logger = logging.getLogger(__name__)


# ----------------------------------------------------
# Profile Endpoints
# ----------------------------------------------------
@router.get("/me/profile", response_model=schemas.RiderProfileRead, summary="Get My Rider Profile")
@limiter.limit("30/minute")
async def get_my_rider_profile(
    request: Request, db: DBDep, current_user: AuthenticatedRiderDep
) -> schemas.RiderProfileRead:
    return await RiderService(db).get_profile(current_user.id)


@router.patch(
    "/me/profile", response_model=schemas.RiderProfileRead, summary="Update My Rider Profile"
)
@limiter.limit("10/minute")
async def update_my_rider_profile(
    request: Request,
    data: schemas.RiderProfileUpdate,
    db: DBDep,
    current_user: AuthenticatedRiderDep,
) -> schemas.RiderProfileRead:
    return await RiderService(db).update_profile(current_user.id, data)


@router.patch(
    "/me/availability", response_model=schemas.RiderProfileRead, summary="Set Availability"
)
@limiter.limit("20/minute")
async def set_my_availability(
    request: Request,
    data: schemas.AvailabilityUpdate,
    db: DBDep,
    current_user: AuthenticatedRiderDep,
) -> schemas.RiderProfileRead:
    return await RiderService(db).set_availability(current_user.id, data.is_available)


@router.post(
    "/me/location",
    response_model=schemas.RiderLocationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Report Location",
)
@limiter.limit("120/minute")
async def report_my_location(
    request: Request,
    data: schemas.LocationUpdate,
    db: DBDep,
    current_user: AuthenticatedRiderDep,
) -> schemas.RiderLocationRead:
    return await RiderService(db).record_location(current_user.id, data.latitude, data.longitude)


# ----------------------------------------------------
# Assignment Endpoints
# ----------------------------------------------------
@router.get("/me/orders/current", response_model=list[OrderRead], summary="Current Assignments")
@limiter.limit("60/minute")
async def list_current_orders(
    request: Request, db: DBDep, current_user: AuthenticatedRiderDep
) -> list[OrderRead]:
    return await RiderService(db).current_orders(current_user.id)


@router.get(
    "/me/orders/history",
    response_model=PaginatedResponse[OrderRead],
    summary="Delivery History",
)
@limiter.limit("30/minute")
async def list_order_history(
    request: Request,
    db: DBDep,
    current_user: AuthenticatedRiderDep,
    pagination: Annotated[PaginationParams, Depends()],
) -> PaginatedResponse[OrderRead]:
    orders, total = await RiderService(db).history(
        current_user.id, pagination.skip, pagination.limit
    )
    return PaginatedResponse.from_page(orders, total, pagination.skip, pagination.limit)


@router.post(
    "/me/orders/{order_id}/deliver", response_model=OrderRead, summary="Mark Order Delivered"
)
@limiter.limit("20/minute")
async def mark_order_delivered(
    request: Request, order_id: UUID, db: DBDep, current_user: AuthenticatedRiderDep
) -> OrderRead:
    return await RiderService(db).mark_delivered(current_user.id, order_id)


@router.post(
    "/me/orders/{order_id}/decline",
    response_model=OrderRead,
    summary="Decline Assignment",
    description="Hands the order back; it is offered to the next nearest rider.",
)
@limiter.limit("20/minute")
async def decline_order(
    request: Request, order_id: UUID, db: DBDep, current_user: AuthenticatedRiderDep
) -> OrderRead:
    return await RiderService(db).decline(current_user.id, order_id)
