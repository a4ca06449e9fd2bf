"""
app/admin/routes.py

Admin API Routes

Defines routes for administrative operations including:
- Listing users and suspending or re-activating accounts
- Approving or rejecting vendor and rider profiles
- Overseeing orders (listing, advancing status, payment status)
- Delivery pricing settings and the platform summary

All endpoints require Admin authentication.
"""

import logging
from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from app.admin import schemas
from app.admin.services import AdminService
from app.core.dependencies import AuthenticatedAdminDep, DBDep, PaginationParams
from app.core.limiter import limiter
from app.core.schemas import PaginatedResponse
from app.database.enums import UserRole
from app.order.models import OrderStatus
from app.order.schemas import OrderRead

# ---------------------------------------------------
# Router Configuration
# ---------------------------------------------------
router = APIRouter(prefix="/admin", tags=["Admin"])
logger = logging.getLogger(__name__)


# ---------------------------------------------------
# User Management Endpoints
# ---------------------------------------------------
@router.get(
    "/users",
    response_model=PaginatedResponse[schemas.AdminUserView],
    status_code=status.HTTP_200_OK,
    summary="List Users",
    description="Retrieve users filtered by role and active flag. Requires Admin role.",
)
@limiter.limit("20/minute")
async def list_users(
    request: Request,
    db: DBDep,
    current_user: AuthenticatedAdminDep,
    pagination: Annotated[PaginationParams, Depends()],
    role: UserRole | None = Query(None, description="Filter by role"),
    is_active: bool | None = Query(None, description="Filter by active flag"),
) -> PaginatedResponse[schemas.AdminUserView]:
    users, total = await AdminService(db).list_users(
        role=role, is_active=is_active, skip=pagination.skip, limit=pagination.limit
    )
    return PaginatedResponse.from_page(users, total, pagination.skip, pagination.limit)


@router.get(
    "/users/{user_id}",
    response_model=schemas.AdminUserView,
    status_code=status.HTTP_200_OK,
    summary="Get User",
)
@limiter.limit("20/minute")
async def get_user(
    request: Request, user_id: UUID, db: DBDep, current_user: AuthenticatedAdminDep
) -> schemas.AdminUserView:
    return await AdminService(db).get_user(user_id)


@router.post(
    "/users/{user_id}/suspend",
    response_model=schemas.UserStatusUpdateResponse,
    status_code=status.HTTP_200_OK,
    summary="Suspend User",
    description="Deactivates an account. Admin accounts cannot be suspended.",
)
@limiter.limit("10/minute")
async def suspend_user(
    request: Request, user_id: UUID, db: DBDep, current_user: AuthenticatedAdminDep
) -> schemas.UserStatusUpdateResponse:
    logger.info(f"[ADMIN] Admin {current_user.id} suspending user {user_id}")
    return await AdminService(db).suspend_user(user_id)


@router.post(
    "/users/{user_id}/activate",
    response_model=schemas.UserStatusUpdateResponse,
    status_code=status.HTTP_200_OK,
    summary="Activate User",
)
@limiter.limit("10/minute")
async def activate_user(
    request: Request, user_id: UUID, db: DBDep, current_user: AuthenticatedAdminDep
) -> schemas.UserStatusUpdateResponse:
    logger.info(f"[ADMIN] Admin {current_user.id} activating user {user_id}")
    return await AdminService(db).activate_user(user_id)


# ---------------------------------------------------
# Approval Endpoints
# ---------------------------------------------------
@router.get(
    "/approvals/{profile_type}",
    response_model=PaginatedResponse[schemas.PendingApprovalItem],
    status_code=status.HTTP_200_OK,
    summary="List Pending Approvals",
    description="Vendor or rider profiles waiting for review.",
)
@limiter.limit("20/minute")
async def list_pending_approvals(
    request: Request,
    profile_type: Literal["vendor", "rider"],
    db: DBDep,
    current_user: AuthenticatedAdminDep,
    pagination: Annotated[PaginationParams, Depends()],
) -> PaginatedResponse[schemas.PendingApprovalItem]:
    items, total = await AdminService(db).list_pending_approvals(
        profile_type, pagination.skip, pagination.limit
    )
    return PaginatedResponse.from_page(items, total, pagination.skip, pagination.limit)


@router.post(
    "/vendors/{user_id}/approve",
    response_model=schemas.ApprovalActionResponse,
    summary="Approve Vendor",
)
@limiter.limit("10/minute")
async def approve_vendor(
    request: Request, user_id: UUID, db: DBDep, current_user: AuthenticatedAdminDep
) -> schemas.ApprovalActionResponse:
    return await AdminService(db).approve_vendor(user_id)


@router.post(
    "/vendors/{user_id}/reject",
    response_model=schemas.ApprovalActionResponse,
    summary="Reject Vendor",
)
@limiter.limit("10/minute")
async def reject_vendor(
    request: Request, user_id: UUID, db: DBDep, current_user: AuthenticatedAdminDep
) -> schemas.ApprovalActionResponse:
    return await AdminService(db).reject_vendor(user_id)


@router.post(
    "/riders/{user_id}/approve",
    response_model=schemas.ApprovalActionResponse,
    summary="Approve Rider",
)
@limiter.limit("10/minute")
async def approve_rider(
    request: Request, user_id: UUID, db: DBDep, current_user: AuthenticatedAdminDep
) -> schemas.ApprovalActionResponse:
    return await AdminService(db).approve_rider(user_id)


@router.post(
    "/riders/{user_id}/reject",
    response_model=schemas.ApprovalActionResponse,
    summary="Reject Rider",
)
@limiter.limit("10/minute")
async def reject_rider(
    request: Request, user_id: UUID, db: DBDep, current_user: AuthenticatedAdminDep
) -> schemas.ApprovalActionResponse:
    return await AdminService(db).reject_rider(user_id)


# ---------------------------------------------------
# Order Endpoints
# ---------------------------------------------------
@router.get(
    "/orders",
    response_model=PaginatedResponse[OrderRead],
    status_code=status.HTTP_200_OK,
    summary="List All Orders",
)
@limiter.limit("30/minute")
async def list_orders(
    request: Request,
    db: DBDep,
    current_user: AuthenticatedAdminDep,
    pagination: Annotated[PaginationParams, Depends()],
    status_filter: OrderStatus | None = Query(None, alias="status"),
) -> PaginatedResponse[OrderRead]:
    orders, total = await AdminService(db).list_orders(
        status_filter, pagination.skip, pagination.limit
    )
    return PaginatedResponse.from_page(orders, total, pagination.skip, pagination.limit)


@router.post(
    "/orders/{order_id}/advance",
    response_model=OrderRead,
    summary="Advance Order Status",
    description=(
        "Moves the order one step along pending -> assigned -> delivered -> completed. "
        "Advancing a pending order assigns the nearest available rider."
    ),
)
@limiter.limit("20/minute")
async def advance_order(
    request: Request, order_id: UUID, db: DBDep, current_user: AuthenticatedAdminDep
) -> OrderRead:
    logger.info(f"[ADMIN] Admin {current_user.id} advancing order {order_id}")
    return await AdminService(db).advance_order(order_id)


@router.patch(
    "/orders/{order_id}/payment-status",
    response_model=OrderRead,
    summary="Update Payment Status",
)
@limiter.limit("10/minute")
async def update_payment_status(
    request: Request,
    order_id: UUID,
    data: schemas.PaymentStatusUpdate,
    db: DBDep,
    current_user: AuthenticatedAdminDep,
) -> OrderRead:
    return await AdminService(db).update_payment_status(order_id, data.payment_status)


# ---------------------------------------------------
# Settings and Summary Endpoints
# ---------------------------------------------------
@router.get(
    "/settings/delivery-pricing",
    response_model=schemas.DeliveryPricingRead,
    summary="Get Delivery Pricing",
)
@limiter.limit("20/minute")
async def get_delivery_pricing(
    request: Request, db: DBDep, current_user: AuthenticatedAdminDep
) -> schemas.DeliveryPricingRead:
    return await AdminService(db).get_delivery_pricing()


@router.patch(
    "/settings/delivery-pricing",
    response_model=schemas.DeliveryPricingRead,
    summary="Update Delivery Pricing",
)
@limiter.limit("5/minute")
async def update_delivery_pricing(
    request: Request,
    data: schemas.DeliveryPricingUpdate,
    db: DBDep,
    current_user: AuthenticatedAdminDep,
) -> schemas.DeliveryPricingRead:
    logger.info(f"[ADMIN] Admin {current_user.id} updating delivery pricing")
    return await AdminService(db).update_delivery_pricing(data)


@router.get("/summary", response_model=schemas.AdminSummary, summary="Platform Summary")
@limiter.limit("20/minute")
async def get_summary(
    request: Request, db: DBDep, current_user: AuthenticatedAdminDep
) -> schemas.AdminSummary:
    return await AdminService(db).summary()
