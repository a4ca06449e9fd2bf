"""
app/user/routes.py

Profile and saved delivery addresses for the authenticated account.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, File, Request, UploadFile, status

from app.core.dependencies import CurrentUserDep, DBDep
from app.core.limiter import limiter
from app.core.upload import upload_file_to_s3
from app.user import schemas
from app.user.services import UserService

router = APIRouter(prefix="/users", tags=["Users"])
logger = logging.getLogger(__name__)


# ----------------------------------------------------
# Profile Endpoints
# ----------------------------------------------------
@router.get("/me", response_model=schemas.UserProfileRead, summary="Get My Profile")
@limiter.limit("30/minute")
async def get_my_profile(
    request: Request, db: DBDep, current_user: CurrentUserDep
) -> schemas.UserProfileRead:
    return await UserService(db).get_profile(current_user)


@router.patch("/me", response_model=schemas.UserProfileRead, summary="Update My Profile")
@limiter.limit("10/minute")
async def update_my_profile(
    request: Request,
    data: schemas.UserProfileUpdate,
    db: DBDep,
    current_user: CurrentUserDep,
) -> schemas.UserProfileRead:
    return await UserService(db).update_profile(current_user, data)


@router.patch(
    "/me/profile-picture",
    response_model=schemas.UserProfileRead,
    summary="Upload Profile Picture",
    description="JPEG, PNG, GIF or WEBP image up to 1 MB.",
)
@limiter.limit("5/minute")
async def update_my_profile_picture(
    request: Request,
    db: DBDep,
    current_user: CurrentUserDep,
    profile_picture: UploadFile = File(..., description="New profile picture"),
) -> schemas.UserProfileRead:
    logger.info(f"User {current_user.id} attempting to update profile picture.")
    picture_url = await upload_file_to_s3(profile_picture, subfolder="profile_pictures")
    return await UserService(db).update_profile_picture(current_user, picture_url)


# ----------------------------------------------------
# Delivery Address Endpoints
# ----------------------------------------------------
@router.get(
    "/me/addresses",
    response_model=list[schemas.DeliveryAddressRead],
    summary="List My Delivery Addresses",
)
@limiter.limit("30/minute")
async def list_my_addresses(
    request: Request, db: DBDep, current_user: CurrentUserDep
) -> list[schemas.DeliveryAddressRead]:
    return await UserService(db).list_addresses(current_user.id)


@router.post(
    "/me/addresses",
    response_model=schemas.DeliveryAddressRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add Delivery Address",
)
@limiter.limit("10/minute")
async def create_my_address(
    request: Request,
    data: schemas.DeliveryAddressCreate,
    db: DBDep,
    current_user: CurrentUserDep,
) -> schemas.DeliveryAddressRead:
    return await UserService(db).create_address(current_user.id, data)


@router.patch(
    "/me/addresses/{address_id}",
    response_model=schemas.DeliveryAddressRead,
    summary="Update Delivery Address",
)
@limiter.limit("10/minute")
async def update_my_address(
    request: Request,
    address_id: UUID,
    data: schemas.DeliveryAddressUpdate,
    db: DBDep,
    current_user: CurrentUserDep,
) -> schemas.DeliveryAddressRead:
    return await UserService(db).update_address(current_user.id, address_id, data)


@router.delete(
    "/me/addresses/{address_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Delivery Address",
)
@limiter.limit("10/minute")
async def delete_my_address(
    request: Request, address_id: UUID, db: DBDep, current_user: CurrentUserDep
) -> None:
    await UserService(db).delete_address(current_user.id, address_id)


@router.post(
    "/me/addresses/{address_id}/default",
    response_model=schemas.DeliveryAddressRead,
    summary="Set Default Delivery Address",
)
@limiter.limit("10/minute")
async def set_my_default_address(
    request: Request, address_id: UUID, db: DBDep, current_user: CurrentUserDep
) -> schemas.DeliveryAddressRead:
    return await UserService(db).set_default_address(current_user.id, address_id)
