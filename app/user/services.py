"""
app/user/services.py

Profile and delivery-address operations for the authenticated account.
"""

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.upload import delete_file_from_s3
from app.database.models import User
from app.user import schemas
from app.user.models import DeliveryAddress

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _commit(self, context: str) -> None:
        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"[USER] Commit failed while {context}: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Could not save changes.",
            )

    # ---------------------------------------------------
    # Profile
    # ---------------------------------------------------
    async def get_profile(self, user: User) -> schemas.UserProfileRead:
        return schemas.UserProfileRead.model_validate(user)

    async def update_profile(
        self, user: User, data: schemas.UserProfileUpdate
    ) -> schemas.UserProfileRead:
        update_data = data.model_dump(exclude_unset=True)
        new_phone = update_data.get("phone_number")
        if new_phone and new_phone != user.phone_number:
            taken = await self.db.execute(
                select(User.id).filter(User.phone_number == new_phone, User.id != user.id)
            )
            if taken.scalar_one_or_none():
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST, detail="Phone number already in use"
                )

        for key, value in update_data.items():
            setattr(user, key, value)
        self.db.add(user)
        await self._commit(f"updating profile of {user.id}")
        await self.db.refresh(user)
        logger.info(f"[USER] Profile updated for {user.id}: fields={list(update_data)}")
        return schemas.UserProfileRead.model_validate(user)

    async def update_profile_picture(self, user: User, picture_url: str) -> schemas.UserProfileRead:
        previous = user.profile_picture
        user.profile_picture = picture_url
        self.db.add(user)
        await self._commit(f"updating profile picture of {user.id}")
        await self.db.refresh(user)
        if previous and previous != picture_url:
            delete_file_from_s3(previous)
        logger.info(f"[USER] Profile picture updated for {user.id}")
        return schemas.UserProfileRead.model_validate(user)

    # ---------------------------------------------------
    # Delivery Addresses
    # ---------------------------------------------------
    async def _get_address_or_404(self, user_id: UUID, address_id: UUID) -> DeliveryAddress:
        result = await self.db.execute(
            select(DeliveryAddress).filter(
                DeliveryAddress.id == address_id, DeliveryAddress.user_id == user_id
            )
        )
        address = result.scalar_one_or_none()
        if not address:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Address not found")
        return address

    async def _clear_default(self, user_id: UUID) -> None:
        await self.db.execute(
            update(DeliveryAddress)
            .where(DeliveryAddress.user_id == user_id, DeliveryAddress.is_default.is_(True))
            .values(is_default=False)
        )

    async def list_addresses(self, user_id: UUID) -> list[schemas.DeliveryAddressRead]:
        result = await self.db.execute(
            select(DeliveryAddress)
            .filter(DeliveryAddress.user_id == user_id)
            .order_by(DeliveryAddress.is_default.desc(), DeliveryAddress.created_at.desc())
        )
        return [schemas.DeliveryAddressRead.model_validate(a) for a in result.scalars().all()]

    async def create_address(
        self, user_id: UUID, data: schemas.DeliveryAddressCreate
    ) -> schemas.DeliveryAddressRead:
        existing = await self.db.execute(
            select(DeliveryAddress.id).filter(DeliveryAddress.user_id == user_id).limit(1)
        )
        is_first = existing.scalar_one_or_none() is None
        make_default = data.is_default or is_first
        if make_default and not is_first:
            await self._clear_default(user_id)

        address = DeliveryAddress(
            user_id=user_id, **data.model_dump(exclude={"is_default"}), is_default=make_default
        )
        self.db.add(address)
        await self._commit(f"creating address for {user_id}")
        await self.db.refresh(address)
        logger.info(f"[USER] Address {address.id} created for {user_id} (default={make_default})")
        return schemas.DeliveryAddressRead.model_validate(address)

    async def update_address(
        self, user_id: UUID, address_id: UUID, data: schemas.DeliveryAddressUpdate
    ) -> schemas.DeliveryAddressRead:
        address = await self._get_address_or_404(user_id, address_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(address, key, value)
        await self._commit(f"updating address {address_id}")
        await self.db.refresh(address)
        return schemas.DeliveryAddressRead.model_validate(address)

    async def delete_address(self, user_id: UUID, address_id: UUID) -> None:
        address = await self._get_address_or_404(user_id, address_id)
        await self.db.delete(address)
        await self._commit(f"deleting address {address_id}")
        logger.info(f"[USER] Address {address_id} deleted for {user_id}")

    async def set_default_address(
        self, user_id: UUID, address_id: UUID
    ) -> schemas.DeliveryAddressRead:
        address = await self._get_address_or_404(user_id, address_id)
        await self._clear_default(user_id)
        address.is_default = True
        await self._commit(f"setting default address {address_id}")
        await self.db.refresh(address)
        return schemas.DeliveryAddressRead.model_validate(address)
