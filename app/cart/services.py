"""
app/cart/services.py

Cart Service Layer
Holds one cart per customer; prices are read live from the menu.
"""

import logging
from decimal import Decimal
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.cart import schemas
from app.cart.models import Cart, CartItem
from app.vendor.models import MenuItem

logger = logging.getLogger(__name__)

# Same ceiling as a checkout line
MAX_LINE_QUANTITY = 100


class CartService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_or_create_cart(self, user_id: UUID) -> Cart:
        result = await self.db.execute(
            select(Cart)
            .options(selectinload(Cart.items).selectinload(CartItem.menu_item))
            .filter(Cart.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        cart = result.unique().scalar_one_or_none()
        if cart:
            return cart

        cart = Cart(user_id=user_id, items=[])
        self.db.add(cart)
        await self.db.flush()
        logger.info(f"[CART] Created cart {cart.id} for user {user_id}")
        return cart

    def _construct_cart_read(self, cart: Cart) -> schemas.CartRead:
        items: list[schemas.CartItemRead] = []
        subtotal = Decimal("0.00")
        for cart_item in cart.items:
            menu_item = cart_item.menu_item
            line_total = menu_item.price * cart_item.quantity
            subtotal += line_total
            items.append(
                schemas.CartItemRead(
                    id=cart_item.id,
                    menu_item_id=menu_item.id,
                    vendor_id=menu_item.vendor_id,
                    name=menu_item.name,
                    unit_price=menu_item.price,
                    quantity=cart_item.quantity,
                    notes=cart_item.notes,
                    is_available=menu_item.is_available,
                    line_total=line_total,
                )
            )
        return schemas.CartRead(id=cart.id, user_id=cart.user_id, items=items, subtotal=subtotal)

    async def _commit_and_read(self, user_id: UUID, context: str) -> schemas.CartRead:
        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"[CART] Commit failed while {context}: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update cart."
            )
        return self._construct_cart_read(await self._get_or_create_cart(user_id))

    def _find_item_or_404(self, cart: Cart, cart_item_id: UUID) -> CartItem:
        for cart_item in cart.items:
            if cart_item.id == cart_item_id:
                return cart_item
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cart item not found")

    # ---------------------------------------------------
    # Operations
    # ---------------------------------------------------
    async def get_cart(self, user_id: UUID) -> schemas.CartRead:
        cart = await self._get_or_create_cart(user_id)
        await self.db.commit()
        return self._construct_cart_read(cart)

    async def add_item(self, user_id: UUID, data: schemas.CartItemAdd) -> schemas.CartRead:
        menu_item = await self.db.get(MenuItem, data.menu_item_id)
        if not menu_item:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Menu item does not exist."
            )
        if not menu_item.is_available:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Menu item is not available."
            )

        cart = await self._get_or_create_cart(user_id)
        existing = next((i for i in cart.items if i.menu_item_id == data.menu_item_id), None)
        if existing:
            if existing.quantity + data.quantity > MAX_LINE_QUANTITY:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Quantity cannot exceed {MAX_LINE_QUANTITY}.",
                )
            existing.quantity += data.quantity
            if data.notes is not None:
                existing.notes = data.notes
        else:
            self.db.add(
                CartItem(
                    cart_id=cart.id,
                    menu_item_id=data.menu_item_id,
                    quantity=data.quantity,
                    notes=data.notes,
                )
            )
        logger.info(f"[CART] User {user_id} added {data.quantity} x {data.menu_item_id}")
        return await self._commit_and_read(user_id, f"adding item for {user_id}")

    async def update_item(
        self, user_id: UUID, cart_item_id: UUID, data: schemas.CartItemUpdate
    ) -> schemas.CartRead:
        cart = await self._get_or_create_cart(user_id)
        cart_item = self._find_item_or_404(cart, cart_item_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            if key == "quantity" and value is None:
                continue
            setattr(cart_item, key, value)
        return await self._commit_and_read(user_id, f"updating cart item {cart_item_id}")

    async def remove_item(self, user_id: UUID, cart_item_id: UUID) -> schemas.CartRead:
        cart = await self._get_or_create_cart(user_id)
        cart_item = self._find_item_or_404(cart, cart_item_id)
        await self.db.delete(cart_item)
        return await self._commit_and_read(user_id, f"removing cart item {cart_item_id}")

    async def clear(self, user_id: UUID) -> schemas.CartRead:
        cart = await self._get_or_create_cart(user_id)
        await self.db.execute(delete(CartItem).where(CartItem.cart_id == cart.id))
        logger.info(f"[CART] Cleared cart for user {user_id}")
        return await self._commit_and_read(user_id, f"clearing cart of {user_id}")
