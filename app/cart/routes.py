"""
app/cart/routes.py

Shopping cart endpoints for customers.
"""

from uuid import UUID

from fastapi import APIRouter, Request, status

from app.cart import schemas
from app.cart.services import CartService
from app.core.dependencies import AuthenticatedUserDep, DBDep
from app.core.limiter import limiter

router = APIRouter(prefix="/cart", tags=["Cart"])


@router.get("", response_model=schemas.CartRead, summary="Get My Cart")
@limiter.limit("60/minute")
async def get_cart(
    request: Request, db: DBDep, current_user: AuthenticatedUserDep
) -> schemas.CartRead:
    return await CartService(db).get_cart(current_user.id)


@router.post(
    "/items",
    response_model=schemas.CartRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add Item to Cart",
    description="Adding an item already in the cart increases its quantity.",
)
@limiter.limit("60/minute")
async def add_cart_item(
    request: Request,
    data: schemas.CartItemAdd,
    db: DBDep,
    current_user: AuthenticatedUserDep,
) -> schemas.CartRead:
    return await CartService(db).add_item(current_user.id, data)


@router.patch("/items/{cart_item_id}", response_model=schemas.CartRead, summary="Update Cart Item")
@limiter.limit("60/minute")
async def update_cart_item(
    request: Request,
    cart_item_id: UUID,
    data: schemas.CartItemUpdate,
    db: DBDep,
    current_user: AuthenticatedUserDep,
) -> schemas.CartRead:
    return await CartService(db).update_item(current_user.id, cart_item_id, data)


@router.delete(
    "/items/{cart_item_id}", response_model=schemas.CartRead, summary="Remove Cart Item"
)
@limiter.limit("60/minute")
async def remove_cart_item(
    request: Request, cart_item_id: UUID, db: DBDep, current_user: AuthenticatedUserDep
) -> schemas.CartRead:
    return await CartService(db).remove_item(current_user.id, cart_item_id)


@router.delete("", response_model=schemas.CartRead, summary="Clear Cart")
@limiter.limit("20/minute")
async def clear_cart(
    request: Request, db: DBDep, current_user: AuthenticatedUserDep
) -> schemas.CartRead:
    return await CartService(db).clear(current_user.id)
