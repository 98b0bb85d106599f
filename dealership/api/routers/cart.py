from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.api.deps import get_current_customer
from dealership.db.operations import commit_async, rollback_async
from dealership.db.session_async import get_async_db
from dealership.models.user import User
from dealership.schemas.cart import CartCount, CartItemCreate, CartItemUpdate, CartRead
from dealership.services import cart_service

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartRead)
async def read_cart(
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_customer),
):
    cart = await cart_service.view_cart(db, current_user.id)
    # view_cart puede podar líneas huérfanas
    await commit_async(db)
    return cart


@router.get("/count", response_model=CartCount)
async def cart_count(
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_customer),
):
    return CartCount(count=await cart_service.count_items(db, current_user.id))


@router.post("/items", response_model=CartRead, status_code=status.HTTP_201_CREATED)
async def add_item(
    payload: CartItemCreate,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_customer),
):
    try:
        cart = await cart_service.add_item(db, current_user.id, payload)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return cart


@router.patch("/items/{line_id}", response_model=CartRead)
async def update_item(
    line_id: UUID,
    payload: CartItemUpdate,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_customer),
):
    try:
        cart = await cart_service.update_item(db, current_user.id, line_id, payload.quantity)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return cart


@router.delete("/items/{line_id}", response_model=CartRead)
async def remove_item(
    line_id: UUID,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_customer),
):
    try:
        cart = await cart_service.remove_item(db, current_user.id, line_id)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return cart


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cart(
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_customer),
):
    await cart_service.clear_cart(db, current_user.id)
    await commit_async(db)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
