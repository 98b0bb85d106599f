from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Security, status
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.api.deps import get_current_customer, get_current_user
from dealership.db.operations import commit_async, rollback_async
from dealership.db.session_async import get_async_db
from dealership.models.order import Order
from dealership.models.user import User
from dealership.schemas.order import (
    CheckoutRequest,
    OrderConfirmation,
    OrderRead,
    OrderSummary,
    OrderTracking,
    TrackingStepRead,
)
from dealership.schemas.pagination import Page
from dealership.services import email_service, order_service
from dealership.services.order_service import OrderFilters

router = APIRouter(prefix="/orders", tags=["orders"])


def _confirmation(order: Order) -> OrderConfirmation:
    return OrderConfirmation(
        order=OrderRead.model_validate(order),
        tracking_number=order_service.tracking_number(order),
        estimated_delivery=order_service.estimated_delivery(order),
    )


@router.post("/checkout", response_model=OrderConfirmation, status_code=status.HTTP_201_CREATED)
async def checkout(
    payload: CheckoutRequest,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_customer),
):
    try:
        order = await order_service.checkout(db, current_user, payload)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    confirmation = _confirmation(order)
    email_service.send_order_confirmation(order, current_user, confirmation.tracking_number)
    return confirmation


@router.get("/me", response_model=Page[OrderSummary])
async def my_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Security(get_current_user, scopes=["orders:read"]),
):
    orders, total = await order_service.list_orders(
        db,
        OrderFilters(user_id=current_user.id),
        skip=(page - 1) * page_size,
        limit=page_size,
    )
    return Page.build([OrderSummary.model_validate(o) for o in orders], total, page, page_size)


@router.get("/me/latest", response_model=OrderConfirmation)
async def my_latest_order(
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Security(get_current_user, scopes=["orders:read"]),
):
    order = await order_service.latest_order_for_user(db, current_user)
    return _confirmation(order)


@router.get("/track/{order_number}", response_model=OrderTracking)
async def track_order(order_number: str, db: AsyncSession = Depends(get_async_db)):
    # Público: solo expone estado y fechas, nunca datos del cliente.
    order = await order_service.get_order_by_number(db, order_number)
    return OrderTracking(
        order_number=order.order_number,
        status=order.status,
        payment_status=order.payment_status,
        order_date=order.order_date,
        tracking_number=order_service.tracking_number(order),
        estimated_delivery=order_service.estimated_delivery(order),
        steps=[TrackingStepRead.model_validate(step) for step in order_service.build_tracking(order)],
    )


@router.get("/{order_id}", response_model=OrderRead)
async def get_order(
    order_id: UUID,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Security(get_current_user, scopes=["orders:read"]),
):
    return await order_service.get_order_for_user(db, order_id, current_user)


@router.post("/{order_id}/cancel", response_model=OrderRead)
async def cancel_order(
    order_id: UUID,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_customer),
):
    try:
        order = await order_service.get_order(db, order_id)
        order = await order_service.cancel_order(db, order, current_user)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return order
