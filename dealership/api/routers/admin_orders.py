from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.api.deps import get_current_admin
from dealership.db.operations import commit_async, rollback_async
from dealership.db.session_async import get_async_db
from dealership.domain.enums import OrderStatus, PaymentStatus
from dealership.models.order import Order
from dealership.models.user import User
from dealership.schemas.order import AdminOrderRead, OrderStatusUpdate, PaymentStatusUpdate
from dealership.schemas.pagination import Page
from dealership.services import email_service, order_service
from dealership.services.order_service import OrderFilters

router = APIRouter(prefix="/admin/orders", tags=["admin-orders"])


def to_admin_read(order: Order) -> AdminOrderRead:
    data = AdminOrderRead.model_validate(order)
    if order.user is not None:
        data.customer_email = order.user.email
        data.customer_name = order.user.full_name
    return data


@router.get("", response_model=Page[AdminOrderRead])
async def list_orders(
    status_filter: OrderStatus | None = Query(None, alias="status"),
    payment_status: PaymentStatus | None = Query(None),
    search: str | None = Query(None, max_length=100, description="Número de orden o email del cliente"),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    min_amount: Decimal | None = Query(None, ge=0),
    max_amount: Decimal | None = Query(None, ge=0),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_async_db),
    _: User = Depends(get_current_admin),
):
    filters = OrderFilters(
        status=status_filter,
        payment_status=payment_status,
        search=search,
        date_from=date_from,
        date_to=date_to,
        min_amount=min_amount,
        max_amount=max_amount,
    )
    orders, total = await order_service.list_orders(
        db, filters, skip=(page - 1) * page_size, limit=page_size
    )
    return Page.build([to_admin_read(o) for o in orders], total, page, page_size)


@router.get("/{order_id}", response_model=AdminOrderRead)
async def get_order(
    order_id: UUID,
    db: AsyncSession = Depends(get_async_db),
    _: User = Depends(get_current_admin),
):
    return to_admin_read(await order_service.get_order(db, order_id))


@router.patch("/{order_id}/status", response_model=AdminOrderRead)
async def update_order_status(
    order_id: UUID,
    payload: OrderStatusUpdate,
    db: AsyncSession = Depends(get_async_db),
    admin: User = Depends(get_current_admin),
):
    try:
        order = await order_service.get_order(db, order_id)
        order = await order_service.update_status(db, order, payload.status, admin)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    if order.user is not None:
        email_service.send_order_status_update(order, order.user, payload.note)
    return to_admin_read(order)


@router.patch("/{order_id}/payment", response_model=AdminOrderRead)
async def update_payment_status(
    order_id: UUID,
    payload: PaymentStatusUpdate,
    db: AsyncSession = Depends(get_async_db),
    _: User = Depends(get_current_admin),
):
    try:
        order = await order_service.get_order(db, order_id)
        order = await order_service.update_payment_status(db, order, payload.payment_status)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return to_admin_read(order)
