from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Sequence

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.core.config import settings
from dealership.core.logging import get_logger
from dealership.core.metrics import record_order_placed, record_order_status_change
from dealership.db.operations import flush_async, refresh_async
from dealership.db.types import as_aware, utcnow
from dealership.domain.enums import ItemType, OrderStatus, PaymentStatus
from dealership.domain.order_lifecycle import (
    TrackingStep,
    can_cancel,
    can_transition,
    is_terminal,
    tracking_steps,
)
from dealership.models.catalog import Car, CarPart
from dealership.models.order import Order, OrderItem
from dealership.models.user import User
from dealership.schemas.order import CheckoutRequest
from dealership.services import cart_service
from dealership.services.exceptions import (
    ConflictError,
    DomainValidationError,
    InsufficientStockError,
    InvalidStatusTransitionError,
    PermissionDeniedError,
    ResourceNotFoundError,
)
from dealership.services.pricing import compute_totals
from dealership.utils.text import LIKE_ESCAPE, like_pattern

logger = get_logger(__name__)

_STOCK_MODELS = {ItemType.car: Car, ItemType.car_part: CarPart}

# Orden permitido de pagos: refunded solo tras paid; un pedido cancelado no se cobra.
_PAYMENT_TRANSITIONS: dict[PaymentStatus, tuple[PaymentStatus, ...]] = {
    PaymentStatus.pending: (PaymentStatus.paid, PaymentStatus.failed),
    PaymentStatus.failed: (PaymentStatus.pending, PaymentStatus.paid),
    PaymentStatus.paid: (PaymentStatus.refunded,),
    PaymentStatus.refunded: (),
}


@dataclass
class OrderFilters:
    status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None
    search: str | None = None
    date_from: date | None = None
    date_to: date | None = None
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None
    user_id: uuid.UUID | None = None


# ---------------- Identificadores ----------------
def tracking_number(order: Order) -> str:
    return f"{settings.TRACKING_NUMBER_PREFIX}{order.order_number.replace('-', '')}"


def estimated_delivery(order: Order) -> date:
    return (as_aware(order.order_date) + timedelta(days=settings.ESTIMATED_DELIVERY_DAYS)).date()


async def next_order_number(db: AsyncSession, when: datetime | None = None) -> str:
    """``ORD-YYYYMM-NNNN`` with a sequence that restarts every month."""
    when = when or utcnow()
    prefix = f"{settings.ORDER_NUMBER_PREFIX}-{when.year}{when.month:02d}-"
    stmt = (
        select(Order.order_number)
        .where(Order.order_number.like(f"{prefix}%"))
        .order_by(func.length(Order.order_number).desc(), Order.order_number.desc())
        .limit(1)
    )
    last = await db.scalar(stmt)
    sequence = 1
    if last:
        try:
            sequence = int(last.rsplit("-", 1)[1]) + 1
        except ValueError:
            count = await db.scalar(select(func.count(Order.id)).where(Order.order_number.like(f"{prefix}%")))
            sequence = int(count or 0) + 1
    return f"{prefix}{sequence:04d}"


def _format_address(*parts: str | None) -> str:
    return ", ".join(part.strip() for part in parts if part and part.strip())


async def _take_stock(db: AsyncSession, item_type: ItemType, item_id: uuid.UUID, quantity: int, name: str) -> None:
    model = _STOCK_MODELS[item_type]
    result = await db.execute(
        update(model)
        .where(model.id == item_id, model.stock_quantity >= quantity)
        .values(stock_quantity=model.stock_quantity - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InsufficientStockError(f"Insufficient stock for {name}")


async def _release_stock(db: AsyncSession, item: OrderItem) -> None:
    model = _STOCK_MODELS[item.item_type]
    await db.execute(
        update(model)
        .where(model.id == item.item_id)
        .values(stock_quantity=model.stock_quantity + item.quantity)
        .execution_options(synchronize_session=False)
    )


async def _expire_products(db: AsyncSession, products) -> None:
    for product in products:
        await refresh_async(db, product, attribute_names=["stock_quantity"])


# ---------------- Checkout ----------------
async def checkout(db: AsyncSession, user: User, payload: CheckoutRequest) -> Order:
    """Turn the user's cart into a pending order, taking stock and emptying the cart."""
    cart = await cart_service.get_cart(db, user.id)
    lines = await cart_service.priced_lines(db, cart) if cart else []
    if not lines:
        raise DomainValidationError("Your cart is empty")

    invalid = [pl for pl in lines if not pl.is_valid]
    if invalid:
        names = ", ".join(cart_service.item_name(pl.product) for pl in invalid)
        raise InsufficientStockError(f"Some items are unavailable or out of stock: {names}")

    address = _format_address(
        payload.shipping_address or user.address,
        payload.city or user.city,
        payload.country or user.country,
    )
    if not (payload.shipping_address or user.address):
        raise DomainValidationError("Shipping address is required")

    totals = compute_totals((pl.unit_price, pl.line.quantity) for pl in lines)
    now = utcnow()
    order = Order(
        order_number=await next_order_number(db, now),
        user_id=user.id,
        status=OrderStatus.pending,
        payment_status=PaymentStatus.pending,
        payment_method=payload.payment_method,
        subtotal_amount=totals.subtotal,
        shipping_amount=totals.shipping,
        tax_amount=totals.tax,
        total_amount=totals.grand_total,
        shipping_address=address,
        notes=payload.notes,
        order_date=now,
    )
    for pl in lines:
        name = cart_service.item_name(pl.product)
        await _take_stock(db, pl.line.item_type, pl.line.item_id, pl.line.quantity, name)
        order.items.append(
            OrderItem(
                item_type=pl.line.item_type,
                item_id=pl.line.item_id,
                item_name=name,
                part_number=getattr(pl.product, "part_number", None),
                image_url=pl.product.image_url,
                quantity=pl.line.quantity,
                unit_price=pl.unit_price,
                total_price=pl.total,
            )
        )
    db.add(order)
    cart.items.clear()
    await flush_async(db)
    await refresh_async(db, order)
    await _expire_products(db, [pl.product for pl in lines])

    record_order_placed(payload.payment_method.value)
    logger.info(
        "Order placed",
        extra={
            "order_number": order.order_number,
            "user_id": str(user.id),
            "total_amount": str(order.total_amount),
            "items": totals.total_items,
        },
    )
    return order


# ---------------- Lectura ----------------
def _filter_conditions(filters: OrderFilters) -> list:
    conditions = []
    if filters.user_id:
        conditions.append(Order.user_id == filters.user_id)
    if filters.status:
        conditions.append(Order.status == filters.status)
    if filters.payment_status:
        conditions.append(Order.payment_status == filters.payment_status)
    if filters.search and filters.search.strip():
        pattern = like_pattern(filters.search)
        customer_ids = select(User.id).where(
            or_(
                User.email.ilike(pattern, escape=LIKE_ESCAPE),
                User.first_name.ilike(pattern, escape=LIKE_ESCAPE),
                User.last_name.ilike(pattern, escape=LIKE_ESCAPE),
            )
        )
        conditions.append(
            or_(Order.order_number.ilike(pattern, escape=LIKE_ESCAPE), Order.user_id.in_(customer_ids))
        )
    if filters.date_from:
        conditions.append(Order.order_date >= datetime.combine(filters.date_from, time.min, tzinfo=timezone.utc))
    if filters.date_to:
        conditions.append(Order.order_date < datetime.combine(filters.date_to + timedelta(days=1), time.min, tzinfo=timezone.utc))
    if filters.min_amount is not None:
        conditions.append(Order.total_amount >= filters.min_amount)
    if filters.max_amount is not None:
        conditions.append(Order.total_amount <= filters.max_amount)
    return conditions


async def list_orders(
    db: AsyncSession,
    filters: OrderFilters,
    *,
    skip: int = 0,
    limit: int = 20,
) -> tuple[Sequence[Order], int]:
    conditions = _filter_conditions(filters)
    total = await db.scalar(select(func.count(Order.id)).where(*conditions))
    stmt = (
        select(Order)
        .where(*conditions)
        .order_by(Order.order_date.desc(), Order.order_number.desc())
        .offset(skip)
        .limit(limit)
    )
    result = await db.execute(stmt)
    return result.unique().scalars().all(), int(total or 0)


async def get_order(db: AsyncSession, order_id: uuid.UUID) -> Order:
    order = await db.get(Order, order_id)
    if not order:
        raise ResourceNotFoundError("Order not found")
    return order


async def get_order_by_number(db: AsyncSession, order_number: str) -> Order:
    result = await db.execute(select(Order).where(Order.order_number == order_number.strip().upper()).limit(1))
    order = result.unique().scalars().first()
    if not order:
        raise ResourceNotFoundError("Order not found. Please check your order number.")
    return order


def ensure_can_view(order: Order, user: User) -> None:
    if user.is_superuser or order.user_id == user.id:
        return
    raise PermissionDeniedError("You do not have access to this order")


async def get_order_for_user(db: AsyncSession, order_id: uuid.UUID, user: User) -> Order:
    order = await get_order(db, order_id)
    ensure_can_view(order, user)
    return order


async def latest_order_for_user(db: AsyncSession, user: User) -> Order:
    stmt = select(Order).where(Order.user_id == user.id).order_by(Order.order_date.desc()).limit(1)
    order = (await db.execute(stmt)).unique().scalars().first()
    if not order:
        raise ResourceNotFoundError("No orders found")
    return order


def build_tracking(order: Order) -> list[TrackingStep]:
    return tracking_steps(
        order.status,
        {
            OrderStatus.pending: order.order_date,
            OrderStatus.confirmed: order.confirmed_at,
            OrderStatus.processing: None,
            OrderStatus.shipped: order.shipped_at,
            OrderStatus.delivered: order.delivered_at,
            OrderStatus.cancelled: order.cancelled_at,
        },
    )


# ---------------- Transiciones ----------------
async def cancel_order(db: AsyncSession, order: Order, actor: User) -> Order:
    ensure_can_view(order, actor)
    if not can_cancel(order.status):
        raise ConflictError("Only pending or confirmed orders can be cancelled")

    for item in order.items:
        await _release_stock(db, item)
    order.status = OrderStatus.cancelled
    order.cancelled_at = utcnow()
    if order.payment_status == PaymentStatus.paid:
        order.payment_status = PaymentStatus.refunded
    await flush_async(db, order)
    await refresh_async(db, order)
    record_order_status_change(OrderStatus.cancelled.value)
    logger.info(
        "Order cancelled",
        extra={"order_number": order.order_number, "actor_id": str(actor.id)},
    )
    return order


async def update_status(db: AsyncSession, order: Order, target: OrderStatus, actor: User) -> Order:
    """Admin status change; cancellation goes through ``cancel_order`` so stock is released."""
    if is_terminal(order.status):
        raise InvalidStatusTransitionError(
            f"Order is already {order.status.value} and its status can no longer change"
        )
    if target == order.status:
        raise InvalidStatusTransitionError(f"Order is already {target.value}")
    if not can_transition(order.status, target):
        raise InvalidStatusTransitionError(
            f"Cannot change order status from {order.status.value} to {target.value}"
        )
    if target == OrderStatus.cancelled:
        return await cancel_order(db, order, actor)

    now = utcnow()
    previous = order.status
    order.status = target
    if target == OrderStatus.confirmed:
        order.confirmed_at = now
    elif target == OrderStatus.shipped:
        order.shipped_at = now
    elif target == OrderStatus.delivered:
        order.delivered_at = now
    await flush_async(db, order)
    await refresh_async(db, order)
    record_order_status_change(target.value)
    logger.info(
        "Order status updated",
        extra={
            "order_number": order.order_number,
            "from_status": previous.value,
            "to_status": target.value,
            "actor_id": str(actor.id),
        },
    )
    return order


async def update_payment_status(db: AsyncSession, order: Order, target: PaymentStatus) -> Order:
    if target == order.payment_status:
        return order
    if target not in _PAYMENT_TRANSITIONS.get(order.payment_status, ()):
        raise InvalidStatusTransitionError(
            f"Cannot change payment status from {order.payment_status.value} to {target.value}"
        )
    if order.status == OrderStatus.cancelled and target == PaymentStatus.paid:
        raise ConflictError("Cancelled orders cannot be marked as paid")
    order.payment_status = target
    await flush_async(db, order)
    await refresh_async(db, order)
    logger.info(
        "Payment status updated",
        extra={"order_number": order.order_number, "payment_status": target.value},
    )
    return order
