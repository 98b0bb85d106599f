from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.db.types import utcnow
from dealership.domain.enums import CustomerTier, OrderStatus, PaymentStatus
from dealership.models.catalog import Car, CarPart
from dealership.models.order import Order
from dealership.models.user import User
from dealership.schemas.catalog import CarPartRead, CarRead
from dealership.schemas.dashboard import AdminDashboard, CustomerDashboard
from dealership.schemas.order import OrderSummary
from dealership.schemas.user import UserRead
from dealership.services import car_part_service, car_service, cart_service, contact_service
from dealership.services.pricing import q2

RECENT_LIMIT = 5

# Umbrales de gasto acumulado, de mayor a menor.
_TIERS: tuple[tuple[Decimal, CustomerTier], ...] = (
    (Decimal("10000"), CustomerTier.platinum),
    (Decimal("5000"), CustomerTier.gold),
    (Decimal("2000"), CustomerTier.silver),
    (Decimal("500"), CustomerTier.bronze),
)


def customer_tier(total_spent: Decimal) -> CustomerTier:
    for threshold, tier in _TIERS:
        if total_spent >= threshold:
            return tier
    return CustomerTier.standard


def _month_start(now: datetime) -> datetime:
    return datetime(now.year, now.month, 1, tzinfo=timezone.utc)


async def _scalar_int(db: AsyncSession, stmt) -> int:
    return int(await db.scalar(stmt) or 0)


async def _revenue(db: AsyncSession, *conditions) -> Decimal:
    total = await db.scalar(
        select(func.coalesce(func.sum(Order.total_amount), 0)).where(
            Order.payment_status == PaymentStatus.paid, *conditions
        )
    )
    return q2(total or 0)


async def customer_dashboard(db: AsyncSession, user: User) -> CustomerDashboard:
    total_orders = await _scalar_int(db, select(func.count(Order.id)).where(Order.user_id == user.id))
    total_spent = await _revenue(db, Order.user_id == user.id)
    recent = (
        await db.execute(
            select(Order).where(Order.user_id == user.id).order_by(Order.order_date.desc()).limit(RECENT_LIMIT)
        )
    ).unique().scalars().all()
    return CustomerDashboard(
        full_name=user.full_name,
        member_since=user.created_at,
        last_login_at=user.last_login_at,
        total_orders=total_orders,
        total_spent=total_spent,
        tier=customer_tier(total_spent),
        cart_item_count=await cart_service.count_items(db, user.id),
        recent_orders=[OrderSummary.model_validate(order) for order in recent],
    )


async def admin_dashboard(db: AsyncSession) -> AdminDashboard:
    month_start = _month_start(utcnow())
    customers = User.is_superuser.is_(False)

    status_rows = (await db.execute(select(Order.status, func.count(Order.id)).group_by(Order.status))).all()
    by_status = {status.value: 0 for status in OrderStatus}
    for status, count in status_rows:
        by_status[status.value] = int(count)

    recent_orders = (
        await db.execute(select(Order).order_by(Order.order_date.desc()).limit(RECENT_LIMIT))
    ).unique().scalars().all()
    recent_customers = (
        await db.execute(select(User).where(customers).order_by(User.created_at.desc()).limit(RECENT_LIMIT))
    ).scalars().all()

    return AdminDashboard(
        total_cars=await _scalar_int(db, select(func.count(Car.id))),
        total_car_parts=await _scalar_int(db, select(func.count(CarPart.id))),
        total_customers=await _scalar_int(db, select(func.count(User.id)).where(customers)),
        total_orders=sum(by_status.values()),
        pending_orders=by_status[OrderStatus.pending.value],
        completed_orders=by_status[OrderStatus.delivered.value],
        total_revenue=await _revenue(db),
        monthly_revenue=await _revenue(db, Order.order_date >= month_start),
        new_customers_this_month=await _scalar_int(
            db, select(func.count(User.id)).where(customers, User.created_at >= month_start)
        ),
        orders_by_status=by_status,
        recent_orders=[OrderSummary.model_validate(order) for order in recent_orders],
        recent_customers=[UserRead.model_validate(user) for user in recent_customers],
        low_stock_cars=[CarRead.model_validate(car) for car in await car_service.low_stock_cars(db)],
        low_stock_car_parts=[CarPartRead.model_validate(part) for part in await car_part_service.low_stock_parts(db)],
        unread_messages=await contact_service.count_unread(db),
    )
