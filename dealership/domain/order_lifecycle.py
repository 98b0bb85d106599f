# dealership/domain/order_lifecycle.py
"""Order status machine and the customer-facing tracking timeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from dealership.domain.enums import OrderStatus

ALLOWED_TRANSITIONS: dict[OrderStatus, tuple[OrderStatus, ...]] = {
    OrderStatus.pending: (OrderStatus.confirmed, OrderStatus.cancelled),
    OrderStatus.confirmed: (OrderStatus.processing, OrderStatus.cancelled),
    OrderStatus.processing: (OrderStatus.shipped,),
    OrderStatus.shipped: (OrderStatus.delivered,),
    OrderStatus.delivered: (),
    OrderStatus.cancelled: (),
}

CANCELLABLE_STATUSES = frozenset({OrderStatus.pending, OrderStatus.confirmed})

# Linear progression used by the tracking timeline; cancelled is outside it.
_PROGRESSION: tuple[OrderStatus, ...] = (
    OrderStatus.pending,
    OrderStatus.confirmed,
    OrderStatus.processing,
    OrderStatus.shipped,
    OrderStatus.delivered,
)

_STEP_TITLES = {
    OrderStatus.pending: ("Order Placed", "Your order has been placed successfully"),
    OrderStatus.confirmed: ("Order Confirmed", "Your order has been confirmed"),
    OrderStatus.processing: ("Processing", "Your order is being processed"),
    OrderStatus.shipped: ("Shipped", "Your order has been shipped"),
    OrderStatus.delivered: ("Delivered", "Your order has been delivered"),
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, ())


def can_cancel(status: OrderStatus) -> bool:
    return status in CANCELLABLE_STATUSES


def is_terminal(status: OrderStatus) -> bool:
    return not ALLOWED_TRANSITIONS.get(status)


@dataclass(frozen=True)
class TrackingStep:
    status: OrderStatus
    title: str
    description: str
    completed: bool
    occurred_at: datetime | None = None


def tracking_steps(
    status: OrderStatus,
    timestamps: dict[OrderStatus, datetime | None] | None = None,
) -> list[TrackingStep]:
    """Build the tracking timeline for an order in ``status``.

    A step is completed once the order reached it. A cancelled order keeps the
    steps it completed before cancellation (placed, and confirmed if a
    confirmation timestamp exists) and gets a trailing cancelled step.
    """
    timestamps = timestamps or {}
    if status == OrderStatus.cancelled:
        reached = 1 if timestamps.get(OrderStatus.confirmed) is None else 2
    else:
        reached = _PROGRESSION.index(status) + 1

    steps = [
        TrackingStep(
            status=step,
            title=_STEP_TITLES[step][0],
            description=_STEP_TITLES[step][1],
            completed=index < reached,
            occurred_at=timestamps.get(step) if index < reached else None,
        )
        for index, step in enumerate(_PROGRESSION)
    ]
    if status == OrderStatus.cancelled:
        steps.append(
            TrackingStep(
                status=OrderStatus.cancelled,
                title="Cancelled",
                description="Your order has been cancelled",
                completed=True,
                occurred_at=timestamps.get(OrderStatus.cancelled),
            )
        )
    return steps
