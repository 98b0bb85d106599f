from datetime import datetime, timezone

import pytest

from dealership.domain.enums import OrderStatus
from dealership.domain.order_lifecycle import can_cancel, can_transition, is_terminal, tracking_steps


@pytest.mark.parametrize(
    "current,target",
    [
        (OrderStatus.pending, OrderStatus.confirmed),
        (OrderStatus.confirmed, OrderStatus.processing),
        (OrderStatus.processing, OrderStatus.shipped),
        (OrderStatus.shipped, OrderStatus.delivered),
        (OrderStatus.pending, OrderStatus.cancelled),
        (OrderStatus.confirmed, OrderStatus.cancelled),
    ],
)
def test_allowed_transitions(current, target):
    assert can_transition(current, target)


@pytest.mark.parametrize(
    "current,target",
    [
        (OrderStatus.pending, OrderStatus.shipped),
        (OrderStatus.processing, OrderStatus.cancelled),
        (OrderStatus.shipped, OrderStatus.pending),
        (OrderStatus.delivered, OrderStatus.cancelled),
        (OrderStatus.cancelled, OrderStatus.pending),
    ],
)
def test_rejected_transitions(current, target):
    assert not can_transition(current, target)


def test_only_pending_and_confirmed_can_cancel():
    cancellable = {status for status in OrderStatus if can_cancel(status)}
    assert cancellable == {OrderStatus.pending, OrderStatus.confirmed}


def test_terminal_statuses():
    assert is_terminal(OrderStatus.delivered)
    assert is_terminal(OrderStatus.cancelled)
    assert not is_terminal(OrderStatus.shipped)


def test_tracking_marks_reached_steps():
    placed = datetime(2024, 5, 1, tzinfo=timezone.utc)
    steps = tracking_steps(OrderStatus.processing, {OrderStatus.pending: placed})
    assert [s.status for s in steps] == [
        OrderStatus.pending,
        OrderStatus.confirmed,
        OrderStatus.processing,
        OrderStatus.shipped,
        OrderStatus.delivered,
    ]
    assert [s.completed for s in steps] == [True, True, True, False, False]
    assert steps[0].occurred_at == placed
    assert steps[3].occurred_at is None


def test_tracking_cancelled_after_confirmation():
    now = datetime(2024, 5, 2, tzinfo=timezone.utc)
    steps = tracking_steps(
        OrderStatus.cancelled,
        {OrderStatus.confirmed: now, OrderStatus.cancelled: now},
    )
    assert steps[-1].status == OrderStatus.cancelled
    assert steps[-1].completed is True
    assert [s.completed for s in steps[:5]] == [True, True, False, False, False]


def test_tracking_cancelled_while_pending():
    steps = tracking_steps(OrderStatus.cancelled, {})
    assert [s.completed for s in steps[:5]] == [True, False, False, False, False]
    assert len(steps) == 6
