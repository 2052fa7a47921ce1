"""
Order status state machine.

    PENDING    -> CONFIRMED, CANCELLED
    CONFIRMED  -> PROCESSING, CANCELLED
    PROCESSING -> SHIPPED, CANCELLED
    SHIPPED    -> DELIVERED
    DELIVERED  -> COMPLETED, REFUNDED

COMPLETED, CANCELLED and REFUNDED are terminal.
"""

from typing import FrozenSet

from marketplace.domain.exceptions import InvalidTransitionError
from marketplace.ordering.domain.models import Order

TRANSITIONS = {
    Order.STATUS_PENDING: frozenset({Order.STATUS_CONFIRMED, Order.STATUS_CANCELLED}),
    Order.STATUS_CONFIRMED: frozenset({Order.STATUS_PROCESSING, Order.STATUS_CANCELLED}),
    Order.STATUS_PROCESSING: frozenset({Order.STATUS_SHIPPED, Order.STATUS_CANCELLED}),
    Order.STATUS_SHIPPED: frozenset({Order.STATUS_DELIVERED}),
    Order.STATUS_DELIVERED: frozenset({Order.STATUS_COMPLETED, Order.STATUS_REFUNDED}),
    Order.STATUS_COMPLETED: frozenset(),
    Order.STATUS_CANCELLED: frozenset(),
    Order.STATUS_REFUNDED: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in TRANSITIONS.items() if not targets)

# Timestamp stamped when an order enters each status
TIMESTAMP_FIELDS = {
    Order.STATUS_CONFIRMED: "confirmed_at",
    Order.STATUS_PROCESSING: "processing_at",
    Order.STATUS_SHIPPED: "shipped_at",
    Order.STATUS_DELIVERED: "delivered_at",
    Order.STATUS_COMPLETED: "completed_at",
    Order.STATUS_CANCELLED: "cancelled_at",
    Order.STATUS_REFUNDED: "refunded_at",
}


def allowed_targets(current: str) -> FrozenSet[str]:
    return TRANSITIONS.get(current, frozenset())


def can_transition(current: str, target: str) -> bool:
    return target in allowed_targets(current)


def check_transition(current: str, target: str) -> None:
    """
    Raises:
        InvalidTransitionError: If ``current -> target`` is not in the table
    """
    if not can_transition(current, target):
        raise InvalidTransitionError(current, target)
