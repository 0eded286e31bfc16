"""
Order lifecycle state machine.

Prepaid orders go ``created -> payment_pending -> paid``, cash-on-delivery
orders go ``created -> cod_confirmed -> cod_otp_verified``. Both tracks meet at
``processing`` and share the fulfillment path from there. ``cancelled``,
``refunded`` and ``rto`` are terminal.
"""
from __future__ import annotations

from collections import deque
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class OrderStatus(str, Enum):
    """Order status enumeration."""
    CREATED = "created"
    PAYMENT_PENDING = "payment_pending"
    PAID = "paid"
    COD_CONFIRMED = "cod_confirmed"
    COD_OTP_VERIFIED = "cod_otp_verified"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    RTO = "rto"


TRANSITIONS: Mapping[OrderStatus, tuple[OrderStatus, ...]] = MappingProxyType({
    OrderStatus.CREATED: (
        OrderStatus.PAYMENT_PENDING,
        OrderStatus.COD_CONFIRMED,
        OrderStatus.CANCELLED,
    ),
    OrderStatus.PAYMENT_PENDING: (OrderStatus.PAID, OrderStatus.CANCELLED),
    OrderStatus.PAID: (
        OrderStatus.PROCESSING,
        OrderStatus.CANCELLED,
        OrderStatus.REFUNDED,
    ),
    OrderStatus.COD_CONFIRMED: (OrderStatus.COD_OTP_VERIFIED, OrderStatus.CANCELLED),
    OrderStatus.COD_OTP_VERIFIED: (OrderStatus.PROCESSING, OrderStatus.CANCELLED),
    OrderStatus.PROCESSING: (
        OrderStatus.SHIPPED,
        OrderStatus.CANCELLED,
        OrderStatus.REFUNDED,
    ),
    OrderStatus.SHIPPED: (
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.DELIVERED,
        OrderStatus.RTO,
    ),
    OrderStatus.OUT_FOR_DELIVERY: (OrderStatus.DELIVERED, OrderStatus.RTO),
    OrderStatus.DELIVERED: (OrderStatus.REFUNDED,),
    OrderStatus.CANCELLED: (),
    OrderStatus.REFUNDED: (),
    OrderStatus.RTO: (),
})


class InvalidTransitionError(ValueError):
    """Raised when an order is asked to make a move the table does not allow."""

    def __init__(self, from_status: OrderStatus, to_status: OrderStatus):
        self.from_status = from_status
        self.to_status = to_status
        self.allowed = allowed_transitions(from_status)
        allowed = ", ".join(s.value for s in self.allowed) or "none"
        super().__init__(
            f"Cannot move order from {from_status.value} to {to_status.value}. "
            f"Allowed: {allowed}"
        )


def allowed_transitions(status: OrderStatus) -> tuple[OrderStatus, ...]:
    """Statuses reachable from ``status`` in one step, in table order."""
    return TRANSITIONS[status]


def can_transition(from_status: OrderStatus, to_status: OrderStatus) -> bool:
    return to_status in TRANSITIONS[from_status]


def is_terminal(status: OrderStatus) -> bool:
    return not TRANSITIONS[status]


def ensure_transition(from_status: OrderStatus, to_status: OrderStatus) -> None:
    """Raise InvalidTransitionError unless the move is in the table."""
    if not can_transition(from_status, to_status):
        raise InvalidTransitionError(from_status, to_status)


def reachable_statuses(start: OrderStatus = OrderStatus.CREATED) -> set[OrderStatus]:
    """Breadth-first walk of the transition table from ``start``."""
    seen = {start}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for nxt in TRANSITIONS[current]:
            if nxt not in seen:
                seen.add(nxt)
                queue.append(nxt)
    return seen
