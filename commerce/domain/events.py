"""
Domain events published to the outbox.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from uuid import UUID

from commerce.domain.order_status import OrderStatus


class EventVersion(str, Enum):
    """Event version for upcasting."""
    V1 = "1.0"


@dataclass
class DomainEvent:
    """Base domain event."""
    event_id: UUID
    aggregate_id: UUID
    event_type: str
    # version and occurred_at are set in subclasses to avoid dataclass field ordering issues


@dataclass
class OrderCreated(DomainEvent):
    """Order created event."""
    store_id: UUID
    order_number: str
    total: Decimal
    payment_method: str
    status: str
    items_count: int
    version: EventVersion = EventVersion.V1
    occurred_at: str = ""


@dataclass
class OrderStatusChanged(DomainEvent):
    """Order moved along the lifecycle; event_type is ``order.<status>``."""
    store_id: UUID
    order_number: str
    from_status: str
    to_status: str
    total: Decimal
    payment_method: str
    tracking_number: str | None = None
    tracking_url: str | None = None
    version: EventVersion = EventVersion.V1
    occurred_at: str = ""


@dataclass
class InvoiceIssued(DomainEvent):
    """Invoice or credit note issued for an order."""
    store_id: UUID
    order_id: UUID
    invoice_number: str
    invoice_type: str
    grand_total: Decimal
    version: EventVersion = EventVersion.V1
    occurred_at: str = ""


ORDER_CREATED = "order.created"

# payment_pending is an internal hand-off to the payment gateway, nothing listens for it.
STATUS_EVENT_TYPES = {
    status: f"order.{status.value}"
    for status in OrderStatus
    if status not in (OrderStatus.CREATED, OrderStatus.PAYMENT_PENDING)
}


def status_event_type(status: OrderStatus) -> str | None:
    """Event type published when an order enters ``status``, if any."""
    return STATUS_EVENT_TYPES.get(status)
