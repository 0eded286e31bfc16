from commerce.domain.discount import validate_discount
from commerce.domain.gst import resolve_rate, split_tax, tax_order, tax_shipping
from commerce.domain.order import Order, OrderLineItem
from commerce.domain.order_status import (
    OrderStatus,
    allowed_transitions,
    can_transition,
    is_terminal,
)

__all__ = [
    "Order",
    "OrderLineItem",
    "OrderStatus",
    "allowed_transitions",
    "can_transition",
    "is_terminal",
    "resolve_rate",
    "split_tax",
    "tax_order",
    "tax_shipping",
    "validate_discount",
]
