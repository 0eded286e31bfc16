"""
Domain model for Order aggregate.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from commerce.domain.gst import GSTSplit, OrderTax, TaxableItem
from commerce.domain.money import round2, to_decimal
from commerce.domain.order_status import (
    OrderStatus,
    allowed_transitions,
    ensure_transition,
    is_terminal,
)


class PaymentMethod(str, Enum):
    """Payment method enumeration."""
    UPI = "upi"
    CARD = "card"
    NETBANKING = "netbanking"
    WALLET = "wallet"
    COD = "cod"


class PaymentStatus(str, Enum):
    """Payment status enumeration."""
    PENDING = "pending"
    AUTHORIZED = "authorized"
    CAPTURED = "captured"
    FAILED = "failed"
    REFUNDED = "refunded"


class FulfillmentStatus(str, Enum):
    """Fulfillment status enumeration."""
    UNFULFILLED = "unfulfilled"
    PARTIALLY_FULFILLED = "partially_fulfilled"
    FULFILLED = "fulfilled"
    RETURNED = "returned"


FULFILLMENT_BY_STATUS = {
    OrderStatus.SHIPPED: FulfillmentStatus.PARTIALLY_FULFILLED,
    OrderStatus.OUT_FOR_DELIVERY: FulfillmentStatus.PARTIALLY_FULFILLED,
    OrderStatus.DELIVERED: FulfillmentStatus.FULFILLED,
    OrderStatus.RTO: FulfillmentStatus.RETURNED,
}

PAYMENT_BY_STATUS = {
    OrderStatus.PAID: PaymentStatus.CAPTURED,
    OrderStatus.REFUNDED: PaymentStatus.REFUNDED,
}


class OrderLineItem:
    """Order line item value object."""

    def __init__(
        self,
        product_id: UUID,
        name: str,
        quantity: int,
        unit_price: Decimal,
        hsn_code: str | None = None,
        gst_rate: Decimal | None = None,
        variant_id: UUID | None = None,
        sku: str | None = None,
    ):
        if quantity <= 0:
            raise ValueError("Quantity must be positive")
        unit_price = to_decimal(unit_price)
        if unit_price < 0:
            raise ValueError("Price must be non-negative")
        if unit_price != round2(unit_price):
            raise ValueError("Price cannot have more than 2 decimal places")
        if gst_rate is not None:
            gst_rate = to_decimal(gst_rate)
            if not Decimal("0") <= gst_rate <= Decimal("28"):
                raise ValueError("GST rate must be between 0 and 28")

        self.product_id = product_id
        self.name = name
        self.quantity = quantity
        self.unit_price = unit_price
        self.hsn_code = hsn_code
        self.gst_rate = gst_rate
        self.variant_id = variant_id
        self.sku = sku

    @property
    def total_price(self) -> Decimal:
        """Calculate line total."""
        return round2(self.unit_price * self.quantity)

    def to_taxable(self) -> TaxableItem:
        return TaxableItem(
            unit_price=self.unit_price,
            quantity=self.quantity,
            hsn_code=self.hsn_code,
            gst_rate=self.gst_rate,
        )


class Order:
    """Order aggregate root."""

    def __init__(
        self,
        id: UUID | None = None,
        store_id: UUID | None = None,
        order_number: str = "",
        buyer_name: str = "",
        buyer_phone: str = "",
        buyer_email: str | None = None,
        buyer_state_code: str = "",
        shipping_address: dict | None = None,
        billing_address: dict | None = None,
        line_items: list[OrderLineItem] | None = None,
        payment_method: PaymentMethod = PaymentMethod.UPI,
        status: OrderStatus = OrderStatus.CREATED,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
        fulfillment_status: FulfillmentStatus = FulfillmentStatus.UNFULFILLED,
        subtotal: Decimal = Decimal("0.00"),
        discount_amount: Decimal = Decimal("0.00"),
        discount_code: str | None = None,
        shipping_cost: Decimal = Decimal("0.00"),
        tax_amount: Decimal = Decimal("0.00"),
        total: Decimal = Decimal("0.00"),
        tracking_number: str | None = None,
        tracking_url: str | None = None,
        awb_number: str | None = None,
        payment_reference: str | None = None,
        cod_otp_verified: bool = False,
        invoice_number: str | None = None,
        notes: str | None = None,
        created_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.store_id = store_id
        self.order_number = order_number
        self.buyer_name = buyer_name
        self.buyer_phone = buyer_phone
        self.buyer_email = buyer_email
        self.buyer_state_code = buyer_state_code
        self.shipping_address = shipping_address or {}
        self.billing_address = billing_address
        self._line_items = line_items or []
        self.payment_method = payment_method
        self._status = status
        self.payment_status = payment_status
        self.fulfillment_status = fulfillment_status
        self.subtotal = subtotal
        self.discount_amount = discount_amount
        self.discount_code = discount_code
        self.shipping_cost = shipping_cost
        self.tax_amount = tax_amount
        self.total = total
        self.tracking_number = tracking_number
        self.tracking_url = tracking_url
        self.awb_number = awb_number
        self.payment_reference = payment_reference
        self.cod_otp_verified = cod_otp_verified
        self.invoice_number = invoice_number
        self.notes = notes
        self.created_at = created_at

    @property
    def line_items(self) -> list[OrderLineItem]:
        """Get order line items (immutable)."""
        return list(self._line_items)

    @property
    def status(self) -> OrderStatus:
        """Get order status."""
        return self._status

    @property
    def items_subtotal(self) -> Decimal:
        """Sum of line totals before discount, tax and shipping."""
        return sum((item.total_price for item in self._line_items), Decimal("0.00"))

    def add_line_item(self, item: OrderLineItem) -> None:
        """Add line item to order."""
        if self._status != OrderStatus.CREATED:
            raise ValueError("Can only add items to new orders")
        self._line_items.append(item)

    def taxable_items(self) -> list[TaxableItem]:
        return [item.to_taxable() for item in self._line_items]

    def apply_pricing(self, order_tax: OrderTax, shipping_cost: Decimal, shipping_tax: GSTSplit) -> None:
        """Store the amounts of a checkout quote on the order."""
        # Pin the rate each line was taxed at so invoices use the same rates.
        for item, line in zip(self._line_items, order_tax.line_item_taxes):
            item.gst_rate = line.gst_rate
        self.subtotal = order_tax.subtotal
        self.discount_amount = order_tax.discount_amount
        self.shipping_cost = round2(shipping_cost)
        self.tax_amount = order_tax.total_tax + shipping_tax.total_tax
        self.total = round2(
            order_tax.subtotal
            - order_tax.discount_amount
            + self.tax_amount
            + self.shipping_cost
        )

    def allowed_transitions(self) -> tuple[OrderStatus, ...]:
        return allowed_transitions(self._status)

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self._status)

    def transition_to(self, new_status: OrderStatus) -> OrderStatus:
        """
        Move the order to ``new_status`` and return the previous status.

        Raises InvalidTransitionError, leaving the order untouched, when the
        move is not in the transition table.
        """
        ensure_transition(self._status, new_status)

        previous = self._status
        self._status = new_status
        if new_status in FULFILLMENT_BY_STATUS:
            self.fulfillment_status = FULFILLMENT_BY_STATUS[new_status]
        if new_status in PAYMENT_BY_STATUS:
            self.payment_status = PAYMENT_BY_STATUS[new_status]
        if new_status == OrderStatus.COD_OTP_VERIFIED:
            self.cod_otp_verified = True
        return previous
