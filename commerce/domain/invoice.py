"""
GST invoice and credit note documents built from an order's tax breakdown.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from commerce.domain.gst import GSTSplit, OrderTax
from commerce.domain.money import round2
from commerce.domain.order import Order
from commerce.domain.order_status import OrderStatus


class InvoiceType(str, Enum):
    """Invoice document type."""
    INVOICE = "invoice"
    CREDIT_NOTE = "credit_note"


# Payment captured (or COD verified) and not cancelled or returned.
INVOICEABLE_STATUSES = frozenset({
    OrderStatus.PAID,
    OrderStatus.COD_OTP_VERIFIED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
    OrderStatus.REFUNDED,
})

CREDITABLE_STATUSES = frozenset({OrderStatus.REFUNDED})


@dataclass(frozen=True)
class InvoiceLine:
    product_name: str
    hsn_code: str
    quantity: int
    unit_price: Decimal
    taxable_value: Decimal
    gst_rate: Decimal
    cgst: Decimal
    sgst: Decimal
    igst: Decimal

    def as_dict(self) -> dict:
        return {
            "product_name": self.product_name,
            "hsn_code": self.hsn_code,
            "quantity": self.quantity,
            "unit_price": str(self.unit_price),
            "taxable_value": str(self.taxable_value),
            "gst_rate": str(self.gst_rate),
            "cgst": str(self.cgst),
            "sgst": str(self.sgst),
            "igst": str(self.igst),
        }


@dataclass(frozen=True)
class Invoice:
    invoice_type: InvoiceType
    seller_state_code: str
    buyer_state_code: str
    place_of_supply: str
    is_inter_state: bool
    lines: tuple[InvoiceLine, ...]
    subtotal: Decimal
    discount: Decimal
    shipping_charges: Decimal
    shipping_gst: Decimal
    total_cgst: Decimal
    total_sgst: Decimal
    total_igst: Decimal
    total_tax: Decimal
    grand_total: Decimal


def check_can_issue(order: Order, invoice_type: InvoiceType) -> None:
    """Raise ValueError if ``order`` cannot carry a document of this type."""
    allowed = INVOICEABLE_STATUSES if invoice_type == InvoiceType.INVOICE else CREDITABLE_STATUSES
    if order.status not in allowed:
        raise ValueError(
            f"Cannot issue {invoice_type.value} for order {order.order_number} "
            f"in status {order.status.value}"
        )


def build_invoice(
    order: Order,
    seller_state_code: str,
    order_tax: OrderTax,
    shipping_tax: GSTSplit,
    invoice_type: InvoiceType = InvoiceType.INVOICE,
) -> Invoice:
    """
    Assemble an invoice from the same tax breakdown checkout used.

    ``order_tax`` must have been computed from ``order.line_items`` in order.
    """
    lines = tuple(
        InvoiceLine(
            product_name=item.name,
            hsn_code=item.hsn_code or "",
            quantity=item.quantity,
            unit_price=item.unit_price,
            taxable_value=tax.taxable_value,
            gst_rate=tax.gst_rate,
            cgst=tax.cgst,
            sgst=tax.sgst,
            igst=tax.igst,
        )
        for item, tax in zip(order.line_items, order_tax.line_item_taxes)
    )
    total_tax = order_tax.total_tax + shipping_tax.total_tax
    shipping_charges = round2(order.shipping_cost)

    return Invoice(
        invoice_type=invoice_type,
        seller_state_code=seller_state_code,
        buyer_state_code=order.buyer_state_code,
        place_of_supply=order.buyer_state_code,
        is_inter_state=order_tax.is_inter_state,
        lines=lines,
        subtotal=order_tax.subtotal,
        discount=order_tax.discount_amount,
        shipping_charges=shipping_charges,
        shipping_gst=shipping_tax.total_tax,
        total_cgst=order_tax.total_cgst + shipping_tax.cgst,
        total_sgst=order_tax.total_sgst + shipping_tax.sgst,
        total_igst=order_tax.total_igst + shipping_tax.igst,
        total_tax=total_tax,
        grand_total=round2(order_tax.subtotal - order_tax.discount_amount + shipping_charges + total_tax),
    )
