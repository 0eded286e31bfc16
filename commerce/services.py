"""
Application services for checkout pricing, order lifecycle and invoicing.

Quotes, order creation and invoices all go through ``tax_order`` and
``tax_shipping`` so the invoice always matches the amount charged.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from commerce.domain.discount import DiscountRejection, DiscountResult, validate_discount
from commerce.domain.events import (
    ORDER_CREATED,
    InvoiceIssued,
    OrderCreated,
    OrderStatusChanged,
    status_event_type,
)
from commerce.domain.gst import (
    DEFAULT_RATE_TABLE_PATH,
    GSTRateTable,
    GSTSplit,
    NegativeDiscountError,
    OrderTax,
    TaxableItem,
    load_rate_table,
    tax_order,
    tax_shipping,
    validate_state_code,
)
from commerce.domain.invoice import InvoiceType, build_invoice, check_can_issue
from commerce.domain.money import round2, to_decimal
from commerce.domain.order import Order, OrderLineItem, PaymentMethod
from commerce.domain.order_status import InvalidTransitionError, OrderStatus
from commerce.infra.models import InvoiceORM
from commerce.infra.outbox import OutboxRepository
from commerce.infra.repositories import (
    DiscountRepository,
    InvoiceRepository,
    OrderRepository,
    StoreRepository,
)
import logging


logger = logging.getLogger(__name__)


def configured_rate_table() -> GSTRateTable:
    """Rate table named by the GST_RATE_TABLE_PATH setting."""
    return load_rate_table(getattr(settings, "GST_RATE_TABLE_PATH", DEFAULT_RATE_TABLE_PATH))


class NotFoundError(ValueError):
    """Raised when a store or order does not exist."""


class DiscountRejectedError(ValueError):
    """Raised when an order is placed with a discount code that does not apply."""

    def __init__(self, reason: DiscountRejection, message: str):
        self.reason = reason
        super().__init__(message)


@dataclass(frozen=True)
class CheckoutQuote:
    """Goods tax, shipping and shipping tax for one checkout."""
    order_tax: OrderTax
    shipping_cost: Decimal
    shipping_tax: GSTSplit

    @property
    def total_tax(self) -> Decimal:
        return self.order_tax.total_tax + self.shipping_tax.total_tax

    @property
    def grand_total(self) -> Decimal:
        return round2(
            self.order_tax.subtotal
            - self.order_tax.discount_amount
            + self.shipping_cost
            + self.total_tax
        )


class PricingService:
    """Service for discount validation and GST quotes."""

    def __init__(
        self,
        discount_repo: DiscountRepository | None = None,
        rate_table: GSTRateTable | None = None,
    ):
        self.discount_repo = discount_repo or DiscountRepository()
        self.rate_table = configured_rate_table() if rate_table is None else rate_table

    def validate_discount(
        self,
        store_id: UUID,
        code: str,
        order_total: Decimal,
        now: datetime | None = None,
    ) -> DiscountResult:
        """Validate a discount code for a store and order total."""
        discount = self.discount_repo.find_by_code(store_id, code)
        result = validate_discount(code, order_total, discount, now or timezone.now())
        logger.info(
            "discount_validated",
            extra={
                "store_id": str(store_id),
                "operation": "validate_discount",
                "status": "valid" if result.valid else result.reason.value,
            },
        )
        return result

    def redeem_discount(self, store_id: UUID, result: DiscountResult) -> None:
        """Count a redemption of a validated discount."""
        if result.valid and result.discount_id is not None:
            self.discount_repo.increment_usage(store_id, result.discount_id)

    def gst_rate(self, hsn_code: str, unit_price: Decimal) -> Decimal:
        return self.rate_table.resolve_rate(hsn_code, unit_price)

    def shipping_tax(self, shipping_cost: Decimal, seller_state_code: str, buyer_state_code: str) -> GSTSplit:
        """Calculate shipping GST (always 18%)."""
        return tax_shipping(
            self._check_amount(shipping_cost, "Shipping cost"),
            validate_state_code(seller_state_code),
            validate_state_code(buyer_state_code),
        )

    def quote(
        self,
        line_items: list[TaxableItem],
        seller_state_code: str,
        buyer_state_code: str,
        discount_amount: Decimal = Decimal("0"),
        shipping_cost: Decimal = Decimal("0"),
    ) -> CheckoutQuote:
        """Tax breakdown for a cart, order or invoice."""
        validate_state_code(seller_state_code)
        validate_state_code(buyer_state_code)
        discount_amount = to_decimal(discount_amount)
        if discount_amount < 0:
            raise NegativeDiscountError(f"Discount amount cannot be negative: {discount_amount}")
        shipping_cost = self._check_amount(shipping_cost, "Shipping cost")

        order_tax = tax_order(
            line_items,
            seller_state_code,
            buyer_state_code,
            discount_amount,
            table=self.rate_table,
        )
        shipping_tax = tax_shipping(shipping_cost, seller_state_code, buyer_state_code)
        return CheckoutQuote(
            order_tax=order_tax,
            shipping_cost=round2(shipping_cost),
            shipping_tax=shipping_tax,
        )

    def _check_amount(self, amount, label: str) -> Decimal:
        amount = to_decimal(amount)
        if amount < 0:
            raise ValueError(f"{label} cannot be negative: {amount}")
        return amount


class OrderService:
    """Service for order operations."""

    def __init__(
        self,
        order_repo: OrderRepository | None = None,
        store_repo: StoreRepository | None = None,
        pricing_service: PricingService | None = None,
        outbox_repo: OutboxRepository | None = None,
    ):
        self.order_repo = order_repo or OrderRepository()
        self.store_repo = store_repo or StoreRepository()
        self.pricing_service = pricing_service or PricingService()
        self.outbox_repo = outbox_repo or OutboxRepository()

    @transaction.atomic
    def create_order(
        self,
        store_id: UUID,
        buyer_name: str,
        buyer_phone: str,
        buyer_state_code: str,
        shipping_address: dict,
        line_items: list[dict],
        payment_method: str,
        buyer_email: str | None = None,
        billing_address: dict | None = None,
        discount_code: str | None = None,
        shipping_cost: Decimal = Decimal("0"),
        notes: str | None = None,
    ) -> Order:
        """Price and place an order in status ``created``."""
        store = self.store_repo.get_by_id(store_id)
        if not store:
            raise NotFoundError(f"Store {store_id} not found")

        order = Order(
            store_id=store.id,
            buyer_name=buyer_name,
            buyer_phone=buyer_phone,
            buyer_email=buyer_email,
            buyer_state_code=validate_state_code(buyer_state_code),
            shipping_address=shipping_address,
            billing_address=billing_address,
            payment_method=PaymentMethod(payment_method),
            notes=notes,
        )
        for item in line_items:
            order.add_line_item(OrderLineItem(
                product_id=UUID(str(item["productId"])),
                name=item["name"],
                quantity=int(item["quantity"]),
                unit_price=Decimal(str(item["unitPrice"])),
                hsn_code=item.get("hsnCode"),
                gst_rate=item.get("gstRate"),
                variant_id=UUID(str(item["variantId"])) if item.get("variantId") else None,
                sku=item.get("sku"),
            ))
        if not order.line_items:
            raise ValueError("Cannot create empty order")

        discount_amount = Decimal("0")
        if discount_code:
            result = self.pricing_service.validate_discount(store.id, discount_code, order.items_subtotal)
            if not result.valid:
                raise DiscountRejectedError(result.reason, result.message)
            self.pricing_service.redeem_discount(store.id, result)
            discount_amount = result.amount
            order.discount_code = discount_code.strip().upper()

        quote = self.pricing_service.quote(
            order.taxable_items(),
            store.state_code,
            order.buyer_state_code,
            discount_amount=discount_amount,
            shipping_cost=shipping_cost,
        )
        order.apply_pricing(quote.order_tax, quote.shipping_cost, quote.shipping_tax)
        order.order_number = self.order_repo.next_order_number(
            store.id, settings.ORDER_NUMBER_PREFIX, timezone.now()
        )
        self.order_repo.save(order)

        self.outbox_repo.add_event(
            OrderCreated(
                event_id=uuid4(),
                aggregate_id=order.id,
                event_type=ORDER_CREATED,
                store_id=store.id,
                order_number=order.order_number,
                total=order.total,
                payment_method=order.payment_method.value,
                status=order.status.value,
                items_count=len(order.line_items),
            ),
            "Order",
        )
        logger.info(
            "order_created",
            extra={
                "store_id": str(store.id),
                "order_id": str(order.id),
                "status": order.status.value,
            },
        )
        return order

    @transaction.atomic
    def update_status(
        self,
        store_id: UUID,
        order_id: UUID,
        new_status: OrderStatus,
        tracking_number: str | None = None,
        tracking_url: str | None = None,
        awb_number: str | None = None,
        payment_reference: str | None = None,
        notes: str | None = None,
    ) -> Order:
        """
        Move an order to ``new_status``.

        The row is locked for the duration of the check and write. An illegal
        move raises InvalidTransitionError and nothing is written.
        """
        order = self.order_repo.get_by_id(store_id, order_id, for_update=True)
        if not order:
            raise NotFoundError(f"Order {order_id} not found")

        new_status = OrderStatus(new_status)
        try:
            previous = order.transition_to(new_status)
        except InvalidTransitionError as e:
            logger.warning(
                "order_transition_rejected",
                extra={
                    "store_id": str(store_id),
                    "order_id": str(order_id),
                    "from_status": e.from_status.value,
                    "to_status": e.to_status.value,
                },
            )
            raise

        if tracking_number is not None:
            order.tracking_number = tracking_number
        if tracking_url is not None:
            order.tracking_url = tracking_url
        if awb_number is not None:
            order.awb_number = awb_number
        if payment_reference is not None:
            order.payment_reference = payment_reference
        if notes is not None:
            order.notes = notes
        self.order_repo.save(order)

        event_type = status_event_type(new_status)
        if event_type:
            self.outbox_repo.add_event(
                OrderStatusChanged(
                    event_id=uuid4(),
                    aggregate_id=order.id,
                    event_type=event_type,
                    store_id=order.store_id,
                    order_number=order.order_number,
                    from_status=previous.value,
                    to_status=new_status.value,
                    total=order.total,
                    payment_method=order.payment_method.value,
                    tracking_number=order.tracking_number,
                    tracking_url=order.tracking_url,
                ),
                "Order",
            )

        logger.info(
            "order_status_changed",
            extra={
                "store_id": str(store_id),
                "order_id": str(order_id),
                "from_status": previous.value,
                "to_status": new_status.value,
            },
        )
        return order

    def get_order(self, store_id: UUID, order_id: UUID) -> Order | None:
        """Get order by ID."""
        return self.order_repo.get_by_id(store_id, order_id)

    def allowed_transitions(self, store_id: UUID, order_id: UUID) -> tuple[OrderStatus, ...]:
        """Next legal statuses for an order, for action buttons."""
        order = self.order_repo.get_by_id(store_id, order_id)
        if not order:
            raise NotFoundError(f"Order {order_id} not found")
        return order.allowed_transitions()


class InvoiceService:
    """Service for GST invoices and credit notes."""

    def __init__(
        self,
        order_repo: OrderRepository | None = None,
        store_repo: StoreRepository | None = None,
        invoice_repo: InvoiceRepository | None = None,
        outbox_repo: OutboxRepository | None = None,
        pricing_service: PricingService | None = None,
    ):
        self.order_repo = order_repo or OrderRepository()
        self.store_repo = store_repo or StoreRepository()
        self.invoice_repo = invoice_repo or InvoiceRepository()
        self.outbox_repo = outbox_repo or OutboxRepository()
        self.pricing_service = pricing_service or PricingService()

    @transaction.atomic
    def generate_invoice(
        self,
        store_id: UUID,
        order_id: UUID,
        invoice_type: InvoiceType = InvoiceType.INVOICE,
    ) -> InvoiceORM:
        """Issue an invoice or credit note; issuing twice returns the first document."""
        store = self.store_repo.get_by_id(store_id)
        if not store:
            raise NotFoundError(f"Store {store_id} not found")
        order = self.order_repo.get_by_id(store_id, order_id, for_update=True)
        if not order:
            raise NotFoundError(f"Order {order_id} not found")

        invoice_type = InvoiceType(invoice_type)
        check_can_issue(order, invoice_type)

        existing = self.invoice_repo.get_for_order(order.id, invoice_type)
        if existing:
            return existing

        original = None
        prefix = settings.INVOICE_NUMBER_PREFIX
        if invoice_type == InvoiceType.CREDIT_NOTE:
            original = self.invoice_repo.get_for_order(order.id, InvoiceType.INVOICE)
            if original is None:
                raise ValueError(f"Order {order.order_number} has no invoice to credit")
            prefix = settings.CREDIT_NOTE_NUMBER_PREFIX

        quote = self.pricing_service.quote(
            order.taxable_items(),
            store.state_code,
            order.buyer_state_code,
            discount_amount=order.discount_amount,
            shipping_cost=order.shipping_cost,
        )
        invoice = build_invoice(order, store.state_code, quote.order_tax, quote.shipping_tax, invoice_type)
        invoice_number = self.invoice_repo.next_invoice_number(store.id, prefix, timezone.now())
        invoice_orm = self.invoice_repo.save(
            store, order.id, order.buyer_name, invoice, invoice_number, original_invoice=original
        )

        if invoice_type == InvoiceType.INVOICE:
            order.invoice_number = invoice_number
            self.order_repo.save(order)

        self.outbox_repo.add_event(
            InvoiceIssued(
                event_id=uuid4(),
                aggregate_id=invoice_orm.id,
                event_type=f"invoice.{invoice_type.value}_issued",
                store_id=store.id,
                order_id=order.id,
                invoice_number=invoice_number,
                invoice_type=invoice_type.value,
                grand_total=invoice.grand_total,
            ),
            "Invoice",
        )
        logger.info(
            "invoice_issued",
            extra={
                "store_id": str(store.id),
                "order_id": str(order.id),
                "operation": invoice_type.value,
            },
        )
        return invoice_orm
