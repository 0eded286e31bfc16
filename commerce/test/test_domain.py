"""
Unit tests for the Order aggregate.
"""
from decimal import Decimal
from uuid import uuid4

from django.test import SimpleTestCase

from commerce.domain.gst import split_tax, tax_order, tax_shipping
from commerce.domain.order import (
    FulfillmentStatus,
    Order,
    OrderLineItem,
    PaymentMethod,
    PaymentStatus,
)
from commerce.domain.order_status import InvalidTransitionError, OrderStatus


def make_item(**overrides) -> OrderLineItem:
    fields = {
        "product_id": uuid4(),
        "name": "Cotton kurta",
        "quantity": 2,
        "unit_price": Decimal("1299.00"),
        "hsn_code": "6211",
    }
    fields.update(overrides)
    return OrderLineItem(**fields)


def walk(order: Order, *statuses: OrderStatus) -> None:
    for status in statuses:
        order.transition_to(status)


class OrderLineItemTest(SimpleTestCase):
    """Tests for OrderLineItem value object."""

    def test_total_price(self):
        self.assertEqual(make_item().total_price, Decimal("2598.00"))

    def test_quantity_must_be_positive(self):
        with self.assertRaises(ValueError):
            make_item(quantity=0)

    def test_price_must_be_non_negative(self):
        with self.assertRaises(ValueError):
            make_item(unit_price=Decimal("-1"))

    def test_price_limited_to_two_decimal_places(self):
        with self.assertRaises(ValueError):
            make_item(unit_price=Decimal("333.335"))
        self.assertEqual(make_item(unit_price="333.3").unit_price, Decimal("333.3"))

    def test_rate_must_be_in_range(self):
        with self.assertRaises(ValueError):
            make_item(gst_rate=Decimal("30"))

    def test_to_taxable(self):
        taxable = make_item(gst_rate="0").to_taxable()
        self.assertEqual(taxable.unit_price, Decimal("1299.00"))
        self.assertEqual(taxable.quantity, 2)
        self.assertEqual(taxable.hsn_code, "6211")
        self.assertEqual(taxable.gst_rate, Decimal("0"))


class OrderTest(SimpleTestCase):
    """Tests for Order aggregate."""

    def test_new_order_defaults(self):
        order = Order(store_id=uuid4())
        self.assertEqual(order.status, OrderStatus.CREATED)
        self.assertEqual(order.payment_status, PaymentStatus.PENDING)
        self.assertEqual(order.fulfillment_status, FulfillmentStatus.UNFULFILLED)
        self.assertEqual(
            order.allowed_transitions(),
            (OrderStatus.PAYMENT_PENDING, OrderStatus.COD_CONFIRMED, OrderStatus.CANCELLED),
        )
        self.assertFalse(order.is_terminal)

    def test_line_items_copy(self):
        order = Order(store_id=uuid4())
        order.add_line_item(make_item())
        order.line_items.append(make_item())
        self.assertEqual(len(order.line_items), 1)

    def test_cannot_add_items_after_created(self):
        order = Order(store_id=uuid4())
        order.transition_to(OrderStatus.PAYMENT_PENDING)
        with self.assertRaises(ValueError):
            order.add_line_item(make_item())

    def test_apply_pricing(self):
        order = Order(store_id=uuid4(), buyer_state_code="27")
        order.add_line_item(make_item())
        order_tax = tax_order(order.taxable_items(), "27", "27", Decimal("100"))
        shipping = tax_shipping(Decimal("60"), "27", "27")

        order.apply_pricing(order_tax, Decimal("60"), shipping)

        self.assertEqual(order.subtotal, Decimal("2598.00"))
        self.assertEqual(order.discount_amount, Decimal("100.00"))
        # (2598 - 100) * 12% + 60 * 18%
        self.assertEqual(order.tax_amount, Decimal("310.56"))
        self.assertEqual(order.total, Decimal("2868.56"))
        self.assertEqual(order.line_items[0].gst_rate, Decimal("12"))

    def test_prepaid_lifecycle_updates_payment_and_fulfillment(self):
        order = Order(store_id=uuid4())
        walk(order, OrderStatus.PAYMENT_PENDING, OrderStatus.PAID)
        self.assertEqual(order.payment_status, PaymentStatus.CAPTURED)

        walk(order, OrderStatus.PROCESSING, OrderStatus.SHIPPED)
        self.assertEqual(order.fulfillment_status, FulfillmentStatus.PARTIALLY_FULFILLED)

        walk(order, OrderStatus.DELIVERED)
        self.assertEqual(order.fulfillment_status, FulfillmentStatus.FULFILLED)

        previous = order.transition_to(OrderStatus.REFUNDED)
        self.assertEqual(previous, OrderStatus.DELIVERED)
        self.assertEqual(order.payment_status, PaymentStatus.REFUNDED)
        self.assertTrue(order.is_terminal)

    def test_cod_lifecycle_sets_otp_flag(self):
        order = Order(store_id=uuid4(), payment_method=PaymentMethod.COD)
        walk(order, OrderStatus.COD_CONFIRMED)
        self.assertFalse(order.cod_otp_verified)
        walk(order, OrderStatus.COD_OTP_VERIFIED)
        self.assertTrue(order.cod_otp_verified)
        self.assertEqual(order.payment_status, PaymentStatus.PENDING)

    def test_return_to_origin(self):
        order = Order(store_id=uuid4())
        walk(
            order,
            OrderStatus.PAYMENT_PENDING,
            OrderStatus.PAID,
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.OUT_FOR_DELIVERY,
            OrderStatus.RTO,
        )
        self.assertEqual(order.fulfillment_status, FulfillmentStatus.RETURNED)
        self.assertTrue(order.is_terminal)

    def test_illegal_move_leaves_order_untouched(self):
        order = Order(store_id=uuid4())
        walk(order, OrderStatus.PAYMENT_PENDING, OrderStatus.PAID)

        with self.assertRaises(InvalidTransitionError):
            order.transition_to(OrderStatus.DELIVERED)

        self.assertEqual(order.status, OrderStatus.PAID)
        self.assertEqual(order.fulfillment_status, FulfillmentStatus.UNFULFILLED)

    def test_cancelled_is_final(self):
        order = Order(store_id=uuid4())
        walk(order, OrderStatus.CANCELLED)
        for status in OrderStatus:
            with self.assertRaises(InvalidTransitionError):
                order.transition_to(status)


class SplitUsedByOrderTest(SimpleTestCase):
    """Order tax lines agree with split_tax for a single-line order."""

    def test_single_line_matches_split_tax(self):
        order = Order(store_id=uuid4())
        order.add_line_item(make_item(quantity=1, unit_price=Decimal("999"), hsn_code="6109"))
        result = tax_order(order.taxable_items(), "27", "27")
        split = split_tax(Decimal("999"), Decimal("5"), "27", "27")
        self.assertEqual(result.total_cgst, split.cgst)
        self.assertEqual(result.total_sgst, split.sgst)
