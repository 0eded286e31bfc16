"""
Unit tests for order-level tax aggregation.
"""
from decimal import Decimal

from django.test import SimpleTestCase

from commerce.domain.gst import GSTRateTable, HSNRateEntry, TaxableItem, tax_order


class TaxOrderTest(SimpleTestCase):
    """Tests for tax_order."""

    def test_empty_order(self):
        result = tax_order([], "27", "29")
        self.assertEqual(result.line_item_taxes, ())
        self.assertEqual(result.subtotal, Decimal("0.00"))
        self.assertEqual(result.total_tax, Decimal("0.00"))
        self.assertEqual(result.total_igst, Decimal("0.00"))
        self.assertTrue(result.is_inter_state)

    def test_single_line_above_threshold(self):
        result = tax_order(
            [TaxableItem(unit_price=Decimal("1299"), quantity=2, hsn_code="6211")],
            "27",
            "27",
        )
        line = result.line_item_taxes[0]
        self.assertEqual(line.gst_rate, Decimal("12"))
        self.assertEqual(line.taxable_value, Decimal("2598.00"))
        self.assertEqual(result.subtotal, Decimal("2598.00"))
        self.assertEqual(result.total_tax, Decimal("311.76"))
        self.assertEqual(result.total_cgst, Decimal("155.88"))
        self.assertEqual(result.total_sgst, Decimal("155.88"))
        self.assertFalse(result.is_inter_state)

    def test_threshold_uses_unit_price_not_line_total(self):
        result = tax_order(
            [TaxableItem(unit_price=Decimal("600"), quantity=3, hsn_code="6109")],
            "27",
            "27",
        )
        self.assertEqual(result.line_item_taxes[0].gst_rate, Decimal("5"))
        self.assertEqual(result.total_tax, Decimal("90.00"))

    def test_discount_is_spread_by_value(self):
        items = [
            TaxableItem(unit_price=Decimal("1000"), quantity=1, hsn_code="0901"),
            TaxableItem(unit_price=Decimal("500"), quantity=2, hsn_code="9403"),
        ]
        result = tax_order(items, "27", "29", discount_amount=Decimal("200"))

        first, second = result.line_item_taxes
        self.assertEqual(first.taxable_value, Decimal("900.00"))
        self.assertEqual(second.taxable_value, Decimal("900.00"))
        self.assertEqual(first.igst, Decimal("45.00"))
        self.assertEqual(second.igst, Decimal("162.00"))
        self.assertEqual(result.total_igst, Decimal("207.00"))
        self.assertEqual(result.discount_amount, Decimal("200.00"))
        self.assertEqual(result.taxable_value, Decimal("1800.00"))

    def test_discounted_taxable_values_stay_within_a_paisa_per_line(self):
        items = [TaxableItem(unit_price=Decimal("100"), quantity=1) for _ in range(3)]
        result = tax_order(items, "27", "27", discount_amount=Decimal("100"))

        expected = result.subtotal - result.discount_amount
        drift = abs(result.taxable_value - expected)
        self.assertLessEqual(drift, Decimal("0.01") * len(items))

    def test_uneven_lines_stay_within_a_paisa_each(self):
        items = [
            TaxableItem(unit_price=Decimal("333.33"), quantity=3, hsn_code="6109"),
            TaxableItem(unit_price=Decimal("1499"), quantity=1, hsn_code="6204"),
            TaxableItem(unit_price=Decimal("49.90"), quantity=7, hsn_code="3401"),
        ]
        result = tax_order(items, "27", "27", discount_amount=Decimal("123.45"))

        self.assertEqual(result.subtotal, Decimal("2848.29"))
        drift = abs(result.taxable_value - (result.subtotal - result.discount_amount))
        self.assertLessEqual(drift, Decimal("0.01") * len(items))

    def test_explicit_zero_rate_is_honoured(self):
        result = tax_order(
            [TaxableItem(unit_price=Decimal("500"), quantity=1, hsn_code="6109", gst_rate=Decimal("0"))],
            "27",
            "27",
        )
        self.assertEqual(result.line_item_taxes[0].gst_rate, Decimal("0"))
        self.assertEqual(result.total_tax, Decimal("0.00"))

    def test_seller_rate_wins_over_hsn(self):
        result = tax_order(
            [TaxableItem(unit_price=Decimal("500"), quantity=1, hsn_code="6109", gst_rate=Decimal("28"))],
            "27",
            "29",
        )
        self.assertEqual(result.total_igst, Decimal("140.00"))

    def test_no_hsn_and_no_rate_uses_default(self):
        result = tax_order([TaxableItem(unit_price=Decimal("100"), quantity=1)], "27", "27")
        self.assertEqual(result.line_item_taxes[0].gst_rate, Decimal("18"))
        self.assertEqual(result.total_tax, Decimal("18.00"))

    def test_zero_subtotal_with_discount(self):
        result = tax_order(
            [TaxableItem(unit_price=Decimal("0"), quantity=2, hsn_code="6109")],
            "27",
            "27",
            discount_amount=Decimal("50"),
        )
        self.assertEqual(result.line_item_taxes[0].taxable_value, Decimal("0.00"))
        self.assertEqual(result.total_tax, Decimal("0.00"))

    def test_totals_equal_sum_of_lines(self):
        items = [
            TaxableItem(unit_price=Decimal("333.33"), quantity=3, hsn_code="6109"),
            TaxableItem(unit_price=Decimal("1499"), quantity=1, hsn_code="6204"),
            TaxableItem(unit_price=Decimal("49.90"), quantity=7, hsn_code="3401"),
        ]
        result = tax_order(items, "27", "27", discount_amount=Decimal("123.45"))

        lines = result.line_item_taxes
        self.assertEqual(result.total_cgst, sum((line.cgst for line in lines), Decimal("0")))
        self.assertEqual(result.total_sgst, sum((line.sgst for line in lines), Decimal("0")))
        self.assertEqual(result.total_tax, result.total_cgst + result.total_sgst + result.total_igst)
        for line in lines:
            self.assertEqual(line.cgst + line.sgst, line.total_tax)

    def test_custom_table(self):
        table = GSTRateTable([HSNRateEntry(hsn_code="4901", rate=0)], default_rate=12)
        items = [
            TaxableItem(unit_price=Decimal("250"), quantity=1, hsn_code="4901"),
            TaxableItem(unit_price=Decimal("250"), quantity=1, hsn_code="6109"),
        ]
        result = tax_order(items, "27", "27", table=table)
        self.assertEqual(result.total_tax, Decimal("30.00"))

    def test_empty_table_uses_its_default_rate(self):
        table = GSTRateTable([], default_rate=12)
        items = [TaxableItem(unit_price=Decimal("800"), quantity=1, hsn_code="6211")]
        result = tax_order(items, "27", "27", table=table)
        self.assertEqual(result.line_item_taxes[0].gst_rate, Decimal("12"))
        self.assertEqual(result.total_tax, Decimal("96.00"))

    def test_same_input_same_result(self):
        items = [TaxableItem(unit_price=Decimal("749.50"), quantity=2, hsn_code="6206")]
        self.assertEqual(
            tax_order(items, "27", "29", Decimal("10")),
            tax_order(items, "27", "29", Decimal("10")),
        )
