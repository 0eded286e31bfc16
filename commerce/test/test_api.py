"""
Integration tests for GraphQL API.
"""
import json
from decimal import InvalidOperation
from uuid import uuid4

from django.test import SimpleTestCase, TestCase

from commerce.api.middleware import ErrorHandler
from commerce.infra.repositories import StoreRepository

ORDER_FIELDS = """
    id
    orderNumber
    status
    allowedTransitions
    isTerminal
    paymentMethod
    subtotal
    taxAmount
    total
    lineItems { name quantity unitPrice totalPrice hsnCode }
"""

CREATE_ORDER = """
    mutation CreateOrder($storeId: UUID!, $input: CreateOrderInput!) {
        createOrder(storeId: $storeId, input: $input) { %s }
    }
""" % ORDER_FIELDS

UPDATE_STATUS = """
    mutation Move($storeId: UUID!, $orderId: UUID!, $input: UpdateOrderStatusInput!) {
        updateOrderStatus(storeId: $storeId, orderId: $orderId, input: $input) { %s }
    }
""" % ORDER_FIELDS


class GraphQLAPITest(TestCase):
    """Integration tests for GraphQL API."""

    def setUp(self):
        """Set up test data."""
        self.store = StoreRepository().create(name="Kala Handloom", slug="kala", state_code="27")

    def graphql(self, query, variables=None, **headers):
        payload = {"query": query}
        if variables:
            payload["variables"] = variables
        return self.client.post(
            "/graphql/",
            data=json.dumps(payload),
            content_type="application/json",
            **headers,
        )

    def create_order(self):
        response = self.graphql(CREATE_ORDER, {
            "storeId": str(self.store.id),
            "input": {
                "buyerName": "Asha Rao",
                "buyerPhone": "+919812345678",
                "buyerEmail": "asha@example.in",
                "buyerStateCode": "27",
                "shippingAddress": {
                    "line1": "14 Linking Road",
                    "city": "Mumbai",
                    "state": "Maharashtra",
                    "pincode": "400050",
                },
                "lineItems": [{
                    "productId": str(uuid4()),
                    "name": "Cotton kurta",
                    "quantity": 2,
                    "unitPrice": "1299.00",
                    "hsnCode": "6211",
                }],
                "paymentMethod": "COD",
                "shippingCost": "60",
            },
        })
        self.assertEqual(response.status_code, 200, response.content)
        return response.json()["data"]["createOrder"]

    def test_order_transitions_query(self):
        response = self.graphql("{ orderTransitions { status next isTerminal } }")

        self.assertEqual(response.status_code, 200)
        rows = {row["status"]: row for row in response.json()["data"]["orderTransitions"]}
        self.assertEqual(len(rows), 12)
        self.assertEqual(rows["SHIPPED"]["next"], ["OUT_FOR_DELIVERY", "DELIVERED", "RTO"])
        self.assertTrue(rows["RTO"]["isTerminal"])

    def test_allowed_transitions_query(self):
        response = self.graphql("{ allowedTransitions(status: CREATED) }")
        self.assertEqual(
            response.json()["data"]["allowedTransitions"],
            ["PAYMENT_PENDING", "COD_CONFIRMED", "CANCELLED"],
        )

    def test_gst_rate_query(self):
        query = "query Rate($price: Decimal!) { gstRate(hsnCode: \"6211\", unitPrice: $price) }"
        self.assertEqual(self.graphql(query, {"price": "1000"}).json()["data"]["gstRate"], "5")
        self.assertEqual(self.graphql(query, {"price": "1001"}).json()["data"]["gstRate"], "12")

    def test_tax_quote_query(self):
        response = self.graphql("""
            query Quote($input: TaxQuoteInput!) {
                taxQuote(input: $input) {
                    totalCgst totalSgst totalIgst totalTax grandTotal isInterState
                    lineItemTaxes { gstRate taxableValue }
                    shippingTax { cgst sgst }
                }
            }
        """, {"input": {
            "lineItems": [{"unitPrice": "999", "quantity": 1, "hsnCode": "6109"}],
            "sellerStateCode": "27",
            "buyerStateCode": "27",
            "shippingCost": "100",
        }})

        self.assertEqual(response.status_code, 200)
        quote = response.json()["data"]["taxQuote"]
        self.assertEqual(quote["totalCgst"], "24.98")
        self.assertEqual(quote["totalSgst"], "24.97")
        self.assertEqual(quote["totalIgst"], "0.00")
        self.assertEqual(quote["shippingTax"], {"cgst": "9.00", "sgst": "9.00"})
        self.assertEqual(quote["grandTotal"], "1166.95")
        self.assertFalse(quote["isInterState"])

    def test_shipping_tax_query(self):
        response = self.graphql(
            '{ shippingTax(shippingCost: "60", sellerStateCode: "27", buyerStateCode: "29") { igst isInterState } }'
        )
        self.assertEqual(response.json()["data"]["shippingTax"], {"igst": "10.80", "isInterState": True})

    def test_invalid_state_code_is_validation_error(self):
        response = self.graphql(
            '{ shippingTax(shippingCost: "60", sellerStateCode: "27", buyerStateCode: "KA") { igst } }'
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["errors"][0]["extensions"]["code"], "VALIDATION_ERROR")

    def test_malformed_decimal_is_validation_error(self):
        query = """
            query Shipping($cost: Decimal!) {
                shippingTax(shippingCost: $cost, sellerStateCode: "27", buyerStateCode: "29") { igst }
            }
        """
        for value in ("abc", "NaN", "Infinity", "-Infinity"):
            with self.subTest(value=value):
                response = self.graphql(query, {"cost": value})
                self.assertEqual(response.status_code, 400, response.content)
                self.assertEqual(response.json()["errors"][0]["extensions"]["code"], "VALIDATION_ERROR")

    def test_create_and_move_order(self):
        order = self.create_order()
        self.assertEqual(order["status"], "CREATED")
        self.assertEqual(order["paymentMethod"], "COD")
        self.assertEqual(order["total"], "2980.56")
        self.assertEqual(order["lineItems"][0]["totalPrice"], "2598.00")

        response = self.graphql(UPDATE_STATUS, {
            "storeId": str(self.store.id),
            "orderId": order["id"],
            "input": {"status": "COD_CONFIRMED"},
        })

        self.assertEqual(response.status_code, 200)
        moved = response.json()["data"]["updateOrderStatus"]
        self.assertEqual(moved["status"], "COD_CONFIRMED")
        self.assertEqual(moved["allowedTransitions"], ["COD_OTP_VERIFIED", "CANCELLED"])

    def test_illegal_transition_returns_invalid_state(self):
        order = self.create_order()

        response = self.graphql(UPDATE_STATUS, {
            "storeId": str(self.store.id),
            "orderId": order["id"],
            "input": {"status": "DELIVERED"},
        })

        self.assertEqual(response.status_code, 400)
        error = response.json()["errors"][0]
        self.assertEqual(error["extensions"]["code"], "INVALID_STATE")
        self.assertIn("Cannot move order from created to delivered", error["message"])

    def test_unknown_order_returns_not_found(self):
        response = self.graphql(UPDATE_STATUS, {
            "storeId": str(self.store.id),
            "orderId": str(uuid4()),
            "input": {"status": "PAID"},
        })
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["errors"][0]["extensions"]["code"], "NOT_FOUND")

    def test_order_query(self):
        order = self.create_order()
        response = self.graphql(
            "query Get($storeId: UUID!, $id: UUID!) { order(storeId: $storeId, id: $id) { orderNumber total } }",
            {"storeId": str(self.store.id), "id": order["id"]},
        )
        self.assertEqual(response.json()["data"]["order"], {
            "orderNumber": order["orderNumber"],
            "total": "2980.56",
        })

    def test_missing_order_query_returns_null(self):
        response = self.graphql(
            "query Get($storeId: UUID!, $id: UUID!) { order(storeId: $storeId, id: $id) { id } }",
            {"storeId": str(self.store.id), "id": str(uuid4())},
        )
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.json()["data"]["order"])

    def test_validate_discount_mutation(self):
        response = self.graphql(
            'mutation { validateDiscount(storeId: "%s", code: "NOPE", orderTotal: "500") '
            '{ valid amount message reason } }' % self.store.id
        )
        self.assertEqual(response.json()["data"]["validateDiscount"], {
            "valid": False,
            "amount": "0.00",
            "message": "Invalid discount code NOPE",
            "reason": "NOT_FOUND",
        })

    def test_generate_invoice_mutation(self):
        order = self.create_order()
        for status in ("COD_CONFIRMED", "COD_OTP_VERIFIED"):
            self.graphql(UPDATE_STATUS, {
                "storeId": str(self.store.id),
                "orderId": order["id"],
                "input": {"status": status},
            })

        response = self.graphql("""
            mutation Invoice($storeId: UUID!, $orderId: UUID!) {
                generateInvoice(storeId: $storeId, orderId: $orderId) {
                    invoiceNumber invoiceType grandTotal totalCgst totalSgst
                    lines { hsnCode gstRate }
                }
            }
        """, {"storeId": str(self.store.id), "orderId": order["id"]})

        self.assertEqual(response.status_code, 200, response.content)
        invoice = response.json()["data"]["generateInvoice"]
        self.assertEqual(invoice["invoiceType"], "INVOICE")
        self.assertEqual(invoice["grandTotal"], "2980.56")
        self.assertEqual(invoice["totalCgst"], "161.28")
        self.assertEqual(invoice["lines"], [{"hsnCode": "6211", "gstRate": "12.00"}])

    def test_invalid_json(self):
        response = self.client.post("/graphql/", data="{not json", content_type="application/json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["code"], "VALIDATION_ERROR")

    def test_request_id_is_echoed(self):
        response = self.graphql("{ orderTransitions { status } }", HTTP_X_REQUEST_ID="req-42")
        self.assertEqual(response["X-Request-ID"], "req-42")

    def test_get_returns_hint(self):
        response = self.client.get("/graphql/")
        self.assertEqual(response.status_code, 200)


class ErrorCodeTest(SimpleTestCase):
    """Tests for mapping resolver exceptions to error codes."""

    def test_decimal_errors_are_validation_errors(self):
        self.assertEqual(ErrorHandler.code_for(InvalidOperation()), "VALIDATION_ERROR")
        self.assertEqual(ErrorHandler.code_for(ValueError("bad")), "VALIDATION_ERROR")

    def test_unexpected_errors_are_internal(self):
        self.assertEqual(ErrorHandler.code_for(RuntimeError("boom")), "INTERNAL_ERROR")
