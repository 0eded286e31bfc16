#!/usr/bin/env python3
"""
Smoke test for a running storefront: quote, order, lifecycle and invoice.

Usage: smoke_checkout.py <store-id> [base-url]
The store must exist (create it from the admin).
"""
import json
import sys
from uuid import uuid4

import requests

BASE_URL = "http://localhost:8000/graphql/"

ORDER_FIELDS = """
    id
    orderNumber
    status
    allowedTransitions
    subtotal
    discountAmount
    taxAmount
    shippingCost
    total
"""


def graphql(url, query, variables=None):
    """Execute GraphQL query."""
    payload = {"query": query}
    if variables:
        payload["variables"] = variables

    response = requests.post(url, json=payload, headers={"X-Request-ID": str(uuid4())}, timeout=10)
    body = response.json()
    print(f"Status: {response.status_code}")
    print(f"Response: {json.dumps(body, indent=2)}")
    if response.status_code != 200:
        sys.exit(f"Request failed with {response.status_code}")
    return body["data"]


def main():
    if len(sys.argv) < 2:
        sys.exit(__doc__)
    store_id = sys.argv[1]
    url = sys.argv[2] if len(sys.argv) > 2 else BASE_URL

    print("=" * 60)
    print("Storefront checkout smoke test")
    print("=" * 60)

    print("\n[1] Tax quote, intra-state")
    graphql(url, """
        query Quote($input: TaxQuoteInput!) {
            taxQuote(input: $input) {
                subtotal totalCgst totalSgst totalIgst totalTax grandTotal
                shippingTax { cgst sgst igst }
            }
        }
    """, {"input": {
        "lineItems": [{"unitPrice": "999.00", "quantity": 1, "hsnCode": "6109"}],
        "sellerStateCode": "27",
        "buyerStateCode": "27",
        "shippingCost": "50.00",
    }})

    print("\n[2] Create COD order")
    data = graphql(url, """
        mutation CreateOrder($storeId: UUID!, $input: CreateOrderInput!) {
            createOrder(storeId: $storeId, input: $input) { %s }
        }
    """ % ORDER_FIELDS, {"storeId": store_id, "input": {
        "buyerName": "Smoke Test",
        "buyerPhone": "+919800000000",
        "buyerStateCode": "29",
        "shippingAddress": {
            "line1": "1 MG Road",
            "city": "Bengaluru",
            "state": "Karnataka",
            "pincode": "560001",
        },
        "lineItems": [{
            "productId": str(uuid4()),
            "name": "Cotton kurta",
            "quantity": 2,
            "unitPrice": "1299.00",
            "hsnCode": "6211",
        }],
        "paymentMethod": "COD",
        "shippingCost": "60.00",
    }})
    order_id = data["createOrder"]["id"]

    print("\n[3] Walk the COD track to delivery")
    for status in ("COD_CONFIRMED", "COD_OTP_VERIFIED", "PROCESSING", "SHIPPED", "DELIVERED"):
        graphql(url, """
            mutation Move($storeId: UUID!, $orderId: UUID!, $input: UpdateOrderStatusInput!) {
                updateOrderStatus(storeId: $storeId, orderId: $orderId, input: $input) {
                    status allowedTransitions
                }
            }
        """, {"storeId": store_id, "orderId": order_id, "input": {"status": status}})

    print("\n[4] Generate invoice")
    graphql(url, """
        mutation Invoice($storeId: UUID!, $orderId: UUID!) {
            generateInvoice(storeId: $storeId, orderId: $orderId) {
                invoiceNumber isInterState totalIgst grandTotal
            }
        }
    """, {"storeId": store_id, "orderId": order_id})

    print("\n" + "=" * 60)
    print("Smoke test completed")
    print("=" * 60)


if __name__ == "__main__":
    main()
