"""
GraphQL schema definition using Ariadne.
"""
from ariadne import (
    EnumType,
    QueryType,
    MutationType,
    make_executable_schema,
    ScalarType,
    load_schema_from_path,
)
from decimal import Decimal, InvalidOperation
from uuid import UUID
from datetime import datetime
from pathlib import Path

from commerce.domain.discount import DiscountRejection
from commerce.domain.gst import GSTSplit, TaxableItem
from commerce.domain.invoice import InvoiceType
from commerce.domain.order import Order, PaymentMethod
from commerce.domain.order_status import (
    OrderStatus,
    allowed_transitions,
    is_terminal,
)
from commerce.infra.models import InvoiceORM
from commerce.services import InvoiceService, OrderService, PricingService

# Load schema from .graphql files
SCHEMAS_DIR = Path(__file__).parent / "schemas"
type_defs = load_schema_from_path(SCHEMAS_DIR)

query = QueryType()
mutation = MutationType()


def _split_payload(split: GSTSplit) -> dict:
    return {
        "cgst": split.cgst,
        "sgst": split.sgst,
        "igst": split.igst,
        "totalTax": split.total_tax,
        "isInterState": split.is_inter_state,
    }


def _order_payload(order: Order) -> dict:
    return {
        "id": order.id,
        "orderNumber": order.order_number,
        "status": order.status,
        "allowedTransitions": list(order.allowed_transitions()),
        "isTerminal": order.is_terminal,
        "paymentMethod": order.payment_method,
        "paymentStatus": order.payment_status.value,
        "paymentReference": order.payment_reference,
        "fulfillmentStatus": order.fulfillment_status.value,
        "buyerName": order.buyer_name,
        "buyerStateCode": order.buyer_state_code,
        "shippingAddress": order.shipping_address,
        "lineItems": [
            {
                "productId": item.product_id,
                "variantId": item.variant_id,
                "name": item.name,
                "sku": item.sku,
                "quantity": item.quantity,
                "unitPrice": item.unit_price,
                "totalPrice": item.total_price,
                "hsnCode": item.hsn_code,
                "gstRate": item.gst_rate,
            }
            for item in order.line_items
        ],
        "subtotal": order.subtotal,
        "discountCode": order.discount_code,
        "discountAmount": order.discount_amount,
        "shippingCost": order.shipping_cost,
        "taxAmount": order.tax_amount,
        "total": order.total,
        "trackingNumber": order.tracking_number,
        "trackingUrl": order.tracking_url,
        "awbNumber": order.awb_number,
        "codOtpVerified": order.cod_otp_verified,
        "invoiceNumber": order.invoice_number,
        "notes": order.notes,
        "createdAt": order.created_at,
    }


def _invoice_payload(invoice: InvoiceORM) -> dict:
    original = invoice.original_invoice
    return {
        "id": invoice.id,
        "invoiceNumber": invoice.invoice_number,
        "invoiceType": InvoiceType(invoice.invoice_type),
        "orderId": invoice.order_id,
        "originalInvoiceNumber": original.invoice_number if original else None,
        "sellerName": invoice.seller_name,
        "sellerGstin": invoice.seller_gstin,
        "sellerStateCode": invoice.seller_state_code,
        "buyerName": invoice.buyer_name,
        "buyerStateCode": invoice.buyer_state_code,
        "placeOfSupply": invoice.place_of_supply,
        "isInterState": invoice.is_inter_state,
        "lines": [
            {
                "productName": line["product_name"],
                "hsnCode": line["hsn_code"],
                "quantity": line["quantity"],
                "unitPrice": line["unit_price"],
                "taxableValue": line["taxable_value"],
                "gstRate": line["gst_rate"],
                "cgst": line["cgst"],
                "sgst": line["sgst"],
                "igst": line["igst"],
            }
            for line in invoice.line_items
        ],
        "subtotal": invoice.subtotal,
        "discount": invoice.discount,
        "shippingCharges": invoice.shipping_charges,
        "shippingGst": invoice.shipping_gst,
        "totalCgst": invoice.total_cgst,
        "totalSgst": invoice.total_sgst,
        "totalIgst": invoice.total_igst,
        "totalTax": invoice.total_tax,
        "grandTotal": invoice.grand_total,
        "issuedAt": invoice.created_at,
    }


@query.field("order")
def resolve_order(_, info, storeId, id):
    """Resolve order query."""
    order = OrderService().get_order(storeId, id)
    if order is None:
        return None
    return _order_payload(order)


@query.field("allowedTransitions")
def resolve_allowed_transitions(_, info, status):
    return list(allowed_transitions(status))


@query.field("orderTransitions")
def resolve_order_transitions(_, info):
    """The whole lifecycle table, one row per status."""
    return [
        {
            "status": status,
            "next": list(allowed_transitions(status)),
            "isTerminal": is_terminal(status),
        }
        for status in OrderStatus
    ]


@query.field("gstRate")
def resolve_gst_rate(_, info, hsnCode, unitPrice):
    return PricingService().gst_rate(hsnCode, unitPrice)


@query.field("taxQuote")
def resolve_tax_quote(_, info, input: dict):
    """Resolve checkout tax quote."""
    line_items = [
        TaxableItem(
            unit_price=item["unitPrice"],
            quantity=item["quantity"],
            hsn_code=item.get("hsnCode"),
            gst_rate=item.get("gstRate"),
        )
        for item in input["lineItems"]
    ]
    quote = PricingService().quote(
        line_items,
        input["sellerStateCode"],
        input["buyerStateCode"],
        discount_amount=input.get("discountAmount") or Decimal("0"),
        shipping_cost=input.get("shippingCost") or Decimal("0"),
    )
    order_tax = quote.order_tax
    return {
        "lineItemTaxes": [
            {
                "taxableValue": line.taxable_value,
                "gstRate": line.gst_rate,
                "cgst": line.cgst,
                "sgst": line.sgst,
                "igst": line.igst,
                "totalTax": line.total_tax,
            }
            for line in order_tax.line_item_taxes
        ],
        "subtotal": order_tax.subtotal,
        "discountAmount": order_tax.discount_amount,
        "totalCgst": order_tax.total_cgst,
        "totalSgst": order_tax.total_sgst,
        "totalIgst": order_tax.total_igst,
        "totalTax": order_tax.total_tax,
        "isInterState": order_tax.is_inter_state,
        "shippingCost": quote.shipping_cost,
        "shippingTax": _split_payload(quote.shipping_tax),
        "grandTotal": quote.grand_total,
    }


@query.field("shippingTax")
def resolve_shipping_tax(_, info, shippingCost, sellerStateCode, buyerStateCode):
    split = PricingService().shipping_tax(shippingCost, sellerStateCode, buyerStateCode)
    return _split_payload(split)


@mutation.field("createOrder")
def resolve_create_order(_, info, storeId, input: dict):
    """Resolve create order mutation."""
    order = OrderService().create_order(
        storeId,
        buyer_name=input["buyerName"],
        buyer_phone=input["buyerPhone"],
        buyer_email=input.get("buyerEmail"),
        buyer_state_code=input["buyerStateCode"],
        shipping_address=input["shippingAddress"],
        billing_address=input.get("billingAddress"),
        line_items=input["lineItems"],
        payment_method=input["paymentMethod"],
        discount_code=input.get("discountCode"),
        shipping_cost=input.get("shippingCost") or Decimal("0"),
        notes=input.get("notes"),
    )
    return _order_payload(order)


@mutation.field("updateOrderStatus")
def resolve_update_order_status(_, info, storeId, orderId, input: dict):
    """Resolve order status change mutation."""
    order = OrderService().update_status(
        storeId,
        orderId,
        input["status"],
        tracking_number=input.get("trackingNumber"),
        tracking_url=input.get("trackingUrl"),
        awb_number=input.get("awbNumber"),
        payment_reference=input.get("paymentReference"),
        notes=input.get("notes"),
    )
    return _order_payload(order)


@mutation.field("validateDiscount")
def resolve_validate_discount(_, info, storeId, code, orderTotal):
    result = PricingService().validate_discount(storeId, code, orderTotal)
    return {
        "valid": result.valid,
        "amount": result.amount,
        "message": result.message,
        "reason": result.reason,
    }


@mutation.field("generateInvoice")
def resolve_generate_invoice(_, info, storeId, orderId, invoiceType=InvoiceType.INVOICE):
    invoice = InvoiceService().generate_invoice(storeId, orderId, invoiceType)
    return _invoice_payload(invoice)


# Define custom scalars
decimal_scalar = ScalarType("Decimal")
uuid_scalar = ScalarType("UUID")
datetime_scalar = ScalarType("DateTime")


@decimal_scalar.serializer
def serialize_decimal(value):
    """Serialize Decimal to string."""
    return str(value)


@decimal_scalar.value_parser
def parse_decimal_value(value):
    """Parse Decimal from string."""
    try:
        parsed = Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Invalid decimal: {value!r}") from e
    if not parsed.is_finite():
        raise ValueError(f"Decimal must be finite: {value!r}")
    return parsed


@uuid_scalar.serializer
def serialize_uuid(value):
    """Serialize UUID to string."""
    return str(value)


@uuid_scalar.value_parser
def parse_uuid_value(value):
    """Parse UUID from string."""
    if isinstance(value, UUID):
        return value
    return UUID(str(value))


@datetime_scalar.serializer
def serialize_datetime(value):
    """Serialize DateTime to ISO format string."""
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


@datetime_scalar.value_parser
def parse_datetime_value(value):
    """Parse DateTime from string."""
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


# Create executable schema
schema = make_executable_schema(
    type_defs,
    query,
    mutation,
    EnumType("OrderStatus", OrderStatus),
    EnumType("PaymentMethod", PaymentMethod),
    EnumType("InvoiceType", InvoiceType),
    EnumType("DiscountRejection", DiscountRejection),
    datetime_scalar,
    decimal_scalar,
    uuid_scalar,
)
