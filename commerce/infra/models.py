from __future__ import annotations

from uuid import uuid4

from django.db import models

from commerce.domain.discount import DiscountType
from commerce.domain.order import FulfillmentStatus, PaymentMethod, PaymentStatus
from commerce.domain.order_status import OrderStatus


def _choices(enum_cls) -> tuple:
    return tuple((member.value, member.value.replace("_", " ").capitalize()) for member in enum_cls)


INVOICE_TYPE = (
    ("invoice", "Tax invoice"),
    ("credit_note", "Credit note"),
)


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class StoreORM(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=100, unique=True)
    gstin = models.CharField(max_length=15, blank=True, default="")
    state_code = models.CharField(max_length=2)
    address = models.JSONField(default=dict, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=("slug",)),
        ]


class OrderORM(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    store = models.ForeignKey(
        StoreORM,
        on_delete=models.CASCADE,
        related_name="orders",
    )
    order_number = models.CharField(max_length=32)
    buyer_name = models.CharField(max_length=200)
    buyer_phone = models.CharField(max_length=20)
    buyer_email = models.EmailField(null=True, blank=True)
    buyer_state_code = models.CharField(max_length=2)
    shipping_address = models.JSONField(default=dict)
    billing_address = models.JSONField(null=True, blank=True)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    discount_code = models.CharField(max_length=50, null=True, blank=True)
    shipping_cost = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total = models.DecimalField(max_digits=12, decimal_places=2)
    payment_method = models.CharField(max_length=20, choices=_choices(PaymentMethod))
    payment_status = models.CharField(
        max_length=20,
        choices=_choices(PaymentStatus),
        default=PaymentStatus.PENDING.value,
    )
    payment_reference = models.CharField(max_length=200, null=True, blank=True)
    status = models.CharField(
        max_length=20,
        choices=_choices(OrderStatus),
        default=OrderStatus.CREATED.value,
    )
    fulfillment_status = models.CharField(
        max_length=20,
        choices=_choices(FulfillmentStatus),
        default=FulfillmentStatus.UNFULFILLED.value,
    )
    tracking_number = models.CharField(max_length=200, null=True, blank=True)
    tracking_url = models.URLField(null=True, blank=True)
    awb_number = models.CharField(max_length=100, null=True, blank=True)
    cod_otp_verified = models.BooleanField(default=False)
    invoice_number = models.CharField(max_length=32, null=True, blank=True)
    notes = models.TextField(null=True, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=("store", "order_number"), name="uniq_order_number_per_store"),
        ]
        indexes = [
            models.Index(fields=("store", "status")),
            models.Index(fields=("store", "-created_at")),
            models.Index(fields=("buyer_phone",)),
        ]


class OrderLineItemORM(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    order = models.ForeignKey(
        OrderORM,
        on_delete=models.CASCADE,
        related_name="line_items",
    )
    position = models.PositiveIntegerField(default=0)
    product_id = models.UUIDField()
    variant_id = models.UUIDField(null=True, blank=True)
    name = models.CharField(max_length=255)
    sku = models.CharField(max_length=100, null=True, blank=True)
    quantity = models.IntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    hsn_code = models.CharField(max_length=8, null=True, blank=True)
    gst_rate = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)

    class Meta:
        ordering = ["position"]
        indexes = [
            models.Index(fields=("order",)),
        ]


class DiscountORM(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    store = models.ForeignKey(
        StoreORM,
        on_delete=models.CASCADE,
        related_name="discounts",
    )
    code = models.CharField(max_length=50)
    discount_type = models.CharField(max_length=20, choices=_choices(DiscountType))
    value = models.DecimalField(max_digits=12, decimal_places=2)
    min_order_value = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    max_discount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    usage_limit = models.IntegerField(null=True, blank=True)
    used_count = models.IntegerField(default=0)
    starts_at = models.DateTimeField()
    ends_at = models.DateTimeField(null=True, blank=True)
    active = models.BooleanField(default=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=("store", "code"), name="uniq_discount_code_per_store"),
        ]
        indexes = [
            models.Index(fields=("store", "code")),
        ]


class InvoiceORM(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    store = models.ForeignKey(
        StoreORM,
        on_delete=models.CASCADE,
        related_name="invoices",
    )
    order = models.ForeignKey(
        OrderORM,
        on_delete=models.CASCADE,
        related_name="invoices",
    )
    invoice_number = models.CharField(max_length=32)
    invoice_type = models.CharField(max_length=20, choices=INVOICE_TYPE, default="invoice")
    original_invoice = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="credit_notes",
    )
    seller_name = models.CharField(max_length=255)
    seller_gstin = models.CharField(max_length=15, blank=True, default="")
    seller_state_code = models.CharField(max_length=2)
    buyer_name = models.CharField(max_length=200)
    buyer_state_code = models.CharField(max_length=2)
    place_of_supply = models.CharField(max_length=2)
    is_inter_state = models.BooleanField(default=False)
    line_items = models.JSONField(default=list)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    shipping_charges = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    shipping_gst = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_cgst = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_sgst = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_igst = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_tax = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    grand_total = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=("store", "invoice_number"), name="uniq_invoice_number_per_store"),
            models.UniqueConstraint(fields=("order", "invoice_type"), name="uniq_invoice_type_per_order"),
        ]
        indexes = [
            models.Index(fields=("store",)),
            models.Index(fields=("order",)),
        ]
