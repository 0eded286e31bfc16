"""
Infrastructure repositories for domain entities.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from django.db import transaction
from django.db.models import F

from commerce.domain.discount import DiscountRecord, DiscountType
from commerce.domain.gst import validate_state_code
from commerce.domain.invoice import Invoice, InvoiceType
from commerce.domain.order import (
    FulfillmentStatus,
    Order,
    OrderLineItem,
    PaymentMethod,
    PaymentStatus,
)
from commerce.domain.order_status import OrderStatus
from commerce.infra.models import (
    DiscountORM,
    InvoiceORM,
    OrderLineItemORM,
    OrderORM,
    StoreORM,
)
import logging

logger = logging.getLogger(__name__)


def _next_number(queryset, field: str, prefix: str, now: datetime) -> str:
    """Next ``{prefix}-{YYYYMM}-{NNNNN}`` number within ``queryset`` for this month."""
    month_prefix = f"{prefix}-{now:%Y%m}-"
    issued = queryset.filter(**{f"{field}__startswith": month_prefix}).count()
    return f"{month_prefix}{issued + 1:05d}"


class StoreRepository:
    """Repository for seller stores."""

    def get_by_id(self, store_id: UUID) -> StoreORM | None:
        """Get store by ID."""
        return StoreORM.objects.filter(id=store_id).first()

    def create(
        self,
        name: str,
        slug: str,
        state_code: str,
        gstin: str = "",
        address: dict | None = None,
    ) -> StoreORM:
        """Create new store."""
        return StoreORM.objects.create(
            name=name,
            slug=slug,
            state_code=validate_state_code(state_code),
            gstin=gstin.upper(),
            address=address or {},
        )


class OrderRepository:
    """Repository for Order aggregate."""

    def get_by_id(self, store_id: UUID, order_id: UUID, for_update: bool = False) -> Order | None:
        """Get order by ID with line items; ``for_update`` locks the row."""
        queryset = OrderORM.objects.filter(store_id=store_id)
        if for_update:
            queryset = queryset.select_for_update()
        try:
            order_orm = queryset.prefetch_related("line_items").get(id=order_id)
        except OrderORM.DoesNotExist:
            return None
        return self._to_domain(order_orm)

    def next_order_number(self, store_id: UUID, prefix: str, now: datetime) -> str:
        return _next_number(
            OrderORM.objects.filter(store_id=store_id), "order_number", prefix, now
        )

    @transaction.atomic
    def save(self, order: Order) -> UUID:
        """Save order aggregate."""
        order_orm, created = OrderORM.objects.update_or_create(
            id=order.id,
            defaults={
                "store_id": order.store_id,
                "order_number": order.order_number,
                "buyer_name": order.buyer_name,
                "buyer_phone": order.buyer_phone,
                "buyer_email": order.buyer_email,
                "buyer_state_code": order.buyer_state_code,
                "shipping_address": order.shipping_address,
                "billing_address": order.billing_address,
                "subtotal": order.subtotal,
                "discount_amount": order.discount_amount,
                "discount_code": order.discount_code,
                "shipping_cost": order.shipping_cost,
                "tax_amount": order.tax_amount,
                "total": order.total,
                "payment_method": order.payment_method.value,
                "payment_status": order.payment_status.value,
                "payment_reference": order.payment_reference,
                "status": order.status.value,
                "fulfillment_status": order.fulfillment_status.value,
                "tracking_number": order.tracking_number,
                "tracking_url": order.tracking_url,
                "awb_number": order.awb_number,
                "cod_otp_verified": order.cod_otp_verified,
                "invoice_number": order.invoice_number,
                "notes": order.notes,
            }
        )

        # Line items never change after checkout
        if created:
            OrderLineItemORM.objects.bulk_create([
                OrderLineItemORM(
                    order=order_orm,
                    position=position,
                    product_id=item.product_id,
                    variant_id=item.variant_id,
                    name=item.name,
                    sku=item.sku,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    hsn_code=item.hsn_code,
                    gst_rate=item.gst_rate,
                )
                for position, item in enumerate(order.line_items)
            ])
        order.created_at = order_orm.created_at

        return order_orm.id

    def _to_domain(self, order_orm: OrderORM) -> Order:
        """Convert ORM model to domain entity."""
        line_items = [
            OrderLineItem(
                product_id=item_orm.product_id,
                name=item_orm.name,
                quantity=item_orm.quantity,
                unit_price=item_orm.unit_price,
                hsn_code=item_orm.hsn_code,
                gst_rate=item_orm.gst_rate,
                variant_id=item_orm.variant_id,
                sku=item_orm.sku,
            )
            for item_orm in order_orm.line_items.all()
        ]

        return Order(
            id=order_orm.id,
            store_id=order_orm.store_id,
            order_number=order_orm.order_number,
            buyer_name=order_orm.buyer_name,
            buyer_phone=order_orm.buyer_phone,
            buyer_email=order_orm.buyer_email,
            buyer_state_code=order_orm.buyer_state_code,
            shipping_address=order_orm.shipping_address,
            billing_address=order_orm.billing_address,
            line_items=line_items,
            payment_method=PaymentMethod(order_orm.payment_method),
            status=OrderStatus(order_orm.status),
            payment_status=PaymentStatus(order_orm.payment_status),
            fulfillment_status=FulfillmentStatus(order_orm.fulfillment_status),
            subtotal=order_orm.subtotal,
            discount_amount=order_orm.discount_amount,
            discount_code=order_orm.discount_code,
            shipping_cost=order_orm.shipping_cost,
            tax_amount=order_orm.tax_amount,
            total=order_orm.total,
            tracking_number=order_orm.tracking_number,
            tracking_url=order_orm.tracking_url,
            awb_number=order_orm.awb_number,
            payment_reference=order_orm.payment_reference,
            cod_otp_verified=order_orm.cod_otp_verified,
            invoice_number=order_orm.invoice_number,
            notes=order_orm.notes,
            created_at=order_orm.created_at,
        )


class DiscountRepository:
    """Repository for store discount codes. Codes are stored upper-case."""

    def find_by_code(self, store_id: UUID, code: str) -> DiscountRecord | None:
        """Get discount by code (case-insensitive)."""
        discount_orm = DiscountORM.objects.filter(store_id=store_id, code=code.strip().upper()).first()
        if discount_orm is None:
            return None
        return self._to_domain(discount_orm)

    def create(
        self,
        store_id: UUID,
        code: str,
        discount_type: DiscountType,
        value: Decimal,
        starts_at: datetime,
        ends_at: datetime | None = None,
        min_order_value: Decimal | None = None,
        max_discount: Decimal | None = None,
        usage_limit: int | None = None,
        active: bool = True,
    ) -> DiscountRecord:
        """Create new discount code."""
        discount_orm = DiscountORM.objects.create(
            store_id=store_id,
            code=code.strip().upper(),
            discount_type=DiscountType(discount_type).value,
            value=value,
            starts_at=starts_at,
            ends_at=ends_at,
            min_order_value=min_order_value,
            max_discount=max_discount,
            usage_limit=usage_limit,
            active=active,
        )
        return self._to_domain(discount_orm)

    def increment_usage(self, store_id: UUID, discount_id: UUID) -> None:
        """Count one redemption."""
        DiscountORM.objects.filter(store_id=store_id, id=discount_id).update(
            used_count=F("used_count") + 1,
        )

    def _to_domain(self, discount_orm: DiscountORM) -> DiscountRecord:
        return DiscountRecord(
            id=discount_orm.id,
            code=discount_orm.code,
            discount_type=DiscountType(discount_orm.discount_type),
            value=discount_orm.value,
            starts_at=discount_orm.starts_at,
            ends_at=discount_orm.ends_at,
            active=discount_orm.active,
            usage_limit=discount_orm.usage_limit,
            used_count=discount_orm.used_count,
            min_order_value=discount_orm.min_order_value,
            max_discount=discount_orm.max_discount,
        )


class InvoiceRepository:
    """Repository for invoices and credit notes."""

    def get_for_order(self, order_id: UUID, invoice_type: InvoiceType) -> InvoiceORM | None:
        return InvoiceORM.objects.filter(order_id=order_id, invoice_type=invoice_type.value).first()

    def next_invoice_number(self, store_id: UUID, prefix: str, now: datetime) -> str:
        return _next_number(
            InvoiceORM.objects.filter(store_id=store_id), "invoice_number", prefix, now
        )

    @transaction.atomic
    def save(
        self,
        store: StoreORM,
        order_id: UUID,
        buyer_name: str,
        invoice: Invoice,
        invoice_number: str,
        original_invoice: InvoiceORM | None = None,
    ) -> InvoiceORM:
        """Persist an issued document. Issued documents are never updated."""
        return InvoiceORM.objects.create(
            store=store,
            order_id=order_id,
            invoice_number=invoice_number,
            invoice_type=invoice.invoice_type.value,
            original_invoice=original_invoice,
            seller_name=store.name,
            seller_gstin=store.gstin,
            seller_state_code=invoice.seller_state_code,
            buyer_name=buyer_name,
            buyer_state_code=invoice.buyer_state_code,
            place_of_supply=invoice.place_of_supply,
            is_inter_state=invoice.is_inter_state,
            line_items=[line.as_dict() for line in invoice.lines],
            subtotal=invoice.subtotal,
            discount=invoice.discount,
            shipping_charges=invoice.shipping_charges,
            shipping_gst=invoice.shipping_gst,
            total_cgst=invoice.total_cgst,
            total_sgst=invoice.total_sgst,
            total_igst=invoice.total_igst,
            total_tax=invoice.total_tax,
            grand_total=invoice.grand_total,
        )
