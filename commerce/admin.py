from django.contrib import admin

from commerce.infra.models import (
    DiscountORM,
    InvoiceORM,
    OrderLineItemORM,
    OrderORM,
    StoreORM,
)
from commerce.infra.outbox import OutboxEvent


@admin.register(StoreORM)
class StoreAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "slug", "gstin", "state_code", "created_at")
    search_fields = ("name", "slug", "gstin")


class OrderLineItemInline(admin.TabularInline):
    model = OrderLineItemORM
    extra = 0
    readonly_fields = ("position", "product_id", "name", "sku", "quantity", "unit_price", "hsn_code", "gst_rate")


@admin.register(OrderORM)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "store", "status", "payment_method", "total", "created_at")
    list_filter = ("status", "payment_method", "payment_status", "created_at")
    search_fields = ("order_number", "invoice_number", "tracking_number")
    # Status changes go through OrderService.
    readonly_fields = ("status", "payment_status", "fulfillment_status", "cod_otp_verified")
    inlines = (OrderLineItemInline,)


@admin.register(DiscountORM)
class DiscountAdmin(admin.ModelAdmin):
    list_display = ("code", "store", "discount_type", "value", "active", "used_count", "usage_limit", "ends_at")
    list_filter = ("discount_type", "active")
    search_fields = ("code",)


@admin.register(InvoiceORM)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ("invoice_number", "invoice_type", "store", "order", "grand_total", "created_at")
    list_filter = ("invoice_type", "is_inter_state", "created_at")
    search_fields = ("invoice_number",)

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(OutboxEvent)
class OutboxEventAdmin(admin.ModelAdmin):
    list_display = ("id", "aggregate_id", "aggregate_type", "event_type", "processed", "created_at")
    list_filter = ("processed", "aggregate_type", "event_type", "created_at")
    readonly_fields = ("id", "store_id", "aggregate_id", "aggregate_type", "event_type", "event_data", "processed", "processed_at")
