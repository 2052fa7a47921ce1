from django.contrib import admin
from django.urls import reverse
from django.utils.html import format_html

from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    """Payments are changed through the service layer; the admin is read-mostly."""

    list_display = [
        "payment_number",
        "order_link",
        "method",
        "provider",
        "status_badge",
        "amount_display",
        "escrow_released",
        "created_at",
    ]

    list_filter = ["status", "method", "provider", "currency", "escrow_released", "created_at"]

    search_fields = ["payment_number", "provider_tx_id", "order__order_number", "payer__email"]

    readonly_fields = ["id", "payment_number", "provider_tx_id", "client_secret", "created_at", "updated_at"]

    fieldsets = (
        ("Basic Information", {"fields": ("id", "payment_number", "tenant", "method", "status", "amount", "currency")}),
        ("Provider", {"fields": ("provider", "provider_tx_id", "client_secret", "failure_reason")}),
        ("Refunds", {"fields": ("refund_amount", "provider_refund_id", "refunded_at")}),
        ("Escrow", {"fields": ("escrow_released", "escrow_released_at")}),
        ("Relationships", {"fields": ("order", "payer")}),
        ("Timestamps", {"fields": ("paid_at", "created_at", "updated_at")}),
    )

    def order_link(self, obj):
        url = reverse("admin:marketplace_order_change", args=[obj.order_id])
        return format_html('<a href="{}">{}</a>', url, obj.order.order_number)

    order_link.short_description = "Order"

    def status_badge(self, obj):
        colors = {
            Payment.STATUS_PENDING: "#ffc107",
            Payment.STATUS_PROCESSING: "#17a2b8",
            Payment.STATUS_COMPLETED: "#28a745",
            Payment.STATUS_FAILED: "#dc3545",
            Payment.STATUS_REFUNDED: "#6c757d",
            Payment.STATUS_PARTIALLY_REFUNDED: "#6c757d",
        }
        return format_html(
            '<span style="background-color: {}; color: white; padding: 2px 6px; border-radius: 3px;">{}</span>',
            colors.get(obj.status, "#6c757d"),
            obj.get_status_display(),
        )

    status_badge.short_description = "Status"

    def amount_display(self, obj):
        return f"{obj.amount} {obj.currency}"

    amount_display.short_description = "Amount"
