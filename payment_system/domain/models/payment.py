import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models


class Payment(models.Model):
    """A single payment attempt against an order, tracked through its provider."""

    METHOD_CHOICES = [
        ("CARD", "Card"),
        ("BANK_TRANSFER", "Bank Transfer"),
        ("MOBILE_MONEY", "Mobile Money"),
        ("CRYPTO", "Crypto"),
        ("STABLECOIN", "Stablecoin"),
        ("ESCROW", "Escrow"),
    ]

    STATUS_PENDING = "PENDING"
    STATUS_PROCESSING = "PROCESSING"
    STATUS_COMPLETED = "COMPLETED"
    STATUS_FAILED = "FAILED"
    STATUS_REFUNDED = "REFUNDED"
    STATUS_PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_PROCESSING, "Processing"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_FAILED, "Failed"),
        (STATUS_REFUNDED, "Refunded"),
        (STATUS_PARTIALLY_REFUNDED, "Partially Refunded"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    payment_number = models.CharField(max_length=40, unique=True)
    tenant = models.ForeignKey("authentication.Tenant", on_delete=models.PROTECT, related_name="payments")
    order = models.ForeignKey("marketplace.Order", on_delete=models.PROTECT, related_name="payments", db_index=True)
    payer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="payments")

    amount = models.DecimalField(max_digits=18, decimal_places=2)
    currency = models.CharField(max_length=3, default="USD")
    method = models.CharField(max_length=20, choices=METHOD_CHOICES)
    provider = models.CharField(max_length=30)
    provider_tx_id = models.CharField(
        max_length=255, blank=True, db_index=True, help_text="Provider-side reference (e.g. Stripe PaymentIntent id)"
    )
    client_secret = models.CharField(max_length=255, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    failure_reason = models.TextField(blank=True)
    refund_amount = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    provider_refund_id = models.CharField(max_length=255, blank=True)
    escrow_released = models.BooleanField(default=False)
    escrow_released_at = models.DateTimeField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    paid_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "payments"
        ordering = ["-created_at"]
        app_label = "payment_system"
        indexes = [
            models.Index(fields=["tenant", "status"], name="payment_tenant_status_idx"),
            models.Index(fields=["order", "status"], name="payment_order_status_idx"),
        ]

    def __str__(self):
        return f"{self.payment_number} {self.amount} {self.currency} ({self.status})"
