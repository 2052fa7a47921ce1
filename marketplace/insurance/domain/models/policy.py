import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models


class InsurancePolicy(models.Model):
    STATUS_CHOICES = [
        ("PENDING", "Pending"),
        ("ACTIVE", "Active"),
        ("CANCELLED", "Cancelled"),
        ("EXPIRED", "Expired"),
    ]

    INSURED_TYPE_CHOICES = [
        ("commodity", "Commodity"),
        ("shipment", "Shipment"),
        ("livestock", "Livestock"),
        ("crop_yield", "Crop Yield"),
        ("price_guarantee", "Price Guarantee"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    policy_number = models.CharField(max_length=40, unique=True)
    tenant = models.ForeignKey("authentication.Tenant", on_delete=models.PROTECT, related_name="insurance_policies")
    listing = models.ForeignKey(
        "marketplace.Listing", on_delete=models.PROTECT, null=True, blank=True, related_name="insurance_policies"
    )
    token = models.ForeignKey(
        "marketplace.AssetToken", on_delete=models.PROTECT, null=True, blank=True, related_name="insurance_policies"
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name="insurance_policies"
    )

    insured_type = models.CharField(max_length=20, choices=INSURED_TYPE_CHOICES)
    insured_value = models.DecimalField(max_digits=18, decimal_places=2)
    premium = models.DecimalField(max_digits=14, decimal_places=2)
    currency = models.CharField(max_length=3, default="USD")
    coverage_start = models.DateTimeField()
    coverage_end = models.DateTimeField()
    risk_profile = models.JSONField(default=dict, blank=True)
    terms = models.JSONField(default=dict, blank=True, help_text='{"parametric_triggers": {metric: {"below": n}}}')

    provider = models.CharField(max_length=50, default="lloyds")
    provider_reference = models.CharField(max_length=120, blank=True)
    provider_error = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="PENDING")
    cancellation_reason = models.TextField(blank=True)

    claims_made = models.PositiveIntegerField(default=0)
    claims_approved = models.PositiveIntegerField(default=0)
    payout_total = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        app_label = "marketplace"
        verbose_name_plural = "insurance policies"
        indexes = [
            models.Index(fields=["tenant", "status"], name="policy_tenant_status_idx"),
            models.Index(fields=["status", "coverage_end"], name="policy_status_end_idx"),
        ]

    def __str__(self):
        return f"{self.policy_number} ({self.status})"
