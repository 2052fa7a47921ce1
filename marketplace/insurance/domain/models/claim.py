import uuid

from django.conf import settings
from django.db import models


class InsuranceClaim(models.Model):
    STATUS_CHOICES = [
        ("PENDING", "Pending"),
        ("APPROVED", "Approved"),
        ("REJECTED", "Rejected"),
        ("PAID", "Paid"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    claim_number = models.CharField(max_length=40, unique=True)
    policy = models.ForeignKey("marketplace.InsurancePolicy", on_delete=models.PROTECT, related_name="claims")
    submitted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name="insurance_claims"
    )

    claim_type = models.CharField(max_length=50)
    claim_amount = models.DecimalField(max_digits=18, decimal_places=2)
    approved_amount = models.DecimalField(max_digits=18, decimal_places=2, null=True, blank=True)
    currency = models.CharField(max_length=3, default="USD")
    description = models.TextField(blank=True)
    evidence = models.JSONField(default=list, blank=True)
    trigger_data = models.JSONField(default=dict, blank=True)
    is_parametric = models.BooleanField(default=False)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="PENDING")
    assessment_notes = models.TextField(blank=True)
    assessed_at = models.DateTimeField(null=True, blank=True)
    payout_date = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        app_label = "marketplace"

    def __str__(self):
        return f"{self.claim_number} ({self.status})"
