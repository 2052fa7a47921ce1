import uuid

from django.conf import settings
from django.db import models


class Validation(models.Model):
    """Quality or origin inspection that gates a listing's activation."""

    TYPE_CHOICES = [
        ("LAB_TEST", "Lab Test"),
        ("FIELD_INSPECTION", "Field Inspection"),
        ("PHYTOSANITARY", "Phytosanitary"),
        ("SUSTAINABILITY_AUDIT", "Sustainability Audit"),
        ("ORIGIN_VERIFICATION", "Origin Verification"),
    ]

    STATUS_CHOICES = [
        ("PENDING", "Pending"),
        ("SCHEDULED", "Scheduled"),
        ("IN_PROGRESS", "In Progress"),
        ("COMPLETED", "Completed"),
        ("APPROVED", "Approved"),
        ("REJECTED", "Rejected"),
    ]

    TERMINAL_STATUSES = ("APPROVED", "REJECTED")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey("authentication.Tenant", on_delete=models.PROTECT, related_name="validations")
    listing = models.ForeignKey("marketplace.Listing", on_delete=models.PROTECT, related_name="validations")
    validator = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="validations")
    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="requested_validations"
    )

    type = models.CharField(max_length=30, choices=TYPE_CHOICES)
    method = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="PENDING")

    scheduled_at = models.DateTimeField(null=True, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    results = models.JSONField(default=dict, blank=True)
    quality_score = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    notes = models.TextField(blank=True)
    rejection_reason = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        app_label = "marketplace"
        indexes = [
            models.Index(fields=["tenant", "status"], name="validation_tenant_status_idx"),
            models.Index(fields=["validator", "status"], name="validation_validator_idx"),
        ]

    def __str__(self):
        return f"{self.get_type_display()} for {self.listing_id} ({self.status})"
