import uuid

from django.conf import settings
from django.db import models


class Certificate(models.Model):
    TYPE_CHOICES = [
        ("QUALITY", "Quality"),
        ("ORIGIN", "Origin"),
        ("PHYTOSANITARY", "Phytosanitary"),
        ("SUSTAINABILITY", "Sustainability"),
    ]

    STATUS_CHOICES = [
        ("ACTIVE", "Active"),
        ("REVOKED", "Revoked"),
        ("EXPIRED", "Expired"),
    ]

    # Certificate kind issued for each validation type
    TYPE_FOR_VALIDATION = {
        "LAB_TEST": "QUALITY",
        "FIELD_INSPECTION": "ORIGIN",
        "PHYTOSANITARY": "PHYTOSANITARY",
        "SUSTAINABILITY_AUDIT": "SUSTAINABILITY",
        "ORIGIN_VERIFICATION": "ORIGIN",
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    certificate_number = models.CharField(max_length=40, unique=True)
    tenant = models.ForeignKey("authentication.Tenant", on_delete=models.PROTECT, related_name="certificates")
    validation = models.OneToOneField(
        "marketplace.Validation", on_delete=models.PROTECT, related_name="certificate"
    )
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    issued_to = models.ForeignKey("marketplace.Producer", on_delete=models.PROTECT, related_name="certificates")
    issued_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name="issued_certificates"
    )
    issued_at = models.DateTimeField()
    expires_at = models.DateTimeField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="ACTIVE")
    revocation_reason = models.TextField(blank=True)
    revoked_at = models.DateTimeField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["-issued_at"]
        app_label = "marketplace"
        indexes = [
            models.Index(fields=["status", "expires_at"], name="certificate_status_exp_idx"),
        ]

    def __str__(self):
        return f"{self.certificate_number} ({self.type}, {self.status})"
