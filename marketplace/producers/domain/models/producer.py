import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models


class Producer(models.Model):
    TYPE_CHOICES = [
        ("FARMER", "Farmer"),
        ("MINER", "Miner"),
        ("ARTISAN", "Artisan"),
        ("COOPERATIVE", "Cooperative"),
        ("ENVIRONMENTAL", "Environmental"),
    ]

    STATUS_PENDING = "PENDING"
    STATUS_VERIFIED = "VERIFIED"
    STATUS_REJECTED = "REJECTED"

    VERIFICATION_STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_VERIFIED, "Verified"),
        (STATUS_REJECTED, "Rejected"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey("authentication.Tenant", on_delete=models.PROTECT, related_name="producers")
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="producer_profile")

    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    name = models.CharField(max_length=200)
    legal_name = models.CharField(max_length=200, blank=True)
    tax_id = models.CharField(max_length=64, blank=True)
    phone = models.CharField(max_length=30, blank=True)
    email = models.EmailField(blank=True)
    address = models.TextField(blank=True)
    country = models.CharField(max_length=2)
    location = models.JSONField(default=dict, blank=True, help_text="{lat, lng, region, district}")
    govt_ids = models.JSONField(default=list, blank=True)
    documents = models.JSONField(default=list, blank=True)
    bank_account = models.JSONField(default=dict, blank=True)

    economic_id = models.CharField(
        max_length=32, unique=True, help_text="Producer economic identifier, e.g. SRGG-GH-25-000001"
    )
    verification_status = models.CharField(max_length=20, choices=VERIFICATION_STATUS_CHOICES, default=STATUS_PENDING)
    verified_at = models.DateTimeField(null=True, blank=True)
    verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="verified_producers",
    )
    rejection_reason = models.TextField(blank=True)

    rating = models.DecimalField(max_digits=4, decimal_places=2, default=Decimal("0.00"))
    rating_count = models.PositiveIntegerField(default=0)
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        app_label = "marketplace"
        indexes = [
            models.Index(fields=["tenant", "type"], name="producer_tenant_type_idx"),
            models.Index(fields=["tenant", "verification_status"], name="producer_tenant_verif_idx"),
        ]

    def __str__(self):
        return f"{self.name} [{self.economic_id}]"
