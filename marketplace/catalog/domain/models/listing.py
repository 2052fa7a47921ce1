import uuid
from decimal import Decimal

from django.db import models

from marketplace.domain.money import quantize_money


class Listing(models.Model):
    """
    A producer's offer to sell a lot of a commodity.

    ``quantity`` is what is still available; ``listed_quantity`` is the lot
    size as offered. While a listing exists,
    ``quantity + sum(non-cancelled order quantities) == listed_quantity``.
    """

    STATUS_DRAFT = "DRAFT"
    STATUS_PENDING_VALIDATION = "PENDING_VALIDATION"
    STATUS_ACTIVE = "ACTIVE"
    STATUS_SOLD = "SOLD"
    STATUS_CANCELLED = "CANCELLED"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_PENDING_VALIDATION, "Pending Validation"),
        (STATUS_ACTIVE, "Active"),
        (STATUS_SOLD, "Sold"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    VISIBILITY_CHOICES = [
        ("PUBLIC", "Public"),
        ("PRIVATE", "Private"),
    ]

    EDITABLE_STATUSES = (STATUS_DRAFT, STATUS_PENDING_VALIDATION, STATUS_ACTIVE)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey("authentication.Tenant", on_delete=models.PROTECT, related_name="listings")
    producer = models.ForeignKey("marketplace.Producer", on_delete=models.PROTECT, related_name="listings")
    commodity = models.ForeignKey("marketplace.Commodity", on_delete=models.PROTECT, related_name="listings")

    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)

    # Quantities
    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    listed_quantity = models.DecimalField(max_digits=14, decimal_places=3)
    unit = models.CharField(max_length=20)

    # Pricing
    price_per_unit = models.DecimalField(max_digits=14, decimal_places=2)
    total_price = models.DecimalField(
        max_digits=18, decimal_places=2, help_text="quantity x price_per_unit as of the last producer edit"
    )
    currency = models.CharField(max_length=3, default="USD")

    # Quality
    quality_grade = models.CharField(max_length=20, blank=True)
    quality_score = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)

    # Availability
    harvest_date = models.DateField(null=True, blank=True)
    available_from = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)
    location = models.JSONField(default=dict, blank=True)
    images = models.JSONField(default=list, blank=True)
    visibility = models.CharField(max_length=10, choices=VISIBILITY_CHOICES, default="PUBLIC")

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    is_tokenized = models.BooleanField(default=False)
    rejection_reason = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    published_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        app_label = "marketplace"
        indexes = [
            models.Index(fields=["tenant", "status"], name="listing_tenant_status_idx"),
            models.Index(fields=["commodity", "status"], name="listing_commodity_status_idx"),
            models.Index(fields=["producer", "status"], name="listing_producer_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(quantity__gte=Decimal("0")), name="listing_quantity_non_negative"
            ),
        ]

    def __str__(self):
        return f"{self.title} ({self.quantity} {self.unit} @ {self.price_per_unit} {self.currency})"

    def recompute_total_price(self):
        self.total_price = quantize_money(Decimal(self.quantity) * Decimal(self.price_per_unit))
        return self.total_price
