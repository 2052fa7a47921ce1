import uuid

from django.conf import settings
from django.db import models


class Shipment(models.Model):
    """Physical movement of cargo, usually the goods of one order."""

    STATUS_PENDING = "PENDING"
    STATUS_LOADING = "LOADING"
    STATUS_IN_TRANSIT = "IN_TRANSIT"
    STATUS_CUSTOMS = "CUSTOMS"
    STATUS_ARRIVED = "ARRIVED"
    STATUS_DELIVERED = "DELIVERED"
    STATUS_CANCELLED = "CANCELLED"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_LOADING, "Loading"),
        (STATUS_IN_TRANSIT, "In transit"),
        (STATUS_CUSTOMS, "Customs"),
        (STATUS_ARRIVED, "Arrived"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    VESSEL_TYPE_CHOICES = [
        ("SHIP", "Ship"),
        ("AIRCRAFT", "Aircraft"),
        ("TRUCK", "Truck"),
        ("RAIL", "Rail"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    shipment_number = models.CharField(max_length=64, unique=True)
    tenant = models.ForeignKey("authentication.Tenant", on_delete=models.PROTECT, related_name="shipments")
    order = models.ForeignKey(
        "marketplace.Order", on_delete=models.PROTECT, null=True, blank=True, related_name="shipments"
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name="created_shipments"
    )

    cargo = models.CharField(max_length=200)
    quantity = models.DecimalField(max_digits=14, decimal_places=3, null=True, blank=True)
    unit = models.CharField(max_length=20, blank=True)

    # Route
    origin = models.CharField(max_length=120)
    origin_port = models.CharField(max_length=120, blank=True)
    destination = models.CharField(max_length=120)
    destination_port = models.CharField(max_length=120, blank=True)
    vessel = models.CharField(max_length=120, blank=True)
    vessel_type = models.CharField(max_length=10, choices=VESSEL_TYPE_CHOICES, default="SHIP")
    eta = models.DateTimeField(null=True, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    # [{"timestamp", "status", "event", "location"}], oldest first
    tracking_events = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    departed_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        app_label = "marketplace"
        indexes = [
            models.Index(fields=["tenant", "status"], name="shipment_tenant_status_idx"),
        ]

    def __str__(self):
        return f"{self.shipment_number}: {self.cargo} {self.origin} -> {self.destination} ({self.status})"
