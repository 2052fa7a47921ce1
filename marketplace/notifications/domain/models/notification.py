import uuid

from django.conf import settings
from django.db import models


class Notification(models.Model):
    """An inbox entry for one user."""

    TYPE_ORDER = "ORDER"
    TYPE_PAYMENT = "PAYMENT"
    TYPE_VALIDATION = "VALIDATION"
    TYPE_SHIPMENT = "SHIPMENT"
    TYPE_INSURANCE = "INSURANCE"
    TYPE_SYSTEM = "SYSTEM"

    TYPE_CHOICES = [
        (TYPE_ORDER, "Order"),
        (TYPE_PAYMENT, "Payment"),
        (TYPE_VALIDATION, "Validation"),
        (TYPE_SHIPMENT, "Shipment"),
        (TYPE_INSURANCE, "Insurance"),
        (TYPE_SYSTEM, "System"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    # Null only for super admins, who belong to no tenant
    tenant = models.ForeignKey(
        "authentication.Tenant", on_delete=models.CASCADE, null=True, blank=True, related_name="notifications"
    )
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notifications")

    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_SYSTEM)
    title = models.CharField(max_length=200)
    message = models.TextField()
    data = models.JSONField(default=dict, blank=True)

    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        app_label = "marketplace"
        indexes = [
            models.Index(fields=["user", "is_read"], name="notification_user_read_idx"),
        ]

    def __str__(self):
        return f"{self.type}: {self.title} -> {self.user_id}"
