import uuid

from django.db import models


class Tenant(models.Model):
    """An isolated customer organisation; every listing, order and producer belongs to one."""

    STATUS_CHOICES = [
        ("ACTIVE", "Active"),
        ("SUSPENDED", "Suspended"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=50, unique=True)
    country = models.CharField(max_length=2, help_text="ISO 3166-1 alpha-2 country code")
    currency = models.CharField(max_length=3, default="USD", help_text="ISO 4217 currency code")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="ACTIVE")
    settings = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "authentication"
        db_table = "tenants"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.slug})"

    def save(self, *args, **kwargs):
        self.country = (self.country or "").upper()
        self.currency = (self.currency or "USD").upper()
        super().save(*args, **kwargs)

    @property
    def is_active(self) -> bool:
        return self.status == "ACTIVE"
