import uuid

from django.db import models


class Commodity(models.Model):
    """Platform-wide commodity catalogue entry (not tenant scoped)."""

    CATEGORY_CHOICES = [
        ("AGRICULTURE", "Agriculture"),
        ("MINERALS", "Minerals"),
        ("ENVIRONMENTAL", "Environmental"),
        ("CULTURAL", "Cultural"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=120, unique=True)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES)
    unit = models.CharField(max_length=20, help_text="Trading unit, e.g. MT, oz, carat")
    hs_code = models.CharField(max_length=16, blank=True, help_text="Harmonized System tariff code")
    description = models.TextField(blank=True)
    icon = models.CharField(max_length=50, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        app_label = "marketplace"
        verbose_name_plural = "commodities"

    def __str__(self):
        return self.name
