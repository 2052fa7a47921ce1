import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models

from utils.rbac import ROLE_BUYER, ROLE_CHOICES, permissions_for_role


class CustomUser(AbstractUser):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)
    name = models.CharField(max_length=150, blank=True)
    phone = models.CharField(max_length=30, blank=True)

    # Null only for platform-wide super admins
    tenant = models.ForeignKey(
        "authentication.Tenant",
        on_delete=models.PROTECT,
        related_name="users",
        null=True,
        blank=True,
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_BUYER)

    last_login_ip = models.GenericIPAddressField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["username"]

    class Meta:
        app_label = "authentication"
        indexes = [
            models.Index(fields=["tenant", "role"], name="user_tenant_role_idx"),
        ]

    def __str__(self):
        return f"{self.email} ({self.role})"

    @property
    def permissions(self):
        return permissions_for_role(self.role)
