import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models


class AssetToken(models.Model):
    """On-chain representation of a listing."""

    TOKEN_TYPE_CHOICES = [
        ("NFT", "Non-fungible"),
        ("FUNGIBLE", "Fungible"),
    ]

    STATUS_CHOICES = [
        ("PENDING", "Pending"),
        ("MINTING", "Minting"),
        ("MINTED", "Minted"),
        ("TRANSFERRED", "Transferred"),
        ("BURNED", "Burned"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    token_number = models.CharField(max_length=40, unique=True)
    tenant = models.ForeignKey("authentication.Tenant", on_delete=models.PROTECT, related_name="tokens")
    listing = models.ForeignKey("marketplace.Listing", on_delete=models.PROTECT, related_name="tokens")
    minted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name="minted_tokens"
    )

    token_type = models.CharField(max_length=10, choices=TOKEN_TYPE_CHOICES, default="NFT")
    total_supply = models.DecimalField(max_digits=18, decimal_places=3, default=Decimal("1"))
    blockchain = models.CharField(max_length=40)
    contract_address = models.CharField(max_length=66, blank=True)
    chain_token_id = models.CharField(max_length=80, blank=True)
    tx_hash = models.CharField(max_length=66, blank=True)
    owner_address = models.CharField(max_length=66, blank=True)
    proof_hashes = models.JSONField(default=list, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="PENDING")
    minted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        app_label = "marketplace"
        indexes = [
            models.Index(fields=["tenant", "status"], name="token_tenant_status_idx"),
        ]

    def __str__(self):
        return f"{self.token_number} ({self.token_type}, {self.status})"
