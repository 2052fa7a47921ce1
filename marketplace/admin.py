from django.contrib import admin

from .models import (
    AssetToken,
    Certificate,
    Commodity,
    InsuranceClaim,
    InsurancePolicy,
    Listing,
    Notification,
    Order,
    Producer,
    SequenceCounter,
    Shipment,
    Validation,
)


@admin.register(Commodity)
class CommodityAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "unit", "hs_code", "is_active", "created_at")
    list_filter = ("category", "is_active")
    search_fields = ("name", "hs_code", "description")


@admin.register(Producer)
class ProducerAdmin(admin.ModelAdmin):
    list_display = ("name", "economic_id", "tenant", "type", "country", "verification_status", "rating")
    list_filter = ("verification_status", "type", "country", "tenant")
    search_fields = ("name", "legal_name", "economic_id", "user__email")
    readonly_fields = ("economic_id", "verified_at", "rating", "rating_count", "created_at", "updated_at")
    exclude = ("bank_account",)


class ValidationInline(admin.TabularInline):
    model = Validation
    extra = 0
    fields = ("type", "validator", "status", "quality_score")
    readonly_fields = ("type", "validator", "status", "quality_score")


@admin.register(Listing)
class ListingAdmin(admin.ModelAdmin):
    list_display = (
        "title",
        "producer",
        "commodity",
        "quantity",
        "listed_quantity",
        "price_per_unit",
        "currency",
        "status",
        "is_tokenized",
    )
    list_filter = ("status", "commodity", "is_tokenized", "visibility", "tenant")
    search_fields = ("title", "description", "producer__name", "producer__economic_id")
    readonly_fields = ("total_price", "created_at", "updated_at")
    inlines = [ValidationInline]

    fieldsets = (
        (None, {"fields": ("tenant", "producer", "commodity", "title", "description")}),
        (
            "Quantity & Pricing",
            {"fields": ("quantity", "listed_quantity", "unit", "price_per_unit", "total_price", "currency")},
        ),
        ("Quality", {"fields": ("quality_grade", "quality_score", "harvest_date", "location")}),
        ("Status", {"fields": ("status", "visibility", "is_tokenized", "rejection_reason", "published_at")}),
        ("Timestamps", {"fields": ("created_at", "updated_at"), "classes": ("collapse",)}),
    )


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "buyer",
        "listing",
        "quantity",
        "total_price",
        "currency",
        "status",
        "payment_status",
    )
    list_filter = ("status", "payment_status", "tenant", "created_at")
    search_fields = ("order_number", "buyer__email", "listing__title", "tracking_number")
    readonly_fields = (
        "order_number",
        "price_per_unit",
        "total_price",
        "created_at",
        "updated_at",
        "confirmed_at",
        "shipped_at",
        "delivered_at",
        "completed_at",
        "cancelled_at",
    )


@admin.register(Validation)
class ValidationAdmin(admin.ModelAdmin):
    list_display = ("listing", "type", "validator", "status", "quality_score", "created_at")
    list_filter = ("status", "type", "tenant")
    search_fields = ("listing__title", "validator__email")


@admin.register(Certificate)
class CertificateAdmin(admin.ModelAdmin):
    list_display = ("certificate_number", "type", "issued_to", "status", "issued_at", "expires_at")
    list_filter = ("status", "type", "tenant")
    search_fields = ("certificate_number", "issued_to__name")
    readonly_fields = ("certificate_number", "issued_at")


class InsuranceClaimInline(admin.TabularInline):
    model = InsuranceClaim
    extra = 0
    fields = ("claim_number", "claim_type", "claim_amount", "approved_amount", "status")
    readonly_fields = ("claim_number",)


@admin.register(InsurancePolicy)
class InsurancePolicyAdmin(admin.ModelAdmin):
    list_display = ("policy_number", "insured_type", "insured_value", "premium", "currency", "provider", "status")
    list_filter = ("status", "insured_type", "provider", "tenant")
    search_fields = ("policy_number", "provider_reference")
    readonly_fields = ("policy_number", "premium", "risk_profile", "claims_made", "claims_approved", "payout_total")
    inlines = [InsuranceClaimInline]


@admin.register(InsuranceClaim)
class InsuranceClaimAdmin(admin.ModelAdmin):
    list_display = (
        "claim_number",
        "policy",
        "claim_type",
        "claim_amount",
        "approved_amount",
        "status",
        "is_parametric",
    )
    list_filter = ("status", "is_parametric")
    search_fields = ("claim_number", "policy__policy_number")


@admin.register(AssetToken)
class AssetTokenAdmin(admin.ModelAdmin):
    list_display = ("token_number", "listing", "token_type", "blockchain", "status", "minted_at")
    list_filter = ("status", "token_type", "blockchain")
    search_fields = ("token_number", "tx_hash", "owner_address")
    readonly_fields = ("token_number", "tx_hash", "contract_address", "chain_token_id", "proof_hashes")


@admin.register(SequenceCounter)
class SequenceCounterAdmin(admin.ModelAdmin):
    list_display = ("key", "value", "updated_at")
    search_fields = ("key",)


@admin.register(Shipment)
class ShipmentAdmin(admin.ModelAdmin):
    list_display = ("shipment_number", "order", "cargo", "origin", "destination", "vessel", "status", "eta")
    list_filter = ("status", "vessel_type", "tenant")
    search_fields = ("shipment_number", "cargo", "vessel", "order__order_number")
    readonly_fields = ("shipment_number", "tracking_events", "departed_at", "delivered_at")


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("title", "user", "type", "is_read", "created_at")
    list_filter = ("type", "is_read")
    search_fields = ("title", "message", "user__email")
