from rest_framework import serializers

from marketplace.catalog.domain.models import Listing
from marketplace.catalog.domain.services.listing_service import SORT_FIELDS

from .commodity_serializers import CommoditySerializer


class ListingSerializer(serializers.ModelSerializer):
    commodity = CommoditySerializer(read_only=True)
    producer_name = serializers.CharField(source="producer.name", read_only=True)
    producer_economic_id = serializers.CharField(source="producer.economic_id", read_only=True)

    class Meta:
        model = Listing
        fields = [
            "id",
            "tenant",
            "producer",
            "producer_name",
            "producer_economic_id",
            "commodity",
            "title",
            "description",
            "quantity",
            "listed_quantity",
            "unit",
            "price_per_unit",
            "total_price",
            "currency",
            "quality_grade",
            "quality_score",
            "harvest_date",
            "available_from",
            "expires_at",
            "location",
            "images",
            "visibility",
            "status",
            "is_tokenized",
            "rejection_reason",
            "metadata",
            "published_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ListingCreateSerializer(serializers.Serializer):
    producer_id = serializers.UUIDField(required=False, help_text="Staff only: list on behalf of a producer")
    commodity_id = serializers.UUIDField()
    title = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3)
    unit = serializers.CharField(max_length=20, required=False, allow_blank=True)
    price_per_unit = serializers.DecimalField(max_digits=14, decimal_places=2)
    currency = serializers.CharField(min_length=3, max_length=3, required=False)
    quality_grade = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    harvest_date = serializers.DateField(required=False, allow_null=True)
    available_from = serializers.DateTimeField(required=False, allow_null=True)
    expires_at = serializers.DateTimeField(required=False, allow_null=True)
    location = serializers.DictField(required=False)
    images = serializers.ListField(child=serializers.CharField(), required=False)
    visibility = serializers.ChoiceField(choices=Listing.VISIBILITY_CHOICES, required=False)
    metadata = serializers.DictField(required=False)


class ListingUpdateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, required=False)
    price_per_unit = serializers.DecimalField(max_digits=14, decimal_places=2, required=False)
    quality_grade = serializers.CharField(max_length=20, required=False, allow_blank=True)
    harvest_date = serializers.DateField(required=False, allow_null=True)
    available_from = serializers.DateTimeField(required=False, allow_null=True)
    expires_at = serializers.DateTimeField(required=False, allow_null=True)
    location = serializers.DictField(required=False)
    images = serializers.ListField(child=serializers.CharField(), required=False)
    visibility = serializers.ChoiceField(choices=Listing.VISIBILITY_CHOICES, required=False)
    metadata = serializers.DictField(required=False)


class ListingQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Listing.STATUS_CHOICES, required=False)
    commodity = serializers.UUIDField(required=False)
    producer = serializers.UUIDField(required=False)
    category = serializers.CharField(required=False)
    min_price = serializers.DecimalField(max_digits=14, decimal_places=2, required=False)
    max_price = serializers.DecimalField(max_digits=14, decimal_places=2, required=False)
    search = serializers.CharField(required=False)
    sort_by = serializers.ChoiceField(choices=SORT_FIELDS, required=False)
    sort_order = serializers.ChoiceField(choices=("asc", "desc"), required=False)
