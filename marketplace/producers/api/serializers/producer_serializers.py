from rest_framework import serializers

from marketplace.producers.domain.models import Producer


class ProducerSerializer(serializers.ModelSerializer):
    user_email = serializers.EmailField(source="user.email", read_only=True)

    class Meta:
        model = Producer
        fields = [
            "id",
            "tenant",
            "user",
            "user_email",
            "type",
            "name",
            "legal_name",
            "tax_id",
            "phone",
            "email",
            "address",
            "country",
            "location",
            "govt_ids",
            "documents",
            "economic_id",
            "verification_status",
            "verified_at",
            "rejection_reason",
            "rating",
            "rating_count",
            "metadata",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ProducerSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Producer
        fields = ["id", "name", "economic_id", "type", "country", "verification_status", "rating"]
        read_only_fields = fields


class ProducerWriteSerializer(serializers.Serializer):
    """Register or edit a producer profile; bank details are write-only."""

    user_id = serializers.UUIDField(required=False, help_text="Staff only: register for another user")
    type = serializers.ChoiceField(choices=Producer.TYPE_CHOICES)
    name = serializers.CharField(max_length=200)
    legal_name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    tax_id = serializers.CharField(max_length=64, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)
    country = serializers.CharField(min_length=2, max_length=2, required=False)
    location = serializers.DictField(required=False)
    govt_ids = serializers.ListField(required=False)
    documents = serializers.ListField(required=False)
    bank_account = serializers.DictField(required=False, write_only=True)
    metadata = serializers.DictField(required=False)


class RateProducerSerializer(serializers.Serializer):
    score = serializers.DecimalField(max_digits=4, decimal_places=2, min_value=0, max_value=10)


class ProducerDashboardSerializer(serializers.Serializer):
    producer = ProducerSummarySerializer()
    stats = serializers.DictField()
    recentListings = serializers.SerializerMethodField()
    recentOrders = serializers.SerializerMethodField()

    def get_recentListings(self, obj):
        from marketplace.catalog.api.serializers.listing_serializers import ListingSerializer

        return ListingSerializer(obj["recentListings"], many=True).data

    def get_recentOrders(self, obj):
        from marketplace.ordering.api.serializers.order_serializers import OrderSerializer

        return OrderSerializer(obj["recentOrders"], many=True).data
