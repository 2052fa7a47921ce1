from rest_framework import serializers

from marketplace.ordering.domain.models import Order


class OrderSerializer(serializers.ModelSerializer):
    listing_title = serializers.CharField(source="listing.title", read_only=True)
    buyer_email = serializers.EmailField(source="buyer.email", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "tenant",
            "buyer",
            "buyer_email",
            "listing",
            "listing_title",
            "quantity",
            "price_per_unit",
            "total_price",
            "currency",
            "platform_fee",
            "insurance_fee",
            "logistics_fee",
            "status",
            "payment_status",
            "delivery_address",
            "delivery_date",
            "tracking_number",
            "notes",
            "cancellation_reason",
            "created_at",
            "updated_at",
            "confirmed_at",
            "processing_at",
            "shipped_at",
            "delivered_at",
            "completed_at",
            "cancelled_at",
            "refunded_at",
        ]
        read_only_fields = fields


class CreateOrderRequestSerializer(serializers.Serializer):
    listing_id = serializers.UUIDField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3)
    delivery_address = serializers.DictField(required=False)
    delivery_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class TransitionOrderRequestSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)
    reason = serializers.CharField(required=False, allow_blank=True, default="")
    tracking_number = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")


class OrderQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES, required=False)
    listing = serializers.UUIDField(required=False)
    from_date = serializers.DateField(required=False)
    to_date = serializers.DateField(required=False)
