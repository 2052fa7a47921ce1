from rest_framework import serializers

from payment_system.domain.models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source="order.order_number", read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "payment_number",
            "tenant",
            "order",
            "order_number",
            "payer",
            "amount",
            "currency",
            "method",
            "provider",
            "provider_tx_id",
            "client_secret",
            "status",
            "failure_reason",
            "refund_amount",
            "provider_refund_id",
            "escrow_released",
            "escrow_released_at",
            "paid_at",
            "refunded_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class PaymentStatsSerializer(serializers.Serializer):
    totalPayments = serializers.IntegerField()
    completedPayments = serializers.IntegerField()
    failedPayments = serializers.IntegerField()
    totalAmount = serializers.CharField(help_text="Settled amount")
    refundedAmount = serializers.CharField()
    netRevenue = serializers.CharField(help_text="Settled minus refunded")


class WebhookAckSerializer(serializers.Serializer):
    received = serializers.BooleanField()
    handled = serializers.BooleanField()
    payment_id = serializers.UUIDField(required=False)


class ErrorResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField(default=False)
    error = serializers.DictField(help_text="{code, message, details}")
    meta = serializers.DictField()
