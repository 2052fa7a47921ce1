from rest_framework import serializers

from payment_system.domain.models import Payment


class CreatePaymentRequestSerializer(serializers.Serializer):
    order_id = serializers.UUIDField(help_text="Order to pay")
    method = serializers.ChoiceField(choices=Payment.METHOD_CHOICES, help_text="Payment method")
    amount = serializers.DecimalField(
        max_digits=18, decimal_places=2, required=False, help_text="Defaults to the order total"
    )
    currency = serializers.CharField(max_length=3, required=False, help_text="Defaults to the order currency")


class ConfirmPaymentRequestSerializer(serializers.Serializer):
    provider_tx_id = serializers.CharField(max_length=255, required=False, help_text="Provider transaction reference")


class FailPaymentRequestSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", help_text="Failure reason")


class RefundPaymentRequestSerializer(serializers.Serializer):
    amount = serializers.DecimalField(
        max_digits=18, decimal_places=2, required=False, help_text="Defaults to everything still refundable"
    )
    reason = serializers.CharField(required=False, allow_blank=True, default="", help_text="Refund reason")


class PaymentQuerySerializer(serializers.Serializer):
    order = serializers.UUIDField(required=False)
    status = serializers.ChoiceField(choices=Payment.STATUS_CHOICES, required=False)
    method = serializers.ChoiceField(choices=Payment.METHOD_CHOICES, required=False)
