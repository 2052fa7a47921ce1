from rest_framework import serializers

from marketplace.validation.domain.models import Certificate, Validation


class ValidationSerializer(serializers.ModelSerializer):
    listing_title = serializers.CharField(source="listing.title", read_only=True)
    validator_email = serializers.EmailField(source="validator.email", read_only=True)
    certificate_number = serializers.SerializerMethodField()

    class Meta:
        model = Validation
        fields = [
            "id",
            "tenant",
            "listing",
            "listing_title",
            "validator",
            "validator_email",
            "requested_by",
            "type",
            "method",
            "status",
            "scheduled_at",
            "started_at",
            "completed_at",
            "results",
            "quality_score",
            "notes",
            "rejection_reason",
            "certificate_number",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_certificate_number(self, obj):
        try:
            return obj.certificate.certificate_number
        except Certificate.DoesNotExist:
            return None


class RequestValidationSerializer(serializers.Serializer):
    listing_id = serializers.UUIDField()
    type = serializers.ChoiceField(choices=Validation.TYPE_CHOICES)
    validator_id = serializers.UUIDField(required=False, allow_null=True)
    method = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    scheduled_at = serializers.DateTimeField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ScheduleValidationSerializer(serializers.Serializer):
    scheduled_at = serializers.DateTimeField()


class CompleteValidationSerializer(serializers.Serializer):
    results = serializers.DictField(required=False, default=dict)
    quality_score = serializers.DecimalField(max_digits=5, decimal_places=2)


class ValidationQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Validation.STATUS_CHOICES, required=False)
    type = serializers.ChoiceField(choices=Validation.TYPE_CHOICES, required=False)
    listing = serializers.UUIDField(required=False)


class CertificateSerializer(serializers.ModelSerializer):
    producer_name = serializers.CharField(source="issued_to.name", read_only=True)
    listing = serializers.UUIDField(source="validation.listing_id", read_only=True)

    class Meta:
        model = Certificate
        fields = [
            "id",
            "certificate_number",
            "tenant",
            "validation",
            "listing",
            "type",
            "issued_to",
            "producer_name",
            "issued_by",
            "issued_at",
            "expires_at",
            "status",
            "revocation_reason",
            "revoked_at",
            "metadata",
        ]
        read_only_fields = fields


class CertificateQuerySerializer(serializers.Serializer):
    producer = serializers.UUIDField(required=False)
    status = serializers.ChoiceField(choices=Certificate.STATUS_CHOICES, required=False)
    type = serializers.ChoiceField(choices=Certificate.TYPE_CHOICES, required=False)
