from rest_framework import serializers

from marketplace.insurance.domain.models import InsuranceClaim, InsurancePolicy


class QuoteRequestSerializer(serializers.Serializer):
    insured_type = serializers.ChoiceField(choices=InsurancePolicy.INSURED_TYPE_CHOICES)
    insured_value = serializers.DecimalField(max_digits=18, decimal_places=2)
    currency = serializers.CharField(max_length=3, required=False, default="USD")
    coverage_days = serializers.IntegerField(required=False, default=365)
    risk_profile = serializers.DictField(child=serializers.IntegerField(min_value=0, max_value=100), required=False)
    listing_id = serializers.UUIDField(required=False)
    producer_id = serializers.UUIDField(required=False)


class QuoteResponseSerializer(serializers.Serializer):
    """Documentation only; the quote is returned as computed."""

    insuredType = serializers.CharField()
    insuredValue = serializers.CharField()
    currency = serializers.CharField()
    coverageDays = serializers.IntegerField()
    premium = serializers.CharField()
    riskScores = serializers.DictField(child=serializers.IntegerField())
    overallScore = serializers.IntegerField()
    baseRate = serializers.CharField()
    riskMultiplier = serializers.CharField()
    payoutProbability = serializers.CharField()
    riskFactors = serializers.ListField(child=serializers.CharField())
    validUntil = serializers.DateTimeField()


class InsurancePolicySerializer(serializers.ModelSerializer):
    class Meta:
        model = InsurancePolicy
        fields = [
            "id",
            "policy_number",
            "tenant",
            "listing",
            "token",
            "created_by",
            "insured_type",
            "insured_value",
            "premium",
            "currency",
            "coverage_start",
            "coverage_end",
            "risk_profile",
            "terms",
            "provider",
            "provider_reference",
            "provider_error",
            "status",
            "cancellation_reason",
            "claims_made",
            "claims_approved",
            "payout_total",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class CreatePolicyRequestSerializer(serializers.Serializer):
    insured_type = serializers.ChoiceField(choices=InsurancePolicy.INSURED_TYPE_CHOICES)
    insured_value = serializers.DecimalField(max_digits=18, decimal_places=2)
    currency = serializers.CharField(max_length=3, required=False)
    coverage_start = serializers.DateTimeField()
    coverage_end = serializers.DateTimeField()
    listing_id = serializers.UUIDField(required=False)
    token_id = serializers.UUIDField(required=False)
    risk_profile = serializers.DictField(child=serializers.IntegerField(min_value=0, max_value=100), required=False)
    terms = serializers.DictField(required=False)


class PolicyQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=InsurancePolicy.STATUS_CHOICES, required=False)
    insured_type = serializers.ChoiceField(choices=InsurancePolicy.INSURED_TYPE_CHOICES, required=False)
    listing = serializers.UUIDField(required=False)


class InsuranceClaimSerializer(serializers.ModelSerializer):
    policy_number = serializers.CharField(source="policy.policy_number", read_only=True)

    class Meta:
        model = InsuranceClaim
        fields = [
            "id",
            "claim_number",
            "policy",
            "policy_number",
            "submitted_by",
            "claim_type",
            "claim_amount",
            "approved_amount",
            "currency",
            "description",
            "evidence",
            "trigger_data",
            "is_parametric",
            "status",
            "assessment_notes",
            "assessed_at",
            "payout_date",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class CreateClaimRequestSerializer(serializers.Serializer):
    policy_id = serializers.UUIDField()
    claim_type = serializers.CharField(max_length=50)
    claim_amount = serializers.DecimalField(max_digits=18, decimal_places=2)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    evidence = serializers.ListField(required=False, default=list)
    trigger_data = serializers.DictField(required=False, default=dict)


class ApproveClaimRequestSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=18, decimal_places=2, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
