from rest_framework import serializers

from marketplace.tokenization.domain.models import AssetToken


class AssetTokenSerializer(serializers.ModelSerializer):
    class Meta:
        model = AssetToken
        fields = [
            "id",
            "token_number",
            "tenant",
            "listing",
            "minted_by",
            "token_type",
            "total_supply",
            "blockchain",
            "contract_address",
            "chain_token_id",
            "tx_hash",
            "owner_address",
            "proof_hashes",
            "metadata",
            "status",
            "minted_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class MintTokenRequestSerializer(serializers.Serializer):
    listing_id = serializers.UUIDField()
    token_type = serializers.ChoiceField(choices=AssetToken.TOKEN_TYPE_CHOICES, default="NFT")
    metadata = serializers.DictField(required=False, default=dict)
    owner_address = serializers.CharField(max_length=66, required=False, allow_blank=True, default="")


class TransferTokenRequestSerializer(serializers.Serializer):
    to_address = serializers.CharField(max_length=66)


class AnchorProofRequestSerializer(serializers.Serializer):
    proof_hash = serializers.CharField(max_length=128)


class TokenQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=AssetToken.STATUS_CHOICES, required=False)
    listing = serializers.UUIDField(required=False)
