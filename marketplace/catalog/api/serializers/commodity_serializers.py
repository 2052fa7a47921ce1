from rest_framework import serializers

from marketplace.catalog.domain.models import Commodity


class CommoditySerializer(serializers.ModelSerializer):
    class Meta:
        model = Commodity
        fields = ["id", "name", "category", "unit", "hs_code", "description", "icon", "is_active", "created_at"]
        read_only_fields = ["id", "created_at"]


class CommodityQuerySerializer(serializers.Serializer):
    category = serializers.ChoiceField(choices=Commodity.CATEGORY_CHOICES, required=False)
    search = serializers.CharField(required=False)
    include_inactive = serializers.BooleanField(required=False, default=False)


class CommodityCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120)
    category = serializers.CharField(max_length=20)
    unit = serializers.CharField(max_length=20)
    hs_code = serializers.CharField(max_length=16, required=False, allow_blank=True, default="")
    description = serializers.CharField(required=False, allow_blank=True, default="")
    icon = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    is_active = serializers.BooleanField(required=False, default=True)
