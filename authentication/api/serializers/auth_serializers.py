from rest_framework import serializers

from utils.rbac import ROLE_BUYER, SELF_SERVICE_ROLES


class LoginRequestSerializer(serializers.Serializer):
    """Request body for login"""

    email = serializers.EmailField(help_text="User's email address")
    password = serializers.CharField(write_only=True, style={"input_type": "password"}, help_text="User's password")


class RegisterRequestSerializer(serializers.Serializer):
    """Request body for self-service registration"""

    tenant_slug = serializers.SlugField(help_text="Slug of the organisation to join")
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, style={"input_type": "password"})
    name = serializers.CharField(max_length=150)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True, default="")
    role = serializers.ChoiceField(choices=SELF_SERVICE_ROLES, required=False, default=ROLE_BUYER)


class TenantSummarySerializer(serializers.Serializer):
    id = serializers.UUIDField()
    name = serializers.CharField()
    slug = serializers.CharField()
    country = serializers.CharField()
    currency = serializers.CharField()


class UserSerializer(serializers.Serializer):
    """Authenticated user as returned by login, register and me"""

    id = serializers.UUIDField()
    email = serializers.EmailField()
    username = serializers.CharField()
    name = serializers.CharField()
    phone = serializers.CharField()
    role = serializers.CharField()
    permissions = serializers.ListField(child=serializers.CharField())
    tenant = TenantSummarySerializer(allow_null=True)
