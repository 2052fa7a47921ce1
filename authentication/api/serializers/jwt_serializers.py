from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework_simplejwt.tokens import RefreshToken


def add_trading_claims(token, user):
    """Claims every access token carries: user, tenant, role and the role's permissions."""
    token["user_id"] = str(user.id)
    token["tenant_id"] = str(user.tenant_id) if user.tenant_id else None
    token["role"] = user.role
    token["permissions"] = user.permissions
    return token


class TradingTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Token pair serializer that adds tenant and role claims."""

    @classmethod
    def get_token(cls, user):
        return add_trading_claims(super().get_token(user), user)


class TradingRefreshToken(RefreshToken):
    """Refresh token whose derived access tokens carry the trading claims."""

    @classmethod
    def for_user(cls, user):
        return add_trading_claims(super().for_user(user), user)
