from .auth_serializers import LoginRequestSerializer, RegisterRequestSerializer, TenantSummarySerializer, UserSerializer
from .response_serializers import ErrorResponseSerializer, LoginResponseSerializer, MeResponseSerializer

__all__ = [
    "LoginRequestSerializer",
    "RegisterRequestSerializer",
    "TenantSummarySerializer",
    "UserSerializer",
    "ErrorResponseSerializer",
    "LoginResponseSerializer",
    "MeResponseSerializer",
]
