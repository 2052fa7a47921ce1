"""
Response Serializers for API Documentation

These serializers define the structure of API responses for OpenAPI schema generation.
They are NOT used for data validation, only for documentation in Swagger/ReDoc.
"""

from rest_framework import serializers

from .auth_serializers import UserSerializer


class MetaSerializer(serializers.Serializer):
    timestamp = serializers.DateTimeField()
    requestId = serializers.CharField(required=False)


class ErrorBodySerializer(serializers.Serializer):
    code = serializers.CharField(help_text="Stable error code, e.g. UNAUTHORIZED")
    message = serializers.CharField()
    details = serializers.DictField()


class ErrorResponseSerializer(serializers.Serializer):
    """Envelope of every failed request"""

    success = serializers.BooleanField(default=False)
    error = ErrorBodySerializer()
    meta = MetaSerializer()


class TokenPairSerializer(serializers.Serializer):
    access = serializers.CharField(help_text="JWT access token")
    refresh = serializers.CharField(help_text="JWT refresh token")
    user = UserSerializer(help_text="User details")


class LoginResponseSerializer(serializers.Serializer):
    """Response for successful login or registration"""

    success = serializers.BooleanField(default=True)
    data = TokenPairSerializer()
    meta = MetaSerializer()


class MeResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField(default=True)
    data = UserSerializer()
    meta = MetaSerializer()
