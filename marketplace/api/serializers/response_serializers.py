"""
Response serializers for API documentation.

Every marketplace endpoint answers with the same envelope; these serializers
describe it for drf-spectacular and are never used for validation.
"""

from rest_framework import serializers


class PaginationSerializer(serializers.Serializer):
    page = serializers.IntegerField()
    limit = serializers.IntegerField()
    total = serializers.IntegerField()
    totalPages = serializers.IntegerField()


class MetaSerializer(serializers.Serializer):
    timestamp = serializers.DateTimeField()
    requestId = serializers.CharField(required=False)
    pagination = PaginationSerializer(required=False)


class ErrorBodySerializer(serializers.Serializer):
    code = serializers.CharField(help_text="Stable error code, e.g. INSUFFICIENT_QUANTITY")
    message = serializers.CharField()
    details = serializers.DictField()


class ErrorResponseSerializer(serializers.Serializer):
    """Standard error response"""

    success = serializers.BooleanField(default=False)
    error = ErrorBodySerializer()
    meta = MetaSerializer()


class SuccessResponseSerializer(serializers.Serializer):
    """Standard success response"""

    success = serializers.BooleanField(default=True)
    data = serializers.JSONField()
    meta = MetaSerializer()


class ReasonRequestSerializer(serializers.Serializer):
    """Body of reject / cancel / revoke style actions"""

    reason = serializers.CharField(required=False, allow_blank=True, default="")
