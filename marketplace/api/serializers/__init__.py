# Marketplace API Serializers

# Envelope serializers for API documentation
from .response_serializers import (
    ErrorResponseSerializer,
    MetaSerializer,
    PaginationSerializer,
    ReasonRequestSerializer,
    SuccessResponseSerializer,
)

__all__ = [
    "ErrorResponseSerializer",
    "MetaSerializer",
    "PaginationSerializer",
    "ReasonRequestSerializer",
    "SuccessResponseSerializer",
]
