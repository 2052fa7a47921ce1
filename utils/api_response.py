"""
API envelope helpers.

Every endpoint answers with::

    {"success": bool, "data": ..., "error": {"code", "message", "details"},
     "meta": {"timestamp", "requestId", "pagination": {...}}}

Views hand a ``ServiceResult`` to :func:`result_response`; the HTTP status of a
failure is looked up from its error code in one place.
"""

from typing import Any, Dict, Optional

from django.utils import timezone
from rest_framework import serializers, status
from rest_framework.response import Response

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

ERROR_STATUS = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "UNAUTHORIZED": status.HTTP_401_UNAUTHORIZED,
    "INVALID_TOKEN": status.HTTP_401_UNAUTHORIZED,
    "TOKEN_EXPIRED": status.HTTP_401_UNAUTHORIZED,
    "PAYMENT_FAILED": status.HTTP_402_PAYMENT_REQUIRED,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "CONFLICT": status.HTTP_409_CONFLICT,
    "INVALID_STATE": status.HTTP_409_CONFLICT,
    "INVALID_TRANSITION": status.HTTP_409_CONFLICT,
    "INSUFFICIENT_QUANTITY": status.HTTP_409_CONFLICT,
    "RATE_LIMIT_EXCEEDED": status.HTTP_429_TOO_MANY_REQUESTS,
    "INTERNAL_ERROR": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "EXTERNAL_SERVICE_ERROR": status.HTTP_502_BAD_GATEWAY,
}


def status_for_error(code: str) -> int:
    return ERROR_STATUS.get(code, status.HTTP_400_BAD_REQUEST)


def build_meta(request=None, pagination: Optional[Dict[str, int]] = None) -> Dict[str, Any]:
    meta = {"timestamp": timezone.now().isoformat()}
    request_id = getattr(request, "request_id", None)
    if request_id is None and request is not None:
        request_id = getattr(getattr(request, "_request", None), "request_id", None)
    if request_id:
        meta["requestId"] = request_id
    if pagination is not None:
        meta["pagination"] = pagination
    return meta


def success_response(request, data: Any, http_status: int = status.HTTP_200_OK, pagination=None) -> Response:
    body = {"success": True, "data": data, "meta": build_meta(request, pagination)}
    return Response(body, status=http_status)


def error_response(request, code: str, message: str, details=None, http_status: Optional[int] = None) -> Response:
    body = {
        "success": False,
        "error": {"code": code, "message": message, "details": details or {}},
        "meta": build_meta(request),
    }
    return Response(body, status=http_status or status_for_error(code))


def result_response(request, result, serializer_class=None, http_status: int = status.HTTP_200_OK, context=None):
    """
    Render a ServiceResult as an envelope.

    A paginated value (the dict produced by ``paginate``) is serialized item by
    item and its counters move to ``meta.pagination``.
    """
    if not result.ok:
        return error_response(request, result.error, result.error_detail, result.error_details)

    value = result.value
    context = context or {"request": request}
    if isinstance(value, dict) and "results" in value and "total_pages" in value:
        items = value["results"]
        data = serializer_class(items, many=True, context=context).data if serializer_class else items
        pagination = {
            "page": value["page"],
            "limit": value["limit"],
            "total": value["total"],
            "totalPages": value["total_pages"],
        }
        return success_response(request, data, http_status, pagination)

    data = serializer_class(value, context=context).data if serializer_class else value
    return success_response(request, data, http_status)


class PaginationQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=MAX_PAGE_SIZE, default=DEFAULT_PAGE_SIZE)


def parse_pagination(request):
    """Validated ``(page, limit)`` from the query string; bad values raise a DRF ValidationError."""
    serializer = PaginationQuerySerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data["page"], serializer.validated_data["limit"]
