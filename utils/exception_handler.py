"""DRF exception handler that answers with the API envelope."""

import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.views import exception_handler
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError

from utils.api_response import error_response

logger = logging.getLogger(__name__)


def _flatten_validation_message(detail) -> str:
    if isinstance(detail, dict):
        for field_name, errors in detail.items():
            first = errors[0] if isinstance(errors, list) and errors else errors
            if isinstance(first, (dict, list)):
                return f"{field_name}: {_flatten_validation_message(first)}"
            return f"{field_name}: {first}" if field_name != "non_field_errors" else str(first)
    if isinstance(detail, list) and detail:
        return _flatten_validation_message(detail[0])
    return str(detail)


def _token_error_code(exc) -> str:
    # simplejwt wraps the TokenError text in detail["messages"]; "invalid or expired" is ambiguous
    detail = getattr(exc, "detail", None)
    if isinstance(detail, dict):
        texts = [str(m.get("message", "")) for m in detail.get("messages", []) if isinstance(m, dict)]
    elif detail is not None:
        texts = [str(detail)]
    else:
        texts = [str(exc)]
    expired = any("expired" in text.lower() and "invalid" not in text.lower() for text in texts)
    return "TOKEN_EXPIRED" if expired else "INVALID_TOKEN"


def envelope_exception_handler(exc, context):
    """
    Map framework exceptions to ``{success: false, error: {...}}`` bodies.

    Unhandled exceptions are logged and reported as INTERNAL_ERROR without
    their message.
    """
    request = context.get("request")

    if isinstance(exc, (InvalidToken, TokenError)):
        code = _token_error_code(exc)
        return error_response(request, code, "Token is invalid or expired", http_status=status.HTTP_401_UNAUTHORIZED)

    if isinstance(exc, Http404):
        exc = exceptions.NotFound()
    elif isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied(str(exc) or None)

    response = exception_handler(exc, context)
    if response is None:
        logger.error(f"Unhandled API exception: {exc}", exc_info=exc)
        return error_response(request, "INTERNAL_ERROR", "An unexpected error occurred")

    if isinstance(exc, exceptions.ValidationError):
        return error_response(
            request,
            "VALIDATION_ERROR",
            _flatten_validation_message(exc.detail),
            details=exc.detail if isinstance(exc.detail, dict) else {"errors": exc.detail},
        )
    if isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        return error_response(request, "UNAUTHORIZED", str(exc.detail), http_status=response.status_code)
    if isinstance(exc, exceptions.PermissionDenied):
        return error_response(request, "FORBIDDEN", str(exc.detail))
    if isinstance(exc, exceptions.NotFound):
        return error_response(request, "NOT_FOUND", str(exc.detail))
    if isinstance(exc, exceptions.Throttled):
        response_obj = error_response(request, "RATE_LIMIT_EXCEEDED", str(exc.detail))
        if exc.wait is not None:
            response_obj["Retry-After"] = str(int(exc.wait))
        return response_obj
    client_errors = (
        exceptions.MethodNotAllowed,
        exceptions.ParseError,
        exceptions.UnsupportedMediaType,
        exceptions.NotAcceptable,
    )
    if isinstance(exc, client_errors):
        return error_response(request, "VALIDATION_ERROR", str(exc.detail), http_status=response.status_code)

    return error_response(request, "INTERNAL_ERROR", str(exc.detail), http_status=response.status_code)
