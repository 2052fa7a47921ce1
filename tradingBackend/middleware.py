"""Custom middleware helpers for the trading backend."""

from __future__ import annotations

import logging
import re
import uuid
from contextvars import ContextVar
from typing import Callable

REQUEST_ID_HEADER = "X-Request-ID"

_request_id: ContextVar[str] = ContextVar("request_id", default="-")

_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def get_request_id() -> str:
    """Request id bound to the current request, or ``"-"`` outside one."""
    return _request_id.get()


class RequestIDMiddleware:
    """Attach a correlation id to every request.

    A well-formed ``X-Request-ID`` sent by the client is reused, otherwise a
    fresh UUID is generated. The id is exposed as ``request.request_id``, put in
    the logging context, echoed in the response header and copied into the
    ``meta.requestId`` field of API envelopes.
    """

    def __init__(self, get_response: Callable):
        self.get_response = get_response

    def __call__(self, request):
        incoming = request.META.get("HTTP_X_REQUEST_ID", "")
        request_id = incoming if _VALID_REQUEST_ID.match(incoming) else uuid.uuid4().hex
        request.request_id = request_id
        token = _request_id.set(request_id)
        try:
            response = self.get_response(request)
        finally:
            _request_id.reset(token)
        response[REQUEST_ID_HEADER] = request_id
        return response


class RequestIDLogFilter(logging.Filter):
    """Expose the current request id to log formatters as ``{request_id}``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = get_request_id()
        return True


class JWTCSRFBypassMiddleware:
    """Skip CSRF enforcement for stateless JWT authenticated requests.

    API clients authenticate with an ``Authorization: Bearer`` header and never
    rely on cookies, so the CSRF check only gets in their way. Session-based
    endpoints such as the admin keep their protection.
    """

    def __init__(self, get_response: Callable):
        self.get_response = get_response

    def __call__(self, request):
        authorization = request.META.get("HTTP_AUTHORIZATION", "")
        if authorization.lower().startswith("bearer "):
            request._dont_enforce_csrf_checks = True  # type: ignore[attr-defined]
            request.META.setdefault("CSRF_SKIP_REASON", "jwt-bearer")
        return self.get_response(request)
