import pytest
from rest_framework import exceptions, serializers
from rest_framework.request import Request
from rest_framework.test import APIRequestFactory
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError

from marketplace.services.base import ErrorCodes, service_err, service_ok
from utils.api_response import parse_pagination, result_response, status_for_error
from utils.exception_handler import envelope_exception_handler


class ItemSerializer(serializers.Serializer):
    name = serializers.CharField()


def make_request(path="/", **params):
    request = APIRequestFactory().get(path, params)
    request.request_id = "req-123"
    return request


@pytest.mark.unit
class TestResultResponse:
    def test_success_envelope(self):
        response = result_response(make_request(), service_ok({"name": "Cocoa"}), ItemSerializer)

        assert response.status_code == 200
        assert response.data["success"] is True
        assert response.data["data"] == {"name": "Cocoa"}
        assert response.data["meta"]["requestId"] == "req-123"
        assert "timestamp" in response.data["meta"]

    def test_paginated_value_moves_counters_to_meta(self):
        value = {"results": [{"name": "a"}, {"name": "b"}], "page": 2, "limit": 2, "total": 5, "total_pages": 3}

        response = result_response(make_request(), service_ok(value), ItemSerializer)

        assert response.data["data"] == [{"name": "a"}, {"name": "b"}]
        assert response.data["meta"]["pagination"] == {"page": 2, "limit": 2, "total": 5, "totalPages": 3}

    def test_error_envelope_and_status(self):
        result = service_err(ErrorCodes.INSUFFICIENT_QUANTITY, "Only 5 MT available", {"available": "5.000"})

        response = result_response(make_request(), result)

        assert response.status_code == 409
        assert response.data["success"] is False
        assert response.data["error"] == {
            "code": "INSUFFICIENT_QUANTITY",
            "message": "Only 5 MT available",
            "details": {"available": "5.000"},
        }

    def test_created_status(self):
        assert result_response(make_request(), service_ok({}), http_status=201).status_code == 201

    @pytest.mark.parametrize(
        "code,expected",
        [
            ("VALIDATION_ERROR", 400),
            ("UNAUTHORIZED", 401),
            ("PAYMENT_FAILED", 402),
            ("FORBIDDEN", 403),
            ("NOT_FOUND", 404),
            ("INVALID_TRANSITION", 409),
            ("RATE_LIMIT_EXCEEDED", 429),
            ("INTERNAL_ERROR", 500),
            ("EXTERNAL_SERVICE_ERROR", 502),
            ("SOMETHING_NEW", 400),
        ],
    )
    def test_status_for_error(self, code, expected):
        assert status_for_error(code) == expected


@pytest.mark.unit
class TestParsePagination:
    def test_defaults(self):
        assert parse_pagination(Request(make_request())) == (1, 20)

    def test_bounds(self):
        assert parse_pagination(Request(make_request(page=3, limit=100))) == (3, 100)
        with pytest.raises(exceptions.ValidationError):
            parse_pagination(Request(make_request(limit=101)))


@pytest.mark.unit
class TestEnvelopeExceptionHandler:
    def _handle(self, exc):
        return envelope_exception_handler(exc, {"request": make_request(), "view": None})

    def test_validation_error(self):
        response = self._handle(exceptions.ValidationError({"quantity": ["Must be greater than zero."]}))

        assert response.status_code == 400
        assert response.data["error"]["code"] == "VALIDATION_ERROR"
        assert response.data["error"]["message"] == "quantity: Must be greater than zero."
        assert response.data["error"]["details"] == {"quantity": ["Must be greater than zero."]}

    def test_authentication(self):
        assert self._handle(exceptions.NotAuthenticated()).data["error"]["code"] == "UNAUTHORIZED"
        assert self._handle(InvalidToken()).data["error"]["code"] == "INVALID_TOKEN"

    def test_expired_token_is_told_apart_from_invalid_token(self):
        def wrapped(message):
            return InvalidToken(
                {
                    "detail": "Given token not valid for any token type",
                    "code": "token_not_valid",
                    "messages": [{"token_class": "AccessToken", "token_type": "access", "message": message}],
                }
            )

        assert self._handle(wrapped("Token is expired")).data["error"]["code"] == "TOKEN_EXPIRED"
        assert self._handle(wrapped("Token has wrong type")).data["error"]["code"] == "INVALID_TOKEN"
        assert self._handle(wrapped("Token is invalid or expired")).data["error"]["code"] == "INVALID_TOKEN"
        assert self._handle(TokenError("Token is expired")).status_code == 401
        assert self._handle(TokenError("Token is expired")).data["error"]["code"] == "TOKEN_EXPIRED"

    def test_permission_and_not_found(self):
        assert self._handle(exceptions.PermissionDenied()).status_code == 403
        assert self._handle(exceptions.NotFound()).data["error"]["code"] == "NOT_FOUND"

    def test_throttled_sets_retry_after(self):
        response = self._handle(exceptions.Throttled(wait=30))

        assert response.status_code == 429
        assert response["Retry-After"] == "30"

    def test_unhandled_exception_hides_message(self):
        response = self._handle(RuntimeError("password=hunter2"))

        assert response.status_code == 500
        assert response.data["error"]["message"] == "An unexpected error occurred"
