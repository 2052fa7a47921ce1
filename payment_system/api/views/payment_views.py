import logging

from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, OpenApiTypes, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action

from infrastructure.container import container
from marketplace.permissions import ActionPermissionsMixin
from payment_system.api.serializers.request_serializers import (
    ConfirmPaymentRequestSerializer,
    CreatePaymentRequestSerializer,
    FailPaymentRequestSerializer,
    PaymentQuerySerializer,
    RefundPaymentRequestSerializer,
)
from payment_system.api.serializers.response_serializers import (
    ErrorResponseSerializer,
    PaymentSerializer,
    PaymentStatsSerializer,
    WebhookAckSerializer,
)
from payment_system.domain.services.payment_service import PaymentService
from utils.api_response import build_meta, parse_pagination, result_response, status_for_error

logger = logging.getLogger(__name__)


def get_payment_service() -> PaymentService:
    return container.payment_service()


class PaymentViewSet(ActionPermissionsMixin, viewsets.ViewSet):
    action_permissions = {
        "list": ("payments:read",),
        "retrieve": ("payments:read",),
        "stats": ("payments:read",),
        "create": ("payments:create",),
        "confirm": ("payments:update",),
        "fail": ("payments:update",),
        "refund": ("payments:update",),
        "release_escrow": ("payments:update",),
    }

    def get_service(self) -> PaymentService:
        return get_payment_service()

    @extend_schema(
        operation_id="payments_list",
        parameters=[
            PaymentQuerySerializer,
            OpenApiParameter(name="page", type=int),
            OpenApiParameter(name="limit", type=int),
        ],
        responses={200: PaymentSerializer(many=True)},
        tags=["Payments"],
    )
    def list(self, request):
        page, limit = parse_pagination(request)
        query = PaymentQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = self.get_service().list_payments(request.user, query.validated_data, page, limit)
        return result_response(request, result, PaymentSerializer)

    @extend_schema(
        operation_id="payments_create",
        summary="Pay an order",
        description="""
        **What it receives:**
        - `order_id` and `method` (CARD goes to the card processor; the other
          methods are settled manually)
        - Optional `amount` / `currency` (default: the order total and currency)

        **What it returns:**
        - The payment, PROCESSING with a `client_secret` once the provider has
          opened an intent. A provider timeout leaves it PENDING; the webhook
          or a later confirmation settles it.
        """,
        request=CreatePaymentRequestSerializer,
        responses={
            201: PaymentSerializer,
            402: OpenApiResponse(response=ErrorResponseSerializer, description="Provider declined the payment"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Order already paid or cancelled"),
        },
        tags=["Payments"],
    )
    def create(self, request):
        serializer = CreatePaymentRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = self.get_service().create_payment(
            request.user, data["order_id"], data["method"], amount=data.get("amount"), currency=data.get("currency")
        )
        return result_response(request, result, PaymentSerializer, http_status=status.HTTP_201_CREATED)

    @extend_schema(operation_id="payments_retrieve", responses={200: PaymentSerializer}, tags=["Payments"])
    def retrieve(self, request, pk=None):
        return result_response(request, self.get_service().get_payment(request.user, pk), PaymentSerializer)

    @extend_schema(
        operation_id="payments_confirm",
        summary="Mark a payment as settled",
        request=ConfirmPaymentRequestSerializer,
        responses={200: PaymentSerializer, 409: ErrorResponseSerializer},
        tags=["Payments"],
    )
    @action(detail=True, methods=["post"])
    def confirm(self, request, pk=None):
        serializer = ConfirmPaymentRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self.get_service().confirm_payment(
            request.user, pk, provider_tx_id=serializer.validated_data.get("provider_tx_id")
        )
        return result_response(request, result, PaymentSerializer)

    @extend_schema(
        operation_id="payments_fail",
        request=FailPaymentRequestSerializer,
        responses={200: PaymentSerializer, 409: ErrorResponseSerializer},
        tags=["Payments"],
    )
    @action(detail=True, methods=["post"])
    def fail(self, request, pk=None):
        serializer = FailPaymentRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self.get_service().fail_payment(request.user, pk, serializer.validated_data["reason"])
        return result_response(request, result, PaymentSerializer)

    @extend_schema(
        operation_id="payments_refund",
        summary="Refund a completed payment in full or in part",
        request=RefundPaymentRequestSerializer,
        responses={
            200: PaymentSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Amount above what is refundable"),
            409: ErrorResponseSerializer,
            502: OpenApiResponse(response=ErrorResponseSerializer, description="Provider refused the refund"),
        },
        tags=["Payments"],
    )
    @action(detail=True, methods=["post"])
    def refund(self, request, pk=None):
        serializer = RefundPaymentRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = self.get_service().refund_payment(request.user, pk, amount=data.get("amount"), reason=data["reason"])
        return result_response(request, result, PaymentSerializer)

    @extend_schema(
        operation_id="payments_release_escrow",
        request=None,
        responses={200: PaymentSerializer, 409: ErrorResponseSerializer},
        tags=["Payments"],
    )
    @action(detail=True, methods=["post"], url_path="release-escrow")
    def release_escrow(self, request, pk=None):
        return result_response(request, self.get_service().release_escrow(request.user, pk), PaymentSerializer)

    @extend_schema(operation_id="payments_stats", responses={200: PaymentStatsSerializer}, tags=["Payments"])
    @action(detail=False, methods=["get"])
    def stats(self, request):
        return result_response(request, self.get_service().payment_stats(request.user))


@method_decorator(csrf_exempt, name="dispatch")
class StripeWebhookView(View):
    """Provider webhooks. Authenticated by signature only."""

    @extend_schema(
        operation_id="payments_webhook",
        summary="Payment provider webhook",
        description="Verifies the `Stripe-Signature` header against the raw body, then applies the event.",
        request=OpenApiTypes.OBJECT,
        responses={200: WebhookAckSerializer, 400: ErrorResponseSerializer},
        tags=["Webhooks"],
        auth=[],
    )
    def post(self, request):
        signature = request.META.get("HTTP_STRIPE_SIGNATURE", "")
        result = get_payment_service().handle_webhook(request.body, signature)

        if not result.ok:
            body = {
                "success": False,
                "error": {"code": result.error, "message": result.error_detail, "details": result.error_details or {}},
                "meta": build_meta(request),
            }
            return JsonResponse(body, status=status_for_error(result.error))

        return JsonResponse({"success": True, "data": result.value, "meta": build_meta(request)}, status=200)
