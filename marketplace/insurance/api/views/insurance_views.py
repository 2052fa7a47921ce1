from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.views import APIView

from authentication.permissions import require_permissions
from infrastructure.container import container
from marketplace.api.serializers import ErrorResponseSerializer, ReasonRequestSerializer
from marketplace.insurance.api.serializers.insurance_serializers import (
    ApproveClaimRequestSerializer,
    CreateClaimRequestSerializer,
    CreatePolicyRequestSerializer,
    InsuranceClaimSerializer,
    InsurancePolicySerializer,
    PolicyQuerySerializer,
    QuoteRequestSerializer,
    QuoteResponseSerializer,
)
from marketplace.permissions import ActionPermissionsMixin
from marketplace.services import InsuranceService
from utils.api_response import parse_pagination, result_response


def get_insurance_service() -> InsuranceService:
    return container.insurance_service()


class InsuranceQuoteAPIView(APIView):
    permission_classes = [require_permissions("insurance:read")]

    @extend_schema(
        operation_id="insurance_quote",
        summary="Quote a premium",
        description="""
        **What it receives:**
        - `insured_type`, `insured_value`, optional `coverage_days` (default 365) and `currency`
        - Optional `risk_profile` overrides (weather, market, logistics, quality; 0-100)
        - Optional `listing_id` or `producer_id`: the producer's rating drives the quality score

        **What it returns:**
        - Premium, risk scores, overall score, multiplier and the factors scoring below 60
        """,
        request=QuoteRequestSerializer,
        responses={200: QuoteResponseSerializer, 400: ErrorResponseSerializer},
        tags=["Marketplace - Insurance"],
    )
    def post(self, request):
        serializer = QuoteRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return result_response(request, get_insurance_service().quote(request.user, serializer.validated_data))


class InsurancePolicyViewSet(ActionPermissionsMixin, viewsets.ViewSet):
    action_permissions = {
        "list": ("insurance:read",),
        "retrieve": ("insurance:read",),
        "create": ("insurance:create",),
        "cancel": ("insurance:update",),
    }

    def get_service(self) -> InsuranceService:
        return get_insurance_service()

    @extend_schema(
        operation_id="insurance_policies_list",
        parameters=[
            PolicyQuerySerializer,
            OpenApiParameter(name="page", type=int),
            OpenApiParameter(name="limit", type=int),
        ],
        responses={200: InsurancePolicySerializer(many=True)},
        tags=["Marketplace - Insurance"],
    )
    def list(self, request):
        page, limit = parse_pagination(request)
        query = PolicyQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = self.get_service().list_policies(request.user, query.validated_data, page, limit)
        return result_response(request, result, InsurancePolicySerializer)

    @extend_schema(
        operation_id="insurance_policies_create",
        summary="Create and bind a policy",
        description="""
        The policy is saved PENDING and then bound with the underwriter. It
        comes back ACTIVE when binding succeeds; otherwise it stays PENDING
        and `provider_error` says why.
        """,
        request=CreatePolicyRequestSerializer,
        responses={
            201: InsurancePolicySerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Bad coverage window or value"),
        },
        tags=["Marketplace - Insurance"],
    )
    def create(self, request):
        serializer = CreatePolicyRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self.get_service().create_policy(request.user, serializer.validated_data)
        return result_response(request, result, InsurancePolicySerializer, http_status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="insurance_policies_retrieve",
        responses={200: InsurancePolicySerializer},
        tags=["Marketplace - Insurance"],
    )
    def retrieve(self, request, pk=None):
        return result_response(request, self.get_service().get_policy(request.user, pk), InsurancePolicySerializer)

    @extend_schema(
        operation_id="insurance_policies_cancel",
        request=ReasonRequestSerializer,
        responses={200: InsurancePolicySerializer, 409: ErrorResponseSerializer},
        tags=["Marketplace - Insurance"],
    )
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        serializer = ReasonRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self.get_service().cancel_policy(request.user, pk, serializer.validated_data["reason"])
        return result_response(request, result, InsurancePolicySerializer)


class InsuranceClaimViewSet(ActionPermissionsMixin, viewsets.ViewSet):
    action_permissions = {
        "retrieve": ("insurance:read",),
        "create": ("insurance:create",),
        "approve": ("insurance:update",),
        "reject": ("insurance:update",),
        "pay": ("insurance:update",),
    }

    def get_service(self) -> InsuranceService:
        return get_insurance_service()

    @extend_schema(
        operation_id="insurance_claims_create",
        summary="File a claim",
        description="A claim whose `trigger_data` meets a parametric trigger of the policy is approved at once.",
        request=CreateClaimRequestSerializer,
        responses={201: InsuranceClaimSerializer, 400: ErrorResponseSerializer, 409: ErrorResponseSerializer},
        tags=["Marketplace - Insurance"],
    )
    def create(self, request):
        serializer = CreateClaimRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self.get_service().create_claim(request.user, serializer.validated_data)
        return result_response(request, result, InsuranceClaimSerializer, http_status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="insurance_claims_retrieve",
        responses={200: InsuranceClaimSerializer},
        tags=["Marketplace - Insurance"],
    )
    def retrieve(self, request, pk=None):
        return result_response(request, self.get_service().get_claim(request.user, pk), InsuranceClaimSerializer)

    @extend_schema(
        operation_id="insurance_claims_approve",
        request=ApproveClaimRequestSerializer,
        responses={200: InsuranceClaimSerializer, 409: ErrorResponseSerializer},
        tags=["Marketplace - Insurance"],
    )
    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        serializer = ApproveClaimRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = self.get_service().approve_claim(request.user, pk, data.get("amount"), data["notes"])
        return result_response(request, result, InsuranceClaimSerializer)

    @extend_schema(
        operation_id="insurance_claims_reject",
        request=ReasonRequestSerializer,
        responses={200: InsuranceClaimSerializer, 409: ErrorResponseSerializer},
        tags=["Marketplace - Insurance"],
    )
    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        serializer = ReasonRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self.get_service().reject_claim(request.user, pk, serializer.validated_data["reason"])
        return result_response(request, result, InsuranceClaimSerializer)

    @extend_schema(
        operation_id="insurance_claims_pay",
        request=None,
        responses={200: InsuranceClaimSerializer, 409: ErrorResponseSerializer},
        tags=["Marketplace - Insurance"],
    )
    @action(detail=True, methods=["post"])
    def pay(self, request, pk=None):
        return result_response(request, self.get_service().pay_claim(request.user, pk), InsuranceClaimSerializer)
