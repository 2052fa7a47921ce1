from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action

from infrastructure.container import container
from marketplace.api.serializers import ErrorResponseSerializer, ReasonRequestSerializer
from marketplace.permissions import ActionPermissionsMixin
from marketplace.services import CertificateService, ValidationService
from marketplace.validation.api.serializers.validation_serializers import (
    CertificateQuerySerializer,
    CertificateSerializer,
    CompleteValidationSerializer,
    RequestValidationSerializer,
    ScheduleValidationSerializer,
    ValidationQuerySerializer,
    ValidationSerializer,
)
from utils.api_response import parse_pagination, result_response

VALIDATOR_ACTIONS = ("validations:update",)


class ValidationViewSet(ActionPermissionsMixin, viewsets.ViewSet):
    """Inspections that gate a listing's activation."""

    action_permissions = {
        "list": ("validations:read", "listings:update"),
        "retrieve": ("validations:read", "listings:update"),
        # Producers request validations of their own listings
        "create": ("validations:create", "listings:update"),
        "schedule": VALIDATOR_ACTIONS,
        "start": VALIDATOR_ACTIONS,
        "complete": VALIDATOR_ACTIONS,
        "approve": VALIDATOR_ACTIONS,
        "reject": VALIDATOR_ACTIONS,
    }

    def get_service(self) -> ValidationService:
        return container.validation_service()

    @extend_schema(
        operation_id="validations_list",
        summary="List validations",
        description="Validators only see the validations assigned to them.",
        parameters=[
            ValidationQuerySerializer,
            OpenApiParameter(name="page", type=int),
            OpenApiParameter(name="limit", type=int),
        ],
        responses={200: ValidationSerializer(many=True)},
        tags=["Marketplace - Validations"],
    )
    def list(self, request):
        page, limit = parse_pagination(request)
        query = ValidationQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = self.get_service().list_validations(request.user, query.validated_data, page, limit)
        return result_response(request, result, ValidationSerializer)

    @extend_schema(
        operation_id="validations_create",
        summary="Request a validation for a listing pending validation",
        request=RequestValidationSerializer,
        responses={
            201: ValidationSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Assigned user is not a validator"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Listing is not pending validation"),
        },
        tags=["Marketplace - Validations"],
    )
    def create(self, request):
        serializer = RequestValidationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self.get_service().request_validation(request.user, serializer.validated_data)
        return result_response(request, result, ValidationSerializer, http_status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="validations_retrieve",
        responses={200: ValidationSerializer},
        tags=["Marketplace - Validations"],
    )
    def retrieve(self, request, pk=None):
        return result_response(request, self.get_service().get_validation(request.user, pk), ValidationSerializer)

    @extend_schema(
        operation_id="validations_schedule",
        request=ScheduleValidationSerializer,
        responses={200: ValidationSerializer, 409: ErrorResponseSerializer},
        tags=["Marketplace - Validations"],
    )
    @action(detail=True, methods=["post"])
    def schedule(self, request, pk=None):
        serializer = ScheduleValidationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self.get_service().schedule(request.user, pk, serializer.validated_data["scheduled_at"])
        return result_response(request, result, ValidationSerializer)

    @extend_schema(
        operation_id="validations_start",
        request=None,
        responses={200: ValidationSerializer, 409: ErrorResponseSerializer},
        tags=["Marketplace - Validations"],
    )
    @action(detail=True, methods=["post"])
    def start(self, request, pk=None):
        return result_response(request, self.get_service().start(request.user, pk), ValidationSerializer)

    @extend_schema(
        operation_id="validations_complete",
        summary="Record inspection results",
        description="""
        A quality score at or above the auto-approve threshold (70 by default)
        approves the validation at once: the listing goes ACTIVE and a
        certificate is issued to its producer.
        """,
        request=CompleteValidationSerializer,
        responses={200: ValidationSerializer, 400: ErrorResponseSerializer, 409: ErrorResponseSerializer},
        tags=["Marketplace - Validations"],
    )
    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):
        serializer = CompleteValidationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = self.get_service().complete(request.user, pk, data["results"], data["quality_score"])
        return result_response(request, result, ValidationSerializer)

    @extend_schema(
        operation_id="validations_approve",
        request=None,
        responses={200: ValidationSerializer, 409: ErrorResponseSerializer},
        tags=["Marketplace - Validations"],
    )
    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        return result_response(request, self.get_service().approve(request.user, pk), ValidationSerializer)

    @extend_schema(
        operation_id="validations_reject",
        request=ReasonRequestSerializer,
        responses={200: ValidationSerializer, 409: ErrorResponseSerializer},
        tags=["Marketplace - Validations"],
    )
    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        serializer = ReasonRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self.get_service().reject(request.user, pk, serializer.validated_data["reason"])
        return result_response(request, result, ValidationSerializer)


class CertificateViewSet(ActionPermissionsMixin, viewsets.ViewSet):
    action_permissions = {
        "list": ("certificates:read",),
        "retrieve": ("certificates:read",),
        "by_number": ("certificates:read",),
        "revoke": ("certificates:create", "validations:update"),
    }

    def get_service(self) -> CertificateService:
        return container.certificate_service()

    @extend_schema(
        operation_id="certificates_list",
        parameters=[
            CertificateQuerySerializer,
            OpenApiParameter(name="page", type=int),
            OpenApiParameter(name="limit", type=int),
        ],
        responses={200: CertificateSerializer(many=True)},
        tags=["Marketplace - Certificates"],
    )
    def list(self, request):
        page, limit = parse_pagination(request)
        query = CertificateQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = self.get_service().list_certificates(request.user, query.validated_data, page, limit)
        return result_response(request, result, CertificateSerializer)

    @extend_schema(
        operation_id="certificates_retrieve",
        responses={200: CertificateSerializer},
        tags=["Marketplace - Certificates"],
    )
    def retrieve(self, request, pk=None):
        return result_response(request, self.get_service().get_certificate(request.user, pk), CertificateSerializer)

    @extend_schema(
        operation_id="certificates_by_number",
        summary="Look up a certificate by its number",
        responses={200: CertificateSerializer, 404: ErrorResponseSerializer},
        tags=["Marketplace - Certificates"],
    )
    @action(detail=False, methods=["get"], url_path=r"by-number/(?P<certificate_number>[^/]+)")
    def by_number(self, request, certificate_number=None):
        result = self.get_service().get_by_number(request.user, certificate_number)
        return result_response(request, result, CertificateSerializer)

    @extend_schema(
        operation_id="certificates_revoke",
        request=ReasonRequestSerializer,
        responses={200: CertificateSerializer, 403: ErrorResponseSerializer, 409: ErrorResponseSerializer},
        tags=["Marketplace - Certificates"],
    )
    @action(detail=True, methods=["post"])
    def revoke(self, request, pk=None):
        serializer = ReasonRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self.get_service().revoke(request.user, pk, serializer.validated_data["reason"])
        return result_response(request, result, CertificateSerializer)
