from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action

from infrastructure.container import container
from marketplace.api.serializers import ErrorResponseSerializer, ReasonRequestSerializer
from marketplace.permissions import ActionPermissionsMixin
from marketplace.producers.api.serializers.producer_serializers import (
    ProducerDashboardSerializer,
    ProducerSerializer,
    ProducerWriteSerializer,
    RateProducerSerializer,
)
from marketplace.services import ProducerService
from utils.api_response import parse_pagination, result_response

PRODUCER_READ = ("producers:read", "producer:read", "listings:read")
PRODUCER_WRITE = ("producers:create", "producers:update", "producer:update")


class ProducerViewSet(ActionPermissionsMixin, viewsets.ViewSet):
    action_permissions = {
        "list": PRODUCER_READ,
        "retrieve": PRODUCER_READ,
        "by_economic_id": PRODUCER_READ,
        "create": PRODUCER_WRITE,
        "partial_update": PRODUCER_WRITE,
        "verify": ("producers:update",),
        "reject": ("producers:update",),
        "dashboard": ("producers:read", "producer:read"),
    }

    def get_service(self) -> ProducerService:
        return container.producer_service()

    @extend_schema(
        operation_id="producers_list",
        summary="List producers",
        parameters=[
            OpenApiParameter(name="type", type=str, description="FARMER, MINER, ARTISAN, ..."),
            OpenApiParameter(name="verification_status", type=str, description="PENDING, VERIFIED or REJECTED"),
            OpenApiParameter(name="search", type=str, description="Name, legal name or economic id"),
            OpenApiParameter(name="page", type=int),
            OpenApiParameter(name="limit", type=int),
        ],
        responses={200: ProducerSerializer(many=True)},
        tags=["Marketplace - Producers"],
    )
    def list(self, request):
        page, limit = parse_pagination(request)
        filters = {key: request.query_params.get(key) for key in ("type", "verification_status", "search")}
        result = self.get_service().list_producers(request.user, filters, page, limit)
        return result_response(request, result, ProducerSerializer)

    @extend_schema(
        operation_id="producers_create",
        summary="Register a producer profile",
        description="""
        **What it receives:**
        - Producer type, name and optional contact / location data
        - `user_id` (staff only) to register on behalf of another user

        **What it returns:**
        - The producer in PENDING verification with its economic id
        """,
        request=ProducerWriteSerializer,
        responses={
            201: ProducerSerializer,
            409: OpenApiResponse(response=ErrorResponseSerializer, description="User already has a profile"),
        },
        tags=["Marketplace - Producers"],
    )
    def create(self, request):
        serializer = ProducerWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self.get_service().register_producer(request.user, serializer.validated_data)
        return result_response(request, result, ProducerSerializer, http_status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="producers_retrieve",
        responses={200: ProducerSerializer},
        tags=["Marketplace - Producers"],
    )
    def retrieve(self, request, pk=None):
        return result_response(request, self.get_service().get_producer(request.user, pk), ProducerSerializer)

    @extend_schema(
        operation_id="producers_partial_update",
        request=ProducerWriteSerializer,
        responses={200: ProducerSerializer},
        tags=["Marketplace - Producers"],
    )
    def partial_update(self, request, pk=None):
        serializer = ProducerWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        result = self.get_service().update_producer(request.user, pk, serializer.validated_data)
        return result_response(request, result, ProducerSerializer)

    @extend_schema(
        operation_id="producers_verify",
        request=None,
        responses={200: ProducerSerializer},
        tags=["Marketplace - Producers"],
    )
    @action(detail=True, methods=["post"])
    def verify(self, request, pk=None):
        return result_response(request, self.get_service().verify_producer(request.user, pk), ProducerSerializer)

    @extend_schema(
        operation_id="producers_reject",
        request=ReasonRequestSerializer,
        responses={200: ProducerSerializer},
        tags=["Marketplace - Producers"],
    )
    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        serializer = ReasonRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self.get_service().reject_producer(request.user, pk, serializer.validated_data["reason"])
        return result_response(request, result, ProducerSerializer)

    @extend_schema(
        operation_id="producers_rate",
        request=RateProducerSerializer,
        responses={200: ProducerSerializer},
        tags=["Marketplace - Producers"],
    )
    @action(detail=True, methods=["post"])
    def rate(self, request, pk=None):
        serializer = RateProducerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self.get_service().rate_producer(request.user, pk, serializer.validated_data["score"])
        return result_response(request, result, ProducerSerializer)

    @extend_schema(
        operation_id="producers_dashboard",
        summary="Producer stats and recent activity",
        responses={200: ProducerDashboardSerializer},
        tags=["Marketplace - Producers"],
    )
    @action(detail=True, methods=["get"])
    def dashboard(self, request, pk=None):
        result = self.get_service().producer_dashboard(request.user, pk)
        return result_response(request, result, ProducerDashboardSerializer)

    @extend_schema(
        operation_id="producers_by_economic_id",
        summary="Look a producer up by economic id",
        responses={200: ProducerSerializer, 404: ErrorResponseSerializer},
        tags=["Marketplace - Producers"],
    )
    @action(detail=False, methods=["get"], url_path=r"by-eid/(?P<economic_id>[^/]+)")
    def by_economic_id(self, request, economic_id=None):
        result = self.get_service().get_by_economic_id(request.user, economic_id)
        return result_response(request, result, ProducerSerializer)
