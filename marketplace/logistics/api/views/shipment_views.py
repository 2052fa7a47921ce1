from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action

from infrastructure.container import container
from marketplace.api.serializers import ErrorResponseSerializer
from marketplace.logistics.api.serializers.shipment_serializers import (
    CreateShipmentRequestSerializer,
    ShipmentQuerySerializer,
    ShipmentSerializer,
    ShipmentStatusRequestSerializer,
    TrackingEventRequestSerializer,
)
from marketplace.permissions import ActionPermissionsMixin
from marketplace.services import ShipmentService
from utils.api_response import parse_pagination, result_response


class ShipmentViewSet(ActionPermissionsMixin, viewsets.ViewSet):
    """Shipments and their tracking history."""

    action_permissions = {
        "list": ("shipments:read",),
        "retrieve": ("shipments:read",),
        "create": ("shipments:create",),
        "transition": ("shipments:update",),
        "track": ("shipments:update",),
    }

    def get_service(self) -> ShipmentService:
        return container.shipment_service()

    @extend_schema(
        operation_id="shipments_list",
        summary="List visible shipments",
        description="""
        Buyers see the shipments of their orders, producers those of orders on
        their listings, tenant staff / finance / auditors every shipment.
        """,
        parameters=[
            ShipmentQuerySerializer,
            OpenApiParameter(name="page", type=int),
            OpenApiParameter(name="limit", type=int),
        ],
        responses={200: ShipmentSerializer(many=True)},
        tags=["Marketplace - Logistics"],
    )
    def list(self, request):
        page, limit = parse_pagination(request)
        query = ShipmentQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = self.get_service().list_shipments(request.user, query.validated_data, page, limit)
        return result_response(request, result, ShipmentSerializer)

    @extend_schema(
        operation_id="shipments_create",
        summary="Book a shipment",
        description="""
        **What it receives:**
        - `origin` and `destination`
        - `order_id` of a CONFIRMED or PROCESSING order; cargo, quantity and
          unit then default to the order's. Without an order, `cargo` is required
          and only tenant staff may book.

        **What it returns:**
        - The shipment, PENDING, with its first tracking event
        """,
        request=CreateShipmentRequestSerializer,
        responses={
            201: ShipmentSerializer,
            409: OpenApiResponse(
                response=ErrorResponseSerializer, description="Order not shippable or already shipping"
            ),
        },
        tags=["Marketplace - Logistics"],
    )
    def create(self, request):
        serializer = CreateShipmentRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = self.get_service().create_shipment(
            request.user,
            data["origin"],
            data["destination"],
            order_id=data.get("order_id"),
            cargo=data["cargo"],
            quantity=data.get("quantity"),
            unit=data["unit"],
            origin_port=data["origin_port"],
            destination_port=data["destination_port"],
            vessel=data["vessel"],
            vessel_type=data["vessel_type"],
            eta=data.get("eta"),
        )
        return result_response(request, result, ShipmentSerializer, http_status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="shipments_retrieve",
        responses={200: ShipmentSerializer, 404: ErrorResponseSerializer},
        tags=["Marketplace - Logistics"],
    )
    def retrieve(self, request, pk=None):
        return result_response(request, self.get_service().get_shipment(request.user, pk), ShipmentSerializer)

    @extend_schema(
        operation_id="shipments_transition",
        summary="Move a shipment to a new status",
        description="""
        PENDING -> LOADING -> IN_TRANSIT <-> CUSTOMS -> ARRIVED -> DELIVERED,
        with CANCELLED from PENDING or LOADING. Departure ships a PROCESSING
        order; delivery delivers a SHIPPED one.
        """,
        request=ShipmentStatusRequestSerializer,
        responses={200: ShipmentSerializer, 409: ErrorResponseSerializer},
        tags=["Marketplace - Logistics"],
    )
    @action(detail=True, methods=["post"])
    def transition(self, request, pk=None):
        serializer = ShipmentStatusRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = self.get_service().update_status(
            request.user, pk, data["status"], location=data["location"], event=data["event"], eta=data.get("eta")
        )
        return result_response(request, result, ShipmentSerializer)

    @extend_schema(
        operation_id="shipments_track",
        summary="Record a tracking event",
        request=TrackingEventRequestSerializer,
        responses={200: ShipmentSerializer, 409: ErrorResponseSerializer},
        tags=["Marketplace - Logistics"],
    )
    @action(detail=True, methods=["post"])
    def track(self, request, pk=None):
        serializer = TrackingEventRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = self.get_service().add_tracking_event(request.user, pk, data["event"], data["location"])
        return result_response(request, result, ShipmentSerializer)
