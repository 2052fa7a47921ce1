from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action

from infrastructure.container import container
from marketplace.api.serializers import ErrorResponseSerializer, ReasonRequestSerializer
from marketplace.ordering.api.serializers.order_serializers import (
    CreateOrderRequestSerializer,
    OrderQuerySerializer,
    OrderSerializer,
    TransitionOrderRequestSerializer,
)
from marketplace.permissions import ActionPermissionsMixin
from marketplace.services import OrderService
from utils.api_response import parse_pagination, result_response


class OrderViewSet(ActionPermissionsMixin, viewsets.ViewSet):
    action_permissions = {
        "list": ("orders:read",),
        "retrieve": ("orders:read",),
        "create": ("orders:create",),
        # Who may move an order where is decided per target status by the service
        "transition": ("orders:update", "orders:read"),
        "cancel": ("orders:update", "orders:read"),
    }

    def get_service(self) -> OrderService:
        return container.order_service()

    @extend_schema(
        operation_id="orders_list",
        summary="List visible orders",
        description="""
        **What it receives:**
        - Optional filters: status, listing, from_date, to_date
        - Pagination parameters (page, limit)

        **What it returns:**
        - Buyers see their own orders, producers the orders on their listings,
          tenant staff / finance / auditors every order of the tenant
        """,
        parameters=[
            OrderQuerySerializer,
            OpenApiParameter(name="page", type=int, description="Page number (default: 1)"),
            OpenApiParameter(name="limit", type=int, description="Items per page (default: 20)"),
        ],
        responses={200: OrderSerializer(many=True)},
        tags=["Marketplace - Orders"],
    )
    def list(self, request):
        page, limit = parse_pagination(request)
        query = OrderQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = self.get_service().list_orders(request.user, query.validated_data, page, limit)
        return result_response(request, result, OrderSerializer)

    @extend_schema(
        operation_id="orders_retrieve",
        summary="Get order details",
        responses={
            200: OrderSerializer,
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Order not found or not visible"),
        },
        tags=["Marketplace - Orders"],
    )
    def retrieve(self, request, pk=None):
        return result_response(request, self.get_service().get_order(pk, request.user), OrderSerializer)

    @extend_schema(
        operation_id="orders_create",
        summary="Place an order against a listing",
        description="""
        **What it receives:**
        - `listing_id` and `quantity` (positive, at most the available quantity)
        - Optional delivery address, delivery date and notes

        **What it returns:**
        - The order, PENDING with payment PENDING. The quantity is reserved
          on the listing in the same transaction.
        """,
        request=CreateOrderRequestSerializer,
        responses={
            201: OrderSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Quantity not positive"),
            409: OpenApiResponse(
                response=ErrorResponseSerializer, description="Listing not ACTIVE or insufficient quantity"
            ),
        },
        tags=["Marketplace - Orders"],
    )
    def create(self, request):
        serializer = CreateOrderRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = self.get_service().create_order(
            request.user,
            data["listing_id"],
            data["quantity"],
            delivery_address=data.get("delivery_address"),
            delivery_date=data.get("delivery_date"),
            notes=data["notes"],
        )
        return result_response(request, result, OrderSerializer, http_status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="orders_transition",
        summary="Move an order to another status",
        request=TransitionOrderRequestSerializer,
        responses={
            200: OrderSerializer,
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Caller may not make this move"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Transition not allowed"),
        },
        tags=["Marketplace - Orders"],
    )
    @action(detail=True, methods=["post"])
    def transition(self, request, pk=None):
        serializer = TransitionOrderRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = self.get_service().transition_order(
            pk, request.user, data["status"], reason=data["reason"], tracking_number=data["tracking_number"]
        )
        return result_response(request, result, OrderSerializer)

    @extend_schema(
        operation_id="orders_cancel",
        summary="Cancel an order and give its quantity back",
        request=ReasonRequestSerializer,
        responses={200: OrderSerializer, 409: ErrorResponseSerializer},
        tags=["Marketplace - Orders"],
    )
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        serializer = ReasonRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self.get_service().cancel_order(pk, request.user, serializer.validated_data["reason"])
        return result_response(request, result, OrderSerializer)
