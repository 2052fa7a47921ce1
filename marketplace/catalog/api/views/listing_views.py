from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action

from infrastructure.container import container
from marketplace.api.serializers import ErrorResponseSerializer
from marketplace.catalog.api.serializers.listing_serializers import (
    ListingCreateSerializer,
    ListingQuerySerializer,
    ListingSerializer,
    ListingUpdateSerializer,
)
from marketplace.permissions import ActionPermissionsMixin
from marketplace.services import ListingService
from utils.api_response import parse_pagination, result_response


class ListingViewSet(ActionPermissionsMixin, viewsets.ViewSet):
    action_permissions = {
        "list": ("listings:read",),
        "retrieve": ("listings:read",),
        "create": ("listings:create",),
        "partial_update": ("listings:update",),
        "publish": ("listings:update",),
        "deactivate": ("listings:update", "listings:delete"),
    }

    def get_service(self) -> ListingService:
        return container.listing_service()

    @extend_schema(
        operation_id="listings_list",
        summary="Browse listings",
        description="""
        **What it receives:**
        - Optional filters: status (default ACTIVE), commodity, producer, category,
          min_price / max_price, search
        - Sorting: sort_by (created_at, price_per_unit, quantity, total_price), sort_order (asc / desc)
        - Pagination: page, limit

        **What it returns:**
        - Listings of the caller's tenant; private listings only for their producer and staff
        """,
        parameters=[
            ListingQuerySerializer,
            OpenApiParameter(name="page", type=int),
            OpenApiParameter(name="limit", type=int),
        ],
        responses={200: ListingSerializer(many=True), 400: ErrorResponseSerializer},
        tags=["Marketplace - Listings"],
    )
    def list(self, request):
        page, limit = parse_pagination(request)
        query = ListingQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = self.get_service().list_listings(request.user, query.validated_data, page, limit)
        return result_response(request, result, ListingSerializer)

    @extend_schema(
        operation_id="listings_create",
        summary="Create a DRAFT listing",
        request=ListingCreateSerializer,
        responses={
            201: ListingSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Quantity or price not positive"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Caller is not a producer"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Unknown commodity"),
        },
        tags=["Marketplace - Listings"],
    )
    def create(self, request):
        serializer = ListingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self.get_service().create_listing(request.user, serializer.validated_data)
        return result_response(request, result, ListingSerializer, http_status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="listings_retrieve",
        responses={200: ListingSerializer},
        tags=["Marketplace - Listings"],
    )
    def retrieve(self, request, pk=None):
        return result_response(request, self.get_service().get_listing(request.user, pk), ListingSerializer)

    @extend_schema(
        operation_id="listings_partial_update",
        summary="Edit a listing",
        description="Quantity edits move the listed quantity by the same delta; total price is recomputed.",
        request=ListingUpdateSerializer,
        responses={200: ListingSerializer, 409: ErrorResponseSerializer},
        tags=["Marketplace - Listings"],
    )
    def partial_update(self, request, pk=None):
        serializer = ListingUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        # Unknown keys go through so the service can reject them by name
        data.update({key: request.data[key] for key in set(request.data) - set(serializer.fields)})
        result = self.get_service().update_listing(request.user, pk, data)
        return result_response(request, result, ListingSerializer)

    @extend_schema(
        operation_id="listings_publish",
        summary="Submit a DRAFT listing for validation",
        request=None,
        responses={200: ListingSerializer, 409: ErrorResponseSerializer},
        tags=["Marketplace - Listings"],
    )
    @action(detail=True, methods=["post"])
    def publish(self, request, pk=None):
        return result_response(request, self.get_service().publish_listing(request.user, pk), ListingSerializer)

    @extend_schema(
        operation_id="listings_deactivate",
        request=None,
        responses={200: ListingSerializer, 409: ErrorResponseSerializer},
        tags=["Marketplace - Listings"],
    )
    @action(detail=True, methods=["post"])
    def deactivate(self, request, pk=None):
        return result_response(request, self.get_service().deactivate_listing(request.user, pk), ListingSerializer)
