from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets

from infrastructure.container import container
from marketplace.api.serializers import ErrorResponseSerializer
from marketplace.catalog.api.serializers.commodity_serializers import (
    CommodityCreateSerializer,
    CommodityQuerySerializer,
    CommoditySerializer,
)
from marketplace.permissions import ActionPermissionsMixin
from marketplace.services import CommodityService
from utils.api_response import result_response


class CommodityViewSet(ActionPermissionsMixin, viewsets.ViewSet):
    """Platform-wide commodity catalogue."""

    def get_service(self) -> CommodityService:
        return container.commodity_service()

    @extend_schema(
        operation_id="commodities_list",
        summary="List commodities",
        parameters=[CommodityQuerySerializer],
        responses={200: CommoditySerializer(many=True)},
        tags=["Marketplace - Commodities"],
    )
    def list(self, request):
        query = CommodityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = self.get_service().list_commodities(
            category=query.validated_data.get("category"),
            search=query.validated_data.get("search"),
            include_inactive=query.validated_data["include_inactive"],
        )
        return result_response(request, result, CommoditySerializer)

    @extend_schema(
        operation_id="commodities_create",
        summary="Add a commodity (administrators)",
        request=CommodityCreateSerializer,
        responses={
            201: CommoditySerializer,
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not an administrator"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Name already taken"),
        },
        tags=["Marketplace - Commodities"],
    )
    def create(self, request):
        serializer = CommodityCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self.get_service().create_commodity(request.user, serializer.validated_data)
        return result_response(request, result, CommoditySerializer, http_status=status.HTTP_201_CREATED)
