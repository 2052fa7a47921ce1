from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework.views import APIView

from authentication.permissions import require_permissions
from infrastructure.container import container
from marketplace.api.serializers import ErrorResponseSerializer, SuccessResponseSerializer
from utils.api_response import error_response, result_response

ANALYTICS_TYPES = ("overview", "commodities", "stats", "trending", "dashboard")


class AnalyticsAPIView(APIView):
    """
    Tenant dashboards.

    ``?type=`` picks the report:
    - overview: counts per aggregate, revenue, commodity distribution
    - commodities: ACTIVE listings grouped by commodity
    - stats: listing / order totals and average order value
    - trending: commodities with the most ACTIVE listings (``?limit=``, default 10)
    - dashboard: headline numbers with 30-day order growth
    """

    permission_classes = [require_permissions("analytics:read")]

    @extend_schema(
        operation_id="analytics_retrieve",
        summary="Tenant analytics",
        parameters=[
            OpenApiParameter(
                name="type", type=str, enum=list(ANALYTICS_TYPES), description="Report (default: overview)"
            ),
            OpenApiParameter(name="limit", type=int, description="Rows for the trending report (default: 10)"),
        ],
        responses={200: SuccessResponseSerializer, 400: ErrorResponseSerializer},
        tags=["Marketplace - Analytics"],
    )
    def get(self, request):
        report = request.query_params.get("type", "overview")
        service = container.analytics_service()

        if report == "overview":
            result = service.overview(request.user)
        elif report == "commodities":
            result = service.commodity_stats(request.user)
        elif report == "stats":
            result = service.marketplace_stats(request.user)
        elif report == "trending":
            try:
                limit = max(1, min(int(request.query_params.get("limit", 10)), 50))
            except ValueError:
                return error_response(request, "VALIDATION_ERROR", "limit must be an integer", {"limit": ["Invalid."]})
            result = service.trending_commodities(request.user, limit)
        elif report == "dashboard":
            result = service.dashboard_stats(request.user)
        else:
            return error_response(
                request,
                "VALIDATION_ERROR",
                f"type must be one of {', '.join(ANALYTICS_TYPES)}",
                {"type": ["Invalid choice."]},
            )

        return result_response(request, result)
