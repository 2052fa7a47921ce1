from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action

from infrastructure.container import container
from marketplace.api.serializers import ErrorResponseSerializer
from marketplace.notifications.api.serializers.notification_serializers import (
    CreateNotificationRequestSerializer,
    MarkReadRequestSerializer,
    MarkReadResponseSerializer,
    NotificationQuerySerializer,
    NotificationSerializer,
    UnreadCountResponseSerializer,
)
from marketplace.permissions import ActionPermissionsMixin
from marketplace.services import NotificationService
from utils.api_response import parse_pagination, result_response


class NotificationViewSet(ActionPermissionsMixin, viewsets.ViewSet):
    """The caller's own inbox. Posting to other users is for tenant admins."""

    action_permissions = {
        "create": ("notifications:create",),
    }

    def get_service(self) -> NotificationService:
        return container.notification_service()

    @extend_schema(
        operation_id="notifications_list",
        parameters=[
            NotificationQuerySerializer,
            OpenApiParameter(name="page", type=int),
            OpenApiParameter(name="limit", type=int),
        ],
        responses={200: NotificationSerializer(many=True)},
        tags=["Marketplace - Notifications"],
    )
    def list(self, request):
        page, limit = parse_pagination(request)
        query = NotificationQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = self.get_service().list_notifications(request.user, query.validated_data["unread"], page, limit)
        return result_response(request, result, NotificationSerializer)

    @extend_schema(
        operation_id="notifications_create",
        summary="Post a notification to a user of the tenant",
        request=CreateNotificationRequestSerializer,
        responses={
            201: NotificationSerializer,
            404: OpenApiResponse(response=ErrorResponseSerializer, description="No such user in the tenant"),
        },
        tags=["Marketplace - Notifications"],
    )
    def create(self, request):
        serializer = CreateNotificationRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = self.get_service().create_notification(
            request.user, data["user_id"], data["type"], data["title"], data["message"], data["data"]
        )
        return result_response(request, result, NotificationSerializer, http_status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="notifications_mark_read",
        summary="Mark notifications as read",
        description="Pass `ids`, or `mark_all: true` for every unread notification of the caller.",
        request=MarkReadRequestSerializer,
        responses={200: MarkReadResponseSerializer, 400: ErrorResponseSerializer},
        tags=["Marketplace - Notifications"],
    )
    @action(detail=False, methods=["post"], url_path="read")
    def mark_read(self, request):
        serializer = MarkReadRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        return result_response(request, self.get_service().mark_read(request.user, data["ids"], data["mark_all"]))

    @extend_schema(
        operation_id="notifications_unread_count",
        responses={200: UnreadCountResponseSerializer},
        tags=["Marketplace - Notifications"],
    )
    @action(detail=False, methods=["get"], url_path="unread-count")
    def unread_count(self, request):
        return result_response(request, self.get_service().unread_count(request.user))
