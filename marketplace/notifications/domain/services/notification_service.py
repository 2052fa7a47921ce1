"""
NotificationService - user inboxes

Order and shipment workflows drop a notification for the parties they affect
once their own transaction has committed. Users read their own inbox and mark
entries read; tenant admins may post to any user of their tenant.
"""

import logging
from typing import Any, Dict, Iterable, Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from marketplace.domain.exceptions import MarketplaceError, ValidationError
from marketplace.domain.scoping import get_in_tenant
from marketplace.notifications.domain.models import Notification
from marketplace.services.base import (
    BaseService,
    ErrorCodes,
    ServiceResult,
    paginate,
    service_err,
    service_err_from,
    service_ok,
)

logger = logging.getLogger(__name__)

NOTIFICATION_TYPES = tuple(choice for choice, _ in Notification.TYPE_CHOICES)


class NotificationService(BaseService):
    @BaseService.log_performance
    def notify(
        self, user_id, tenant_id, type: str, title: str, message: str, data: Optional[Dict[str, Any]] = None
    ) -> ServiceResult[Notification]:
        """Drop one notification into ``user_id``'s inbox."""
        try:
            with transaction.atomic():
                notification = Notification.objects.create(
                    user_id=user_id,
                    tenant_id=tenant_id,
                    type=type,
                    title=title[:200],
                    message=message,
                    data=data or {},
                )
        except Exception as e:
            return self.internal_error("notify", e)
        return service_ok(notification)

    def notify_many(self, user_ids: Iterable, tenant_id, type: str, title: str, message: str, data=None) -> int:
        """Notify each distinct user once; returns how many notifications were stored."""
        stored = 0
        for user_id in dict.fromkeys(uid for uid in user_ids if uid is not None):
            if self.notify(user_id, tenant_id, type, title, message, data).ok:
                stored += 1
        return stored

    @BaseService.log_performance
    def create_notification(
        self, actor, user_id, type: str, title: str, message: str, data: Optional[Dict[str, Any]] = None
    ) -> ServiceResult[Notification]:
        """
        Post a notification to a user of the actor's tenant.

        Users of other tenants are reported as NOT_FOUND.
        """
        try:
            if type not in NOTIFICATION_TYPES:
                raise ValidationError(
                    f"type must be one of {', '.join(NOTIFICATION_TYPES)}", {"type": ["Invalid choice."]}
                )
            if not title or not message:
                raise ValidationError("title and message are required", {"title": ["Required."]})
            recipient = get_in_tenant(get_user_model().objects.all(), actor, user_id, "User")
        except MarketplaceError as e:
            return service_err_from(e)

        return self.notify(recipient.pk, recipient.tenant_id, type, title, message, data)

    @BaseService.log_performance
    def list_notifications(
        self, actor, unread_only: bool = False, page: int = 1, limit: int = 20
    ) -> ServiceResult[Dict[str, Any]]:
        queryset = Notification.objects.filter(user=actor)
        if unread_only:
            queryset = queryset.filter(is_read=False)
        return service_ok(paginate(queryset.order_by("-created_at"), page, limit))

    def unread_count(self, actor) -> ServiceResult[Dict[str, int]]:
        return service_ok({"unread": Notification.objects.filter(user=actor, is_read=False).count()})

    @BaseService.log_performance
    def mark_read(self, actor, ids: Optional[Iterable] = None, mark_all: bool = False) -> ServiceResult[Dict[str, int]]:
        """
        Mark the actor's notifications as read.

        Either every unread notification (``mark_all``) or the given ids.
        Ids belonging to someone else are skipped, not reported.
        """
        ids = list(ids or [])
        if not mark_all and not ids:
            return service_err(
                ErrorCodes.VALIDATION_ERROR, "Pass ids or mark_all", {"ids": ["Required unless mark_all is set."]}
            )

        queryset = Notification.objects.filter(user=actor, is_read=False)
        if not mark_all:
            queryset = queryset.filter(id__in=ids)
        marked = queryset.update(is_read=True, read_at=timezone.now())
        self.logger.info(f"Marked {marked} notifications read for user {actor.pk}")
        return service_ok({"marked": marked})
