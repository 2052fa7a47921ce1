"""
ProducerService - producer registry

Producers are the sellers of the marketplace: farmers, miners, artisans,
cooperatives and environmental projects. Each one is bound to exactly one user
account and carries an economic id issued on registration.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q, Sum
from django.utils import timezone

from marketplace.catalog.domain.models import Listing
from marketplace.domain.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    MarketplaceError,
    NotFoundError,
    ValidationError,
)
from marketplace.domain.money import quantize_money
from marketplace.domain.scoping import get_in_tenant, is_tenant_staff, owns_producer, producer_profile, scope_to_tenant
from marketplace.ordering.domain.models import Order
from marketplace.producers.domain.models import Producer
from marketplace.services.base import (
    BaseService,
    ErrorCodes,
    ServiceResult,
    paginate,
    service_err,
    service_err_from,
    service_ok,
)

User = get_user_model()
logger = logging.getLogger(__name__)

PROFILE_FIELDS = (
    "type",
    "name",
    "legal_name",
    "tax_id",
    "phone",
    "email",
    "address",
    "country",
    "location",
    "govt_ids",
    "documents",
    "bank_account",
    "metadata",
)

RATING_MIN = Decimal("0")
RATING_MAX = Decimal("10")


class ProducerService(BaseService):
    """
    Service for producer profiles.

    Responsibilities:
    - Register a producer for a user (one profile per user)
    - Profile edits by the producer or tenant staff
    - Verification workflow (PENDING -> VERIFIED | REJECTED)
    - Ratings and the producer dashboard
    """

    def __init__(self, identifiers=None):
        super().__init__()
        if identifiers is None:
            from marketplace.domain.services.identifier_service import IdentifierService

            identifiers = IdentifierService()
        self.identifiers = identifiers

    def _lock(self, actor, producer_id) -> Producer:
        return get_in_tenant(Producer.objects.select_for_update(), actor, producer_id, "Producer")

    @BaseService.log_performance
    def register_producer(self, actor, data: Dict[str, Any]) -> ServiceResult[Producer]:
        """
        Register a producer profile.

        Producers register themselves; tenant staff may register on behalf of
        another user of the tenant with ``user_id``.
        """
        try:
            user = actor
            if data.get("user_id") and str(data["user_id"]) != str(actor.pk):
                if not is_tenant_staff(actor):
                    raise ForbiddenError("Only tenant staff can register producers for other users")
                user = get_in_tenant(User.objects.all(), actor, data["user_id"], "User")

            if user.tenant_id is None:
                raise ValidationError("Producer accounts must belong to a tenant")
            if not data.get("type") or not data.get("name"):
                raise ValidationError(
                    "type and name are required",
                    {key: ["This field is required."] for key in ("type", "name") if not data.get(key)},
                )

            with transaction.atomic():
                if Producer.objects.select_for_update().filter(user=user).exists():
                    raise ConflictError(f"User {user.pk} already has a producer profile")

                tenant = user.tenant
                country = (data.get("country") or tenant.country).upper()
                producer = Producer(
                    tenant=tenant,
                    user=user,
                    economic_id=self.identifiers.next_economic_id(tenant, country),
                    verification_status=Producer.STATUS_PENDING,
                )
                for field in PROFILE_FIELDS:
                    if field in data and data[field] is not None:
                        setattr(producer, field, data[field])
                producer.country = country
                producer.save()

            self.logger.info(f"Registered producer {producer.economic_id} for user {user.pk}")
            return service_ok(producer)

        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("register_producer", e)

    @BaseService.log_performance
    def get_producer(self, actor, producer_id) -> ServiceResult[Producer]:
        try:
            return service_ok(get_in_tenant(Producer.objects.select_related("user"), actor, producer_id, "Producer"))
        except MarketplaceError as e:
            return service_err_from(e)

    @BaseService.log_performance
    def get_by_economic_id(self, actor, economic_id: str) -> ServiceResult[Producer]:
        producer = scope_to_tenant(Producer.objects.all(), actor).filter(economic_id=economic_id).first()
        if producer is None:
            return service_err(ErrorCodes.NOT_FOUND, f"Producer {economic_id} not found")
        return service_ok(producer)

    @BaseService.log_performance
    def list_producers(
        self, actor, filters: Optional[Dict[str, Any]] = None, page: int = 1, limit: int = 20
    ) -> ServiceResult[Dict[str, Any]]:
        filters = filters or {}
        try:
            queryset = scope_to_tenant(Producer.objects.all(), actor)
            if filters.get("type"):
                queryset = queryset.filter(type=filters["type"])
            if filters.get("verification_status"):
                queryset = queryset.filter(verification_status=filters["verification_status"])
            if filters.get("search"):
                term = filters["search"]
                queryset = queryset.filter(
                    Q(name__icontains=term) | Q(legal_name__icontains=term) | Q(economic_id__icontains=term)
                )
            return service_ok(paginate(queryset.order_by("-created_at"), page, limit))
        except Exception as e:
            return self.internal_error("list_producers", e)

    @BaseService.log_performance
    def update_producer(self, actor, producer_id, data: Dict[str, Any]) -> ServiceResult[Producer]:
        """Edit profile fields. Economic id and verification fields are not editable here."""
        blocked = set(data) - set(PROFILE_FIELDS)
        if blocked:
            return service_err(
                ErrorCodes.VALIDATION_ERROR,
                f"Fields cannot be updated: {', '.join(sorted(blocked))}",
                {field: ["This field cannot be updated."] for field in sorted(blocked)},
            )
        try:
            with transaction.atomic():
                producer = self._lock(actor, producer_id)
                if not (is_tenant_staff(actor) or producer.user_id == actor.pk):
                    raise ForbiddenError("Only the producer or tenant staff can edit this profile")
                for field, value in data.items():
                    setattr(producer, field, value.upper() if field == "country" else value)
                producer.save(update_fields=[*data.keys(), "updated_at"])
            return service_ok(producer)
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("update_producer", e)

    def _decide(self, actor, producer_id, target: str, reason: str = "") -> ServiceResult[Producer]:
        try:
            if not is_tenant_staff(actor):
                raise ForbiddenError("Only tenant staff can verify producers")
            with transaction.atomic():
                producer = self._lock(actor, producer_id)
                if producer.verification_status != Producer.STATUS_PENDING:
                    raise InvalidStateError(
                        f"Producer {producer.economic_id} is already {producer.verification_status}",
                        {"status": producer.verification_status},
                    )
                producer.verification_status = target
                if target == Producer.STATUS_VERIFIED:
                    producer.verified_at = timezone.now()
                    producer.verified_by = actor
                else:
                    producer.rejection_reason = reason
                producer.save()

            self.logger.info(f"Producer {producer.economic_id} -> {target} by {actor.pk}")
            return service_ok(producer)
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error(f"producer {target.lower()}", e)

    @BaseService.log_performance
    def verify_producer(self, actor, producer_id) -> ServiceResult[Producer]:
        return self._decide(actor, producer_id, Producer.STATUS_VERIFIED)

    @BaseService.log_performance
    def reject_producer(self, actor, producer_id, reason: str = "") -> ServiceResult[Producer]:
        return self._decide(actor, producer_id, Producer.STATUS_REJECTED, reason)

    @BaseService.log_performance
    def rate_producer(self, actor, producer_id, score) -> ServiceResult[Producer]:
        """Fold ``score`` (0-10) into the running average."""
        score = Decimal(str(score))
        if not RATING_MIN <= score <= RATING_MAX:
            return service_err(
                ErrorCodes.VALIDATION_ERROR, "Score must be between 0 and 10", {"score": ["Must be between 0 and 10."]}
            )
        try:
            with transaction.atomic():
                producer = self._lock(actor, producer_id)
                if producer.user_id == actor.pk:
                    raise ForbiddenError("Producers cannot rate themselves")
                total = producer.rating * producer.rating_count + score
                producer.rating_count += 1
                producer.rating = quantize_money(total / producer.rating_count)
                producer.save(update_fields=["rating", "rating_count", "updated_at"])
            return service_ok(producer)
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("rate_producer", e)

    @BaseService.log_performance
    def producer_dashboard(self, actor, producer_id=None) -> ServiceResult[Dict[str, Any]]:
        """
        Stats and recent activity for one producer.

        Defaults to the actor's own producer profile.
        """
        try:
            if producer_id is None:
                producer = producer_profile(actor)
                if producer is None:
                    raise NotFoundError("No producer profile for this user")
            else:
                producer = get_in_tenant(Producer.objects.all(), actor, producer_id, "Producer")
                if not (is_tenant_staff(actor) or owns_producer(actor, producer.pk)):
                    raise ForbiddenError("Only the producer or tenant staff can view this dashboard")

            listings = Listing.objects.filter(producer=producer)
            orders = Order.objects.filter(listing__producer=producer)
            revenue = orders.filter(status=Order.STATUS_COMPLETED).aggregate(total=Sum("total_price"))["total"]

            return service_ok(
                {
                    "producer": producer,
                    "stats": {
                        "totalListings": listings.count(),
                        "activeListings": listings.filter(status=Listing.STATUS_ACTIVE).count(),
                        "totalOrders": orders.count(),
                        "totalRevenue": str(quantize_money(revenue or 0)),
                        "avgRating": str(producer.rating),
                    },
                    "recentListings": list(listings.order_by("-created_at")[:5]),
                    "recentOrders": list(orders.select_related("listing").order_by("-created_at")[:5]),
                }
            )
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("producer_dashboard", e)
