"""
ListingService - Listing Store

Owns the listing lifecycle:

    DRAFT --publish--> PENDING_VALIDATION --approve--> ACTIVE --(sold out)--> SOLD
      \\                      \\--reject--> CANCELLED          /
       \\---------------------deactivate------------------> CANCELLED

Quantity reservation for orders lives in OrderService; this service only moves
``quantity`` when the producer edits the lot, and then shifts
``listed_quantity`` by the same amount.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from authentication.infra.observability.tracing import add_span_attributes, tracer
from marketplace.catalog.domain.models import Commodity, Listing
from marketplace.domain.exceptions import (
    ForbiddenError,
    InvalidStateError,
    MarketplaceError,
    NotFoundError,
    ValidationError,
)
from marketplace.domain.scoping import get_in_tenant, is_tenant_staff, owns_producer, producer_profile, scope_to_tenant
from marketplace.infra.observability.metrics import listing_events_total
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

logger = logging.getLogger(__name__)

SORT_FIELDS = ("created_at", "price_per_unit", "quantity", "total_price")

UPDATABLE_FIELDS = (
    "title",
    "description",
    "quantity",
    "price_per_unit",
    "quality_grade",
    "harvest_date",
    "available_from",
    "expires_at",
    "location",
    "images",
    "visibility",
    "metadata",
)


class ListingService(BaseService):
    """
    Service for producer listings.

    Responsibilities:
    - Create and edit listings (owning producer or tenant staff)
    - Drive the status lifecycle (publish, approve, reject, deactivate, sold)
    - Browse listings with filters, sorting and pagination

    ``apply_*`` methods work on a listing already locked by the caller and
    raise MarketplaceError; ValidationService uses them inside its own
    transaction. Everything else returns ServiceResult.
    """

    # ----- helpers -----

    def _can_manage(self, actor, listing: Listing) -> bool:
        return is_tenant_staff(actor) or owns_producer(actor, listing.producer_id)

    def _lock_for_manage(self, actor, listing_id) -> Listing:
        listing = get_in_tenant(Listing.objects.select_for_update(), actor, listing_id, "Listing")
        if not self._can_manage(actor, listing):
            raise ForbiddenError("Only the listing producer or tenant staff can change this listing")
        return listing

    def _resolve_producer(self, actor, producer_id=None) -> Producer:
        if producer_id and is_tenant_staff(actor):
            return get_in_tenant(Producer.objects.all(), actor, producer_id, "Producer")

        profile = producer_profile(actor)
        if profile is None:
            if is_tenant_staff(actor):
                raise ValidationError("producer_id is required", {"producer_id": ["This field is required."]})
            raise ForbiddenError("Only producers can create listings")
        if producer_id and str(producer_id) != str(profile.pk):
            raise ForbiddenError("Producers can only list on their own behalf")
        return profile

    # ----- commands -----

    @BaseService.log_performance
    def create_listing(self, actor, data: Dict[str, Any]) -> ServiceResult[Listing]:
        """
        Create a DRAFT listing.

        Args:
            actor: Producer user, or tenant staff passing ``producer_id``
            data: Validated listing fields (commodity_id, title, quantity,
                price_per_unit, ...)

        Returns:
            ServiceResult with the new Listing
        """
        try:
            quantity = Decimal(data["quantity"])
            price = Decimal(data["price_per_unit"])
            if quantity <= 0:
                raise ValidationError("Quantity must be greater than 0", {"quantity": ["Must be greater than 0."]})
            if price <= 0:
                raise ValidationError(
                    "Price per unit must be greater than 0", {"price_per_unit": ["Must be greater than 0."]}
                )

            producer = self._resolve_producer(actor, data.get("producer_id"))
            if producer.tenant_id != actor.tenant_id and not is_tenant_staff(actor):
                raise ForbiddenError("Producer does not belong to this tenant")
            if producer.verification_status == Producer.STATUS_REJECTED:
                raise InvalidStateError(f"Producer {producer.economic_id} is rejected and cannot list")

            try:
                commodity = Commodity.objects.get(pk=data["commodity_id"], is_active=True)
            except (Commodity.DoesNotExist, ValueError):
                raise NotFoundError(f"Commodity {data['commodity_id']} not found")

            listing = Listing(
                tenant_id=producer.tenant_id,
                producer=producer,
                commodity=commodity,
                title=data["title"],
                description=data.get("description", ""),
                quantity=quantity,
                listed_quantity=quantity,
                unit=data.get("unit") or commodity.unit,
                price_per_unit=price,
                currency=(data.get("currency") or producer.tenant.currency).upper(),
                quality_grade=data.get("quality_grade", ""),
                harvest_date=data.get("harvest_date"),
                available_from=data.get("available_from"),
                expires_at=data.get("expires_at"),
                location=data.get("location") or {},
                images=data.get("images") or [],
                visibility=data.get("visibility") or "PUBLIC",
                metadata=data.get("metadata") or {},
                status=Listing.STATUS_DRAFT,
            )
            listing.recompute_total_price()
            listing.save()

            listing_events_total.labels(event="created").inc()
            self.logger.info(
                f"Created listing {listing.id} for producer {producer.id}: "
                f"{listing.quantity} {listing.unit} @ {listing.price_per_unit} {listing.currency}"
            )
            return service_ok(listing)

        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("create_listing", e)

    @BaseService.log_performance
    def update_listing(self, actor, listing_id, data: Dict[str, Any]) -> ServiceResult[Listing]:
        """
        Edit a DRAFT, PENDING_VALIDATION or ACTIVE listing.

        A quantity edit moves ``listed_quantity`` by the same delta so that
        outstanding orders stay accounted for. ``total_price`` is recomputed
        from the post-update quantity and price whenever either changes.
        """
        unknown = set(data) - set(UPDATABLE_FIELDS)
        if unknown:
            return service_err(
                ErrorCodes.VALIDATION_ERROR,
                f"Fields cannot be updated: {', '.join(sorted(unknown))}",
                {field: ["This field cannot be updated."] for field in sorted(unknown)},
            )

        try:
            with transaction.atomic():
                listing = self._lock_for_manage(actor, listing_id)

                if listing.status not in Listing.EDITABLE_STATUSES:
                    raise InvalidStateError(f"Cannot edit a listing in status {listing.status}")

                update_fields = ["updated_at"]
                reprice = False

                if "quantity" in data:
                    new_quantity = Decimal(data["quantity"])
                    if new_quantity < 0:
                        raise ValidationError("Quantity cannot be negative", {"quantity": ["Must be 0 or more."]})
                    delta = new_quantity - listing.quantity
                    listing.quantity = new_quantity
                    listing.listed_quantity = listing.listed_quantity + delta
                    update_fields += ["quantity", "listed_quantity"]
                    reprice = True

                if "price_per_unit" in data:
                    new_price = Decimal(data["price_per_unit"])
                    if new_price <= 0:
                        raise ValidationError(
                            "Price per unit must be greater than 0", {"price_per_unit": ["Must be greater than 0."]}
                        )
                    listing.price_per_unit = new_price
                    update_fields.append("price_per_unit")
                    reprice = True

                for field in UPDATABLE_FIELDS:
                    if field in data and field not in ("quantity", "price_per_unit"):
                        setattr(listing, field, data[field])
                        update_fields.append(field)

                if reprice:
                    listing.recompute_total_price()
                    update_fields.append("total_price")

                listing.save(update_fields=update_fields)

            listing_events_total.labels(event="updated").inc()
            self.logger.info(f"Updated listing {listing.id}: {', '.join(sorted(data))}")
            return service_ok(listing)

        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("update_listing", e)

    @BaseService.log_performance
    def publish_listing(self, actor, listing_id) -> ServiceResult[Listing]:
        """DRAFT -> PENDING_VALIDATION. Anything else is INVALID_STATE."""
        try:
            with tracer.start_as_current_span("listing.publish") as span:
                add_span_attributes(span, listing_id=listing_id)
                with transaction.atomic():
                    listing = self._lock_for_manage(actor, listing_id)
                    if listing.status != Listing.STATUS_DRAFT:
                        raise InvalidStateError(
                            f"Only DRAFT listings can be published (listing is {listing.status})",
                            {"status": listing.status},
                        )
                    listing.status = Listing.STATUS_PENDING_VALIDATION
                    listing.published_at = timezone.now()
                    listing.save(update_fields=["status", "published_at", "updated_at"])

            listing_events_total.labels(event="published").inc()
            self.logger.info(f"Published listing {listing.id}")
            return service_ok(listing)

        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("publish_listing", e)

    def apply_approval(
        self, listing: Listing, quality_score: Optional[Decimal] = None, quality_grade: Optional[str] = None
    ) -> Listing:
        """
        PENDING_VALIDATION -> ACTIVE on a locked listing.

        Raises:
            InvalidStateError
        """
        if listing.status != Listing.STATUS_PENDING_VALIDATION:
            raise InvalidStateError(
                f"Only listings pending validation can be approved (listing is {listing.status})",
                {"status": listing.status},
            )
        listing.status = Listing.STATUS_ACTIVE
        update_fields = ["status", "updated_at"]
        if quality_score is not None:
            listing.quality_score = quality_score
            update_fields.append("quality_score")
        if quality_grade:
            listing.quality_grade = quality_grade
            update_fields.append("quality_grade")
        listing.save(update_fields=update_fields)
        listing_events_total.labels(event="approved").inc()
        return listing

    def apply_rejection(self, listing: Listing, reason: str = "") -> Listing:
        """
        PENDING_VALIDATION -> CANCELLED on a locked listing.

        Raises:
            InvalidStateError
        """
        if listing.status != Listing.STATUS_PENDING_VALIDATION:
            raise InvalidStateError(
                f"Only listings pending validation can be rejected (listing is {listing.status})",
                {"status": listing.status},
            )
        listing.status = Listing.STATUS_CANCELLED
        listing.rejection_reason = reason
        listing.save(update_fields=["status", "rejection_reason", "updated_at"])
        listing_events_total.labels(event="rejected").inc()
        return listing

    @BaseService.log_performance
    def approve_listing(
        self, listing_id, quality_score: Optional[Decimal] = None, quality_grade: Optional[str] = None
    ) -> ServiceResult[Listing]:
        try:
            with transaction.atomic():
                listing = Listing.objects.select_for_update().get(pk=listing_id)
                self.apply_approval(listing, quality_score, quality_grade)
            self.logger.info(f"Approved listing {listing.id}")
            return service_ok(listing)
        except Listing.DoesNotExist:
            return service_err(ErrorCodes.NOT_FOUND, f"Listing {listing_id} not found")
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("approve_listing", e)

    @BaseService.log_performance
    def reject_listing(self, listing_id, reason: str = "") -> ServiceResult[Listing]:
        try:
            with transaction.atomic():
                listing = Listing.objects.select_for_update().get(pk=listing_id)
                self.apply_rejection(listing, reason)
            self.logger.info(f"Rejected listing {listing.id}: {reason}")
            return service_ok(listing)
        except Listing.DoesNotExist:
            return service_err(ErrorCodes.NOT_FOUND, f"Listing {listing_id} not found")
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("reject_listing", e)

    @BaseService.log_performance
    def deactivate_listing(self, actor, listing_id) -> ServiceResult[Listing]:
        """DRAFT / PENDING_VALIDATION / ACTIVE -> CANCELLED."""
        try:
            with transaction.atomic():
                listing = self._lock_for_manage(actor, listing_id)
                if listing.status not in Listing.EDITABLE_STATUSES:
                    raise InvalidStateError(
                        f"Cannot deactivate a listing in status {listing.status}", {"status": listing.status}
                    )
                listing.status = Listing.STATUS_CANCELLED
                listing.save(update_fields=["status", "updated_at"])

            listing_events_total.labels(event="deactivated").inc()
            self.logger.info(f"Deactivated listing {listing.id}")
            return service_ok(listing)

        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("deactivate_listing", e)

    @BaseService.log_performance
    def mark_sold(self, listing_id) -> ServiceResult[Listing]:
        """ACTIVE with nothing left -> SOLD."""
        try:
            updated = Listing.objects.filter(
                pk=listing_id, status=Listing.STATUS_ACTIVE, quantity=Decimal("0")
            ).update(status=Listing.STATUS_SOLD, updated_at=timezone.now())
            listing = Listing.objects.get(pk=listing_id)
            if not updated:
                return service_err(
                    ErrorCodes.INVALID_STATE,
                    f"Listing {listing_id} is {listing.status} with {listing.quantity} remaining",
                    {"status": listing.status},
                )
            listing_events_total.labels(event="sold").inc()
            return service_ok(listing)
        except Listing.DoesNotExist:
            return service_err(ErrorCodes.NOT_FOUND, f"Listing {listing_id} not found")
        except Exception as e:
            return self.internal_error("mark_sold", e)

    # ----- queries -----

    def _visible_to(self, actor, queryset):
        if is_tenant_staff(actor):
            return queryset
        public = Q(visibility="PUBLIC") & ~Q(status=Listing.STATUS_DRAFT)
        profile = producer_profile(actor)
        if profile is not None:
            return queryset.filter(public | Q(producer=profile))
        return queryset.filter(public)

    @BaseService.log_performance
    def get_listing(self, actor, listing_id) -> ServiceResult[Listing]:
        try:
            queryset = self._visible_to(actor, Listing.objects.select_related("producer", "commodity"))
            return service_ok(get_in_tenant(queryset, actor, listing_id, "Listing"))
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("get_listing", e)

    @BaseService.log_performance
    def list_listings(
        self, actor, filters: Optional[Dict[str, Any]] = None, page: int = 1, limit: int = 20
    ) -> ServiceResult[Dict[str, Any]]:
        """
        Browse listings.

        Filters: status (default ACTIVE), commodity, producer, category,
        min_price, max_price, search, sort_by, sort_order ("asc" | "desc").
        """
        filters = filters or {}
        sort_by = filters.get("sort_by") or "created_at"
        if sort_by not in SORT_FIELDS:
            return service_err(
                ErrorCodes.VALIDATION_ERROR,
                f"sort_by must be one of {', '.join(SORT_FIELDS)}",
                {"sort_by": [f"Unsupported value '{sort_by}'."]},
            )

        try:
            queryset = scope_to_tenant(Listing.objects.select_related("producer", "commodity"), actor)
            queryset = self._visible_to(actor, queryset)

            queryset = queryset.filter(status=filters.get("status") or Listing.STATUS_ACTIVE)
            if filters.get("commodity"):
                queryset = queryset.filter(commodity_id=filters["commodity"])
            if filters.get("producer"):
                queryset = queryset.filter(producer_id=filters["producer"])
            if filters.get("category"):
                queryset = queryset.filter(commodity__category=filters["category"])
            if filters.get("min_price") is not None:
                queryset = queryset.filter(price_per_unit__gte=filters["min_price"])
            if filters.get("max_price") is not None:
                queryset = queryset.filter(price_per_unit__lte=filters["max_price"])
            if filters.get("search"):
                term = filters["search"]
                queryset = queryset.filter(
                    Q(title__icontains=term) | Q(description__icontains=term) | Q(commodity__name__icontains=term)
                )

            prefix = "" if filters.get("sort_order") == "asc" else "-"
            queryset = queryset.order_by(f"{prefix}{sort_by}", "-id")

            return service_ok(paginate(queryset, page, limit))

        except Exception as e:
            return self.internal_error("list_listings", e)
