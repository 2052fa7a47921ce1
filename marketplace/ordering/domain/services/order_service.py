"""
OrderService - Order Workflow

Places orders against listings, drives the order state machine and keeps the
listing quantity in step with it. For every listing

    listing.quantity + sum(quantity of orders not CANCELLED) == listing.listed_quantity

Placing an order reserves quantity with a single conditional UPDATE, so two
buyers racing for the last units cannot both succeed. Cancelling gives the
quantity back with an F() increment.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import F, Q
from django.utils import timezone

from authentication.infra.observability.tracing import add_span_attributes, tracer
from marketplace.catalog.domain.models import Listing
from marketplace.domain.exceptions import (
    ForbiddenError,
    InsufficientQuantityError,
    InvalidStateError,
    MarketplaceError,
    NotFoundError,
)
from marketplace.domain.money import fits_quantity_scale, quantize_money
from marketplace.domain.scoping import get_in_tenant, is_tenant_staff, owns_producer, producer_profile, scope_to_tenant
from marketplace.infra.observability.metrics import (
    order_transitions_total,
    order_value,
    orders_placed_total,
    quantity_reservation_failures,
)
from marketplace.notifications.domain.models import Notification
from marketplace.ordering.domain.models import Order
from marketplace.services.base import (
    BaseService,
    ErrorCodes,
    ServiceResult,
    paginate,
    service_err,
    service_err_from,
    service_ok,
)
from utils.rbac import ROLE_AUDITOR, ROLE_BROKER, ROLE_FINANCE, ROLE_TENANT_ADMIN, has_any_role, is_super_admin
from utils.transaction_utils import retry_on_deadlock

from .state_machine import TIMESTAMP_FIELDS, check_transition

logger = logging.getLogger(__name__)

# Roles that read every order of their tenant, not just their own
TENANT_WIDE_READERS = (ROLE_TENANT_ADMIN, ROLE_BROKER, ROLE_FINANCE, ROLE_AUDITOR)

PRODUCER_TARGETS = (
    Order.STATUS_CONFIRMED,
    Order.STATUS_PROCESSING,
    Order.STATUS_SHIPPED,
    Order.STATUS_DELIVERED,
)


class OrderService(BaseService):
    """
    Service for the order workflow.

    Responsibilities:
    - Place orders (atomic quantity reservation + order number + insert)
    - Validate and apply status transitions with their side effects
    - Cancel orders (quantity release)
    - Scope order reads to buyer, listing producer and tenant operators

    State Machine:
    PENDING -> CONFIRMED -> PROCESSING -> SHIPPED -> DELIVERED -> COMPLETED
       \\_________\\______________\\-> CANCELLED            \\-> REFUNDED
    """

    def __init__(self, identifiers=None, listings=None, notifications=None):
        """
        Args:
            identifiers: IdentifierService issuing order numbers (injected)
            listings: ListingService owning listing status changes (injected)
            notifications: NotificationService telling buyer and producer (injected)
        """
        super().__init__()
        if identifiers is None:
            from marketplace.domain.services.identifier_service import IdentifierService

            identifiers = IdentifierService()
        if listings is None:
            from marketplace.catalog.domain.services.listing_service import ListingService

            listings = ListingService()
        if notifications is None:
            from marketplace.notifications.domain.services.notification_service import NotificationService

            notifications = NotificationService()
        self.identifiers = identifiers
        self.listings = listings
        self.notifications = notifications

    # ----- placement -----

    @BaseService.log_performance
    def create_order(
        self,
        buyer,
        listing_id,
        quantity,
        delivery_address: Optional[Dict[str, Any]] = None,
        delivery_date=None,
        notes: str = "",
    ) -> ServiceResult[Order]:
        """
        Place an order for ``quantity`` units of a listing.

        Workflow:
        1. Validate quantity, listing visibility, status and availability
        2. Reserve quantity with a conditional UPDATE (zero rows = lost the race)
        3. Allocate the order number
        4. Insert the order PENDING / payment PENDING

        Steps 2-4 share one transaction; any failure rolls the reservation back.

        Example:
            >>> result = order_service.create_order(buyer, listing.id, Decimal("100"))
            >>> result.value.total_price
            Decimal('250.00')
        """
        try:
            quantity = Decimal(str(quantity))
        except (InvalidOperation, ValueError, TypeError):
            return service_err(ErrorCodes.VALIDATION_ERROR, "Quantity must be a number", {"quantity": ["Invalid."]})
        if not quantity.is_finite() or quantity <= 0:
            return service_err(
                ErrorCodes.VALIDATION_ERROR,
                "Quantity must be greater than 0",
                {"quantity": ["Must be greater than 0."]},
            )
        if not fits_quantity_scale(quantity):
            return service_err(
                ErrorCodes.VALIDATION_ERROR,
                "Quantity has more than 3 decimal places",
                {"quantity": ["Ensure that there are no more than 3 decimal places."]},
            )

        with tracer.start_as_current_span("order.create") as span:
            add_span_attributes(span, listing_id=listing_id, quantity=quantity, buyer_id=buyer.pk)
            try:
                listing = get_in_tenant(Listing.objects.select_related("tenant"), buyer, listing_id, "Listing")

                if owns_producer(buyer, listing.producer_id):
                    raise ForbiddenError("Producers cannot order from their own listings")
                if listing.status != Listing.STATUS_ACTIVE:
                    raise InvalidStateError(
                        f"Listing {listing.id} is not available for ordering (status {listing.status})",
                        {"status": listing.status},
                    )
                if quantity > listing.quantity:
                    quantity_reservation_failures.labels(reason="insufficient").inc()
                    raise InsufficientQuantityError(
                        f"Requested {quantity} {listing.unit} but only {listing.quantity} available",
                        {"requested": str(quantity), "available": str(listing.quantity)},
                    )

                order = self._place_order(
                    buyer, listing, quantity, delivery_address or {}, delivery_date, notes or ""
                )

            except MarketplaceError as e:
                orders_placed_total.labels(status=e.code.lower()).inc()
                span.set_attribute("order.error", e.code)
                return service_err_from(e)
            except Exception as e:
                orders_placed_total.labels(status="error").inc()
                return self.internal_error("create_order", e)

            add_span_attributes(span, order_id=order.id, order_number=order.order_number)

        orders_placed_total.labels(status="created").inc()
        order_value.observe(float(order.total_price))
        self.logger.info(
            f"Created order {order.order_number} for buyer {buyer.pk}: "
            f"{order.quantity} of listing {listing.id}, total {order.total_price} {order.currency}"
        )
        self._notify_parties(
            order, buyer, "New order", f"Order {order.order_number}: {order.quantity} {listing.unit} of {listing.title}"
        )
        return service_ok(order)

    @retry_on_deadlock(max_retries=3)
    def _place_order(self, buyer, listing, quantity, delivery_address, delivery_date, notes) -> Order:
        with transaction.atomic():
            reserved = Listing.objects.filter(
                pk=listing.pk, status=Listing.STATUS_ACTIVE, quantity__gte=quantity
            ).update(quantity=F("quantity") - quantity, updated_at=timezone.now())

            if reserved == 0:
                quantity_reservation_failures.labels(reason="concurrent").inc()
                raise InsufficientQuantityError(
                    f"Listing {listing.id} no longer has {quantity} {listing.unit} available",
                    {"requested": str(quantity)},
                )

            total_price = quantize_money(quantity * listing.price_per_unit)
            fee_rate = Decimal(str(getattr(settings, "PLATFORM_FEE_RATE", "0.025")))

            return Order.objects.create(
                order_number=self.identifiers.next_order_number(listing.tenant),
                tenant_id=listing.tenant_id,
                buyer=buyer,
                listing=listing,
                quantity=quantity,
                price_per_unit=listing.price_per_unit,
                total_price=total_price,
                currency=listing.currency,
                platform_fee=quantize_money(total_price * fee_rate),
                status=Order.STATUS_PENDING,
                payment_status=Order.PAYMENT_PENDING,
                delivery_address=delivery_address,
                delivery_date=delivery_date,
                notes=notes,
            )

    # ----- transitions -----

    def _check_actor(self, order: Order, actor, target: str) -> None:
        staff = is_tenant_staff(actor)
        is_buyer = order.buyer_id == actor.pk
        is_producer = owns_producer(actor, order.listing.producer_id)

        if target == Order.STATUS_CANCELLED:
            allowed = staff or is_buyer or is_producer
        elif target in PRODUCER_TARGETS:
            allowed = staff or is_producer
        elif target == Order.STATUS_COMPLETED:
            allowed = staff or is_buyer
        elif target == Order.STATUS_REFUNDED:
            allowed = staff or has_any_role(actor, (ROLE_FINANCE,))
        else:
            allowed = staff

        if not allowed:
            raise ForbiddenError(f"You are not allowed to move this order to {target}")

    def _apply_side_effects(self, order: Order, target: str, reason: str, tracking_number: str, actor) -> list:
        now = timezone.now()
        fields = ["status", "updated_at", TIMESTAMP_FIELDS[target]]
        setattr(order, TIMESTAMP_FIELDS[target], now)

        if target == Order.STATUS_CANCELLED:
            Listing.objects.filter(pk=order.listing_id).update(quantity=F("quantity") + order.quantity, updated_at=now)
            # A sold-out listing that gets quantity back is sellable again
            Listing.objects.filter(pk=order.listing_id, status=Listing.STATUS_SOLD, quantity__gt=0).update(
                status=Listing.STATUS_ACTIVE
            )
            order.cancellation_reason = reason
            order.cancelled_by = actor
            fields += ["cancellation_reason", "cancelled_by"]

        elif target == Order.STATUS_COMPLETED:
            drained = Listing.objects.filter(
                pk=order.listing_id, status=Listing.STATUS_ACTIVE, quantity=Decimal("0")
            ).exists()
            if drained:
                sold = self.listings.mark_sold(order.listing_id)
                if not sold.ok:
                    raise InvalidStateError(sold.error_detail, {"listing_id": str(order.listing_id)})

        elif target == Order.STATUS_REFUNDED:
            if order.payment_status == Order.PAYMENT_COMPLETED:
                order.payment_status = Order.PAYMENT_REFUNDED
                fields.append("payment_status")

        elif target == Order.STATUS_SHIPPED and tracking_number:
            order.tracking_number = tracking_number
            fields.append("tracking_number")

        return fields

    @BaseService.log_performance
    def transition_order(
        self, order_id, actor, target_status: str, reason: str = "", tracking_number: str = ""
    ) -> ServiceResult[Order]:
        """
        Move an order to ``target_status``.

        The order row is locked for the whole transition; the status change
        and its listing side effects commit together. ``actor=None`` is the
        platform itself (payment confirmation) and skips ownership checks.

        Returns:
            ServiceResult with the updated Order. INVALID_TRANSITION for
            moves outside the table, FORBIDDEN for the wrong actor.
        """
        target_status = (target_status or "").upper()
        if target_status not in TIMESTAMP_FIELDS:
            return service_err(
                ErrorCodes.VALIDATION_ERROR,
                f"Unknown order status '{target_status}'",
                {"status": [f"'{target_status}' is not a valid target status."]},
            )

        with tracer.start_as_current_span("order.transition") as span:
            add_span_attributes(span, order_id=order_id, target_status=target_status)
            try:
                with transaction.atomic():
                    queryset = Order.objects.select_for_update()
                    if actor is None:
                        order = queryset.filter(pk=order_id).first()
                        if order is None:
                            raise NotFoundError(f"Order {order_id} not found")
                    else:
                        order = self._get_visible(queryset, actor, order_id)

                    previous = order.status
                    check_transition(previous, target_status)
                    if actor is not None:
                        self._check_actor(order, actor, target_status)

                    order.status = target_status
                    fields = self._apply_side_effects(order, target_status, reason, tracking_number, actor)
                    order.save(update_fields=fields)

            except MarketplaceError as e:
                span.set_attribute("order.error", e.code)
                return service_err_from(e)
            except Exception as e:
                return self.internal_error("transition_order", e)

        order_transitions_total.labels(from_status=previous, to_status=target_status).inc()
        self.logger.info(f"Order {order.order_number}: {previous} -> {target_status}")
        self._notify_parties(
            order,
            actor,
            f"Order {target_status.lower()}",
            f"Order {order.order_number} moved from {previous} to {target_status}",
        )
        return service_ok(order)

    def _notify_parties(self, order: Order, actor, title: str, message: str) -> None:
        """Tell the buyer and the selling producer, except whoever made the change."""
        producer_user_id = (
            Listing.objects.filter(pk=order.listing_id).values_list("producer__user_id", flat=True).first()
        )
        acting = getattr(actor, "pk", None)
        self.notifications.notify_many(
            [user_id for user_id in (order.buyer_id, producer_user_id) if user_id != acting],
            order.tenant_id,
            Notification.TYPE_ORDER,
            title,
            message,
            {"order_id": str(order.id), "status": order.status},
        )

    def cancel_order(self, order_id, actor, reason: str = "") -> ServiceResult[Order]:
        """Shortcut for ``transition_order(order_id, actor, CANCELLED, reason)``."""
        return self.transition_order(order_id, actor, Order.STATUS_CANCELLED, reason=reason)

    @BaseService.log_performance
    def mark_payment_status(self, order_id, payment_status: str) -> ServiceResult[Order]:
        """Record the payment state reported by PaymentService."""
        if payment_status not in dict(Order.PAYMENT_STATUS_CHOICES):
            return service_err(ErrorCodes.VALIDATION_ERROR, f"Unknown payment status '{payment_status}'")
        try:
            updated = Order.objects.filter(pk=order_id).update(payment_status=payment_status, updated_at=timezone.now())
            if not updated:
                return service_err(ErrorCodes.NOT_FOUND, f"Order {order_id} not found")
            return service_ok(Order.objects.get(pk=order_id))
        except Exception as e:
            return self.internal_error("mark_payment_status", e)

    # ----- queries -----

    def _visible_queryset(self, queryset, actor):
        queryset = scope_to_tenant(queryset, actor)
        if is_super_admin(actor) or has_any_role(actor, TENANT_WIDE_READERS):
            return queryset
        visible = Q(buyer_id=actor.pk)
        profile = producer_profile(actor)
        if profile is not None:
            visible |= Q(listing__producer_id=profile.pk)
        return queryset.filter(visible)

    def _get_visible(self, queryset, actor, order_id) -> Order:
        try:
            return self._visible_queryset(queryset, actor).get(pk=order_id)
        except (Order.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFoundError(f"Order {order_id} not found")

    @BaseService.log_performance
    def get_order(self, order_id, actor) -> ServiceResult[Order]:
        """
        Get one order.

        Orders the actor may not see are reported as NOT_FOUND.
        """
        try:
            order = self._get_visible(Order.objects.select_related("listing", "buyer"), actor, order_id)
            return service_ok(order)
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("get_order", e)

    @BaseService.log_performance
    def list_orders(
        self, actor, filters: Optional[Dict[str, Any]] = None, page: int = 1, limit: int = 20
    ) -> ServiceResult[Dict[str, Any]]:
        """
        List the orders visible to ``actor``.

        Filters: status, listing, from_date, to_date (created_at, inclusive).
        """
        filters = filters or {}
        try:
            queryset = self._visible_queryset(Order.objects.select_related("listing", "buyer"), actor)

            if filters.get("status"):
                queryset = queryset.filter(status=filters["status"])
            if filters.get("listing"):
                queryset = queryset.filter(listing_id=filters["listing"])
            if filters.get("from_date"):
                queryset = queryset.filter(created_at__date__gte=filters["from_date"])
            if filters.get("to_date"):
                queryset = queryset.filter(created_at__date__lte=filters["to_date"])

            return service_ok(paginate(queryset.order_by("-created_at"), page, limit))

        except Exception as e:
            return self.internal_error("list_orders", e)
