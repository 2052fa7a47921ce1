"""
ShipmentService - logistics tracking

A shipment carries the goods of one order, or standalone cargo booked by
tenant staff, through

    PENDING -> LOADING -> IN_TRANSIT <-> CUSTOMS -> ARRIVED -> DELIVERED
       \\__________\\-> CANCELLED

Every status change appends a tracking event. Departure moves a PROCESSING
order to SHIPPED (tracking number = shipment number) and delivery moves a
SHIPPED order to DELIVERED, both through OrderService once the shipment
change has committed.
"""

import logging
from typing import Any, Dict, Optional

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from marketplace.domain.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    InvalidTransitionError,
    MarketplaceError,
    ValidationError,
)
from marketplace.domain.scoping import get_in_tenant, is_tenant_staff, owns_producer, producer_profile, scope_to_tenant
from marketplace.infra.observability.metrics import shipment_transitions_total
from marketplace.logistics.domain.models import Shipment
from marketplace.notifications.domain.models import Notification
from marketplace.ordering.domain.models import Order
from marketplace.ordering.domain.services.order_service import TENANT_WIDE_READERS
from marketplace.services.base import (
    BaseService,
    ErrorCodes,
    ServiceResult,
    paginate,
    service_err,
    service_err_from,
    service_ok,
)
from utils.rbac import has_any_role, is_super_admin

logger = logging.getLogger(__name__)

TRANSITIONS = {
    Shipment.STATUS_PENDING: frozenset({Shipment.STATUS_LOADING, Shipment.STATUS_CANCELLED}),
    Shipment.STATUS_LOADING: frozenset({Shipment.STATUS_IN_TRANSIT, Shipment.STATUS_CANCELLED}),
    Shipment.STATUS_IN_TRANSIT: frozenset({Shipment.STATUS_CUSTOMS, Shipment.STATUS_ARRIVED}),
    Shipment.STATUS_CUSTOMS: frozenset({Shipment.STATUS_IN_TRANSIT, Shipment.STATUS_ARRIVED}),
    Shipment.STATUS_ARRIVED: frozenset({Shipment.STATUS_DELIVERED}),
    Shipment.STATUS_DELIVERED: frozenset(),
    Shipment.STATUS_CANCELLED: frozenset(),
}

SHIPPABLE_ORDER_STATUSES = (Order.STATUS_CONFIRMED, Order.STATUS_PROCESSING)

# Shipment status -> (order status it applies to, order status it moves the order to)
ORDER_FOLLOWS = {
    Shipment.STATUS_IN_TRANSIT: (Order.STATUS_PROCESSING, Order.STATUS_SHIPPED),
    Shipment.STATUS_DELIVERED: (Order.STATUS_SHIPPED, Order.STATUS_DELIVERED),
}

STATUS_LABELS = dict(Shipment.STATUS_CHOICES)


def tracking_event(status: str, event: str, location: str = "") -> Dict[str, str]:
    return {"timestamp": timezone.now().isoformat(), "status": status, "event": event, "location": location}


class ShipmentService(BaseService):
    """
    Service for shipments.

    Dependencies:
    - IdentifierService: shipment numbers
    - OrderService: moves the linked order along with the shipment
    - NotificationService: tells the buyer about bookings and status changes
    """

    def __init__(self, identifiers=None, orders=None, notifications=None):
        super().__init__()
        if identifiers is None:
            from marketplace.domain.services.identifier_service import IdentifierService

            identifiers = IdentifierService()
        if orders is None:
            from marketplace.ordering.domain.services.order_service import OrderService

            orders = OrderService()
        if notifications is None:
            from marketplace.notifications.domain.services.notification_service import NotificationService

            notifications = NotificationService()
        self.identifiers = identifiers
        self.orders = orders
        self.notifications = notifications

    def _check_manager(self, actor, order: Optional[Order]) -> None:
        if is_tenant_staff(actor):
            return
        if order is not None and owns_producer(actor, order.listing.producer_id):
            return
        raise ForbiddenError("Only the selling producer or tenant staff can manage this shipment")

    @BaseService.log_performance
    def create_shipment(
        self,
        actor,
        origin: str,
        destination: str,
        order_id=None,
        cargo: str = "",
        quantity=None,
        unit: str = "",
        origin_port: str = "",
        destination_port: str = "",
        vessel: str = "",
        vessel_type: str = "SHIP",
        eta=None,
    ) -> ServiceResult[Shipment]:
        """
        Book a shipment, PENDING.

        With ``order_id`` the order must be CONFIRMED or PROCESSING and have
        no live shipment; cargo, quantity and unit default to the order's.
        Without it only tenant staff may book, and ``cargo`` is required.
        """
        if not origin or not destination:
            return service_err(
                ErrorCodes.VALIDATION_ERROR,
                "Origin and destination are required",
                {"origin": ["Required."], "destination": ["Required."]},
            )
        try:
            with transaction.atomic():
                order = None
                if order_id:
                    order = get_in_tenant(
                        Order.objects.select_for_update().select_related("tenant", "listing__commodity"),
                        actor,
                        order_id,
                        "Order",
                    )
                    self._check_manager(actor, order)
                    if order.status not in SHIPPABLE_ORDER_STATUSES:
                        raise InvalidStateError(
                            f"Order {order.order_number} cannot be shipped while {order.status}",
                            {"status": order.status},
                        )
                    live = Shipment.objects.filter(order=order).exclude(status=Shipment.STATUS_CANCELLED).first()
                    if live is not None:
                        raise ConflictError(
                            f"Order {order.order_number} already ships as {live.shipment_number}",
                            {"shipment_id": str(live.id)},
                        )
                    tenant = order.tenant
                    cargo = cargo or order.listing.commodity.name
                    quantity = quantity if quantity is not None else order.quantity
                    unit = unit or order.listing.unit
                else:
                    self._check_manager(actor, None)
                    tenant = actor.tenant
                    if tenant is None:
                        raise ValidationError(
                            "Shipments without an order must be booked by a tenant user",
                            {"order_id": ["Required."]},
                        )

                if not cargo:
                    raise ValidationError("Cargo is required", {"cargo": ["Required."]})

                shipment = Shipment.objects.create(
                    shipment_number=self.identifiers.next_shipment_number(tenant),
                    tenant=tenant,
                    order=order,
                    created_by=actor,
                    cargo=cargo,
                    quantity=quantity,
                    unit=unit,
                    origin=origin,
                    origin_port=origin_port,
                    destination=destination,
                    destination_port=destination_port,
                    vessel=vessel,
                    vessel_type=vessel_type,
                    eta=eta,
                    status=Shipment.STATUS_PENDING,
                    tracking_events=[
                        tracking_event(Shipment.STATUS_PENDING, "Shipment created", origin_port or origin)
                    ],
                )
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("create_shipment", e)

        if order is not None:
            self.notifications.notify(
                order.buyer_id,
                order.tenant_id,
                Notification.TYPE_SHIPMENT,
                "Shipment booked",
                f"{shipment.shipment_number} will carry order {order.order_number} "
                f"from {shipment.origin} to {shipment.destination}",
                {"shipment_id": str(shipment.id), "order_id": str(order.id)},
            )
        self.logger.info(f"Booked shipment {shipment.shipment_number} ({cargo}) {origin} -> {destination}")
        return service_ok(shipment)

    @BaseService.log_performance
    def update_status(
        self, actor, shipment_id, target_status: str, location: str = "", event: str = "", eta=None
    ) -> ServiceResult[Shipment]:
        """
        Move a shipment to ``target_status`` and record a tracking event.

        Returns:
            ServiceResult with the Shipment. INVALID_TRANSITION for moves
            outside the table.
        """
        target_status = (target_status or "").upper()
        if target_status not in STATUS_LABELS:
            return service_err(
                ErrorCodes.VALIDATION_ERROR,
                f"Unknown shipment status '{target_status}'",
                {"status": [f"'{target_status}' is not a valid shipment status."]},
            )
        try:
            with transaction.atomic():
                shipment = get_in_tenant(Shipment.objects.select_for_update(), actor, shipment_id, "Shipment")
                order = Order.objects.select_related("listing").filter(pk=shipment.order_id).first()
                self._check_manager(actor, order)

                previous = shipment.status
                if target_status not in TRANSITIONS.get(previous, frozenset()):
                    raise InvalidTransitionError(previous, target_status, subject="shipment")

                now = timezone.now()
                shipment.status = target_status
                if target_status == Shipment.STATUS_IN_TRANSIT and shipment.departed_at is None:
                    shipment.departed_at = now
                elif target_status == Shipment.STATUS_DELIVERED:
                    shipment.delivered_at = now
                if eta is not None:
                    shipment.eta = eta
                shipment.tracking_events = [
                    *shipment.tracking_events,
                    tracking_event(target_status, event or STATUS_LABELS[target_status], location),
                ]
                shipment.save()
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("update_status", e)

        shipment_transitions_total.labels(from_status=previous, to_status=target_status).inc()
        self.logger.info(f"Shipment {shipment.shipment_number}: {previous} -> {target_status}")
        if order is not None:
            self._follow_with_order(shipment, order)
            self.notifications.notify(
                order.buyer_id,
                order.tenant_id,
                Notification.TYPE_SHIPMENT,
                "Shipment update",
                f"{shipment.shipment_number} is now {STATUS_LABELS[target_status].lower()}"
                + (f" at {location}" if location else ""),
                {"shipment_id": str(shipment.id), "order_id": str(order.id), "status": target_status},
            )
        return service_ok(shipment)

    def _follow_with_order(self, shipment: Shipment, order: Order) -> None:
        follow = ORDER_FOLLOWS.get(shipment.status)
        if follow is None:
            return
        source, target = follow
        if order.status != source:
            self.logger.info(
                f"Order {order.order_number} is {order.status}; shipment {shipment.shipment_number} "
                f"going {shipment.status} leaves it as is"
            )
            return
        result = self.orders.transition_order(order.pk, None, target, tracking_number=shipment.shipment_number)
        if not result.ok:
            self.logger.warning(
                f"Order {order.order_number} did not follow shipment {shipment.shipment_number} "
                f"to {target}: {result.error_detail}"
            )

    @BaseService.log_performance
    def add_tracking_event(self, actor, shipment_id, event: str, location: str = "") -> ServiceResult[Shipment]:
        """Record a tracking event without changing the status."""
        if not event:
            return service_err(ErrorCodes.VALIDATION_ERROR, "event is required", {"event": ["Required."]})
        try:
            with transaction.atomic():
                shipment = get_in_tenant(Shipment.objects.select_for_update(), actor, shipment_id, "Shipment")
                order = Order.objects.select_related("listing").filter(pk=shipment.order_id).first()
                self._check_manager(actor, order)
                if not TRANSITIONS[shipment.status]:
                    raise InvalidStateError(
                        f"Shipment {shipment.shipment_number} is {shipment.status}", {"status": shipment.status}
                    )
                shipment.tracking_events = [*shipment.tracking_events, tracking_event(shipment.status, event, location)]
                shipment.save(update_fields=["tracking_events", "updated_at"])
        except MarketplaceError as e:
            return service_err_from(e)
        return service_ok(shipment)

    # ----- queries -----

    def _visible_queryset(self, actor):
        queryset = scope_to_tenant(Shipment.objects.select_related("order"), actor)
        if is_super_admin(actor) or has_any_role(actor, TENANT_WIDE_READERS):
            return queryset
        visible = Q(order__buyer_id=actor.pk) | Q(created_by_id=actor.pk)
        profile = producer_profile(actor)
        if profile is not None:
            visible |= Q(order__listing__producer_id=profile.pk)
        return queryset.filter(visible)

    @BaseService.log_performance
    def get_shipment(self, actor, shipment_id) -> ServiceResult[Shipment]:
        """Shipments the actor may not see are reported as NOT_FOUND."""
        try:
            return service_ok(get_in_tenant(self._visible_queryset(actor), actor, shipment_id, "Shipment"))
        except MarketplaceError as e:
            return service_err_from(e)

    @BaseService.log_performance
    def list_shipments(
        self, actor, filters: Optional[Dict[str, Any]] = None, page: int = 1, limit: int = 20
    ) -> ServiceResult[Dict[str, Any]]:
        filters = filters or {}
        queryset = self._visible_queryset(actor)
        if filters.get("status"):
            queryset = queryset.filter(status=filters["status"])
        if filters.get("order"):
            queryset = queryset.filter(order_id=filters["order"])
        return service_ok(paginate(queryset.order_by("-created_at"), page, limit))
