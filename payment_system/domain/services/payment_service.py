"""
PaymentService - Orchestration Layer for Payments

Creates payments against orders, drives them through the configured
PaymentProviderInterface and reports the outcome back to OrderService.

    PENDING -> PROCESSING -> COMPLETED -> REFUNDED / PARTIALLY_REFUNDED
        \\___________\\-----> FAILED

The payment row is always committed before the provider is called. A
provider timeout leaves it PENDING for a later confirmation or webhook.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from authentication.infra.observability.tracing import add_span_attributes, tracer
from infrastructure.payments.interface import PaymentException, PaymentProviderInterface
from infrastructure.timeouts import ProviderTimeout, call_with_timeout
from marketplace.domain.exceptions import (
    ExternalServiceError,
    ForbiddenError,
    InvalidStateError,
    MarketplaceError,
    NotFoundError,
    ValidationError,
)
from marketplace.domain.money import quantize_money
from marketplace.domain.scoping import get_in_tenant, is_tenant_staff, producer_profile, scope_to_tenant
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
from payment_system.domain.exceptions import WebhookVerificationError
from payment_system.domain.models import Payment
from payment_system.infra.observability.metrics import payment_volume_total, payments_total, webhook_events_total
from utils.logging_utils import mask_value
from utils.rbac import ROLE_AUDITOR, ROLE_FINANCE, has_any_role, is_super_admin

logger = logging.getLogger(__name__)

METHODS = tuple(code for code, _ in Payment.METHOD_CHOICES)
PAYMENT_MANAGERS = (ROLE_FINANCE,)
TENANT_WIDE_READERS = (ROLE_FINANCE, ROLE_AUDITOR)
UNPAYABLE_ORDER_STATUSES = (Order.STATUS_CANCELLED, Order.STATUS_REFUNDED)
REFUNDABLE_STATUSES = (Payment.STATUS_COMPLETED, Payment.STATUS_PARTIALLY_REFUNDED)


class PaymentService(BaseService):
    """
    Service for orchestrating payment operations.

    Responsibilities:
    - Create payments and open provider intents
    - Confirm / fail payments (API call or webhook)
    - Refund payments and release escrow
    - Keep the order payment status in step

    Dependencies:
    - PaymentProviderInterface: card processor (Stripe, mock)
    - fallback provider: manual settlement for the remaining methods
    - IdentifierService: payment numbers
    - OrderService: order payment status and the PENDING -> CONFIRMED transition
    """

    def __init__(
        self,
        provider: PaymentProviderInterface = None,
        fallback_provider: PaymentProviderInterface = None,
        identifiers=None,
        order_service=None,
    ):
        super().__init__()
        if provider is None or fallback_provider is None:
            from infrastructure.container import container

            provider = provider or container.payment()
            fallback_provider = fallback_provider or container.manual_payment()
        if identifiers is None:
            from marketplace.domain.services.identifier_service import IdentifierService

            identifiers = IdentifierService()
        if order_service is None:
            from marketplace.ordering.domain.services.order_service import OrderService

            order_service = OrderService(identifiers=identifiers)
        self.provider = provider
        self.fallback_provider = fallback_provider
        self.identifiers = identifiers
        self.order_service = order_service

    def _provider_for_method(self, method: str) -> PaymentProviderInterface:
        if self.provider.supports(method):
            return self.provider
        if self.fallback_provider.supports(method):
            return self.fallback_provider
        raise ValidationError(f"No payment provider accepts {method}", {"method": ["Unsupported payment method."]})

    def _provider_named(self, name: str) -> PaymentProviderInterface:
        if name == self.fallback_provider.name:
            return self.fallback_provider
        return self.provider

    def _check_manager(self, actor) -> None:
        # actor None is the webhook / system path
        if actor is None:
            return
        if not (is_tenant_staff(actor) or has_any_role(actor, PAYMENT_MANAGERS)):
            raise ForbiddenError("Only finance or tenant staff can update payments")

    def _lock_payment(self, actor, payment_id) -> Payment:
        queryset = Payment.objects.select_for_update()
        if actor is None:
            try:
                return queryset.get(pk=payment_id)
            except (Payment.DoesNotExist, DjangoValidationError, ValueError):
                raise NotFoundError(f"Payment {payment_id} not found")
        return get_in_tenant(queryset, actor, payment_id, "Payment")

    # ----- creation -----

    @BaseService.log_performance
    def create_payment(
        self,
        actor,
        order_id,
        method: str,
        amount=None,
        currency: Optional[str] = None,
    ) -> ServiceResult[Payment]:
        """
        Create a payment for an order and open a provider intent.

        Args:
            actor: The buyer, finance or tenant staff
            order_id: Order to pay
            method: One of Payment.METHOD_CHOICES
            amount: Defaults to the order total
            currency: Defaults to the order currency

        Returns:
            ServiceResult with the Payment (PROCESSING, or PENDING after a
            provider timeout). A provider error returns PAYMENT_FAILED.
        """
        method = (method or "").upper()
        with tracer.start_as_current_span("payment.create") as span:
            add_span_attributes(span, order_id=order_id, method=method, actor_id=actor.pk)
            try:
                if method not in METHODS:
                    raise ValidationError(
                        f"method must be one of {', '.join(METHODS)}", {"method": ["Invalid choice."]}
                    )
                provider = self._provider_for_method(method)

                with transaction.atomic():
                    order = get_in_tenant(Order.objects.select_for_update(), actor, order_id, "Order")
                    if not (
                        order.buyer_id == actor.pk
                        or is_tenant_staff(actor)
                        or has_any_role(actor, PAYMENT_MANAGERS)
                    ):
                        raise ForbiddenError("Only the buyer, finance or tenant staff can pay this order")
                    if order.status in UNPAYABLE_ORDER_STATUSES:
                        raise InvalidStateError(
                            f"Order {order.order_number} is {order.status}", {"status": order.status}
                        )
                    if order.payment_status == Order.PAYMENT_COMPLETED:
                        raise InvalidStateError(
                            f"Order {order.order_number} is already paid", {"payment_status": order.payment_status}
                        )

                    value = self._parse_amount(amount, default=order.total_price)
                    payment = Payment.objects.create(
                        payment_number=self.identifiers.next_payment_number(),
                        tenant_id=order.tenant_id,
                        order=order,
                        payer=actor,
                        amount=value,
                        currency=(currency or order.currency).upper(),
                        method=method,
                        provider=provider.name,
                        status=Payment.STATUS_PENDING,
                    )
            except MarketplaceError as e:
                return service_err_from(e)
            except Exception as e:
                return self.internal_error("create_payment", e)

            add_span_attributes(span, payment_id=payment.id, provider=provider.name)
            return self._open_intent(payment, provider, order)

    def _parse_amount(self, amount, default: Decimal) -> Decimal:
        if amount is None:
            return default
        try:
            value = quantize_money(Decimal(str(amount)))
        except InvalidOperation:
            raise ValidationError("amount must be a number", {"amount": ["A valid number is required."]})
        if value <= 0:
            raise ValidationError("amount must be greater than zero", {"amount": ["Must be greater than zero."]})
        return value

    def _open_intent(self, payment: Payment, provider: PaymentProviderInterface, order: Order) -> ServiceResult:
        try:
            intent = call_with_timeout(
                provider.create_payment_intent,
                payment.amount,
                payment.currency,
                payment.method,
                metadata={
                    "payment_id": str(payment.id),
                    "payment_number": payment.payment_number,
                    "order_id": str(order.id),
                    "order_number": order.order_number,
                },
                description=f"Order {order.order_number}",
                provider=provider.name,
                operation="create_payment_intent",
            )
        except ProviderTimeout as e:
            self.logger.warning(f"Payment {payment.payment_number} left PENDING: {e}")
            payments_total.labels(method=payment.method, status=payment.status).inc()
            return service_ok(payment)
        except PaymentException as e:
            payment.status = Payment.STATUS_FAILED
            payment.failure_reason = str(e)
            payment.save(update_fields=["status", "failure_reason", "updated_at"])
            self.order_service.mark_payment_status(order.id, Order.PAYMENT_FAILED)
            payments_total.labels(method=payment.method, status=payment.status).inc()
            self.logger.error(f"Provider rejected payment {payment.payment_number}: {e}")
            return service_err(ErrorCodes.PAYMENT_FAILED, str(e), {"payment_id": str(payment.id)})

        payment.status = Payment.STATUS_PROCESSING
        payment.provider_tx_id = intent.intent_id
        payment.client_secret = intent.client_secret
        payment.save(update_fields=["status", "provider_tx_id", "client_secret", "updated_at"])
        self.order_service.mark_payment_status(order.id, Order.PAYMENT_PROCESSING)
        payments_total.labels(method=payment.method, status=payment.status).inc()

        self.logger.info(
            f"Payment {payment.payment_number} opened with {provider.name} "
            f"({mask_value(payment.provider_tx_id)}) for order {order.order_number}"
        )
        return service_ok(payment)

    # ----- provider outcomes -----

    @BaseService.log_performance
    def confirm_payment(self, actor, payment_id, provider_tx_id: Optional[str] = None) -> ServiceResult[Payment]:
        """
        Mark a payment COMPLETED.

        Once the completed payments of the order cover its total, the order
        payment status becomes COMPLETED and a PENDING order is CONFIRMED.
        """
        try:
            self._check_manager(actor)
            with transaction.atomic():
                payment = self._lock_payment(actor, payment_id)
                if payment.status not in (Payment.STATUS_PENDING, Payment.STATUS_PROCESSING):
                    raise InvalidStateError(f"Payment is {payment.status}", {"status": payment.status})

                payment.status = Payment.STATUS_COMPLETED
                payment.paid_at = timezone.now()
                if provider_tx_id:
                    payment.provider_tx_id = provider_tx_id
                payment.save(update_fields=["status", "paid_at", "provider_tx_id", "updated_at"])

                order = Order.objects.select_for_update().get(pk=payment.order_id)
                paid = Payment.objects.filter(order=order, status=Payment.STATUS_COMPLETED).aggregate(
                    total=Sum("amount")
                )["total"] or Decimal("0")
                fully_paid = paid >= order.total_price
                if fully_paid:
                    Order.objects.filter(pk=order.pk).update(
                        payment_status=Order.PAYMENT_COMPLETED, updated_at=timezone.now()
                    )
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("confirm_payment", e)

        payments_total.labels(method=payment.method, status=payment.status).inc()
        payment_volume_total.labels(currency=payment.currency).inc(float(payment.amount))
        self.logger.info(f"Payment {payment.payment_number} completed ({payment.amount} {payment.currency})")

        if fully_paid and order.status == Order.STATUS_PENDING:
            result = self.order_service.transition_order(order.pk, None, Order.STATUS_CONFIRMED)
            if not result.ok:
                self.logger.warning(f"Order {order.order_number} paid but not confirmed: {result.error_detail}")
        return service_ok(payment)

    @BaseService.log_performance
    def fail_payment(self, actor, payment_id, reason: str = "") -> ServiceResult[Payment]:
        try:
            self._check_manager(actor)
            with transaction.atomic():
                payment = self._lock_payment(actor, payment_id)
                if payment.status not in (Payment.STATUS_PENDING, Payment.STATUS_PROCESSING):
                    raise InvalidStateError(f"Payment is {payment.status}", {"status": payment.status})
                payment.status = Payment.STATUS_FAILED
                payment.failure_reason = reason
                payment.save(update_fields=["status", "failure_reason", "updated_at"])
                Order.objects.filter(pk=payment.order_id).exclude(payment_status=Order.PAYMENT_COMPLETED).update(
                    payment_status=Order.PAYMENT_FAILED, updated_at=timezone.now()
                )
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("fail_payment", e)

        payments_total.labels(method=payment.method, status=payment.status).inc()
        self.logger.warning(f"Payment {payment.payment_number} failed: {reason}")
        return service_ok(payment)

    @BaseService.log_performance
    def refund_payment(self, actor, payment_id, amount=None, reason: str = "") -> ServiceResult[Payment]:
        """
        Refund a COMPLETED or PARTIALLY_REFUNDED payment in full or in part.

        The payment row stays locked from the refundable check through the
        provider refund to the write, so concurrent refunds queue up and the
        later ones see what the earlier ones took. Nothing changes locally if
        the provider refuses.
        """
        try:
            self._check_manager(actor)
            scoped = get_in_tenant(Payment.objects.all(), actor, payment_id, "Payment")
            with transaction.atomic():
                payment = Payment.objects.select_for_update().get(pk=scoped.pk)
                if payment.status not in REFUNDABLE_STATUSES:
                    raise InvalidStateError(
                        f"Payment {payment.payment_number} cannot be refunded (payment is {payment.status})",
                        {"status": payment.status},
                    )
                refundable = payment.amount - payment.refund_amount
                value = self._parse_amount(amount, default=refundable)
                if value > refundable:
                    raise ValidationError(
                        f"Refund exceeds the refundable amount {refundable}", {"amount": [f"At most {refundable}."]}
                    )

                receipt = self._provider_refund(payment, value, reason)

                payment.refund_amount = payment.refund_amount + value
                payment.status = (
                    Payment.STATUS_REFUNDED
                    if payment.refund_amount >= payment.amount
                    else Payment.STATUS_PARTIALLY_REFUNDED
                )
                payment.provider_refund_id = receipt.refund_id
                payment.refunded_at = timezone.now()
                payment.save(
                    update_fields=["refund_amount", "status", "provider_refund_id", "refunded_at", "updated_at"]
                )
                if payment.status == Payment.STATUS_REFUNDED:
                    Order.objects.filter(pk=payment.order_id).update(
                        payment_status=Order.PAYMENT_REFUNDED, updated_at=timezone.now()
                    )
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("refund_payment", e)

        payments_total.labels(method=payment.method, status=payment.status).inc()
        self.logger.info(f"Refunded {value} {payment.currency} of {payment.payment_number} -> {payment.status}")
        return service_ok(payment)

    def _provider_refund(self, payment: Payment, value: Decimal, reason: str):
        provider = self._provider_named(payment.provider)
        try:
            receipt = call_with_timeout(
                provider.create_refund,
                payment.provider_tx_id,
                value,
                reason,
                provider=provider.name,
                operation="create_refund",
            )
        except (ProviderTimeout, PaymentException) as e:
            self.logger.error(f"Refund of {payment.payment_number} failed: {e}")
            raise ExternalServiceError(f"Refund failed: {e}") from e
        if not receipt.succeeded:
            raise ExternalServiceError("Refund was declined by the provider")
        return receipt

    @BaseService.log_performance
    def release_escrow(self, actor, payment_id) -> ServiceResult[Payment]:
        try:
            self._check_manager(actor)
            with transaction.atomic():
                payment = self._lock_payment(actor, payment_id)
                if payment.status != Payment.STATUS_COMPLETED:
                    raise InvalidStateError(
                        f"Only COMPLETED payments can release escrow (payment is {payment.status})",
                        {"status": payment.status},
                    )
                if payment.escrow_released:
                    raise InvalidStateError(f"Escrow of {payment.payment_number} was already released")
                payment.escrow_released = True
                payment.escrow_released_at = timezone.now()
                payment.save(update_fields=["escrow_released", "escrow_released_at", "updated_at"])
            self.logger.info(f"Released escrow of {payment.payment_number}")
            return service_ok(payment)
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("release_escrow", e)

    # ----- webhooks -----

    def _verify(self, payload: bytes, signature: str):
        try:
            return self.provider.verify_webhook(payload, signature)
        except PaymentException as e:
            raise WebhookVerificationError(str(e)) from e

    @BaseService.log_performance
    def handle_webhook(self, payload: bytes, signature: str) -> ServiceResult[Dict[str, Any]]:
        """
        Apply a provider webhook.

        payment_intent.succeeded confirms the matching payment and
        payment_intent.payment_failed fails it. Every other verified event
        is acknowledged without changes.
        """
        with tracer.start_as_current_span("payment.webhook") as span:
            try:
                event = self._verify(payload, signature)
            except WebhookVerificationError as e:
                webhook_events_total.labels(event_type="unknown", outcome="rejected").inc()
                self.logger.warning(f"Rejected webhook: {e}")
                return service_err(ErrorCodes.VALIDATION_ERROR, "Invalid webhook signature")

            add_span_attributes(span, event_id=event.event_id, event_type=event.event_type)
            self.logger.info(f"Received webhook event {event.event_type} ({event.event_id})")

            if event.event_type not in ("payment_intent.succeeded", "payment_intent.payment_failed"):
                webhook_events_total.labels(event_type=event.event_type, outcome="ignored").inc()
                return service_ok({"received": True, "handled": False})

            intent_id = event.data.get("id", "")
            payment = Payment.objects.filter(provider_tx_id=intent_id).first() if intent_id else None
            if payment is None:
                self.logger.warning(f"No payment for intent {mask_value(intent_id)} in {event.event_type}")
                webhook_events_total.labels(event_type=event.event_type, outcome="unmatched").inc()
                return service_ok({"received": True, "handled": False})

            if payment.status not in (Payment.STATUS_PENDING, Payment.STATUS_PROCESSING):
                # Providers redeliver; a settled payment is left alone
                webhook_events_total.labels(event_type=event.event_type, outcome="duplicate").inc()
                return service_ok({"received": True, "handled": False, "payment_id": str(payment.id)})

            if event.event_type == "payment_intent.succeeded":
                result = self.confirm_payment(None, payment.id)
            else:
                error = event.data.get("last_payment_error") or {}
                result = self.fail_payment(None, payment.id, error.get("message", "Payment failed at provider"))

            if not result.ok:
                webhook_events_total.labels(event_type=event.event_type, outcome="error").inc()
                return result
            webhook_events_total.labels(event_type=event.event_type, outcome="handled").inc()
            return service_ok({"received": True, "handled": True, "payment_id": str(payment.id)})

    # ----- queries -----

    def _visible_queryset(self, actor):
        queryset = scope_to_tenant(Payment.objects.select_related("order"), actor)
        if is_super_admin(actor) or is_tenant_staff(actor) or has_any_role(actor, TENANT_WIDE_READERS):
            return queryset
        visible = Q(payer_id=actor.pk) | Q(order__buyer_id=actor.pk)
        profile = producer_profile(actor)
        if profile is not None:
            visible |= Q(order__listing__producer_id=profile.pk)
        return queryset.filter(visible)

    @BaseService.log_performance
    def get_payment(self, actor, payment_id) -> ServiceResult[Payment]:
        try:
            return service_ok(self._visible_queryset(actor).get(pk=payment_id))
        except (Payment.DoesNotExist, DjangoValidationError, ValueError):
            return service_err(ErrorCodes.NOT_FOUND, f"Payment {payment_id} not found")

    @BaseService.log_performance
    def list_payments(
        self, actor, filters: Optional[Dict[str, Any]] = None, page: int = 1, limit: int = 20
    ) -> ServiceResult[Dict[str, Any]]:
        filters = filters or {}
        queryset = self._visible_queryset(actor)
        if filters.get("order"):
            queryset = queryset.filter(order_id=filters["order"])
        if filters.get("status"):
            queryset = queryset.filter(status=filters["status"].upper())
        if filters.get("method"):
            queryset = queryset.filter(method=filters["method"].upper())
        return service_ok(paginate(queryset.order_by("-created_at"), page, limit))

    @BaseService.log_performance
    def payment_stats(self, actor) -> ServiceResult[Dict[str, Any]]:
        settled = (Payment.STATUS_COMPLETED, Payment.STATUS_REFUNDED, Payment.STATUS_PARTIALLY_REFUNDED)
        totals = self._visible_queryset(actor).aggregate(
            total_payments=Count("id"),
            completed_payments=Count("id", filter=Q(status=Payment.STATUS_COMPLETED)),
            failed_payments=Count("id", filter=Q(status=Payment.STATUS_FAILED)),
            total_amount=Sum("amount", filter=Q(status__in=settled)),
            refunded_amount=Sum("refund_amount"),
        )
        total_amount = totals["total_amount"] or Decimal("0.00")
        refunded_amount = totals["refunded_amount"] or Decimal("0.00")
        return service_ok(
            {
                "totalPayments": totals["total_payments"],
                "completedPayments": totals["completed_payments"],
                "failedPayments": totals["failed_payments"],
                "totalAmount": str(quantize_money(total_amount)),
                "refundedAmount": str(quantize_money(refunded_amount)),
                "netRevenue": str(quantize_money(total_amount - refunded_amount)),
            }
        )
