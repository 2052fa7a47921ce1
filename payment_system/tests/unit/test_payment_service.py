"""
Tests for PaymentService - Orchestration Layer
"""

import json
from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase

from infrastructure.container import container
from infrastructure.payments.manual_provider import ManualSettlementProvider
from infrastructure.payments.mock_provider import MOCK_SIGNATURE, MockPaymentProvider
from infrastructure.scripted import Outcome
from marketplace.ordering.domain.models import Order
from marketplace.services.base import ErrorCodes
from marketplace.tests.factories import (
    AuditorFactory,
    FinanceFactory,
    OrderFactory,
    PaymentFactory,
    UserFactory,
)
from payment_system.domain.models import Payment
from payment_system.domain.services.payment_service import PaymentService


class CardOnlyProvider(MockPaymentProvider):
    name = "card"
    supported_methods = ("CARD",)


def webhook_body(event_type, intent_id, **extra):
    return json.dumps(
        {"id": "evt_test_1", "type": event_type, "created": 1767225600, "data": {"object": {"id": intent_id, **extra}}}
    ).encode()


class CreatePaymentTest(TestCase):
    def setUp(self):
        container.configure_for_testing()
        self.provider = container.payment()
        self.service = container.payment_service()
        self.order = OrderFactory()
        self.buyer = self.order.buyer

    def tearDown(self):
        self.provider.release()

    def test_create_payment_opens_intent(self):
        result = self.service.create_payment(self.buyer, self.order.id, "card")

        self.assertTrue(result.ok, result.error_detail)
        payment = result.value
        self.assertEqual(payment.status, Payment.STATUS_PROCESSING)
        self.assertEqual(payment.amount, Decimal("250.00"))
        self.assertEqual(payment.method, "CARD")
        self.assertEqual(payment.provider, "mock")
        self.assertTrue(payment.provider_tx_id.startswith("pi_mock_"))
        self.assertTrue(payment.client_secret)
        self.assertRegex(payment.payment_number, r"^PAY-\d{8}-\d{10}$")
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, Order.PAYMENT_PROCESSING)

    def test_provider_timeout_leaves_payment_pending(self):
        self.provider.script(Outcome.HANG)

        result = self.service.create_payment(self.buyer, self.order.id, "CARD")

        self.assertTrue(result.ok)
        self.assertEqual(Payment.objects.get(pk=result.value.pk).status, Payment.STATUS_PENDING)

    def test_provider_error_fails_payment(self):
        self.provider.script(Outcome.FAIL, message="Card declined")

        result = self.service.create_payment(self.buyer, self.order.id, "CARD")

        self.assertEqual(result.error, ErrorCodes.PAYMENT_FAILED)
        payment = Payment.objects.get(order=self.order)
        self.assertEqual(payment.status, Payment.STATUS_FAILED)
        self.assertEqual(payment.failure_reason, "Card declined")
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, Order.PAYMENT_FAILED)

    def test_unsupported_methods_fall_back_to_manual_settlement(self):
        service = PaymentService(provider=CardOnlyProvider(), fallback_provider=ManualSettlementProvider())

        result = service.create_payment(self.buyer, self.order.id, "MOBILE_MONEY")

        self.assertEqual(result.value.provider, "manual")
        self.assertTrue(result.value.provider_tx_id.startswith("MM"))

    def test_validation(self):
        self.assertEqual(
            self.service.create_payment(self.buyer, self.order.id, "CHEQUE").error, ErrorCodes.VALIDATION_ERROR
        )
        self.assertEqual(
            self.service.create_payment(self.buyer, self.order.id, "CARD", amount="-1").error,
            ErrorCodes.VALIDATION_ERROR,
        )

    def test_only_buyer_or_finance_pays(self):
        stranger = UserFactory(tenant=self.order.tenant)

        self.assertEqual(self.service.create_payment(stranger, self.order.id, "CARD").error, ErrorCodes.FORBIDDEN)
        finance = FinanceFactory(tenant=self.order.tenant)
        self.assertTrue(self.service.create_payment(finance, self.order.id, "CARD").ok)

    def test_cancelled_order_cannot_be_paid(self):
        Order.objects.filter(pk=self.order.pk).update(status=Order.STATUS_CANCELLED)

        self.assertEqual(self.service.create_payment(self.buyer, self.order.id, "CARD").error, ErrorCodes.INVALID_STATE)


class SettlePaymentTest(TestCase):
    def setUp(self):
        container.configure_for_testing()
        self.provider = container.payment()
        self.service = container.payment_service()
        self.finance = FinanceFactory()
        self.order = OrderFactory(tenant=self.finance.tenant, listing__producer__user__tenant=self.finance.tenant)
        self.payment = PaymentFactory(order=self.order)

    def test_confirm_completes_payment_and_confirms_order(self):
        result = self.service.confirm_payment(self.finance, self.payment.id)

        self.assertTrue(result.ok, result.error_detail)
        self.assertEqual(result.value.status, Payment.STATUS_COMPLETED)
        self.assertIsNotNone(result.value.paid_at)
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, Order.PAYMENT_COMPLETED)
        self.assertEqual(self.order.status, Order.STATUS_CONFIRMED)

    def test_partial_payment_does_not_confirm_order(self):
        partial = PaymentFactory(order=self.order, amount=Decimal("100.00"))

        self.service.confirm_payment(self.finance, partial.id)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_PENDING)
        self.assertNotEqual(self.order.payment_status, Order.PAYMENT_COMPLETED)

    def test_confirm_twice_is_invalid(self):
        self.service.confirm_payment(self.finance, self.payment.id)

        self.assertEqual(self.service.confirm_payment(self.finance, self.payment.id).error, ErrorCodes.INVALID_STATE)

    def test_buyer_cannot_confirm(self):
        self.assertEqual(self.service.confirm_payment(self.order.buyer, self.payment.id).error, ErrorCodes.FORBIDDEN)

    def test_fail_payment(self):
        result = self.service.fail_payment(self.finance, self.payment.id, "Insufficient funds")

        self.assertEqual(result.value.status, Payment.STATUS_FAILED)
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, Order.PAYMENT_FAILED)

    def test_full_and_partial_refunds(self):
        self.service.confirm_payment(self.finance, self.payment.id)

        partial = self.service.refund_payment(self.finance, self.payment.id, "100.00", "Short shipment")
        self.assertEqual(partial.value.status, Payment.STATUS_PARTIALLY_REFUNDED)
        self.assertEqual(partial.value.refund_amount, Decimal("100.00"))
        self.assertTrue(partial.value.provider_refund_id.startswith("re_mock_"))

        over = self.service.refund_payment(self.finance, self.payment.id, "200.00")
        self.assertEqual(over.error, ErrorCodes.VALIDATION_ERROR)

        rest = self.service.refund_payment(self.finance, self.payment.id)
        self.assertEqual(rest.value.status, Payment.STATUS_REFUNDED)
        self.assertEqual(rest.value.refund_amount, Decimal("250.00"))
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, Order.PAYMENT_REFUNDED)

    def test_remainder_of_partial_refund_can_be_refunded(self):
        self.service.confirm_payment(self.finance, self.payment.id)
        self.service.refund_payment(self.finance, self.payment.id, "100.00")

        rest = self.service.refund_payment(self.finance, self.payment.id, "150.00")
        again = self.service.refund_payment(self.finance, self.payment.id, "0.01")

        self.assertTrue(rest.ok, rest.error_detail)
        self.assertEqual(rest.value.status, Payment.STATUS_REFUNDED)
        self.assertEqual(again.error, ErrorCodes.INVALID_STATE)

    def test_refund_rechecks_refundable_amount_under_lock(self):
        # A second refund that read the payment before the first one committed
        self.service.confirm_payment(self.finance, self.payment.id)
        stale = Payment.objects.get(pk=self.payment.pk)
        first = self.service.refund_payment(self.finance, self.payment.id)
        refunds_before = len([c for c in self.provider.calls if c["operation"] == "create_refund"])

        with patch("payment_system.domain.services.payment_service.get_in_tenant", return_value=stale):
            second = self.service.refund_payment(self.finance, self.payment.id)

        self.assertTrue(first.ok)
        self.assertEqual(second.error, ErrorCodes.INVALID_STATE)
        self.assertEqual(len([c for c in self.provider.calls if c["operation"] == "create_refund"]), refunds_before)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.refund_amount, Decimal("250.00"))

    def test_partial_refund_rechecks_remaining_amount_under_lock(self):
        self.service.confirm_payment(self.finance, self.payment.id)
        stale = Payment.objects.get(pk=self.payment.pk)
        self.service.refund_payment(self.finance, self.payment.id, "200.00")

        with patch("payment_system.domain.services.payment_service.get_in_tenant", return_value=stale):
            second = self.service.refund_payment(self.finance, self.payment.id, "200.00")

        self.assertEqual(second.error, ErrorCodes.VALIDATION_ERROR)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.refund_amount, Decimal("200.00"))
        self.assertEqual(self.payment.status, Payment.STATUS_PARTIALLY_REFUNDED)

    def test_refund_provider_failure_changes_nothing(self):
        self.service.confirm_payment(self.finance, self.payment.id)
        self.provider.script(Outcome.FAIL)

        result = self.service.refund_payment(self.finance, self.payment.id)

        self.assertEqual(result.error, ErrorCodes.EXTERNAL_SERVICE_ERROR)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, Payment.STATUS_COMPLETED)
        self.assertEqual(self.payment.refund_amount, Decimal("0.00"))

    def test_refund_requires_completed_payment(self):
        self.assertEqual(self.service.refund_payment(self.finance, self.payment.id).error, ErrorCodes.INVALID_STATE)

    def test_release_escrow_once(self):
        self.service.confirm_payment(self.finance, self.payment.id)

        released = self.service.release_escrow(self.finance, self.payment.id)
        again = self.service.release_escrow(self.finance, self.payment.id)

        self.assertTrue(released.value.escrow_released)
        self.assertEqual(again.error, ErrorCodes.INVALID_STATE)

    def test_invalid_payment_id_is_not_found(self):
        self.assertEqual(self.service.get_payment(self.finance, "not-a-uuid").error, ErrorCodes.NOT_FOUND)


class WebhookTest(TestCase):
    def setUp(self):
        container.configure_for_testing()
        self.service = container.payment_service()
        self.payment = PaymentFactory()

    def test_succeeded_event_confirms_payment(self):
        body = webhook_body("payment_intent.succeeded", self.payment.provider_tx_id)

        result = self.service.handle_webhook(body, MOCK_SIGNATURE)

        self.assertEqual(result.value, {"received": True, "handled": True, "payment_id": str(self.payment.id)})
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, Payment.STATUS_COMPLETED)

    def test_redelivered_event_is_acknowledged_without_changes(self):
        body = webhook_body("payment_intent.succeeded", self.payment.provider_tx_id)
        self.service.handle_webhook(body, MOCK_SIGNATURE)

        result = self.service.handle_webhook(body, MOCK_SIGNATURE)

        self.assertTrue(result.ok)
        self.assertFalse(result.value["handled"])

    def test_failed_event_records_reason(self):
        body = webhook_body(
            "payment_intent.payment_failed",
            self.payment.provider_tx_id,
            last_payment_error={"message": "Your card was declined."},
        )

        self.service.handle_webhook(body, MOCK_SIGNATURE)

        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, Payment.STATUS_FAILED)
        self.assertEqual(self.payment.failure_reason, "Your card was declined.")

    def test_bad_signature_is_rejected(self):
        body = webhook_body("payment_intent.succeeded", self.payment.provider_tx_id)

        result = self.service.handle_webhook(body, "forged")

        self.assertEqual(result.error, ErrorCodes.VALIDATION_ERROR)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, Payment.STATUS_PROCESSING)

    def test_unrelated_and_unmatched_events_are_ignored(self):
        ignored = self.service.handle_webhook(webhook_body("charge.updated", "ch_1"), MOCK_SIGNATURE)
        unmatched = self.service.handle_webhook(webhook_body("payment_intent.succeeded", "pi_unknown"), MOCK_SIGNATURE)

        self.assertEqual(ignored.value, {"received": True, "handled": False})
        self.assertEqual(unmatched.value, {"received": True, "handled": False})


class PaymentQueriesTest(TestCase):
    def setUp(self):
        container.configure_for_testing()
        self.service = container.payment_service()
        self.payment = PaymentFactory(status=Payment.STATUS_COMPLETED, paid_at=None)
        self.tenant = self.payment.tenant
        PaymentFactory(order__listing=self.payment.order.listing, status=Payment.STATUS_FAILED)

    def test_buyer_sees_own_payments_only(self):
        result = self.service.list_payments(self.payment.order.buyer)

        self.assertEqual([p.id for p in result.value["results"]], [self.payment.id])

    def test_producer_sees_payments_for_their_listings(self):
        producer_user = self.payment.order.listing.producer.user

        self.assertEqual(self.service.list_payments(producer_user).value["total"], 2)

    def test_stats_for_auditor(self):
        stats = self.service.payment_stats(AuditorFactory(tenant=self.tenant)).value

        self.assertEqual(stats["totalPayments"], 2)
        self.assertEqual(stats["completedPayments"], 1)
        self.assertEqual(stats["failedPayments"], 1)
        self.assertEqual(stats["totalAmount"], "250.00")
        self.assertEqual(stats["netRevenue"], "250.00")

    def test_filters(self):
        auditor = AuditorFactory(tenant=self.tenant)

        result = self.service.list_payments(auditor, {"status": "failed"})

        self.assertEqual(result.value["total"], 1)
