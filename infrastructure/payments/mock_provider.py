"""
Mock Payment Provider
=====================

In-process PaymentProviderInterface used by tests and local development.
"""

import json
import logging
import uuid
from decimal import Decimal
from typing import Any, Dict, Optional

from marketplace.domain.money import to_cents

from ..scripted import ScriptedProvider
from .interface import (
    PaymentException,
    PaymentIntent,
    PaymentProviderInterface,
    PaymentStatus,
    RefundReceipt,
    WebhookEvent,
)

logger = logging.getLogger(__name__)

MOCK_SIGNATURE = "mock-signature"


class MockPaymentProvider(ScriptedProvider, PaymentProviderInterface):
    """
    Mock payment provider.

    Accepts every payment method, keeps created intents in memory and
    verifies webhooks signed with ``MOCK_SIGNATURE``.
    """

    name = "mock"
    supported_methods = ("CARD", "BANK_TRANSFER", "MOBILE_MONEY", "CRYPTO", "STABLECOIN", "ESCROW")

    def __init__(self):
        super().__init__()
        self.intents: Dict[str, PaymentIntent] = {}

    def create_payment_intent(
        self,
        amount: Decimal,
        currency: str,
        method: str,
        metadata: Optional[Dict[str, Any]] = None,
        description: str = "",
    ) -> PaymentIntent:
        self._perform("create_payment_intent", PaymentException, amount=amount, currency=currency, method=method)
        intent = PaymentIntent(
            intent_id=f"pi_mock_{uuid.uuid4().hex[:24]}",
            amount=to_cents(amount),
            currency=currency.lower(),
            status=PaymentStatus.PROCESSING,
            client_secret=f"secret_{uuid.uuid4().hex[:16]}",
            metadata=metadata or {},
        )
        self.intents[intent.intent_id] = intent
        return intent

    def retrieve_payment_intent(self, intent_id: str) -> PaymentIntent:
        self._perform("retrieve_payment_intent", PaymentException, intent_id=intent_id)
        if intent_id not in self.intents:
            raise PaymentException(f"Unknown payment intent {intent_id}")
        return self.intents[intent_id]

    def create_refund(self, intent_id: str, amount: Optional[Decimal] = None, reason: str = "") -> RefundReceipt:
        self._perform("create_refund", PaymentException, intent_id=intent_id, amount=amount)
        if amount is not None:
            refunded = to_cents(amount)
        else:
            refunded = self.intents[intent_id].amount if intent_id in self.intents else 0
        return RefundReceipt(refund_id=f"re_mock_{uuid.uuid4().hex[:24]}", amount=refunded, succeeded=True)

    def verify_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        if signature != MOCK_SIGNATURE:
            raise PaymentException("Webhook signature verification failed")
        try:
            event = json.loads(payload)
        except ValueError as e:
            raise PaymentException("Invalid webhook payload") from e
        return WebhookEvent(
            event_id=event.get("id", ""),
            event_type=event["type"],
            data=event["data"]["object"],
            created_at=event.get("created", 0),
        )
