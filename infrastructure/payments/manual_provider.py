"""
Manual Settlement Provider
==========================

Handles payment methods settled outside a card processor (mobile money,
bank transfer, crypto and stablecoin rails). A reference is issued and the
payment stays PROCESSING until finance confirms it.
"""

import logging
import secrets
from decimal import Decimal
from typing import Any, Dict, Optional

from marketplace.domain.money import to_cents

from .interface import (
    PaymentException,
    PaymentIntent,
    PaymentProviderInterface,
    PaymentStatus,
    RefundReceipt,
    WebhookEvent,
)

logger = logging.getLogger(__name__)

REFERENCE_PREFIX = {
    "MOBILE_MONEY": "MM",
    "BANK_TRANSFER": "BT",
    "CRYPTO": "0x",
    "STABLECOIN": "0x",
    "ESCROW": "ESC",
}


class ManualSettlementProvider(PaymentProviderInterface):
    name = "manual"
    supported_methods = tuple(REFERENCE_PREFIX)

    def create_payment_intent(
        self,
        amount: Decimal,
        currency: str,
        method: str,
        metadata: Optional[Dict[str, Any]] = None,
        description: str = "",
    ) -> PaymentIntent:
        if method not in REFERENCE_PREFIX:
            raise PaymentException(f"Payment method {method} cannot be settled manually")

        prefix = REFERENCE_PREFIX[method]
        # On-chain rails get a transaction-hash shaped reference
        reference = prefix + (secrets.token_hex(32) if prefix == "0x" else secrets.token_hex(8).upper())
        logger.info(f"Issued manual settlement reference for {method} payment")

        return PaymentIntent(
            intent_id=reference,
            amount=to_cents(amount),
            currency=currency.lower(),
            status=PaymentStatus.PROCESSING,
            metadata=metadata or {},
        )

    def retrieve_payment_intent(self, intent_id: str) -> PaymentIntent:
        raise PaymentException("Manual settlements are confirmed by finance, not polled")

    def create_refund(self, intent_id: str, amount: Optional[Decimal] = None, reason: str = "") -> RefundReceipt:
        # Funds are returned off-platform; record the intent only
        return RefundReceipt(refund_id=f"manual-refund-{intent_id[-8:]}", amount=to_cents(amount or 0), succeeded=True)

    def verify_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        raise PaymentException("Manual settlement has no webhooks")
