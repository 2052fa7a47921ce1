"""
Stripe Payment Provider
========================

Concrete implementation of PaymentProviderInterface using Stripe PaymentIntents.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional

import stripe
from django.conf import settings
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

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

TRANSIENT_STRIPE_ERRORS = (
    stripe.RateLimitError,
    stripe.APIConnectionError,
    stripe.APIError,
)

stripe_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type(TRANSIENT_STRIPE_ERRORS),
    reraise=True,
)

# Stripe payment_method_types per marketplace payment method
METHOD_TYPES = {
    "CARD": ["card"],
    "BANK_TRANSFER": ["customer_balance"],
    "ESCROW": ["card"],
}


class StripeProvider(PaymentProviderInterface):
    """
    Stripe payment provider implementation.

    Configuration (in settings.py):
        STRIPE_SECRET_KEY: Stripe secret API key
        STRIPE_WEBHOOK_SECRET: Webhook endpoint secret for signature verification
    """

    name = "stripe"
    supported_methods = tuple(METHOD_TYPES)

    def __init__(self):
        """Initialize Stripe provider with API credentials."""
        stripe.api_key = getattr(settings, "STRIPE_SECRET_KEY", "")
        self.webhook_secret = getattr(settings, "STRIPE_WEBHOOK_SECRET", "")

        if not stripe.api_key:
            logger.warning("STRIPE_SECRET_KEY not configured")

    @stripe_retry
    def _create_payment_intent_api(self, **kwargs):
        return stripe.PaymentIntent.create(**kwargs)

    @stripe_retry
    def _retrieve_payment_intent_api(self, intent_id):
        return stripe.PaymentIntent.retrieve(intent_id)

    @stripe_retry
    def _create_refund_api(self, **kwargs):
        return stripe.Refund.create(**kwargs)

    def create_payment_intent(
        self,
        amount: Decimal,
        currency: str,
        method: str,
        metadata: Optional[Dict[str, Any]] = None,
        description: str = "",
    ) -> PaymentIntent:
        """
        Create a Stripe PaymentIntent.

        Args:
            amount: Payment amount in major currency unit (e.g., 10.50 USD)
            currency: ISO currency code
            method: Marketplace payment method (CARD, BANK_TRANSFER, ESCROW)
            metadata: Custom metadata (payment number, order number, tenant)
            description: Statement description

        Raises:
            PaymentException: If intent creation fails
        """
        if method not in METHOD_TYPES:
            raise PaymentException(f"Payment method {method} is not supported by Stripe")

        try:
            params = {
                "amount": to_cents(amount),
                "currency": currency.lower(),
                "payment_method_types": METHOD_TYPES[method],
                "metadata": metadata or {},
            }
            if description:
                params["description"] = description
            if method == "ESCROW":
                # Funds are held until release_escrow captures them
                params["capture_method"] = "manual"

            intent = self._create_payment_intent_api(**params)
            logger.info(f"Created Stripe payment intent: {intent.id}")

            return PaymentIntent(
                intent_id=intent.id,
                amount=intent.amount,
                currency=intent.currency,
                status=self._map_stripe_payment_status(intent.status),
                client_secret=intent.client_secret or "",
                metadata=dict(intent.metadata or {}),
            )

        except stripe.StripeError as e:
            logger.error(f"Stripe payment intent creation failed: {str(e)}")
            raise PaymentException(f"Failed to create payment intent: {str(e)}") from e

    def retrieve_payment_intent(self, intent_id: str) -> PaymentIntent:
        try:
            intent = self._retrieve_payment_intent_api(intent_id)

            logger.info(f"Retrieved payment intent: {intent_id}")

            return PaymentIntent(
                intent_id=intent.id,
                amount=intent.amount,
                currency=intent.currency,
                status=self._map_stripe_payment_status(intent.status),
                metadata=dict(intent.metadata or {}),
            )

        except stripe.StripeError as e:
            logger.error(f"Failed to retrieve payment intent {intent_id}: {str(e)}")
            raise PaymentException(f"Payment intent retrieval failed: {str(e)}") from e

    def create_refund(self, intent_id: str, amount: Optional[Decimal] = None, reason: str = "") -> RefundReceipt:
        """
        Create a refund in Stripe.

        Args:
            intent_id: Stripe payment intent ID
            amount: Partial refund amount (None for full refund)
            reason: One of Stripe's refund reasons, ignored otherwise
        """
        try:
            refund_params = {"payment_intent": intent_id}
            if amount is not None:
                refund_params["amount"] = to_cents(amount)
            if reason in ("duplicate", "fraudulent", "requested_by_customer"):
                refund_params["reason"] = reason

            refund = self._create_refund_api(**refund_params)

            logger.info(f"Created refund: {refund.id} for payment {intent_id}")

            return RefundReceipt(refund_id=refund.id, amount=refund.amount, succeeded=refund.status == "succeeded")

        except stripe.StripeError as e:
            logger.error(f"Refund creation failed: {str(e)}")
            raise PaymentException(f"Refund failed: {str(e)}") from e

    def verify_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        """
        Verify Stripe webhook signature and parse event.

        Raises:
            PaymentException: If verification fails
        """
        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)

            logger.info(f"Verified Stripe webhook event: {event['type']}")

            return WebhookEvent(
                event_id=event["id"],
                event_type=event["type"],
                data=event["data"]["object"],
                created_at=event["created"],
            )

        except ValueError as e:
            logger.error(f"Invalid webhook payload: {str(e)}")
            raise PaymentException("Invalid webhook payload") from e
        except stripe.SignatureVerificationError as e:
            logger.error(f"Webhook signature verification failed: {str(e)}")
            raise PaymentException("Webhook signature verification failed") from e

    def _map_stripe_payment_status(self, stripe_status: str) -> PaymentStatus:
        """Map Stripe payment intent status to internal PaymentStatus."""
        status_mapping = {
            "requires_payment_method": PaymentStatus.PENDING,
            "requires_confirmation": PaymentStatus.PENDING,
            "requires_action": PaymentStatus.PROCESSING,
            "processing": PaymentStatus.PROCESSING,
            "requires_capture": PaymentStatus.PROCESSING,
            "canceled": PaymentStatus.CANCELED,
            "succeeded": PaymentStatus.SUCCEEDED,
        }

        return status_mapping.get(stripe_status, PaymentStatus.FAILED)
