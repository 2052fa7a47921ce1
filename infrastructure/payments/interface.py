"""
Payment Provider Interface
===========================

Abstract base class defining the contract for payment operations.
Services create an intent with the provider, keep the provider reference on the
Payment row and wait for confirmation (API call or webhook).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional


class PaymentStatus(str, Enum):
    """Provider-side payment status."""

    PENDING = "pending"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"
    REFUNDED = "refunded"


@dataclass
class PaymentIntent:
    """
    Represents a payment intent/transaction.

    Attributes:
        intent_id: Provider transaction identifier
        amount: Payment amount in smallest currency unit
        currency: ISO currency code
        status: Current payment status
        client_secret: Secret handed to the client to complete the payment
        metadata: Additional custom data
    """

    intent_id: str
    amount: int
    currency: str
    status: PaymentStatus
    client_secret: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RefundReceipt:
    refund_id: str
    amount: int
    succeeded: bool


@dataclass
class WebhookEvent:
    """
    Represents a webhook event from payment provider.

    Attributes:
        event_id: Unique event identifier
        event_type: Type of event (e.g., 'payment_intent.succeeded')
        data: Event payload object
        created_at: Event creation timestamp
    """

    event_id: str
    event_type: str
    data: Dict[str, Any]
    created_at: int


class PaymentProviderInterface(ABC):
    """
    Abstract interface for payment provider operations.

    Concrete implementations:
        - StripeProvider: Stripe PaymentIntents
        - MockPaymentProvider: in-process test double
    """

    name = "abstract"
    supported_methods: tuple = ()

    def supports(self, method: str) -> bool:
        return method in self.supported_methods

    @abstractmethod
    def create_payment_intent(
        self,
        amount: Decimal,
        currency: str,
        method: str,
        metadata: Optional[Dict[str, Any]] = None,
        description: str = "",
    ) -> PaymentIntent:
        """
        Start a payment for ``amount`` (major currency units).

        Raises:
            PaymentException: If the provider rejects the payment
        """
        pass

    @abstractmethod
    def retrieve_payment_intent(self, intent_id: str) -> PaymentIntent:
        """
        Retrieve payment intent details.

        Raises:
            PaymentException: If retrieval fails
        """
        pass

    @abstractmethod
    def create_refund(self, intent_id: str, amount: Optional[Decimal] = None, reason: str = "") -> RefundReceipt:
        """
        Refund a payment, fully when ``amount`` is None.

        Raises:
            PaymentException: If refund creation fails
        """
        pass

    @abstractmethod
    def verify_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        """
        Verify and parse webhook event from payment provider.

        Raises:
            PaymentException: If verification fails or signature is invalid
        """
        pass


class PaymentException(Exception):
    """Base exception for payment operations."""

    pass
