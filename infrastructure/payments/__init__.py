"""
Payment Service Abstraction Layer
==================================

Provides a unified interface for payment operations across different payment providers.
"""

from .factory import PaymentFactory
from .interface import (
    PaymentException,
    PaymentIntent,
    PaymentProviderInterface,
    PaymentStatus,
    RefundReceipt,
    WebhookEvent,
)
from .manual_provider import ManualSettlementProvider
from .mock_provider import MockPaymentProvider
from .stripe_provider import StripeProvider

__all__ = [
    "ManualSettlementProvider",
    "MockPaymentProvider",
    "PaymentException",
    "PaymentFactory",
    "PaymentIntent",
    "PaymentProviderInterface",
    "PaymentStatus",
    "RefundReceipt",
    "StripeProvider",
    "WebhookEvent",
]
