"""
Payment Provider Factory
=========================

Factory pattern for creating payment provider instances based on configuration.
"""

import logging
from typing import Literal, Optional

from django.conf import settings

from .interface import PaymentProviderInterface
from .manual_provider import ManualSettlementProvider
from .mock_provider import MockPaymentProvider
from .stripe_provider import StripeProvider

logger = logging.getLogger(__name__)

PaymentBackend = Literal["stripe", "mock", "manual"]


class PaymentFactory:
    """
    Factory for creating payment provider instances.

    Usage:
        # In settings.py
        INFRASTRUCTURE = {"PAYMENT_PROVIDER": "stripe", ...}

        # In your code
        payment_provider = PaymentFactory.create()
    """

    @staticmethod
    def create(backend: Optional[PaymentBackend] = None) -> PaymentProviderInterface:
        """
        Create a payment provider instance.

        Args:
            backend: 'stripe', 'mock' or 'manual'. If None, reads
                     settings.INFRASTRUCTURE["PAYMENT_PROVIDER"]

        Raises:
            ValueError: If backend type is invalid
        """
        backend_type = backend or getattr(settings, "INFRASTRUCTURE", {}).get("PAYMENT_PROVIDER", "stripe")

        logger.info(f"Creating payment provider: {backend_type}")

        if backend_type == "stripe":
            return StripeProvider()
        if backend_type == "mock":
            return MockPaymentProvider()
        if backend_type == "manual":
            return ManualSettlementProvider()
        raise ValueError(f"Invalid payment provider: {backend_type}. Expected 'stripe', 'mock' or 'manual'")
