"""
Dependency Injection Container
================================

Service locator for infrastructure providers and the domain services that use
them. Providers are resolved through their factories (driven by
``settings.INFRASTRUCTURE``) and cached; services are built lazily with their
collaborators injected.

Usage:
    from infrastructure.container import container

    order_service = container.order_service()
    provider = container.payment()
"""

import logging
from typing import Optional

from .insurance import InsuranceProviderFactory, InsuranceProviderInterface
from .payments import PaymentFactory, PaymentProviderInterface
from .tokenization import TokenMintFactory, TokenMintProviderInterface

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Service container for infrastructure dependencies.

    Implements lazy initialization and caching of service instances.
    Singleton: every ``ServiceContainer()`` call returns the same object.
    """

    _instance: Optional["ServiceContainer"] = None
    _initialized: bool = False

    def __new__(cls):
        """Ensure only one instance exists (singleton pattern)."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize container (only once)."""
        if not self._initialized:
            self._clear()
            self._initialized = True
            logger.info("Service container initialized")

    def _clear(self):
        # Providers
        self._payment: Optional[PaymentProviderInterface] = None
        self._manual_payment: Optional[PaymentProviderInterface] = None
        self._insurance: Optional[InsuranceProviderInterface] = None
        self._token_mint: Optional[TokenMintProviderInterface] = None

        # Domain Services
        self._services = {}

    # ----- Providers -----

    def payment(self, backend: Optional[str] = None) -> PaymentProviderInterface:
        """
        Get payment provider instance.

        Args:
            backend: 'stripe', 'mock' or 'manual'; None uses settings
        """
        if self._payment is None or backend is not None:
            self._payment = PaymentFactory.create(backend)
            logger.debug(f"Created payment provider: {type(self._payment).__name__}")
        return self._payment

    def manual_payment(self) -> PaymentProviderInterface:
        """Provider for methods the primary processor does not handle."""
        if self._manual_payment is None:
            self._manual_payment = PaymentFactory.create("manual")
        return self._manual_payment

    def insurance(self, backend: Optional[str] = None) -> InsuranceProviderInterface:
        if self._insurance is None or backend is not None:
            self._insurance = InsuranceProviderFactory.create(backend)
            logger.debug(f"Created insurance provider: {type(self._insurance).__name__}")
        return self._insurance

    def token_mint(self, backend: Optional[str] = None) -> TokenMintProviderInterface:
        if self._token_mint is None or backend is not None:
            self._token_mint = TokenMintFactory.create(backend)
            logger.debug(f"Created token mint provider: {type(self._token_mint).__name__}")
        return self._token_mint

    # ----- Domain services -----

    def _service(self, name, build):
        if name not in self._services:
            self._services[name] = build()
            logger.debug(f"Created {name}")
        return self._services[name]

    def identifier_service(self):
        """Get IdentifierService instance."""
        from marketplace.services import IdentifierService

        return self._service("IdentifierService", IdentifierService)

    def producer_service(self):
        from marketplace.services import ProducerService

        return self._service("ProducerService", lambda: ProducerService(identifiers=self.identifier_service()))

    def commodity_service(self):
        from marketplace.services import CommodityService

        return self._service("CommodityService", CommodityService)

    def listing_service(self):
        from marketplace.services import ListingService

        return self._service("ListingService", ListingService)

    def order_service(self):
        """Get OrderService instance."""
        from marketplace.services import OrderService

        return self._service(
            "OrderService",
            lambda: OrderService(
                identifiers=self.identifier_service(),
                listings=self.listing_service(),
                notifications=self.notification_service(),
            ),
        )

    def validation_service(self):
        from marketplace.services import ValidationService

        return self._service(
            "ValidationService",
            lambda: ValidationService(
                listing_service=self.listing_service(),
                certificate_service=self.certificate_service(),
            ),
        )

    def certificate_service(self):
        from marketplace.services import CertificateService

        return self._service("CertificateService", lambda: CertificateService(identifiers=self.identifier_service()))

    def insurance_service(self):
        from marketplace.services import InsuranceService

        return self._service(
            "InsuranceService",
            lambda: InsuranceService(provider=self.insurance(), identifiers=self.identifier_service()),
        )

    def token_service(self):
        from marketplace.services import TokenService

        return self._service(
            "TokenService",
            lambda: TokenService(provider=self.token_mint(), identifiers=self.identifier_service()),
        )

    def shipment_service(self):
        from marketplace.services import ShipmentService

        return self._service(
            "ShipmentService",
            lambda: ShipmentService(
                identifiers=self.identifier_service(),
                orders=self.order_service(),
                notifications=self.notification_service(),
            ),
        )

    def notification_service(self):
        from marketplace.services import NotificationService

        return self._service("NotificationService", NotificationService)

    def analytics_service(self):
        from marketplace.services import AnalyticsService

        return self._service("AnalyticsService", AnalyticsService)

    def payment_service(self):
        from payment_system.domain.services.payment_service import PaymentService

        return self._service(
            "PaymentService",
            lambda: PaymentService(
                provider=self.payment(),
                fallback_provider=self.manual_payment(),
                identifiers=self.identifier_service(),
                order_service=self.order_service(),
            ),
        )

    def auth_service(self):
        from authentication.domain.services.auth_service import AuthService

        return self._service("AuthService", AuthService)

    def reset(self):
        """
        Reset all cached service instances.

        Useful for testing or when switching between environments.
        """
        self._clear()
        logger.info("Service container reset")

    def configure_for_testing(self):
        """Swap every external provider for its in-process mock."""
        self._clear()
        self._payment = PaymentFactory.create("mock")
        self._insurance = InsuranceProviderFactory.create("mock")
        self._token_mint = TokenMintFactory.create("mock")
        logger.info("Service container configured for testing")


# Global singleton instance
container = ServiceContainer()


def get_payment_provider() -> PaymentProviderInterface:
    """Get payment provider from global container."""
    return container.payment()
