"""
Marketplace Service Layer

Business logic for the marketplace app, one service per bounded context.

Services:
- IdentifierService: Human-readable identifiers from atomic counters
- ProducerService: Producer registry, verification and ratings
- CommodityService: Platform commodity catalogue
- ListingService: Listing lifecycle and browsing
- OrderService: Order placement and the order state machine
- ValidationService / CertificateService: Listing validation and certificates
- InsuranceService: Quotes, policies and claims
- TokenService: Listing tokenization
- ShipmentService: Shipments and tracking events
- NotificationService: User inboxes
- AnalyticsService: Tenant dashboards

Usage:
    from infrastructure.container import container

    result = container.order_service().create_order(buyer, listing_id, quantity)

    if result.ok:
        order = result.value
    else:
        error = result.error
"""

from marketplace.analytics.domain.services.analytics_service import AnalyticsService
from marketplace.catalog.domain.services.commodity_service import CommodityService
from marketplace.catalog.domain.services.listing_service import ListingService
from marketplace.domain.services.identifier_service import IdentifierService
from marketplace.insurance.domain.services.insurance_service import InsuranceService
from marketplace.logistics.domain.services.shipment_service import ShipmentService
from marketplace.notifications.domain.services.notification_service import NotificationService
from marketplace.ordering.domain.services.order_service import OrderService
from marketplace.producers.domain.services.producer_service import ProducerService
from marketplace.tokenization.domain.services.token_service import TokenService
from marketplace.validation.domain.services.certificate_service import CertificateService
from marketplace.validation.domain.services.validation_service import ValidationService

from .base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok

__all__ = [
    # Base classes
    "BaseService",
    "ServiceResult",
    # Helper functions
    "service_ok",
    "service_err",
    # Error codes
    "ErrorCodes",
    # Services
    "AnalyticsService",
    "CertificateService",
    "CommodityService",
    "IdentifierService",
    "InsuranceService",
    "ListingService",
    "NotificationService",
    "OrderService",
    "ProducerService",
    "ShipmentService",
    "TokenService",
    "ValidationService",
]
