from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .analytics.api.views.analytics_views import AnalyticsAPIView
from .api.views import prometheus_metrics
from .catalog.api.views.commodity_views import CommodityViewSet
from .catalog.api.views.listing_views import ListingViewSet
from .insurance.api.views.insurance_views import (
    InsuranceClaimViewSet,
    InsurancePolicyViewSet,
    InsuranceQuoteAPIView,
)
from .logistics.api.views.shipment_views import ShipmentViewSet
from .notifications.api.views.notification_views import NotificationViewSet
from .ordering.api.views.order_views import OrderViewSet
from .producers.api.views.producer_views import ProducerViewSet
from .tokenization.api.views.token_views import TokenViewSet
from .validation.api.views.validation_views import CertificateViewSet, ValidationViewSet

# Create the main router
router = DefaultRouter()
router.register(r"producers", ProducerViewSet, basename="producer")
router.register(r"commodities", CommodityViewSet, basename="commodity")
router.register(r"listings", ListingViewSet, basename="listing")
router.register(r"orders", OrderViewSet, basename="order")
router.register(r"validations", ValidationViewSet, basename="validation")
router.register(r"certificates", CertificateViewSet, basename="certificate")
router.register(r"insurance/policies", InsurancePolicyViewSet, basename="insurance-policy")
router.register(r"insurance/claims", InsuranceClaimViewSet, basename="insurance-claim")
router.register(r"tokens", TokenViewSet, basename="token")
router.register(r"shipments", ShipmentViewSet, basename="shipment")
router.register(r"notifications", NotificationViewSet, basename="notification")

app_name = "marketplace"

urlpatterns = [
    path("insurance/quote/", InsuranceQuoteAPIView.as_view(), name="insurance-quote"),
    path("analytics/", AnalyticsAPIView.as_view(), name="analytics"),
    # Main API routes
    path("", include(router.urls)),
    # Prometheus metrics endpoint
    path("metrics/", prometheus_metrics.marketplace_prometheus_metrics, name="marketplace-metrics"),
]
