"""
AnalyticsService - tenant dashboards

Read-only aggregates over listings, orders, producers, tokens and policies of
the caller's tenant. Money values are returned as strings.
"""

import logging
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, List

from django.db.models import Count, DecimalField, ExpressionWrapper, F, Q, Sum
from django.utils import timezone

from marketplace.catalog.domain.models import Commodity, Listing
from marketplace.domain.money import quantize_money
from marketplace.domain.scoping import scope_to_tenant
from marketplace.insurance.domain.models import InsurancePolicy
from marketplace.logistics.domain.models import Shipment
from marketplace.ordering.domain.models import Order
from marketplace.producers.domain.models import Producer
from marketplace.services.base import BaseService, ServiceResult, service_ok
from marketplace.tokenization.domain.models import AssetToken
from utils.rbac import is_super_admin

logger = logging.getLogger(__name__)

ACTIVE_VALUE = ExpressionWrapper(
    F("quantity") * F("price_per_unit"), output_field=DecimalField(max_digits=20, decimal_places=2)
)


def _money(value) -> str:
    return str(quantize_money(value or Decimal("0")))


class AnalyticsService(BaseService):
    def _listings(self, actor):
        return scope_to_tenant(Listing.objects.all(), actor)

    def _orders(self, actor):
        return scope_to_tenant(Order.objects.all(), actor)

    @BaseService.log_performance
    def marketplace_stats(self, actor) -> ServiceResult[Dict[str, Any]]:
        listings = self._listings(actor)
        orders = self._orders(actor)
        completed = orders.filter(status=Order.STATUS_COMPLETED).aggregate(
            count=Count("id"), revenue=Sum("total_price")
        )
        revenue = completed["revenue"] or Decimal("0")
        average = revenue / completed["count"] if completed["count"] else Decimal("0")
        return service_ok(
            {
                "totalListings": listings.count(),
                "activeListings": listings.filter(status=Listing.STATUS_ACTIVE).count(),
                "totalOrders": orders.count(),
                "completedOrders": completed["count"],
                "totalRevenue": _money(revenue),
                "averageOrderValue": _money(average),
            }
        )

    @BaseService.log_performance
    def trending_commodities(self, actor, limit: int = 10) -> ServiceResult[List[Dict[str, Any]]]:
        """Commodities ranked by their number of ACTIVE listings in the tenant."""
        active = Q(listings__status=Listing.STATUS_ACTIVE)
        if not is_super_admin(actor):
            active &= Q(listings__tenant_id=actor.tenant_id)
        rows = (
            Commodity.objects.filter(is_active=True)
            .annotate(activeListings=Count("listings", filter=active))
            .filter(activeListings__gt=0)
            .order_by("-activeListings", "name")[:limit]
        )
        return service_ok(
            [
                {"id": str(c.id), "name": c.name, "category": c.category, "activeListings": c.activeListings}
                for c in rows
            ]
        )

    def _commodity_breakdown(self, actor) -> List[Dict[str, Any]]:
        rows = (
            self._listings(actor)
            .filter(status=Listing.STATUS_ACTIVE)
            .values("commodity_id", "commodity__name", "commodity__category", "unit")
            .annotate(listingCount=Count("id"), totalVolume=Sum("quantity"), totalValue=Sum(ACTIVE_VALUE))
            .order_by("-totalValue")
        )
        return [
            {
                "commodityId": str(row["commodity_id"]),
                "name": row["commodity__name"],
                "category": row["commodity__category"],
                "unit": row["unit"],
                "listingCount": row["listingCount"],
                "totalVolume": str(row["totalVolume"] or Decimal("0")),
                "totalValue": _money(row["totalValue"]),
            }
            for row in rows
        ]

    @BaseService.log_performance
    def overview(self, actor) -> ServiceResult[Dict[str, Any]]:
        producers = scope_to_tenant(Producer.objects.all(), actor)
        listings = self._listings(actor)
        orders = self._orders(actor)
        tokens = scope_to_tenant(AssetToken.objects.all(), actor)
        policies = scope_to_tenant(InsurancePolicy.objects.all(), actor)
        shipments = scope_to_tenant(Shipment.objects.all(), actor)

        revenue = orders.filter(payment_status=Order.PAYMENT_COMPLETED).aggregate(total=Sum("total_price"))["total"]

        return service_ok(
            {
                "producers": {
                    "total": producers.count(),
                    "verified": producers.filter(verification_status=Producer.STATUS_VERIFIED).count(),
                },
                "listings": {
                    "total": listings.count(),
                    "active": listings.filter(status=Listing.STATUS_ACTIVE).count(),
                },
                "orders": {
                    "total": orders.count(),
                    "completed": orders.filter(status=Order.STATUS_COMPLETED).count(),
                },
                "tokens": {
                    "total": tokens.count(),
                    "minted": tokens.filter(status__in=("MINTED", "TRANSFERRED")).count(),
                },
                "insurance": {"activePolicies": policies.filter(status="ACTIVE").count()},
                "logistics": {
                    "activeShipments": shipments.exclude(
                        status__in=(Shipment.STATUS_DELIVERED, Shipment.STATUS_CANCELLED)
                    ).count()
                },
                "revenue": _money(revenue),
                "commodityDistribution": [
                    {"name": row["name"], "count": row["listingCount"], "value": row["totalValue"]}
                    for row in self._commodity_breakdown(actor)
                ],
            }
        )

    @BaseService.log_performance
    def commodity_stats(self, actor) -> ServiceResult[List[Dict[str, Any]]]:
        return service_ok(self._commodity_breakdown(actor))

    @BaseService.log_performance
    def dashboard_stats(self, actor) -> ServiceResult[Dict[str, Any]]:
        """Headline numbers plus order growth over the last 30 days vs the 30 before."""
        now = timezone.now()
        orders = self._orders(actor)
        recent = orders.filter(created_at__gte=now - timedelta(days=30)).count()
        previous = orders.filter(
            created_at__gte=now - timedelta(days=60), created_at__lt=now - timedelta(days=30)
        ).count()
        if previous:
            growth = quantize_money(Decimal(recent - previous) * 100 / previous)
        else:
            growth = Decimal("100.00") if recent else Decimal("0.00")

        revenue = orders.filter(status=Order.STATUS_COMPLETED).aggregate(total=Sum("total_price"))["total"]
        return service_ok(
            {
                "totalProducers": scope_to_tenant(Producer.objects.all(), actor).count(),
                "activeListings": self._listings(actor).filter(status=Listing.STATUS_ACTIVE).count(),
                "totalOrders": orders.count(),
                "totalRevenue": _money(revenue),
                "growthRate": str(growth),
            }
        )
