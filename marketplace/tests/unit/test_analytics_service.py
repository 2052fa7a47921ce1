from datetime import timedelta

import pytest
from django.utils import timezone

from marketplace.analytics.domain.services.analytics_service import AnalyticsService
from marketplace.catalog.domain.models import Listing
from marketplace.ordering.domain.models import Order
from marketplace.tests.factories import (
    BrokerFactory,
    CommodityFactory,
    ListingFactory,
    OrderFactory,
    SuperAdminFactory,
    TenantFactory,
)


@pytest.mark.unit
@pytest.mark.django_db
class TestAnalyticsService:
    @pytest.fixture(autouse=True)
    def setup(self, db):
        self.service = AnalyticsService()
        self.cocoa = CommodityFactory(name="Cocoa")
        self.gold = CommodityFactory(name="Gold", category="MINERALS", unit="oz")
        self.order = OrderFactory(
            listing__commodity=self.cocoa, status=Order.STATUS_COMPLETED, payment_status=Order.PAYMENT_COMPLETED
        )
        self.tenant = self.order.tenant
        self.producer = self.order.listing.producer
        ListingFactory(producer=self.producer, commodity=self.cocoa)
        ListingFactory(producer=self.producer, commodity=self.gold)
        ListingFactory(producer=self.producer, commodity=self.gold, status=Listing.STATUS_DRAFT)
        self.broker = BrokerFactory(tenant=self.tenant)

        # Noise in another tenant
        OrderFactory(listing__producer__user__tenant=TenantFactory(), listing__commodity=self.gold)

    def test_marketplace_stats(self):
        stats = self.service.marketplace_stats(self.broker).value

        assert stats["totalListings"] == 4
        assert stats["activeListings"] == 3
        assert stats["totalOrders"] == 1
        assert stats["completedOrders"] == 1
        assert stats["totalRevenue"] == "250.00"
        assert stats["averageOrderValue"] == "250.00"

    def test_trending_commodities_rank_by_active_listings(self):
        rows = self.service.trending_commodities(self.broker).value

        assert [(row["name"], row["activeListings"]) for row in rows] == [("Cocoa", 2), ("Gold", 1)]
        assert len(self.service.trending_commodities(self.broker, limit=1).value) == 1

    def test_super_admin_sees_every_tenant(self):
        rows = self.service.trending_commodities(SuperAdminFactory()).value

        assert dict((row["name"], row["activeListings"]) for row in rows) == {"Cocoa": 2, "Gold": 2}
        assert self.service.marketplace_stats(SuperAdminFactory()).value["totalOrders"] == 2

    def test_commodity_stats(self):
        rows = self.service.commodity_stats(self.broker).value

        cocoa = next(row for row in rows if row["name"] == "Cocoa")
        assert cocoa["listingCount"] == 2
        assert cocoa["totalValue"] == "5000.00"

    def test_overview(self):
        overview = self.service.overview(self.broker).value

        assert overview["producers"] == {"total": 1, "verified": 1}
        assert overview["listings"] == {"total": 4, "active": 3}
        assert overview["orders"] == {"total": 1, "completed": 1}
        assert overview["tokens"] == {"total": 0, "minted": 0}
        assert overview["logistics"] == {"activeShipments": 0}
        assert overview["revenue"] == "250.00"

    def test_dashboard_growth_rate(self):
        older = OrderFactory(listing=self.order.listing)
        Order.objects.filter(pk=older.pk).update(created_at=timezone.now() - timedelta(days=45))

        stats = self.service.dashboard_stats(self.broker).value

        assert stats["totalOrders"] == 2
        assert stats["growthRate"] == "0.00"

    def test_dashboard_growth_without_history(self):
        assert self.service.dashboard_stats(self.broker).value["growthRate"] == "100.00"
