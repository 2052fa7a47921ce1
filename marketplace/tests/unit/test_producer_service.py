from decimal import Decimal

import pytest

from marketplace.catalog.domain.services.commodity_service import CommodityService
from marketplace.ordering.domain.models import Order
from marketplace.producers.domain.models import Producer
from marketplace.producers.domain.services.producer_service import ProducerService
from marketplace.services.base import ErrorCodes
from marketplace.tests.factories import (
    BrokerFactory,
    CommodityFactory,
    ListingFactory,
    OrderFactory,
    ProducerFactory,
    ProducerUserFactory,
    SuperAdminFactory,
    TenantAdminFactory,
    TenantFactory,
    UserFactory,
)


@pytest.mark.unit
@pytest.mark.django_db
class TestProducerRegistry:
    @pytest.fixture(autouse=True)
    def setup(self, db):
        self.service = ProducerService()
        self.tenant = TenantFactory(country="GH")
        self.user = ProducerUserFactory(tenant=self.tenant)
        self.admin = TenantAdminFactory(tenant=self.tenant)

    def test_register_issues_economic_id(self):
        result = self.service.register_producer(self.user, {"type": "FARMER", "name": "Kofi Mensah Farms"})

        assert result.ok, result.error_detail
        producer = result.value
        assert producer.economic_id.startswith("SRGG-GH-")
        assert producer.verification_status == Producer.STATUS_PENDING
        assert producer.tenant_id == self.tenant.id
        assert producer.country == "GH"

    def test_register_requires_type_and_name(self):
        result = self.service.register_producer(self.user, {"type": "FARMER"})

        assert result.error == ErrorCodes.VALIDATION_ERROR
        assert "name" in result.error_details

    def test_one_profile_per_user(self):
        self.service.register_producer(self.user, {"type": "FARMER", "name": "First"})

        result = self.service.register_producer(self.user, {"type": "MINER", "name": "Second"})

        assert result.error == ErrorCodes.CONFLICT

    def test_staff_registers_on_behalf(self):
        result = self.service.register_producer(
            self.admin, {"type": "COOPERATIVE", "name": "Ashanti Co-op", "user_id": self.user.id}
        )

        assert result.ok
        assert result.value.user_id == self.user.id

    def test_non_staff_cannot_register_for_others(self):
        other = UserFactory(tenant=self.tenant)

        result = self.service.register_producer(other, {"type": "FARMER", "name": "x", "user_id": self.user.id})

        assert result.error == ErrorCodes.FORBIDDEN

    def test_verify_and_reject(self):
        producer = ProducerFactory(user=self.user, verification_status=Producer.STATUS_PENDING)

        verified = self.service.verify_producer(self.admin, producer.id)
        again = self.service.reject_producer(self.admin, producer.id, "late")

        assert verified.value.verification_status == Producer.STATUS_VERIFIED
        assert verified.value.verified_by == self.admin
        assert again.error == ErrorCodes.INVALID_STATE

    def test_only_staff_verifies(self):
        producer = ProducerFactory(user=self.user, verification_status=Producer.STATUS_PENDING)

        assert self.service.verify_producer(self.user, producer.id).error == ErrorCodes.FORBIDDEN

    def test_update_blocks_economic_id(self):
        producer = ProducerFactory(user=self.user)

        blocked = self.service.update_producer(self.user, producer.id, {"economic_id": "SRGG-XX-00-000000"})
        allowed = self.service.update_producer(self.user, producer.id, {"phone": "+233200000000", "country": "ci"})

        assert blocked.error == ErrorCodes.VALIDATION_ERROR
        assert allowed.value.phone == "+233200000000"
        assert allowed.value.country == "CI"

    def test_rating_is_a_running_average(self):
        producer = ProducerFactory(user=self.user)
        buyer = UserFactory(tenant=self.tenant)

        self.service.rate_producer(buyer, producer.id, 8)
        result = self.service.rate_producer(buyer, producer.id, 9)

        assert result.value.rating == Decimal("8.50")
        assert result.value.rating_count == 2

    def test_rating_bounds_and_self_rating(self):
        producer = ProducerFactory(user=self.user)

        assert self.service.rate_producer(self.admin, producer.id, 11).error == ErrorCodes.VALIDATION_ERROR
        assert self.service.rate_producer(self.user, producer.id, 5).error == ErrorCodes.FORBIDDEN

    def test_producer_of_other_tenant_is_not_found(self):
        foreign = ProducerFactory(user__tenant=TenantFactory())

        assert self.service.get_producer(self.admin, foreign.id).error == ErrorCodes.NOT_FOUND
        assert self.service.get_producer(SuperAdminFactory(), foreign.id).ok

    def test_lookup_by_economic_id(self):
        producer = ProducerFactory(user=self.user)

        assert self.service.get_by_economic_id(self.admin, producer.economic_id).value == producer
        assert self.service.get_by_economic_id(self.admin, "SRGG-GH-99-999999").error == ErrorCodes.NOT_FOUND

    def test_list_filters(self):
        ProducerFactory(user=self.user, type="MINER", name="Obuasi Gold")
        ProducerFactory(user__tenant=self.tenant, type="FARMER", name="Cocoa Grove")

        result = self.service.list_producers(self.admin, {"type": "MINER"})

        assert [p.name for p in result.value["results"]] == ["Obuasi Gold"]
        assert self.service.list_producers(self.admin, {"search": "grove"}).value["total"] == 1


@pytest.mark.unit
@pytest.mark.django_db
class TestProducerDashboard:
    def test_dashboard_totals(self, db):
        service = ProducerService()
        order = OrderFactory(status=Order.STATUS_COMPLETED)
        producer = order.listing.producer
        ListingFactory(producer=producer)

        result = service.producer_dashboard(producer.user)

        assert result.ok
        stats = result.value["stats"]
        assert stats["totalListings"] == 2
        assert stats["activeListings"] == 2
        assert stats["totalOrders"] == 1
        assert stats["totalRevenue"] == "250.00"

    def test_dashboard_needs_a_profile(self, db):
        assert ProducerService().producer_dashboard(UserFactory()).error == ErrorCodes.NOT_FOUND

    def test_broker_views_any_producer_dashboard(self, db):
        producer = ProducerFactory()
        broker = BrokerFactory(tenant=producer.tenant)

        assert ProducerService().producer_dashboard(broker, producer.id).ok


@pytest.mark.unit
@pytest.mark.django_db
class TestCommodityService:
    @pytest.fixture(autouse=True)
    def setup(self, db):
        self.service = CommodityService()
        CommodityFactory(name="Cocoa", category="AGRICULTURE", hs_code="1801")
        CommodityFactory(name="Gold", category="MINERALS", unit="oz", hs_code="7108")
        CommodityFactory(name="Old Rubber", is_active=False)

    def test_list_active_by_default(self):
        names = [c.name for c in self.service.list_commodities().value]

        assert names == ["Cocoa", "Gold"]

    def test_filter_by_category_and_search(self):
        assert [c.name for c in self.service.list_commodities(category="minerals").value] == ["Gold"]
        assert [c.name for c in self.service.list_commodities(search="1801").value] == ["Cocoa"]
        assert len(self.service.list_commodities(include_inactive=True).value) == 3

    def test_admin_creates_commodity(self):
        admin = TenantAdminFactory()

        result = self.service.create_commodity(admin, {"name": "Cashew", "category": "agriculture", "unit": "MT"})

        assert result.ok
        assert result.value.category == "AGRICULTURE"

    def test_duplicate_name_conflicts(self):
        result = self.service.create_commodity(
            SuperAdminFactory(), {"name": "cocoa", "category": "AGRICULTURE", "unit": "MT"}
        )

        assert result.error == ErrorCodes.CONFLICT

    def test_bad_category_and_role(self):
        admin = TenantAdminFactory()

        assert (
            self.service.create_commodity(admin, {"name": "x", "category": "SPACE", "unit": "kg"}).error
            == ErrorCodes.VALIDATION_ERROR
        )
        assert (
            self.service.create_commodity(UserFactory(), {"name": "x", "category": "MINERALS", "unit": "kg"}).error
            == ErrorCodes.FORBIDDEN
        )
