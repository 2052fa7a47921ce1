from decimal import Decimal

import pytest

from marketplace.catalog.domain.models import Listing
from marketplace.catalog.domain.services.listing_service import ListingService
from marketplace.producers.domain.models import Producer
from marketplace.services.base import ErrorCodes
from marketplace.tests.factories import (
    BrokerFactory,
    CommodityFactory,
    ListingFactory,
    ProducerFactory,
    TenantFactory,
    UserFactory,
)


@pytest.mark.unit
@pytest.mark.django_db
class TestListingLifecycle:
    @pytest.fixture(autouse=True)
    def setup(self, db):
        self.service = ListingService()
        self.producer = ProducerFactory()
        self.user = self.producer.user
        self.commodity = CommodityFactory(name="Cocoa", unit="MT")

    def _create(self, **overrides):
        data = {
            "commodity_id": self.commodity.id,
            "title": "Grade A cocoa beans",
            "quantity": Decimal("1000"),
            "price_per_unit": Decimal("2.50"),
            **overrides,
        }
        return self.service.create_listing(self.user, data)

    def test_create_listing_starts_as_draft(self):
        result = self._create()

        assert result.ok, result.error_detail
        listing = result.value
        assert listing.status == Listing.STATUS_DRAFT
        assert listing.quantity == listing.listed_quantity == Decimal("1000")
        assert listing.total_price == Decimal("2500.00")
        assert listing.unit == "MT"
        assert listing.currency == "USD"
        assert listing.tenant_id == self.producer.tenant_id

    @pytest.mark.parametrize("field", ["quantity", "price_per_unit"])
    def test_create_rejects_non_positive_numbers(self, field):
        result = self._create(**{field: Decimal("0")})

        assert result.error == ErrorCodes.VALIDATION_ERROR
        assert field in result.error_details

    def test_buyer_cannot_create_listing(self):
        buyer = UserFactory(tenant=self.producer.tenant)

        result = self.service.create_listing(
            buyer, {"commodity_id": self.commodity.id, "title": "x", "quantity": 1, "price_per_unit": 1}
        )

        assert result.error == ErrorCodes.FORBIDDEN

    def test_staff_must_name_the_producer(self):
        broker = BrokerFactory(tenant=self.producer.tenant)
        data = {"commodity_id": self.commodity.id, "title": "x", "quantity": 1, "price_per_unit": 1}

        missing = self.service.create_listing(broker, data)
        on_behalf = self.service.create_listing(broker, {**data, "producer_id": self.producer.id})

        assert missing.error == ErrorCodes.VALIDATION_ERROR
        assert on_behalf.ok
        assert on_behalf.value.producer_id == self.producer.id

    def test_rejected_producer_cannot_list(self):
        self.producer.verification_status = Producer.STATUS_REJECTED
        self.producer.save(update_fields=["verification_status"])
        self.user.refresh_from_db()

        assert self._create().error == ErrorCodes.INVALID_STATE

    def test_unknown_commodity(self):
        inactive = CommodityFactory(name="Retired", is_active=False)

        assert self._create(commodity_id=inactive.id).error == ErrorCodes.NOT_FOUND

    def test_publish_then_approve(self):
        listing = self._create().value

        published = self.service.publish_listing(self.user, listing.id)
        approved = self.service.approve_listing(listing.id, quality_score=Decimal("88"), quality_grade="A")

        assert published.value.status == Listing.STATUS_PENDING_VALIDATION
        assert published.value.published_at is not None
        assert approved.ok
        assert approved.value.status == Listing.STATUS_ACTIVE
        assert approved.value.quality_grade == "A"
        assert approved.value.quality_score == Decimal("88")

    def test_publish_twice_is_invalid_state(self):
        listing = self._create().value
        self.service.publish_listing(self.user, listing.id)

        result = self.service.publish_listing(self.user, listing.id)

        assert result.error == ErrorCodes.INVALID_STATE
        assert result.error_details["status"] == Listing.STATUS_PENDING_VALIDATION

    def test_reject_cancels_pending_listing(self):
        listing = self._create().value
        self.service.publish_listing(self.user, listing.id)

        result = self.service.reject_listing(listing.id, "Moisture too high")

        assert result.value.status == Listing.STATUS_CANCELLED
        assert result.value.rejection_reason == "Moisture too high"

    def test_approve_draft_is_invalid_state(self):
        listing = self._create().value

        assert self.service.approve_listing(listing.id).error == ErrorCodes.INVALID_STATE

    def test_other_producer_cannot_publish(self):
        listing = self._create().value
        stranger = ProducerFactory(user__tenant=self.producer.tenant)

        assert self.service.publish_listing(stranger.user, listing.id).error == ErrorCodes.FORBIDDEN


@pytest.mark.unit
@pytest.mark.django_db
class TestUpdateListing:
    @pytest.fixture(autouse=True)
    def setup(self, db):
        self.service = ListingService()
        self.listing = ListingFactory(quantity=Decimal("900"), listed_quantity=Decimal("1000"))
        self.user = self.listing.producer.user

    def test_quantity_edit_shifts_listed_quantity(self):
        result = self.service.update_listing(self.user, self.listing.id, {"quantity": Decimal("1200")})

        assert result.ok
        assert result.value.quantity == Decimal("1200")
        assert result.value.listed_quantity == Decimal("1300")
        assert result.value.total_price == Decimal("3000.00")

    def test_price_edit_recomputes_total(self):
        result = self.service.update_listing(self.user, self.listing.id, {"price_per_unit": Decimal("3.00")})

        assert result.value.total_price == Decimal("2700.00")

    def test_unknown_fields_are_rejected(self):
        result = self.service.update_listing(self.user, self.listing.id, {"status": "SOLD", "title": "x"})

        assert result.error == ErrorCodes.VALIDATION_ERROR
        assert list(result.error_details) == ["status"]

    def test_negative_quantity_is_rejected(self):
        result = self.service.update_listing(self.user, self.listing.id, {"quantity": Decimal("-1")})

        assert result.error == ErrorCodes.VALIDATION_ERROR

    def test_sold_listing_cannot_be_edited(self):
        Listing.objects.filter(pk=self.listing.pk).update(status=Listing.STATUS_SOLD)

        result = self.service.update_listing(self.user, self.listing.id, {"title": "Renamed"})

        assert result.error == ErrorCodes.INVALID_STATE

    def test_deactivate(self):
        result = self.service.deactivate_listing(self.user, self.listing.id)

        assert result.value.status == Listing.STATUS_CANCELLED
        assert self.service.deactivate_listing(self.user, self.listing.id).error == ErrorCodes.INVALID_STATE

    def test_mark_sold_requires_zero_quantity(self):
        assert self.service.mark_sold(self.listing.id).error == ErrorCodes.INVALID_STATE

        Listing.objects.filter(pk=self.listing.pk).update(quantity=Decimal("0"))

        assert self.service.mark_sold(self.listing.id).value.status == Listing.STATUS_SOLD


@pytest.mark.unit
@pytest.mark.django_db
class TestBrowseListings:
    @pytest.fixture(autouse=True)
    def setup(self, db):
        self.service = ListingService()
        self.tenant = TenantFactory()
        producer = ProducerFactory(user__tenant=self.tenant)
        self.cheap = ListingFactory(producer=producer, price_per_unit=Decimal("1.00"), title="Cheap cashew")
        self.dear = ListingFactory(producer=producer, price_per_unit=Decimal("9.00"), title="Premium coffee")
        self.draft = ListingFactory(producer=producer, status=Listing.STATUS_DRAFT)
        ListingFactory(producer=ProducerFactory(user__tenant=TenantFactory()))
        self.buyer = UserFactory(tenant=self.tenant)

    def test_defaults_to_active_listings_of_own_tenant(self):
        result = self.service.list_listings(self.buyer)

        ids = {listing.id for listing in result.value["results"]}
        assert ids == {self.cheap.id, self.dear.id}

    def test_price_range_and_sort(self):
        result = self.service.list_listings(
            self.buyer, {"min_price": Decimal("0.50"), "max_price": Decimal("10"), "sort_by": "price_per_unit"}
        )

        assert [listing.id for listing in result.value["results"]] == [self.dear.id, self.cheap.id]

    def test_search(self):
        result = self.service.list_listings(self.buyer, {"search": "coffee"})

        assert [listing.id for listing in result.value["results"]] == [self.dear.id]

    def test_unsupported_sort_field(self):
        result = self.service.list_listings(self.buyer, {"sort_by": "producer__tax_id"})

        assert result.error == ErrorCodes.VALIDATION_ERROR

    def test_buyers_do_not_see_drafts(self):
        assert self.service.get_listing(self.buyer, self.draft.id).error == ErrorCodes.NOT_FOUND
        assert self.service.get_listing(self.draft.producer.user, self.draft.id).ok

    def test_pagination(self):
        result = self.service.list_listings(self.buyer, {}, page=2, limit=1)

        assert result.value["page"] == 2
        assert result.value["total"] == 2
        assert result.value["total_pages"] == 2
        assert len(result.value["results"]) == 1
