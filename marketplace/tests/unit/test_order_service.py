import threading
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import connection
from django.db.models import Sum

from marketplace.catalog.domain.models import Listing
from marketplace.ordering.domain.models import Order
from marketplace.ordering.domain.services.order_service import OrderService
from marketplace.services.base import ErrorCodes
from marketplace.tests.factories import (
    BrokerFactory,
    FinanceFactory,
    ListingFactory,
    OrderFactory,
    ProducerFactory,
    TenantFactory,
    UserFactory,
)

# 1000 listed, 100 ordered by OrderFactory
QUANTITY_AFTER_ORDER = Decimal("900")


@pytest.mark.unit
@pytest.mark.django_db
class TestCreateOrder:
    @pytest.fixture(autouse=True)
    def setup(self, db):
        self.service = OrderService()
        self.tenant = TenantFactory(slug="accra")
        self.listing = ListingFactory(producer=ProducerFactory(user__tenant=self.tenant))
        self.buyer = UserFactory(tenant=self.tenant)

    def test_create_order_reserves_quantity(self):
        result = self.service.create_order(self.buyer, self.listing.id, Decimal("100"))

        assert result.ok, result.error_detail
        order = result.value
        assert order.status == Order.STATUS_PENDING
        assert order.payment_status == Order.PAYMENT_PENDING
        assert order.total_price == Decimal("250.00")
        assert order.platform_fee == Decimal("6.25")
        assert order.currency == "USD"
        assert order.order_number.startswith("ORD-ACCRA-")

        self.listing.refresh_from_db()
        assert self.listing.quantity == Decimal("900")
        assert self.listing.listed_quantity == Decimal("1000")

    def test_order_numbers_are_sequential(self):
        first = self.service.create_order(self.buyer, self.listing.id, 1).value
        second = self.service.create_order(self.buyer, self.listing.id, 1).value

        assert first.order_number.endswith("00000001")
        assert second.order_number.endswith("00000002")

    @pytest.mark.parametrize("quantity", [0, -5, "abc", None])
    def test_rejects_invalid_quantity(self, quantity):
        result = self.service.create_order(self.buyer, self.listing.id, quantity)

        assert not result.ok
        assert result.error == ErrorCodes.VALIDATION_ERROR
        assert Order.objects.count() == 0

    def test_rejects_more_than_available(self):
        result = self.service.create_order(self.buyer, self.listing.id, Decimal("1000.001"))

        assert result.error == ErrorCodes.INSUFFICIENT_QUANTITY
        assert result.error_details["available"] == "1000.000"

    def test_second_order_fails_when_first_drained_listing(self):
        first = self.service.create_order(self.buyer, self.listing.id, 600)
        second = self.service.create_order(UserFactory(tenant=self.tenant), self.listing.id, 600)

        assert first.ok
        assert second.error == ErrorCodes.INSUFFICIENT_QUANTITY
        self.listing.refresh_from_db()
        assert self.listing.quantity == Decimal("400")
        assert Order.objects.count() == 1

    def test_rejects_quantity_finer_than_stored_scale(self):
        too_fine = self.service.create_order(self.buyer, self.listing.id, Decimal("0.0004"))
        trailing_zeros = self.service.create_order(self.buyer, self.listing.id, Decimal("1.5000"))

        assert too_fine.error == ErrorCodes.VALIDATION_ERROR
        assert "quantity" in too_fine.error_details
        assert trailing_zeros.ok
        assert trailing_zeros.value.quantity == Decimal("1.500")
        self.listing.refresh_from_db()
        assert self.listing.quantity == Decimal("998.500")

    def test_two_buyers_racing_for_600_of_1000(self):
        # Both requests read the listing with 1000 available before either reserves
        stale = Listing.objects.get(pk=self.listing.pk)
        rival = UserFactory(tenant=self.tenant)

        with patch("marketplace.ordering.domain.services.order_service.get_in_tenant", return_value=stale):
            first = self.service.create_order(self.buyer, self.listing.id, 600)
            second = self.service.create_order(rival, self.listing.id, 600)

        assert first.ok
        assert second.error == ErrorCodes.INSUFFICIENT_QUANTITY
        assert Order.objects.count() == 1
        self.listing.refresh_from_db()
        assert self.listing.quantity == Decimal("400")

    def test_lost_reservation_race_rolls_back(self):
        # Another buyer took quantity between the availability check and the update
        stale = Listing.objects.get(pk=self.listing.pk)
        Listing.objects.filter(pk=self.listing.pk).update(quantity=Decimal("100"))

        with patch("marketplace.ordering.domain.services.order_service.get_in_tenant", return_value=stale):
            result = self.service.create_order(self.buyer, self.listing.id, 600)

        assert result.error == ErrorCodes.INSUFFICIENT_QUANTITY
        assert Order.objects.count() == 0
        self.listing.refresh_from_db()
        assert self.listing.quantity == Decimal("100")

    def test_listing_must_be_active(self):
        draft = ListingFactory(producer=self.listing.producer, status=Listing.STATUS_DRAFT)

        result = self.service.create_order(self.buyer, draft.id, 1)

        assert result.error == ErrorCodes.INVALID_STATE

    def test_producer_cannot_buy_own_listing(self):
        result = self.service.create_order(self.listing.producer.user, self.listing.id, 1)

        assert result.error == ErrorCodes.FORBIDDEN

    def test_listing_of_other_tenant_is_not_found(self):
        outsider = UserFactory(tenant=TenantFactory(slug="lagos"))

        result = self.service.create_order(outsider, self.listing.id, 1)

        assert result.error == ErrorCodes.NOT_FOUND
        self.listing.refresh_from_db()
        assert self.listing.quantity == Decimal("1000")


@pytest.mark.unit
@pytest.mark.django_db
class TestTransitionOrder:
    @pytest.fixture(autouse=True)
    def setup(self, db):
        self.service = OrderService()
        self.order = OrderFactory()
        self.listing = self.order.listing
        self.producer_user = self.listing.producer.user
        Listing.objects.filter(pk=self.listing.pk).update(quantity=QUANTITY_AFTER_ORDER)

    def _walk(self, *statuses, actor=None):
        for status in statuses:
            result = self.service.transition_order(self.order.id, actor or self.producer_user, status)
            assert result.ok, result.error_detail
        return result.value

    def test_producer_confirms_and_ships(self):
        order = self._walk(Order.STATUS_CONFIRMED, Order.STATUS_PROCESSING)
        result = self.service.transition_order(
            order.id, self.producer_user, Order.STATUS_SHIPPED, tracking_number="TRK-001"
        )

        assert result.ok
        assert result.value.tracking_number == "TRK-001"
        assert result.value.confirmed_at is not None
        assert result.value.shipped_at is not None

    def test_skipping_a_step_is_an_invalid_transition(self):
        result = self.service.transition_order(self.order.id, self.producer_user, Order.STATUS_SHIPPED)

        assert result.error == ErrorCodes.INVALID_TRANSITION
        assert result.error_details == {"from": "PENDING", "to": "SHIPPED"}
        self.order.refresh_from_db()
        assert self.order.status == Order.STATUS_PENDING

    def test_unknown_status_is_a_validation_error(self):
        result = self.service.transition_order(self.order.id, self.producer_user, "LOST")

        assert result.error == ErrorCodes.VALIDATION_ERROR

    def test_buyer_cannot_confirm(self):
        result = self.service.transition_order(self.order.id, self.order.buyer, Order.STATUS_CONFIRMED)

        assert result.error == ErrorCodes.FORBIDDEN

    def test_only_buyer_or_staff_completes(self):
        self._walk(Order.STATUS_CONFIRMED, Order.STATUS_PROCESSING, Order.STATUS_SHIPPED, Order.STATUS_DELIVERED)

        denied = self.service.transition_order(self.order.id, self.producer_user, Order.STATUS_COMPLETED)
        allowed = self.service.transition_order(self.order.id, self.order.buyer, Order.STATUS_COMPLETED)

        assert denied.error == ErrorCodes.FORBIDDEN
        assert allowed.ok
        assert allowed.value.completed_at is not None

    def test_cancel_returns_quantity(self):
        result = self.service.cancel_order(self.order.id, self.order.buyer, "Changed my mind")

        assert result.ok
        assert result.value.status == Order.STATUS_CANCELLED
        assert result.value.cancellation_reason == "Changed my mind"
        assert result.value.cancelled_by == self.order.buyer
        self.listing.refresh_from_db()
        assert self.listing.quantity == Decimal("1000")

    def test_pending_cannot_jump_to_completed(self):
        result = self.service.transition_order(self.order.id, self.order.buyer, Order.STATUS_COMPLETED)

        assert result.error == ErrorCodes.INVALID_TRANSITION
        assert result.error_details == {"from": "PENDING", "to": "COMPLETED"}
        self.order.refresh_from_db()
        assert self.order.status == Order.STATUS_PENDING
        assert self.order.completed_at is None

    def test_cancel_confirmed_order_returns_exactly_its_quantity(self):
        self._walk(Order.STATUS_CONFIRMED)

        result = self.service.cancel_order(self.order.id, self.order.buyer, "Supplier delay")

        assert result.ok, result.error_detail
        assert result.value.status == Order.STATUS_CANCELLED
        assert result.value.cancelled_at is not None
        self.listing.refresh_from_db()
        assert self.listing.quantity == QUANTITY_AFTER_ORDER + self.order.quantity

    def test_cancel_reopens_sold_out_listing(self):
        Listing.objects.filter(pk=self.listing.pk).update(quantity=Decimal("0"), status=Listing.STATUS_SOLD)

        assert self.service.cancel_order(self.order.id, self.producer_user).ok

        self.listing.refresh_from_db()
        assert self.listing.status == Listing.STATUS_ACTIVE
        assert self.listing.quantity == Decimal("100")

    def test_cancelled_order_is_terminal(self):
        self.service.cancel_order(self.order.id, self.order.buyer)

        result = self.service.transition_order(self.order.id, self.producer_user, Order.STATUS_CONFIRMED)

        assert result.error == ErrorCodes.INVALID_TRANSITION

    def test_shipped_order_cannot_be_cancelled(self):
        self._walk(Order.STATUS_CONFIRMED, Order.STATUS_PROCESSING, Order.STATUS_SHIPPED)

        result = self.service.cancel_order(self.order.id, self.order.buyer)

        assert result.error == ErrorCodes.INVALID_TRANSITION

    def test_completing_drained_listing_marks_it_sold(self):
        Listing.objects.filter(pk=self.listing.pk).update(quantity=Decimal("0"))
        self._walk(Order.STATUS_CONFIRMED, Order.STATUS_PROCESSING, Order.STATUS_SHIPPED, Order.STATUS_DELIVERED)

        self._walk(Order.STATUS_COMPLETED, actor=self.order.buyer)

        self.listing.refresh_from_db()
        assert self.listing.status == Listing.STATUS_SOLD

    def test_completion_hands_sold_out_listing_to_listing_service(self):
        Listing.objects.filter(pk=self.listing.pk).update(quantity=Decimal("0"))
        self._walk(Order.STATUS_CONFIRMED, Order.STATUS_PROCESSING, Order.STATUS_SHIPPED, Order.STATUS_DELIVERED)
        listings = self.service.listings

        with patch.object(listings, "mark_sold", wraps=listings.mark_sold) as mark_sold:
            self._walk(Order.STATUS_COMPLETED, actor=self.order.buyer)

        mark_sold.assert_called_once_with(self.listing.id)

    def test_completion_leaves_listing_with_stock_active(self):
        self._walk(Order.STATUS_CONFIRMED, Order.STATUS_PROCESSING, Order.STATUS_SHIPPED, Order.STATUS_DELIVERED)

        with patch.object(self.service.listings, "mark_sold") as mark_sold:
            self._walk(Order.STATUS_COMPLETED, actor=self.order.buyer)

        mark_sold.assert_not_called()
        self.listing.refresh_from_db()
        assert self.listing.status == Listing.STATUS_ACTIVE

    def test_finance_refunds_delivered_order(self):
        self._walk(Order.STATUS_CONFIRMED, Order.STATUS_PROCESSING, Order.STATUS_SHIPPED, Order.STATUS_DELIVERED)
        Order.objects.filter(pk=self.order.pk).update(payment_status=Order.PAYMENT_COMPLETED)
        finance = FinanceFactory(tenant=self.order.tenant)

        result = self.service.transition_order(self.order.id, finance, Order.STATUS_REFUNDED, reason="Damaged")

        assert result.ok
        assert result.value.payment_status == Order.PAYMENT_REFUNDED
        assert result.value.refunded_at is not None

    def test_system_actor_skips_ownership_checks(self):
        result = self.service.transition_order(self.order.id, None, Order.STATUS_CONFIRMED)

        assert result.ok
        assert result.value.status == Order.STATUS_CONFIRMED


@pytest.mark.unit
@pytest.mark.django_db
class TestOrderQueries:
    @pytest.fixture(autouse=True)
    def setup(self, db):
        self.service = OrderService()
        self.order = OrderFactory()
        self.other = OrderFactory(listing=ListingFactory(producer=ProducerFactory(user__tenant=self.order.tenant)))

    def test_buyer_sees_only_own_orders(self):
        result = self.service.list_orders(self.order.buyer)

        assert result.ok
        assert [o.id for o in result.value["results"]] == [self.order.id]
        assert result.value["total"] == 1

    def test_producer_sees_orders_on_their_listings(self):
        result = self.service.list_orders(self.other.listing.producer.user)

        assert [o.id for o in result.value["results"]] == [self.other.id]

    def test_broker_sees_every_order_of_the_tenant(self):
        result = self.service.list_orders(BrokerFactory(tenant=self.order.tenant), {"status": Order.STATUS_PENDING})

        assert result.value["total"] == 2

    def test_foreign_order_reads_as_not_found(self):
        result = self.service.get_order(self.other.id, self.order.buyer)

        assert result.error == ErrorCodes.NOT_FOUND

    def test_invalid_id_reads_as_not_found(self):
        result = self.service.get_order("not-a-uuid", self.order.buyer)

        assert result.error == ErrorCodes.NOT_FOUND

    def test_mark_payment_status(self):
        result = self.service.mark_payment_status(self.order.id, Order.PAYMENT_PROCESSING)

        assert result.ok
        assert result.value.payment_status == Order.PAYMENT_PROCESSING
        assert self.service.mark_payment_status(self.order.id, "BOGUS").error == ErrorCodes.VALIDATION_ERROR


@pytest.mark.unit
@pytest.mark.django_db
class TestQuantityConservation:
    @pytest.fixture(autouse=True)
    def setup(self, db):
        self.service = OrderService()
        self.listing = ListingFactory()
        self.producer_user = self.listing.producer.user
        self.buyers = [UserFactory(tenant=self.listing.tenant) for _ in range(3)]

    def _assert_conserved(self):
        self.listing.refresh_from_db()
        held = (
            Order.objects.filter(listing=self.listing)
            .exclude(status=Order.STATUS_CANCELLED)
            .aggregate(total=Sum("quantity"))["total"]
        )
        assert self.listing.quantity + (held or Decimal("0")) == self.listing.listed_quantity

    def _order(self, buyer, quantity):
        result = self.service.create_order(buyer, self.listing.id, quantity)
        assert result.ok, result.error_detail
        self._assert_conserved()
        return result.value

    def _move(self, order, *statuses, actor=None):
        for status in statuses:
            result = self.service.transition_order(order.id, actor or self.producer_user, status)
            assert result.ok, result.error_detail
            self._assert_conserved()

    def test_listed_quantity_is_conserved_through_mixed_activity(self):
        pending = self._order(self.buyers[0], 100)
        confirmed = self._order(self.buyers[1], Decimal("250.5"))
        delivered = self._order(self.buyers[2], 300)

        self._move(pending, Order.STATUS_CANCELLED, actor=self.buyers[0])
        self._move(confirmed, Order.STATUS_CONFIRMED)
        self._move(confirmed, Order.STATUS_CANCELLED, actor=self.buyers[1])
        self._move(delivered, Order.STATUS_CONFIRMED, Order.STATUS_PROCESSING, Order.STATUS_SHIPPED)
        self._move(delivered, Order.STATUS_DELIVERED)
        self._move(delivered, Order.STATUS_COMPLETED, actor=self.buyers[2])

        rejected = self.service.create_order(self.buyers[0], self.listing.id, Decimal("700.001"))
        assert rejected.error == ErrorCodes.INSUFFICIENT_QUANTITY
        self._assert_conserved()

        last = self._order(self.buyers[0], 700)
        assert self.listing.quantity == Decimal("0")
        self._move(last, Order.STATUS_CONFIRMED, Order.STATUS_PROCESSING, Order.STATUS_SHIPPED, Order.STATUS_DELIVERED)
        self._move(last, Order.STATUS_COMPLETED, actor=self.buyers[0])

        assert self.listing.status == Listing.STATUS_SOLD


@pytest.mark.integration
@pytest.mark.django_db(transaction=True)
@pytest.mark.skipif(connection.vendor != "postgresql", reason="row locks need PostgreSQL")
def test_concurrent_orders_never_oversell():
    listing = ListingFactory()
    buyers = [UserFactory(tenant=listing.tenant) for _ in range(2)]
    service = OrderService()
    results = []

    def place(buyer):
        results.append(service.create_order(buyer, listing.id, 600))
        connection.close()

    threads = [threading.Thread(target=place, args=(buyer,)) for buyer in buyers]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(r.ok for r in results) == [False, True]
    assert [r.error for r in results if not r.ok] == [ErrorCodes.INSUFFICIENT_QUANTITY]
    listing.refresh_from_db()
    assert listing.quantity == Decimal("400")
