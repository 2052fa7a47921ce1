from decimal import Decimal

import pytest

from marketplace.notifications.domain.models import Notification
from marketplace.notifications.domain.services.notification_service import NotificationService
from marketplace.ordering.domain.models import Order
from marketplace.ordering.domain.services.order_service import OrderService
from marketplace.services.base import ErrorCodes
from marketplace.tests.factories import (
    ListingFactory,
    OrderFactory,
    TenantAdminFactory,
    TenantFactory,
    UserFactory,
)


@pytest.mark.unit
@pytest.mark.django_db
class TestInbox:
    @pytest.fixture(autouse=True)
    def setup(self, db):
        self.service = NotificationService()
        self.tenant = TenantFactory()
        self.user = UserFactory(tenant=self.tenant)
        self.other = UserFactory(tenant=self.tenant)

    def _notify(self, user, title="Hello"):
        return self.service.notify(user.pk, user.tenant_id, Notification.TYPE_SYSTEM, title, "Body").value

    def test_list_shows_only_own_notifications(self):
        self._notify(self.user)
        self._notify(self.user)
        self._notify(self.other)

        page = self.service.list_notifications(self.user).value

        assert page["total"] == 2
        assert {n.user_id for n in page["results"]} == {self.user.pk}

    def test_unread_filter_and_count(self):
        read = self._notify(self.user, "old")
        self._notify(self.user, "new")
        self.service.mark_read(self.user, [read.id])

        unread = self.service.list_notifications(self.user, unread_only=True).value

        assert [n.title for n in unread["results"]] == ["new"]
        assert self.service.unread_count(self.user).value == {"unread": 1}

    def test_mark_read_skips_other_users_notifications(self):
        mine = self._notify(self.user)
        theirs = self._notify(self.other)

        result = self.service.mark_read(self.user, [mine.id, theirs.id])

        assert result.value == {"marked": 1}
        theirs.refresh_from_db()
        assert theirs.is_read is False
        mine.refresh_from_db()
        assert mine.is_read is True
        assert mine.read_at is not None

    def test_mark_all(self):
        for _ in range(3):
            self._notify(self.user)

        assert self.service.mark_read(self.user, mark_all=True).value == {"marked": 3}
        assert self.service.mark_read(self.user, mark_all=True).value == {"marked": 0}

    def test_mark_read_needs_ids_or_mark_all(self):
        result = self.service.mark_read(self.user)

        assert result.error == ErrorCodes.VALIDATION_ERROR

    def test_admin_posts_to_user_of_own_tenant(self):
        admin = TenantAdminFactory(tenant=self.tenant)

        result = self.service.create_notification(
            admin, self.user.pk, Notification.TYPE_VALIDATION, "Lab booked", "Your lab test is on Monday"
        )

        assert result.ok
        assert result.value.user == self.user
        assert result.value.tenant == self.tenant

    def test_admin_cannot_reach_other_tenant(self):
        admin = TenantAdminFactory(tenant=TenantFactory())

        result = self.service.create_notification(admin, self.user.pk, Notification.TYPE_SYSTEM, "Hi", "There")

        assert result.error == ErrorCodes.NOT_FOUND

    def test_unknown_type_is_rejected(self):
        admin = TenantAdminFactory(tenant=self.tenant)

        result = self.service.create_notification(admin, self.user.pk, "GOSSIP", "Hi", "There")

        assert result.error == ErrorCodes.VALIDATION_ERROR


@pytest.mark.unit
@pytest.mark.django_db
class TestOrderNotifications:
    @pytest.fixture(autouse=True)
    def setup(self, db):
        self.service = OrderService()
        self.listing = ListingFactory()
        self.producer_user = self.listing.producer.user
        self.buyer = UserFactory(tenant=self.listing.tenant)

    def test_new_order_tells_the_producer_only(self):
        order = self.service.create_order(self.buyer, self.listing.id, Decimal("100")).value

        producer_inbox = Notification.objects.filter(user=self.producer_user)
        assert producer_inbox.count() == 1
        assert order.order_number in producer_inbox.get().message
        assert producer_inbox.get().type == Notification.TYPE_ORDER
        assert not Notification.objects.filter(user=self.buyer).exists()

    def test_producer_confirmation_tells_the_buyer(self):
        order = OrderFactory(listing=self.listing, buyer=self.buyer)

        self.service.transition_order(order.id, self.producer_user, Order.STATUS_CONFIRMED)

        buyer_inbox = Notification.objects.get(user=self.buyer)
        assert buyer_inbox.title == "Order confirmed"
        assert buyer_inbox.data == {"order_id": str(order.id), "status": "CONFIRMED"}
        assert not Notification.objects.filter(user=self.producer_user).exists()

    def test_platform_transition_tells_both_parties(self):
        order = OrderFactory(listing=self.listing, buyer=self.buyer)

        self.service.transition_order(order.id, None, Order.STATUS_CONFIRMED)

        assert set(Notification.objects.values_list("user_id", flat=True)) == {self.buyer.pk, self.producer_user.pk}

    def test_rejected_transition_sends_nothing(self):
        order = OrderFactory(listing=self.listing, buyer=self.buyer)

        self.service.transition_order(order.id, None, Order.STATUS_COMPLETED)

        assert Notification.objects.count() == 0
