from decimal import Decimal

import pytest

from marketplace.logistics.domain.models import Shipment
from marketplace.logistics.domain.services.shipment_service import ShipmentService
from marketplace.notifications.domain.models import Notification
from marketplace.ordering.domain.models import Order
from marketplace.services.base import ErrorCodes
from marketplace.tests.factories import (
    BrokerFactory,
    ListingFactory,
    OrderFactory,
    ProducerFactory,
    TenantFactory,
    UserFactory,
)


@pytest.mark.unit
@pytest.mark.django_db
class TestCreateShipment:
    @pytest.fixture(autouse=True)
    def setup(self, db):
        self.service = ShipmentService()
        self.tenant = TenantFactory(slug="tema")
        self.listing = ListingFactory(producer=ProducerFactory(user__tenant=self.tenant))
        self.producer_user = self.listing.producer.user
        self.order = OrderFactory(listing=self.listing, status=Order.STATUS_PROCESSING)

    def _book(self, actor=None, **overrides):
        kwargs = {"order_id": self.order.id, "origin_port": "Tema Port", **overrides}
        return self.service.create_shipment(actor or self.producer_user, "Ghana", "Netherlands", **kwargs)

    def test_producer_books_shipment_for_order(self):
        result = self._book()

        assert result.ok, result.error_detail
        shipment = result.value
        assert shipment.status == Shipment.STATUS_PENDING
        assert shipment.shipment_number.startswith("SHP-TEMA-")
        assert shipment.cargo == self.listing.commodity.name
        assert shipment.quantity == Decimal("100.000")
        assert shipment.unit == "MT"
        assert [e["event"] for e in shipment.tracking_events] == ["Shipment created"]
        assert shipment.tracking_events[0]["location"] == "Tema Port"

    def test_booking_tells_the_buyer(self):
        shipment = self._book().value

        notification = Notification.objects.get(user=self.order.buyer, type=Notification.TYPE_SHIPMENT)
        assert shipment.shipment_number in notification.message
        assert notification.data["order_id"] == str(self.order.id)

    def test_pending_order_cannot_ship(self):
        Order.objects.filter(pk=self.order.pk).update(status=Order.STATUS_PENDING)

        result = self._book()

        assert result.error == ErrorCodes.INVALID_STATE
        assert Shipment.objects.count() == 0

    def test_order_ships_once_until_cancelled(self):
        first = self._book().value

        second = self._book()
        assert second.error == ErrorCodes.CONFLICT

        self.service.update_status(self.producer_user, first.id, Shipment.STATUS_CANCELLED)
        assert self._book().ok

    def test_buyer_cannot_book(self):
        result = self._book(actor=self.order.buyer)

        assert result.error == ErrorCodes.FORBIDDEN

    def test_order_of_another_tenant_is_not_found(self):
        outsider = BrokerFactory(tenant=TenantFactory(slug="lome"))

        result = self._book(actor=outsider)

        assert result.error == ErrorCodes.NOT_FOUND

    def test_standalone_cargo_is_for_staff(self):
        broker = BrokerFactory(tenant=self.tenant)

        producer_attempt = self._book(order_id=None, cargo="Gold Bars")
        missing_cargo = self._book(actor=broker, order_id=None)
        booked = self._book(actor=broker, order_id=None, cargo="Gold Bars", vessel_type="AIRCRAFT")

        assert producer_attempt.error == ErrorCodes.FORBIDDEN
        assert missing_cargo.error == ErrorCodes.VALIDATION_ERROR
        assert booked.ok
        assert booked.value.order is None
        assert booked.value.tenant == self.tenant

    def test_origin_and_destination_are_required(self):
        result = self.service.create_shipment(self.producer_user, "", "Netherlands", order_id=self.order.id)

        assert result.error == ErrorCodes.VALIDATION_ERROR


@pytest.mark.unit
@pytest.mark.django_db
class TestShipmentStatus:
    @pytest.fixture(autouse=True)
    def setup(self, db):
        self.service = ShipmentService()
        self.listing = ListingFactory()
        self.tenant = self.listing.tenant
        self.producer_user = self.listing.producer.user
        self.order = OrderFactory(listing=self.listing, status=Order.STATUS_PROCESSING)
        self.shipment = self.service.create_shipment(
            self.producer_user, "Ghana", "Netherlands", order_id=self.order.id
        ).value

    def _move(self, *statuses, location=""):
        result = None
        for target in statuses:
            result = self.service.update_status(self.producer_user, self.shipment.id, target, location=location)
            assert result.ok, result.error_detail
        return result

    def test_departure_ships_processing_order(self):
        shipment = self._move(Shipment.STATUS_LOADING, Shipment.STATUS_IN_TRANSIT, location="Tema Port").value

        self.order.refresh_from_db()
        assert self.order.status == Order.STATUS_SHIPPED
        assert self.order.tracking_number == shipment.shipment_number
        assert shipment.departed_at is not None
        assert [e["status"] for e in shipment.tracking_events] == ["PENDING", "LOADING", "IN_TRANSIT"]

    def test_customs_round_trip_then_delivery_delivers_order(self):
        departed = self._move(Shipment.STATUS_LOADING, Shipment.STATUS_IN_TRANSIT).value.departed_at

        shipment = self._move(
            Shipment.STATUS_CUSTOMS,
            Shipment.STATUS_IN_TRANSIT,
            Shipment.STATUS_ARRIVED,
            Shipment.STATUS_DELIVERED,
        ).value

        self.order.refresh_from_db()
        assert self.order.status == Order.STATUS_DELIVERED
        assert shipment.departed_at == departed
        assert shipment.delivered_at is not None

    def test_confirmed_order_stays_put_when_cargo_leaves(self):
        Order.objects.filter(pk=self.order.pk).update(status=Order.STATUS_CONFIRMED)

        self._move(Shipment.STATUS_LOADING, Shipment.STATUS_IN_TRANSIT)

        self.order.refresh_from_db()
        assert self.order.status == Order.STATUS_CONFIRMED

    def test_pending_cannot_jump_to_delivered(self):
        result = self.service.update_status(self.producer_user, self.shipment.id, Shipment.STATUS_DELIVERED)

        assert result.error == ErrorCodes.INVALID_TRANSITION
        assert "shipment" in result.error_detail
        self.shipment.refresh_from_db()
        assert self.shipment.status == Shipment.STATUS_PENDING
        assert len(self.shipment.tracking_events) == 1

    def test_unknown_status_is_a_validation_error(self):
        result = self.service.update_status(self.producer_user, self.shipment.id, "SUNK")

        assert result.error == ErrorCodes.VALIDATION_ERROR

    def test_buyer_cannot_move_shipment(self):
        result = self.service.update_status(self.order.buyer, self.shipment.id, Shipment.STATUS_LOADING)

        assert result.error == ErrorCodes.FORBIDDEN

    def test_status_change_tells_the_buyer(self):
        self._move(Shipment.STATUS_LOADING, location="Tema Port")

        update = Notification.objects.filter(user=self.order.buyer, title="Shipment update").get()
        assert update.message.endswith("is now loading at Tema Port")

    def test_tracking_event_keeps_status(self):
        result = self.service.add_tracking_event(self.producer_user, self.shipment.id, "Container sealed", "Tema")

        assert result.ok
        assert result.value.status == Shipment.STATUS_PENDING
        assert result.value.tracking_events[-1]["event"] == "Container sealed"

    def test_no_tracking_events_after_delivery(self):
        self._move(
            Shipment.STATUS_LOADING,
            Shipment.STATUS_IN_TRANSIT,
            Shipment.STATUS_ARRIVED,
            Shipment.STATUS_DELIVERED,
        )

        result = self.service.add_tracking_event(self.producer_user, self.shipment.id, "Late scan")

        assert result.error == ErrorCodes.INVALID_STATE


@pytest.mark.unit
@pytest.mark.django_db
class TestShipmentVisibility:
    @pytest.fixture(autouse=True)
    def setup(self, db):
        self.service = ShipmentService()
        self.listing = ListingFactory()
        self.tenant = self.listing.tenant
        self.order = OrderFactory(listing=self.listing, status=Order.STATUS_CONFIRMED)
        self.shipment = self.service.create_shipment(
            self.listing.producer.user, "Ghana", "UK", order_id=self.order.id
        ).value

    def test_buyer_sees_shipments_of_own_orders(self):
        mine = self.service.list_shipments(self.order.buyer).value
        theirs = self.service.list_shipments(UserFactory(tenant=self.tenant)).value

        assert mine["total"] == 1
        assert theirs["total"] == 0

    def test_broker_sees_every_shipment_of_tenant(self):
        result = self.service.list_shipments(BrokerFactory(tenant=self.tenant), {"status": "PENDING"})

        assert result.value["total"] == 1

    def test_hidden_shipment_is_not_found(self):
        result = self.service.get_shipment(UserFactory(tenant=self.tenant), self.shipment.id)

        assert result.error == ErrorCodes.NOT_FOUND
