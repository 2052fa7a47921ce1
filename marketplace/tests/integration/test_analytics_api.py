import pytest
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from marketplace.ordering.domain.models import Order
from marketplace.tests.factories import BrokerFactory, FinanceFactory, OrderFactory, UserFactory


@pytest.mark.integration
@pytest.mark.django_db
class TestAnalyticsAPI:
    @pytest.fixture(autouse=True)
    def setup(self, db):
        self.client = APIClient()
        self.order = OrderFactory(status=Order.STATUS_COMPLETED, payment_status=Order.PAYMENT_COMPLETED)
        self.client.force_authenticate(user=BrokerFactory(tenant=self.order.tenant))

    def test_default_report_is_overview(self):
        response = self.client.get(reverse("marketplace:analytics"))

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["orders"] == {"total": 1, "completed": 1}
        assert data["revenue"] == "250.00"

    @pytest.mark.parametrize("report", ["commodities", "stats", "trending", "dashboard"])
    def test_every_report_renders(self, report):
        response = self.client.get(reverse("marketplace:analytics"), {"type": report})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["success"] is True

    def test_trending_limit(self):
        response = self.client.get(reverse("marketplace:analytics"), {"type": "trending", "limit": "x"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_report(self):
        response = self.client.get(reverse("marketplace:analytics"), {"type": "secrets"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["details"] == {"type": ["Invalid choice."]}

    def test_finance_may_read_analytics_but_buyers_may_not(self):
        self.client.force_authenticate(user=FinanceFactory(tenant=self.order.tenant))
        assert self.client.get(reverse("marketplace:analytics")).status_code == status.HTTP_200_OK

        self.client.force_authenticate(user=UserFactory(tenant=self.order.tenant))
        assert self.client.get(reverse("marketplace:analytics")).status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.integration
@pytest.mark.django_db
def test_prometheus_metrics_endpoint(client):
    response = client.get(reverse("marketplace:marketplace-metrics"))

    assert response.status_code == 200
    assert b"marketplace_" in response.content
