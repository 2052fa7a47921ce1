import pytest
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from marketplace.producers.domain.models import Producer
from marketplace.tests.factories import (
    ListingFactory,
    ProducerFactory,
    ProducerUserFactory,
    TenantAdminFactory,
    TenantFactory,
    UserFactory,
    ValidatorFactory,
)


@pytest.mark.integration
@pytest.mark.django_db
class TestProducerAPI:
    @pytest.fixture(autouse=True)
    def setup(self, db):
        self.client = APIClient()
        self.tenant = TenantFactory(country="GH")
        self.admin = TenantAdminFactory(tenant=self.tenant)

    def test_producer_registers_own_profile(self):
        user = ProducerUserFactory(tenant=self.tenant)
        self.client.force_authenticate(user=user)

        response = self.client.post(
            reverse("marketplace:producer-list"),
            {"type": "FARMER", "name": "Ashanti Cocoa Co-op", "bank_account": {"iban": "GH00"}},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()["data"]
        assert data["economic_id"].startswith("SRGG-GH-")
        assert data["verification_status"] == "PENDING"
        assert "bank_account" not in data

    def test_second_profile_is_a_conflict(self):
        producer = ProducerFactory(user__tenant=self.tenant)
        self.client.force_authenticate(user=producer.user)

        response = self.client.post(
            reverse("marketplace:producer-list"), {"type": "FARMER", "name": "Again"}, format="json"
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["error"]["code"] == "CONFLICT"

    def test_validator_cannot_register_producers(self):
        self.client.force_authenticate(user=ValidatorFactory(tenant=self.tenant))

        response = self.client.post(
            reverse("marketplace:producer-list"), {"type": "FARMER", "name": "Nope"}, format="json"
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_admin_verifies_and_rejects(self):
        pending = ProducerFactory(user__tenant=self.tenant, verification_status=Producer.STATUS_PENDING)
        other = ProducerFactory(user__tenant=self.tenant, verification_status=Producer.STATUS_PENDING)
        self.client.force_authenticate(user=self.admin)

        verified = self.client.post(reverse("marketplace:producer-verify", args=[pending.id]))
        rejected = self.client.post(
            reverse("marketplace:producer-reject", args=[other.id]), {"reason": "Forged permit"}, format="json"
        )
        again = self.client.post(reverse("marketplace:producer-verify", args=[pending.id]))

        assert verified.status_code == status.HTTP_200_OK
        assert verified.json()["data"]["verification_status"] == "VERIFIED"
        assert rejected.json()["data"]["verification_status"] == "REJECTED"
        assert again.status_code == status.HTTP_409_CONFLICT

    def test_producer_cannot_verify_itself(self):
        pending = ProducerFactory(user__tenant=self.tenant, verification_status=Producer.STATUS_PENDING)
        self.client.force_authenticate(user=pending.user)

        response = self.client.post(reverse("marketplace:producer-verify", args=[pending.id]))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_buyer_rates_producer(self):
        producer = ProducerFactory(user__tenant=self.tenant)
        self.client.force_authenticate(user=UserFactory(tenant=self.tenant))
        url = reverse("marketplace:producer-rate", args=[producer.id])

        rated = self.client.post(url, {"score": "9"}, format="json")
        out_of_range = self.client.post(url, {"score": "11"}, format="json")

        assert rated.status_code == status.HTTP_200_OK
        assert rated.json()["data"]["rating"] == "9.00"
        assert rated.json()["data"]["rating_count"] == 1
        assert out_of_range.status_code == status.HTTP_400_BAD_REQUEST

    def test_lookup_by_economic_id(self):
        producer = ProducerFactory(user__tenant=self.tenant)
        self.client.force_authenticate(user=self.admin)

        found = self.client.get(
            reverse("marketplace:producer-by-economic-id", kwargs={"economic_id": producer.economic_id})
        )
        missing = self.client.get(
            reverse("marketplace:producer-by-economic-id", kwargs={"economic_id": "SRGG-GH-99-999999"})
        )

        assert found.json()["data"]["id"] == str(producer.id)
        assert missing.status_code == status.HTTP_404_NOT_FOUND

    def test_list_is_scoped_to_tenant(self):
        ProducerFactory(user__tenant=self.tenant, name="Obuasi Gold", type="MINER")
        ProducerFactory(user__tenant=TenantFactory())
        self.client.force_authenticate(user=self.admin)

        response = self.client.get(reverse("marketplace:producer-list"), {"type": "MINER"})

        assert response.status_code == status.HTTP_200_OK
        assert [row["name"] for row in response.json()["data"]] == ["Obuasi Gold"]
        assert response.json()["meta"]["pagination"]["total"] == 1

    def test_dashboard(self):
        listing = ListingFactory(producer=ProducerFactory(user__tenant=self.tenant))
        self.client.force_authenticate(user=listing.producer.user)

        response = self.client.get(reverse("marketplace:producer-dashboard", args=[listing.producer.id]))

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["producer"]["economic_id"] == listing.producer.economic_id
        assert data["stats"]["activeListings"] == 1
        assert [row["id"] for row in data["recentListings"]] == [str(listing.id)]
