"""
HTTP tests for the authentication endpoints and health checks.
"""

import pytest
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from marketplace.tests.factories import DEFAULT_PASSWORD, ListingFactory, TenantFactory, UserFactory


@pytest.mark.integration
@pytest.mark.django_db
class TestAuthAPI:
    @pytest.fixture(autouse=True)
    def setup(self, db):
        self.client = APIClient()
        self.tenant = TenantFactory(slug="accra")
        self.user = UserFactory(tenant=self.tenant, email="kofi@example.com")

    def _login(self, email="kofi@example.com", password=DEFAULT_PASSWORD):
        return self.client.post(reverse("authentication:login"), {"email": email, "password": password}, format="json")

    def test_login_returns_envelope_with_tokens(self):
        response = self._login()

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["success"] is True
        assert body["data"]["access"]
        assert body["data"]["refresh"]
        assert body["data"]["user"]["role"] == "BUYER"
        assert body["data"]["user"]["tenant"]["slug"] == "accra"

    def test_wrong_password_and_unknown_email_look_the_same(self):
        wrong = self._login(password="not-the-password")
        unknown = self._login(email="nobody@example.com")

        assert wrong.status_code == unknown.status_code == status.HTTP_401_UNAUTHORIZED
        assert wrong.json()["error"] == unknown.json()["error"]

    def test_login_requires_email(self):
        response = self.client.post(reverse("authentication:login"), {"password": "x"}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_access_token_authenticates_api_calls(self):
        ListingFactory(producer__user__tenant=self.tenant)
        access = self._login().json()["data"]["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

        me = self.client.get(reverse("authentication:me"))
        listings = self.client.get(reverse("marketplace:listing-list"))

        assert me.status_code == status.HTTP_200_OK
        assert me.json()["data"]["email"] == "kofi@example.com"
        assert "orders:create" in me.json()["data"]["permissions"]
        assert listings.json()["meta"]["pagination"]["total"] == 1

    def test_garbage_token_is_invalid(self):
        self.client.credentials(HTTP_AUTHORIZATION="Bearer not.a.token")

        response = self.client.get(reverse("authentication:me"))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    def test_me_requires_authentication(self):
        response = self.client.get(reverse("authentication:me"))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_refresh(self):
        refresh = self._login().json()["data"]["refresh"]

        response = self.client.post(reverse("authentication:token_refresh"), {"refresh": refresh}, format="json")

        assert response.status_code == status.HTTP_200_OK
        assert "access" in response.json()

    def test_register(self):
        response = self.client.post(
            reverse("authentication:register"),
            {
                "tenant_slug": "accra",
                "email": "efua@example.com",
                "password": "Str0ng!Passw0rd",
                "name": "Efua Mensah",
                "role": "PRODUCER",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["data"]["user"]["role"] == "PRODUCER"
        assert response.json()["data"]["access"]

    def test_register_privileged_role_is_rejected(self):
        response = self.client.post(
            reverse("authentication:register"),
            {
                "tenant_slug": "accra",
                "email": "boss@example.com",
                "password": "Str0ng!Passw0rd",
                "name": "Boss",
                "role": "TENANT_ADMIN",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_register_duplicate_email(self):
        response = self.client.post(
            reverse("authentication:register"),
            {"tenant_slug": "accra", "email": "kofi@example.com", "password": "Str0ng!Passw0rd", "name": "Kofi"},
            format="json",
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["error"]["code"] == "CONFLICT"


@pytest.mark.integration
@pytest.mark.django_db
class TestHealthChecks:
    def test_live(self, client):
        response = client.get(reverse("authentication:health_live"))

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_ready(self, client):
        response = client.get(reverse("authentication:health_ready"))

        assert response.status_code == 200
        assert response.json()["checks"] == {"database": True}
        assert response.json()["providers"] == {"payment": "mock", "insurance": "mock", "tokenization": "mock"}
