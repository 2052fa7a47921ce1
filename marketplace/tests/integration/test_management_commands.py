from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import CommandError, call_command
from django.utils import timezone

from authentication.models import CustomUser
from marketplace.models import Certificate, Commodity, InsurancePolicy, Listing, Producer
from marketplace.tests.factories import PolicyFactory, TenantFactory, UserFactory, ValidationFactory
from marketplace.validation.domain.services.certificate_service import CertificateService


@pytest.mark.integration
@pytest.mark.django_db
class TestSeedMarketplace:
    def test_seeds_tenant_users_and_active_listings(self):
        out = StringIO()

        call_command("seed_marketplace", "--tenant-slug", "demo-gh", stdout=out)

        assert "Created 5 listings" in out.getvalue()
        assert Commodity.objects.count() == 8
        assert Producer.objects.filter(tenant__slug="demo-gh", verification_status="VERIFIED").count() == 3
        assert Listing.objects.filter(status=Listing.STATUS_ACTIVE).count() == 5
        admin = CustomUser.objects.get(email="admin@example.com")
        assert admin.role == "TENANT_ADMIN"
        assert admin.check_password("Demo!2345")

    def test_running_twice_is_harmless(self):
        call_command("seed_marketplace", stdout=StringIO())
        out = StringIO()

        call_command("seed_marketplace", stdout=out)

        assert "Created 0 listings" in out.getvalue()
        assert Listing.objects.count() == 5

    def test_skip_listings(self):
        call_command("seed_marketplace", "--skip-listings", stdout=StringIO())

        assert Producer.objects.count() == 3
        assert not Listing.objects.exists()

    def test_email_in_another_tenant(self):
        UserFactory(email="admin@example.com", tenant=TenantFactory(slug="elsewhere"))

        with pytest.raises(CommandError):
            call_command("seed_marketplace", stdout=StringIO())


@pytest.mark.integration
@pytest.mark.django_db
class TestExpireRecords:
    @pytest.fixture(autouse=True)
    def setup(self, db):
        validation = ValidationFactory(status="APPROVED")
        certificate = CertificateService().issue_certificate(validation, issued_by=validation.validator)
        Certificate.objects.filter(pk=certificate.pk).update(expires_at=timezone.now() - timedelta(days=1))
        PolicyFactory(coverage_end=timezone.now() - timedelta(hours=1))

    def test_expires_certificates_and_policies(self):
        out = StringIO()

        call_command("expire_records", stdout=out)

        assert "Expired 1 certificates." in out.getvalue()
        assert "Expired 1 insurance policies." in out.getvalue()
        assert Certificate.objects.get().status == "EXPIRED"
        assert InsurancePolicy.objects.get().status == "EXPIRED"

    def test_certificates_only(self):
        call_command("expire_records", "--certificates-only", stdout=StringIO())

        assert InsurancePolicy.objects.get().status == "ACTIVE"
