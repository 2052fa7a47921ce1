import re

import pytest
from django.test import override_settings

from marketplace.domain.models import SequenceCounter
from marketplace.domain.services.identifier_service import IdentifierService
from marketplace.tests.factories import TenantFactory


@pytest.mark.unit
@pytest.mark.django_db
class TestIdentifierService:
    @pytest.fixture(autouse=True)
    def setup(self, db):
        self.service = IdentifierService()
        self.tenant = TenantFactory(slug="kumasi", country="gh")

    def test_counter_starts_at_one_and_increments(self):
        assert self.service.next_value("demo") == 1
        assert self.service.next_value("demo") == 2
        assert SequenceCounter.objects.get(key="demo").value == 2

    def test_counters_are_independent(self):
        self.service.next_value("a")
        assert self.service.next_value("b") == 1

    def test_order_number_format(self):
        number = self.service.next_order_number(self.tenant)

        assert re.fullmatch(r"ORD-KUMASI-\d{8}-00000001", number)

    def test_economic_id_format(self):
        assert re.fullmatch(r"SRGG-GH-\d{2}-000001", self.service.next_economic_id(self.tenant))
        assert re.fullmatch(r"SRGG-CI-\d{2}-000002", self.service.next_economic_id(self.tenant, "ci"))

    @override_settings(PRODUCER_ID_PREFIX="AGRO")
    def test_economic_id_prefix_is_configurable(self):
        assert self.service.next_economic_id(self.tenant).startswith("AGRO-GH-")

    def test_other_formats(self):
        assert re.fullmatch(r"CERT-GH-\d{4}-000001", self.service.next_certificate_number(self.tenant))
        assert re.fullmatch(r"POL-GH-\d{4}-00000001", self.service.next_policy_number(self.tenant))
        assert re.fullmatch(r"CLM-GH-\d{8}-00000001", self.service.next_claim_number(self.tenant))
        assert re.fullmatch(r"PAY-\d{8}-0000000001", self.service.next_payment_number())
        assert re.fullmatch(r"TKN-GH-\d{4}-00000001", self.service.next_token_number(self.tenant))

    def test_order_sequences_are_per_tenant(self):
        other = TenantFactory(slug="tamale")
        self.service.next_order_number(self.tenant)

        assert self.service.next_order_number(other).endswith("-00000001")
