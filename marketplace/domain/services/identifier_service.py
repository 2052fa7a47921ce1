"""
IdentifierService - human-readable identifiers

Every identifier is ``<PREFIX>-<scope>-<date>-<zero-padded sequence>``. The
sequence comes from a SequenceCounter row incremented atomically, never from a
count of existing rows, so concurrent issuers cannot collide.
"""

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from marketplace.domain.models import SequenceCounter
from marketplace.infra.observability.metrics import identifiers_issued_total
from marketplace.services.base import BaseService


class IdentifierService(BaseService):
    def next_value(self, key: str) -> int:
        """Increment and return the counter named ``key`` (created at 0 on first use)."""
        with transaction.atomic():
            counter, _ = SequenceCounter.objects.select_for_update().get_or_create(key=key)
            SequenceCounter.objects.filter(pk=counter.pk).update(value=F("value") + 1)
            counter.refresh_from_db(fields=["value"])
        return counter.value

    def _issue(self, prefix: str, key: str, parts, width: int) -> str:
        sequence = self.next_value(key)
        identifiers_issued_total.labels(prefix=prefix).inc()
        identifier = "-".join([prefix, *parts, str(sequence).zfill(width)])
        self.logger.debug(f"Issued {identifier}")
        return identifier

    def next_order_number(self, tenant) -> str:
        """ORD-<TENANT_SLUG>-<YYYYMMDD>-<8 digits>"""
        today = timezone.now().strftime("%Y%m%d")
        return self._issue("ORD", f"order:{tenant.pk}", [tenant.slug.upper(), today], 8)

    def next_economic_id(self, tenant, country: str = "") -> str:
        """<PRODUCER_ID_PREFIX>-<COUNTRY>-<YY>-<6 digits>"""
        prefix = getattr(settings, "PRODUCER_ID_PREFIX", "SRGG")
        country = (country or tenant.country).upper()
        year = timezone.now().strftime("%y")
        return self._issue(prefix, f"producer:{tenant.pk}", [country, year], 6)

    def next_certificate_number(self, tenant) -> str:
        """CERT-<COUNTRY>-<YYYY>-<6 digits>"""
        year = timezone.now().strftime("%Y")
        return self._issue("CERT", f"certificate:{tenant.pk}", [tenant.country.upper(), year], 6)

    def next_policy_number(self, tenant) -> str:
        """POL-<COUNTRY>-<YYYY>-<8 digits>"""
        year = timezone.now().strftime("%Y")
        return self._issue("POL", f"policy:{tenant.pk}", [tenant.country.upper(), year], 8)

    def next_claim_number(self, tenant) -> str:
        """CLM-<COUNTRY>-<YYYYMMDD>-<8 digits>, numbered across all tenants"""
        today = timezone.now().strftime("%Y%m%d")
        return self._issue("CLM", "claim", [tenant.country.upper(), today], 8)

    def next_payment_number(self) -> str:
        """PAY-<YYYYMMDD>-<10 digits>, numbered across all tenants"""
        today = timezone.now().strftime("%Y%m%d")
        return self._issue("PAY", "payment", [today], 10)

    def next_token_number(self, tenant) -> str:
        """TKN-<COUNTRY>-<YYYY>-<8 digits>"""
        year = timezone.now().strftime("%Y")
        return self._issue("TKN", f"token:{tenant.pk}", [tenant.country.upper(), year], 8)

    def next_shipment_number(self, tenant) -> str:
        """SHP-<TENANT_SLUG>-<YYYYMMDD>-<8 digits>"""
        today = timezone.now().strftime("%Y%m%d")
        return self._issue("SHP", f"shipment:{tenant.pk}", [tenant.slug.upper(), today], 8)
