"""
CertificateService - certificates issued on validation approval
"""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from marketplace.domain.exceptions import ForbiddenError, InvalidStateError, MarketplaceError
from marketplace.domain.scoping import get_in_tenant, is_tenant_staff, scope_to_tenant
from marketplace.services.base import (
    BaseService,
    ErrorCodes,
    ServiceResult,
    paginate,
    service_err,
    service_err_from,
    service_ok,
)
from marketplace.validation.domain.models import Certificate, Validation
from utils.rbac import ROLE_VALIDATOR, has_any_role

logger = logging.getLogger(__name__)


class CertificateService(BaseService):
    """
    Service for certificates.

    A certificate is issued exactly once per approved validation, to the
    producer of the validated listing, and is valid for
    ``CERTIFICATE_VALIDITY_DAYS`` (365 by default).
    """

    def __init__(self, identifiers=None):
        super().__init__()
        if identifiers is None:
            from marketplace.domain.services.identifier_service import IdentifierService

            identifiers = IdentifierService()
        self.identifiers = identifiers

    def issue_certificate(self, validation: Validation, issued_by=None) -> Certificate:
        """Create the certificate for an approved validation (call inside its transaction)."""
        listing = validation.listing
        issued_at = timezone.now()
        validity = getattr(settings, "CERTIFICATE_VALIDITY_DAYS", 365)

        certificate = Certificate.objects.create(
            certificate_number=self.identifiers.next_certificate_number(listing.tenant),
            tenant_id=validation.tenant_id,
            validation=validation,
            type=Certificate.TYPE_FOR_VALIDATION[validation.type],
            issued_to_id=listing.producer_id,
            issued_by=issued_by,
            issued_at=issued_at,
            expires_at=issued_at + timedelta(days=validity),
            metadata={
                "listing_id": str(listing.pk),
                "commodity": listing.commodity.name,
                "quality_score": str(validation.quality_score) if validation.quality_score is not None else None,
                "grade": validation.results.get("grade"),
            },
        )
        self.logger.info(f"Issued certificate {certificate.certificate_number} for validation {validation.pk}")
        return certificate

    def _visible(self, actor):
        return scope_to_tenant(Certificate.objects.select_related("issued_to", "validation"), actor)

    @BaseService.log_performance
    def get_certificate(self, actor, certificate_id) -> ServiceResult[Certificate]:
        try:
            return service_ok(get_in_tenant(self._visible(actor), actor, certificate_id, "Certificate"))
        except MarketplaceError as e:
            return service_err_from(e)

    @BaseService.log_performance
    def get_by_number(self, actor, certificate_number: str) -> ServiceResult[Certificate]:
        certificate = self._visible(actor).filter(certificate_number=certificate_number).first()
        if certificate is None:
            return service_err(ErrorCodes.NOT_FOUND, f"Certificate {certificate_number} not found")
        return service_ok(certificate)

    @BaseService.log_performance
    def list_certificates(
        self, actor, filters: Optional[Dict[str, Any]] = None, page: int = 1, limit: int = 20
    ) -> ServiceResult[Dict[str, Any]]:
        filters = filters or {}
        queryset = self._visible(actor)
        if filters.get("producer"):
            queryset = queryset.filter(issued_to_id=filters["producer"])
        if filters.get("status"):
            queryset = queryset.filter(status=filters["status"])
        if filters.get("type"):
            queryset = queryset.filter(type=filters["type"])
        return service_ok(paginate(queryset.order_by("-issued_at"), page, limit))

    def producer_certificates(self, actor, producer_id, page: int = 1, limit: int = 20):
        return self.list_certificates(actor, {"producer": producer_id}, page, limit)

    @BaseService.log_performance
    def revoke(self, actor, certificate_id, reason: str) -> ServiceResult[Certificate]:
        try:
            if not (is_tenant_staff(actor) or has_any_role(actor, (ROLE_VALIDATOR,))):
                raise ForbiddenError("Only validators or tenant staff can revoke certificates")
            with transaction.atomic():
                certificate = get_in_tenant(
                    Certificate.objects.select_for_update(), actor, certificate_id, "Certificate"
                )
                if certificate.status != "ACTIVE":
                    raise InvalidStateError(
                        f"Certificate {certificate.certificate_number} is {certificate.status}",
                        {"status": certificate.status},
                    )
                certificate.status = "REVOKED"
                certificate.revocation_reason = reason
                certificate.revoked_at = timezone.now()
                certificate.save(update_fields=["status", "revocation_reason", "revoked_at"])

            self.logger.warning(f"Revoked certificate {certificate.certificate_number}: {reason}")
            return service_ok(certificate)
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("revoke_certificate", e)

    def expire_certificates(self) -> int:
        """Mark every ACTIVE certificate past its expiry date EXPIRED; returns the count."""
        expired = Certificate.objects.filter(status="ACTIVE", expires_at__lt=timezone.now()).update(status="EXPIRED")
        if expired:
            self.logger.info(f"Expired {expired} certificates")
        return expired
