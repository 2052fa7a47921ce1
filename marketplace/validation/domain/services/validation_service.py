"""
ValidationService - quality and origin validations

A published listing waits in PENDING_VALIDATION until a validator approves
(listing becomes ACTIVE, certificate issued) or rejects it (listing
CANCELLED).

    PENDING -> SCHEDULED -> IN_PROGRESS -> COMPLETED -> APPROVED
       \\__________\\_____________\\___________\\-------> REJECTED
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from marketplace.catalog.domain.models import Listing
from marketplace.domain.exceptions import (
    ForbiddenError,
    InvalidStateError,
    MarketplaceError,
    ValidationError,
)
from marketplace.domain.scoping import get_in_tenant, is_tenant_staff, owns_producer, scope_to_tenant
from marketplace.services.base import BaseService, ServiceResult, paginate, service_err_from, service_ok
from marketplace.validation.domain.models import Validation
from utils.rbac import ROLE_VALIDATOR, has_any_role

User = get_user_model()
logger = logging.getLogger(__name__)

VALIDATION_TYPES = tuple(code for code, _ in Validation.TYPE_CHOICES)


class ValidationService(BaseService):
    """
    Service for listing validations.

    Dependencies:
    - ListingService: approve / reject the validated listing in the same transaction
    - CertificateService: issue the certificate on approval
    """

    def __init__(self, listing_service=None, certificate_service=None):
        super().__init__()
        if listing_service is None:
            from marketplace.catalog.domain.services.listing_service import ListingService

            listing_service = ListingService()
        if certificate_service is None:
            from .certificate_service import CertificateService

            certificate_service = CertificateService()
        self.listing_service = listing_service
        self.certificate_service = certificate_service

    def _lock_for_validator(self, actor, validation_id) -> Validation:
        validation = get_in_tenant(Validation.objects.select_for_update(), actor, validation_id, "Validation")
        if not (is_tenant_staff(actor) or validation.validator_id == actor.pk):
            raise ForbiddenError("Only the assigned validator or tenant staff can update this validation")
        return validation

    def _require_status(self, validation: Validation, *allowed: str) -> None:
        if validation.status not in allowed:
            raise InvalidStateError(
                f"Validation is {validation.status}; expected one of {', '.join(allowed)}",
                {"status": validation.status},
            )

    @BaseService.log_performance
    def request_validation(self, actor, data: Dict[str, Any]) -> ServiceResult[Validation]:
        """
        Open a validation for a listing that is PENDING_VALIDATION.

        ``validator_id`` defaults to the actor when the actor is a validator.
        """
        try:
            if data.get("type") not in VALIDATION_TYPES:
                raise ValidationError(
                    f"type must be one of {', '.join(VALIDATION_TYPES)}", {"type": ["Invalid choice."]}
                )

            listing = get_in_tenant(Listing.objects.all(), actor, data["listing_id"], "Listing")
            if not (
                is_tenant_staff(actor)
                or has_any_role(actor, (ROLE_VALIDATOR,))
                or owns_producer(actor, listing.producer_id)
            ):
                raise ForbiddenError("You cannot request a validation for this listing")
            if listing.status != Listing.STATUS_PENDING_VALIDATION:
                raise InvalidStateError(
                    f"Listing {listing.id} is {listing.status}; only listings pending validation can be validated",
                    {"status": listing.status},
                )

            validator_id = data.get("validator_id")
            if validator_id is None and has_any_role(actor, (ROLE_VALIDATOR,)):
                validator = actor
            elif validator_id is None:
                raise ValidationError("validator_id is required", {"validator_id": ["This field is required."]})
            else:
                validator = get_in_tenant(User.objects.all(), actor, validator_id, "Validator")
            if validator.role != ROLE_VALIDATOR:
                raise ValidationError(
                    "Assigned user is not a validator", {"validator_id": ["User does not have the VALIDATOR role."]}
                )

            validation = Validation.objects.create(
                tenant_id=listing.tenant_id,
                listing=listing,
                validator=validator,
                requested_by=actor,
                type=data["type"],
                method=data.get("method", ""),
                scheduled_at=data.get("scheduled_at"),
                status="SCHEDULED" if data.get("scheduled_at") else "PENDING",
                notes=data.get("notes", ""),
            )
            self.logger.info(f"Requested {validation.type} validation {validation.pk} for listing {listing.id}")
            return service_ok(validation)

        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("request_validation", e)

    @BaseService.log_performance
    def schedule(self, actor, validation_id, scheduled_at) -> ServiceResult[Validation]:
        try:
            with transaction.atomic():
                validation = self._lock_for_validator(actor, validation_id)
                self._require_status(validation, "PENDING", "SCHEDULED")
                validation.status = "SCHEDULED"
                validation.scheduled_at = scheduled_at
                validation.save(update_fields=["status", "scheduled_at", "updated_at"])
            return service_ok(validation)
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("schedule_validation", e)

    @BaseService.log_performance
    def start(self, actor, validation_id) -> ServiceResult[Validation]:
        try:
            with transaction.atomic():
                validation = self._lock_for_validator(actor, validation_id)
                self._require_status(validation, "PENDING", "SCHEDULED")
                validation.status = "IN_PROGRESS"
                validation.started_at = timezone.now()
                validation.save(update_fields=["status", "started_at", "updated_at"])
            return service_ok(validation)
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("start_validation", e)

    @BaseService.log_performance
    def complete(self, actor, validation_id, results: Dict[str, Any], quality_score) -> ServiceResult[Validation]:
        """
        Record results. A score at or above ``VALIDATION_AUTO_APPROVE_SCORE``
        approves the validation (and activates the listing) straight away.
        """
        try:
            score = Decimal(str(quality_score))
            if not Decimal("0") <= score <= Decimal("100"):
                raise ValidationError(
                    "quality_score must be between 0 and 100", {"quality_score": ["Must be between 0 and 100."]}
                )

            threshold = Decimal(str(getattr(settings, "VALIDATION_AUTO_APPROVE_SCORE", 70)))
            with transaction.atomic():
                validation = self._lock_for_validator(actor, validation_id)
                self._require_status(validation, "IN_PROGRESS")
                validation.status = "COMPLETED"
                validation.results = results or {}
                validation.quality_score = score
                validation.completed_at = timezone.now()
                validation.save(update_fields=["status", "results", "quality_score", "completed_at", "updated_at"])

                if score >= threshold:
                    self._approve(validation, actor)

            self.logger.info(f"Completed validation {validation.pk} with score {score} -> {validation.status}")
            return service_ok(validation)
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("complete_validation", e)

    def _approve(self, validation: Validation, actor) -> None:
        listing = Listing.objects.select_for_update().select_related("commodity", "tenant").get(
            pk=validation.listing_id
        )
        self.listing_service.apply_approval(listing, validation.quality_score, validation.results.get("grade"))
        validation.status = "APPROVED"
        validation.save(update_fields=["status", "updated_at"])
        validation.listing = listing
        self.certificate_service.issue_certificate(validation, issued_by=actor)

    @BaseService.log_performance
    def approve(self, actor, validation_id) -> ServiceResult[Validation]:
        """IN_PROGRESS / COMPLETED -> APPROVED; the listing goes ACTIVE and a certificate is issued."""
        try:
            with transaction.atomic():
                validation = self._lock_for_validator(actor, validation_id)
                self._require_status(validation, "IN_PROGRESS", "COMPLETED")
                self._approve(validation, actor)
            self.logger.info(f"Approved validation {validation.pk}")
            return service_ok(validation)
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("approve_validation", e)

    @BaseService.log_performance
    def reject(self, actor, validation_id, reason: str) -> ServiceResult[Validation]:
        """Any open validation -> REJECTED; a listing still pending validation is cancelled."""
        try:
            with transaction.atomic():
                validation = self._lock_for_validator(actor, validation_id)
                if validation.status in Validation.TERMINAL_STATUSES:
                    raise InvalidStateError(f"Validation is already {validation.status}", {"status": validation.status})
                validation.status = "REJECTED"
                validation.rejection_reason = reason
                validation.save(update_fields=["status", "rejection_reason", "updated_at"])

                listing = Listing.objects.select_for_update().get(pk=validation.listing_id)
                if listing.status == Listing.STATUS_PENDING_VALIDATION:
                    self.listing_service.apply_rejection(listing, reason)

            self.logger.info(f"Rejected validation {validation.pk}: {reason}")
            return service_ok(validation)
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("reject_validation", e)

    @BaseService.log_performance
    def get_validation(self, actor, validation_id) -> ServiceResult[Validation]:
        try:
            queryset = Validation.objects.select_related("listing", "validator")
            return service_ok(get_in_tenant(queryset, actor, validation_id, "Validation"))
        except MarketplaceError as e:
            return service_err_from(e)

    @BaseService.log_performance
    def list_validations(
        self, actor, filters: Optional[Dict[str, Any]] = None, page: int = 1, limit: int = 20
    ) -> ServiceResult[Dict[str, Any]]:
        filters = filters or {}
        queryset = scope_to_tenant(Validation.objects.select_related("listing", "validator"), actor)
        if has_any_role(actor, (ROLE_VALIDATOR,)):
            queryset = queryset.filter(validator=actor)
        for field in ("status", "type"):
            if filters.get(field):
                queryset = queryset.filter(**{field: filters[field]})
        if filters.get("listing"):
            queryset = queryset.filter(listing_id=filters["listing"])
        return service_ok(paginate(queryset.order_by("-created_at"), page, limit))
