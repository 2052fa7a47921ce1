"""
InsuranceService - quotes, policies and claims

Premiums are priced from four risk sub-scores (weather, market, logistics,
quality). Cover is bound with the configured underwriter only after the policy
row is committed; an underwriter that is down or slow leaves the policy
PENDING for a later retry.
"""

import logging
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from infrastructure.insurance import InsuranceProviderError, PolicyRequest
from infrastructure.timeouts import ProviderTimeout, call_with_timeout
from marketplace.catalog.domain.models import Listing
from marketplace.domain.exceptions import InvalidStateError, MarketplaceError, NotFoundError, ValidationError
from marketplace.domain.money import quantize_money
from marketplace.domain.scoping import get_in_tenant, scope_to_tenant
from marketplace.insurance.domain.models import InsuranceClaim, InsurancePolicy
from marketplace.producers.domain.models import Producer
from marketplace.services.base import BaseService, ServiceResult, paginate, service_err_from, service_ok
from marketplace.tokenization.domain.models import AssetToken

logger = logging.getLogger(__name__)

DEFAULT_RISK_SCORES = {"weather": 75, "market": 80, "logistics": 70}
UNRATED_QUALITY_SCORE = 50
RISK_FACTOR_THRESHOLD = 60

BASE_RATES = {
    "commodity": Decimal("0.05"),
    "shipment": Decimal("0.03"),
    "livestock": Decimal("0.08"),
    "crop_yield": Decimal("0.06"),
    "price_guarantee": Decimal("0.04"),
}
DEFAULT_BASE_RATE = Decimal("0.05")


def quality_score_for(producer: Optional[Producer]) -> int:
    """Producer rating (0-10) scaled to 0-100, or 50 for unrated producers."""
    if producer is None or not producer.rating_count:
        return UNRATED_QUALITY_SCORE
    return int((producer.rating * 10).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_quote(
    insured_type: str,
    insured_value,
    coverage_days: int,
    scores: Dict[str, int],
) -> Dict[str, Any]:
    """
    Price cover from risk sub-scores.

    premium = value x base_rate x (1 + (100 - overall) / 100) x days / 365
    """
    overall = int(
        (Decimal(sum(scores.values())) / len(scores)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    )
    base_rate = BASE_RATES.get(insured_type, DEFAULT_BASE_RATE)
    multiplier = 1 + Decimal(100 - overall) / 100
    premium = quantize_money(
        Decimal(str(insured_value)) * base_rate * multiplier * Decimal(coverage_days) / Decimal(365)
    )
    return {
        "riskScores": dict(scores),
        "overallScore": overall,
        "riskFactors": sorted(name for name, score in scores.items() if score < RISK_FACTOR_THRESHOLD),
        "baseRate": str(base_rate),
        "riskMultiplier": str(multiplier),
        "premium": premium,
        "payoutProbability": str(Decimal(100 - overall) / 100),
    }


def parametric_trigger_met(terms: Dict[str, Any], trigger_data: Dict[str, Any]) -> bool:
    """True when any reported metric crosses its ``below`` / ``above`` threshold."""
    for metric, rule in (terms or {}).get("parametric_triggers", {}).items():
        if metric not in (trigger_data or {}):
            continue
        value = Decimal(str(trigger_data[metric]))
        if "below" in rule and value < Decimal(str(rule["below"])):
            return True
        if "above" in rule and value > Decimal(str(rule["above"])):
            return True
    return False


class InsuranceService(BaseService):
    """
    Service for insurance.

    Dependencies:
    - InsuranceProviderInterface: binds / cancels cover (Lloyd's, auto-approve, mock)
    - IdentifierService: policy and claim numbers
    """

    def __init__(self, provider=None, identifiers=None):
        super().__init__()
        if provider is None:
            from infrastructure.container import container

            provider = container.insurance()
        if identifiers is None:
            from marketplace.domain.services.identifier_service import IdentifierService

            identifiers = IdentifierService()
        self.provider = provider
        self.identifiers = identifiers

    # ----- quotes -----

    def _risk_scores(self, producer: Optional[Producer], overrides: Optional[Dict[str, Any]]) -> Dict[str, int]:
        scores = dict(DEFAULT_RISK_SCORES)
        scores["quality"] = quality_score_for(producer)
        for name, value in (overrides or {}).items():
            if name in scores:
                scores[name] = int(value)
        return scores

    def _insured_producer(self, actor, listing_id=None, producer_id=None) -> Optional[Producer]:
        if listing_id:
            return get_in_tenant(Listing.objects.select_related("producer"), actor, listing_id, "Listing").producer
        if producer_id:
            return get_in_tenant(Producer.objects.all(), actor, producer_id, "Producer")
        return None

    @BaseService.log_performance
    def quote(self, actor, data: Dict[str, Any]) -> ServiceResult[Dict[str, Any]]:
        """
        Quote a premium.

        Args:
            data: insured_type, insured_value, currency, coverage_days,
                optional risk_profile overrides and listing_id / producer_id
                (the producer's rating drives the quality score)
        """
        try:
            value = Decimal(str(data["insured_value"]))
            days = int(data.get("coverage_days") or 365)
            if value <= 0:
                raise ValidationError("insured_value must be greater than 0", {"insured_value": ["Must be > 0."]})
            if days <= 0:
                raise ValidationError("coverage_days must be greater than 0", {"coverage_days": ["Must be > 0."]})

            producer = self._insured_producer(actor, data.get("listing_id"), data.get("producer_id"))
            scores = self._risk_scores(producer, data.get("risk_profile"))
            quote = calculate_quote(data["insured_type"], value, days, scores)
            validity = getattr(settings, "INSURANCE_QUOTE_VALIDITY_DAYS", 7)
            quote.update(
                {
                    "insuredType": data["insured_type"],
                    "insuredValue": str(quantize_money(value)),
                    "currency": (data.get("currency") or "USD").upper(),
                    "coverageDays": days,
                    "premium": str(quote["premium"]),
                    "validUntil": (timezone.now() + timedelta(days=validity)).isoformat(),
                }
            )
            return service_ok(quote)
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("insurance_quote", e)

    # ----- policies -----

    @BaseService.log_performance
    def create_policy(self, actor, data: Dict[str, Any]) -> ServiceResult[InsurancePolicy]:
        """
        Create a policy and bind it with the underwriter.

        The policy row commits PENDING first. Binding success makes it ACTIVE;
        a timeout or underwriter error leaves it PENDING with the reason kept
        in ``provider_error``.
        """
        try:
            start, end = data["coverage_start"], data["coverage_end"]
            if end <= start:
                raise ValidationError(
                    "coverage_end must be after coverage_start", {"coverage_end": ["Must be after coverage_start."]}
                )
            value = Decimal(str(data["insured_value"]))
            if value <= 0:
                raise ValidationError("insured_value must be greater than 0", {"insured_value": ["Must be > 0."]})

            listing = token = None
            if data.get("listing_id"):
                listing = get_in_tenant(
                    Listing.objects.select_related("producer"), actor, data["listing_id"], "Listing"
                )
            if data.get("token_id"):
                token = get_in_tenant(AssetToken.objects.select_related("listing"), actor, data["token_id"], "Token")
                listing = listing or token.listing

            tenant = listing.tenant if listing else actor.tenant
            if tenant is None:
                raise ValidationError("A listing or token is required to insure outside a tenant")

            days = max((end - start).days, 1)
            scores = self._risk_scores(listing.producer if listing else None, data.get("risk_profile"))
            quote = calculate_quote(data["insured_type"], value, days, scores)

            with transaction.atomic():
                policy = InsurancePolicy.objects.create(
                    policy_number=self.identifiers.next_policy_number(tenant),
                    tenant=tenant,
                    listing=listing,
                    token=token,
                    created_by=actor,
                    insured_type=data["insured_type"],
                    insured_value=quantize_money(value),
                    premium=quote["premium"],
                    currency=(data.get("currency") or tenant.currency).upper(),
                    coverage_start=start,
                    coverage_end=end,
                    risk_profile={key: quote[key] for key in ("riskScores", "overallScore", "riskFactors")},
                    terms=data.get("terms") or {},
                    provider=self.provider.name,
                    status="PENDING",
                )

        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("create_policy", e)

        self._bind(policy)
        return service_ok(policy)

    def _bind(self, policy: InsurancePolicy) -> None:
        request = PolicyRequest(
            policy_number=policy.policy_number,
            insured_type=policy.insured_type,
            insured_value=policy.insured_value,
            premium=policy.premium,
            currency=policy.currency,
            coverage_start=policy.coverage_start,
            coverage_end=policy.coverage_end,
            risk_profile=policy.risk_profile,
        )
        try:
            receipt = call_with_timeout(
                self.provider.create_policy, request, provider=self.provider.name, operation="create_policy"
            )
        except ProviderTimeout as e:
            policy.provider_error = str(e)
            policy.save(update_fields=["provider_error", "updated_at"])
            self.logger.warning(f"Policy {policy.policy_number} left PENDING: {e}")
            return
        except InsuranceProviderError as e:
            policy.provider_error = str(e)
            policy.save(update_fields=["provider_error", "updated_at"])
            self.logger.error(f"Underwriter rejected policy {policy.policy_number}: {e}")
            return

        policy.status = receipt.status
        policy.provider = receipt.provider
        policy.provider_reference = receipt.reference
        policy.provider_error = ""
        policy.save(update_fields=["status", "provider", "provider_reference", "provider_error", "updated_at"])
        self.logger.info(f"Bound policy {policy.policy_number} with {receipt.provider} ({receipt.reference})")

    @BaseService.log_performance
    def cancel_policy(self, actor, policy_id, reason: str = "") -> ServiceResult[InsurancePolicy]:
        try:
            with transaction.atomic():
                policy = get_in_tenant(InsurancePolicy.objects.select_for_update(), actor, policy_id, "Policy")
                if policy.status not in ("PENDING", "ACTIVE"):
                    raise InvalidStateError(
                        f"Policy {policy.policy_number} is {policy.status}", {"status": policy.status}
                    )
                policy.status = "CANCELLED"
                policy.cancellation_reason = reason
                policy.save(update_fields=["status", "cancellation_reason", "updated_at"])
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("cancel_policy", e)

        if policy.provider_reference:
            try:
                call_with_timeout(
                    self.provider.cancel_policy,
                    policy.provider_reference,
                    provider=self.provider.name,
                    operation="cancel_policy",
                )
            except (ProviderTimeout, InsuranceProviderError) as e:
                self.logger.error(f"Underwriter cancellation of {policy.policy_number} failed: {e}")
        return service_ok(policy)

    @BaseService.log_performance
    def get_policy(self, actor, policy_id) -> ServiceResult[InsurancePolicy]:
        try:
            return service_ok(get_in_tenant(InsurancePolicy.objects.all(), actor, policy_id, "Policy"))
        except MarketplaceError as e:
            return service_err_from(e)

    @BaseService.log_performance
    def list_policies(
        self, actor, filters: Optional[Dict[str, Any]] = None, page: int = 1, limit: int = 20
    ) -> ServiceResult[Dict[str, Any]]:
        filters = filters or {}
        queryset = scope_to_tenant(InsurancePolicy.objects.all(), actor)
        for field in ("status", "insured_type"):
            if filters.get(field):
                queryset = queryset.filter(**{field: filters[field]})
        if filters.get("listing"):
            queryset = queryset.filter(listing_id=filters["listing"])
        return service_ok(paginate(queryset.order_by("-created_at"), page, limit))

    def expire_policies(self) -> int:
        """ACTIVE policies whose cover has ended become EXPIRED; returns the count."""
        expired = InsurancePolicy.objects.filter(status="ACTIVE", coverage_end__lt=timezone.now()).update(
            status="EXPIRED", updated_at=timezone.now()
        )
        if expired:
            self.logger.info(f"Expired {expired} insurance policies")
        return expired

    # ----- claims -----

    def _record_approval(self, claim: InsuranceClaim, amount: Decimal) -> None:
        claim.status = "APPROVED"
        claim.approved_amount = amount
        claim.assessed_at = timezone.now()
        InsurancePolicy.objects.filter(pk=claim.policy_id).update(
            claims_made=F("claims_made") + 1,
            claims_approved=F("claims_approved") + 1,
            payout_total=F("payout_total") + amount,
        )

    def _lock_claim(self, actor, claim_id) -> InsuranceClaim:
        return get_in_tenant(
            InsuranceClaim.objects.select_for_update(), actor, claim_id, "Claim", field="policy__tenant"
        )

    @BaseService.log_performance
    def create_claim(self, actor, data: Dict[str, Any]) -> ServiceResult[InsuranceClaim]:
        """
        File a claim against an ACTIVE policy.

        Claims whose ``trigger_data`` meets one of the policy's parametric
        triggers are approved on the spot for the full amount.
        """
        try:
            amount = quantize_money(data["claim_amount"])
            with transaction.atomic():
                policy = get_in_tenant(InsurancePolicy.objects.select_for_update(), actor, data["policy_id"], "Policy")
                if policy.status != "ACTIVE":
                    raise InvalidStateError(
                        f"Claims can only be filed against ACTIVE policies (policy is {policy.status})",
                        {"status": policy.status},
                    )
                if amount <= 0 or amount > policy.insured_value:
                    raise ValidationError(
                        f"claim_amount must be greater than 0 and at most {policy.insured_value}",
                        {"claim_amount": [f"Must be between 0.01 and {policy.insured_value}."]},
                    )

                trigger_data = data.get("trigger_data") or {}
                parametric = parametric_trigger_met(policy.terms, trigger_data)
                claim = InsuranceClaim(
                    claim_number=self.identifiers.next_claim_number(policy.tenant),
                    policy=policy,
                    submitted_by=actor,
                    claim_type=data["claim_type"],
                    claim_amount=amount,
                    currency=policy.currency,
                    description=data.get("description", ""),
                    evidence=data.get("evidence") or [],
                    trigger_data=trigger_data,
                    is_parametric=parametric,
                )
                if parametric:
                    self._record_approval(claim, amount)
                    claim.assessment_notes = "Parametric trigger met"
                claim.save()

            self.logger.info(f"Filed claim {claim.claim_number} on {policy.policy_number} ({claim.status})")
            return service_ok(claim)
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("create_claim", e)

    @BaseService.log_performance
    def approve_claim(self, actor, claim_id, amount=None, notes: str = "") -> ServiceResult[InsuranceClaim]:
        try:
            with transaction.atomic():
                claim = self._lock_claim(actor, claim_id)
                if claim.status != "PENDING":
                    raise InvalidStateError(f"Claim {claim.claim_number} is {claim.status}", {"status": claim.status})
                approved = quantize_money(amount) if amount is not None else claim.claim_amount
                if approved <= 0 or approved > claim.claim_amount:
                    raise ValidationError(
                        "Approved amount must be greater than 0 and at most the claimed amount",
                        {"amount": [f"Must be between 0.01 and {claim.claim_amount}."]},
                    )
                self._record_approval(claim, approved)
                claim.assessment_notes = notes
                claim.save(update_fields=["status", "approved_amount", "assessed_at", "assessment_notes", "updated_at"])
            return service_ok(claim)
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("approve_claim", e)

    @BaseService.log_performance
    def reject_claim(self, actor, claim_id, reason: str) -> ServiceResult[InsuranceClaim]:
        try:
            with transaction.atomic():
                claim = self._lock_claim(actor, claim_id)
                if claim.status != "PENDING":
                    raise InvalidStateError(f"Claim {claim.claim_number} is {claim.status}", {"status": claim.status})
                claim.status = "REJECTED"
                claim.assessment_notes = reason
                claim.assessed_at = timezone.now()
                claim.save(update_fields=["status", "assessment_notes", "assessed_at", "updated_at"])
                InsurancePolicy.objects.filter(pk=claim.policy_id).update(claims_made=F("claims_made") + 1)
            return service_ok(claim)
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("reject_claim", e)

    @BaseService.log_performance
    def pay_claim(self, actor, claim_id) -> ServiceResult[InsuranceClaim]:
        try:
            with transaction.atomic():
                claim = self._lock_claim(actor, claim_id)
                if claim.status != "APPROVED":
                    raise InvalidStateError(
                        f"Only APPROVED claims can be paid (claim is {claim.status})", {"status": claim.status}
                    )
                claim.status = "PAID"
                claim.payout_date = timezone.now()
                claim.save(update_fields=["status", "payout_date", "updated_at"])
            self.logger.info(f"Paid claim {claim.claim_number}: {claim.approved_amount} {claim.currency}")
            return service_ok(claim)
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("pay_claim", e)

    @BaseService.log_performance
    def get_claim(self, actor, claim_id) -> ServiceResult[InsuranceClaim]:
        try:
            claim = get_in_tenant(
                InsuranceClaim.objects.select_related("policy"), actor, claim_id, "Claim", field="policy__tenant"
            )
            return service_ok(claim)
        except NotFoundError as e:
            return service_err_from(e)
