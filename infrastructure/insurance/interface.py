"""
Insurance Provider Interface
============================

Contract for binding and cancelling cover with an underwriter.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict


@dataclass
class PolicyRequest:
    """
    Cover requested for a marketplace policy.

    Attributes:
        policy_number: Marketplace policy number (idempotency key for the underwriter)
        insured_type: commodity, shipment, livestock, crop_yield or price_guarantee
        insured_value: Sum insured in major currency units
        premium: Premium quoted to the customer
        currency: ISO currency code
        coverage_start / coverage_end: Cover period
        risk_profile: Scores the premium was computed from
    """

    policy_number: str
    insured_type: str
    insured_value: Decimal
    premium: Decimal
    currency: str
    coverage_start: datetime
    coverage_end: datetime
    risk_profile: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PolicyReceipt:
    provider: str
    reference: str
    status: str = "ACTIVE"


class InsuranceProviderInterface(ABC):
    name = "abstract"

    @abstractmethod
    def create_policy(self, request: PolicyRequest) -> PolicyReceipt:
        """
        Bind cover.

        Raises:
            InsuranceProviderError: If the underwriter rejects or cannot be reached
        """
        pass

    @abstractmethod
    def cancel_policy(self, reference: str) -> bool:
        pass


class InsuranceProviderError(Exception):
    """Base exception for insurance provider operations."""

    pass
