"""In-process InsuranceProviderInterface for tests."""

import uuid

from ..scripted import ScriptedProvider
from .interface import InsuranceProviderError, InsuranceProviderInterface, PolicyReceipt, PolicyRequest


class MockInsuranceProvider(ScriptedProvider, InsuranceProviderInterface):
    name = "mock"

    def create_policy(self, request: PolicyRequest) -> PolicyReceipt:
        self._perform("create_policy", InsuranceProviderError, policy_number=request.policy_number)
        return PolicyReceipt(provider="lloyds", reference=f"LLOYDS-MOCK-{uuid.uuid4().hex[:10].upper()}")

    def cancel_policy(self, reference: str) -> bool:
        self._perform("cancel_policy", InsuranceProviderError, reference=reference)
        return True
