"""
Lloyd's Insurance Provider
==========================

Binds cover through the Lloyd's placement API.
"""

import logging

import requests
from django.conf import settings
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .interface import InsuranceProviderError, InsuranceProviderInterface, PolicyReceipt, PolicyRequest

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 8

lloyds_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=5),
    retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
    reraise=True,
)


class LloydsInsuranceProvider(InsuranceProviderInterface):
    """
    Configuration (in settings.py):
        LLOYDS_API_URL: Base URL of the placement API
        LLOYDS_API_KEY: API key sent as X-API-Key
    """

    name = "lloyds"

    def __init__(self, session: requests.Session = None):
        self.base_url = getattr(settings, "LLOYDS_API_URL", "").rstrip("/")
        self.api_key = getattr(settings, "LLOYDS_API_KEY", "")
        self.session = session or requests.Session()

        if not self.base_url or not self.api_key:
            logger.warning("LLOYDS_API_URL / LLOYDS_API_KEY not configured")

    @lloyds_retry
    def _post(self, path: str, payload: dict) -> requests.Response:
        return self.session.post(
            f"{self.base_url}{path}",
            json=payload,
            headers={"X-API-Key": self.api_key, "Content-Type": "application/json"},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )

    def create_policy(self, request: PolicyRequest) -> PolicyReceipt:
        payload = {
            "policyNumber": request.policy_number,
            "insuredType": request.insured_type,
            "insuredValue": str(request.insured_value),
            "premium": str(request.premium),
            "currency": request.currency,
            "coverageStart": request.coverage_start.isoformat(),
            "coverageEnd": request.coverage_end.isoformat(),
            "riskProfile": request.risk_profile,
        }
        try:
            response = self._post("/policies", payload)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            logger.error(f"Lloyd's policy placement failed for {request.policy_number}: {e}")
            raise InsuranceProviderError(f"Lloyd's API error: {e}") from e
        except ValueError as e:
            raise InsuranceProviderError("Lloyd's API returned a non-JSON body") from e

        reference = body.get("policyId") or body.get("id")
        if not reference:
            raise InsuranceProviderError("Lloyd's API response did not include a policy id")

        logger.info(f"Lloyd's bound policy {request.policy_number} as {reference}")
        return PolicyReceipt(provider=self.name, reference=str(reference))

    def cancel_policy(self, reference: str) -> bool:
        try:
            response = self._post(f"/policies/{reference}/cancel", {})
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Lloyd's cancellation failed for {reference}: {e}")
            raise InsuranceProviderError(f"Lloyd's API error: {e}") from e
        return True
