"""
Insurance Provider Factory
==========================
"""

import logging
from typing import Optional

from django.conf import settings

from .auto_approve_provider import AutoApproveInsuranceProvider
from .interface import InsuranceProviderInterface
from .lloyds_provider import LloydsInsuranceProvider
from .mock_provider import MockInsuranceProvider

logger = logging.getLogger(__name__)


class InsuranceProviderFactory:
    @staticmethod
    def create(backend: Optional[str] = None) -> InsuranceProviderInterface:
        """
        Create an insurance provider.

        ``mock`` always wins; otherwise a disabled insurance module
        (ENABLE_INSURANCE_MODULE=False) binds cover locally.
        """
        backend_type = backend or getattr(settings, "INFRASTRUCTURE", {}).get("INSURANCE_PROVIDER", "lloyds")

        if backend_type == "mock":
            return MockInsuranceProvider()
        if backend_type == "auto" or not getattr(settings, "ENABLE_INSURANCE_MODULE", False):
            logger.info("Creating insurance provider: auto")
            return AutoApproveInsuranceProvider()
        if backend_type == "lloyds":
            logger.info("Creating insurance provider: lloyds")
            return LloydsInsuranceProvider()
        raise ValueError(f"Invalid insurance provider: {backend_type}. Expected 'lloyds', 'auto' or 'mock'")
