"""
Token Mint Provider Factory
===========================
"""

import logging
from typing import Optional

from django.conf import settings

from .interface import TokenMintProviderInterface
from .mock_provider import MockTokenMintProvider
from .simulated_provider import SimulatedTokenMintProvider

logger = logging.getLogger(__name__)


class TokenMintFactory:
    @staticmethod
    def create(backend: Optional[str] = None) -> TokenMintProviderInterface:
        backend_type = backend or getattr(settings, "INFRASTRUCTURE", {}).get("TOKEN_MINT_PROVIDER", "simulated")

        logger.info(f"Creating token mint provider: {backend_type}")

        if backend_type == "mock":
            return MockTokenMintProvider()
        if backend_type == "simulated":
            if getattr(settings, "ENABLE_BLOCKCHAIN", False):
                logger.warning("ENABLE_BLOCKCHAIN is set but no chain client is configured; minting is simulated")
            return SimulatedTokenMintProvider()
        raise ValueError(f"Invalid token mint provider: {backend_type}. Expected 'simulated' or 'mock'")
