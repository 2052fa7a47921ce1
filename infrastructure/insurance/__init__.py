from .auto_approve_provider import AutoApproveInsuranceProvider
from .factory import InsuranceProviderFactory
from .interface import InsuranceProviderError, InsuranceProviderInterface, PolicyReceipt, PolicyRequest
from .lloyds_provider import LloydsInsuranceProvider
from .mock_provider import MockInsuranceProvider

__all__ = [
    "AutoApproveInsuranceProvider",
    "InsuranceProviderError",
    "InsuranceProviderFactory",
    "InsuranceProviderInterface",
    "LloydsInsuranceProvider",
    "MockInsuranceProvider",
    "PolicyReceipt",
    "PolicyRequest",
]
