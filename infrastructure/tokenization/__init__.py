from .factory import TokenMintFactory
from .interface import AnchorReceipt, MintReceipt, TokenMintError, TokenMintProviderInterface, TokenMintRequest
from .mock_provider import MockTokenMintProvider
from .simulated_provider import SimulatedTokenMintProvider

__all__ = [
    "AnchorReceipt",
    "MintReceipt",
    "MockTokenMintProvider",
    "SimulatedTokenMintProvider",
    "TokenMintError",
    "TokenMintFactory",
    "TokenMintProviderInterface",
    "TokenMintRequest",
]
