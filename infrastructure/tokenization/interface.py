"""
Token Mint Provider Interface
=============================

Contract for minting listing tokens and anchoring document proofs on a chain.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict


@dataclass
class TokenMintRequest:
    token_number: str
    token_type: str
    total_supply: Decimal
    owner_address: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class MintReceipt:
    blockchain: str
    contract_address: str
    chain_token_id: str
    tx_hash: str


@dataclass
class AnchorReceipt:
    tx_hash: str
    block_number: int


class TokenMintProviderInterface(ABC):
    name = "abstract"
    network = ""

    @abstractmethod
    def mint(self, request: TokenMintRequest) -> MintReceipt:
        """
        Mint a token.

        Raises:
            TokenMintError: If the mint transaction is rejected
        """
        pass

    @abstractmethod
    def transfer(self, contract_address: str, chain_token_id: str, to_address: str) -> str:
        """Transfer ownership and return the transaction hash."""
        pass

    @abstractmethod
    def anchor_proof(self, contract_address: str, chain_token_id: str, proof_hash: str) -> AnchorReceipt:
        pass


class TokenMintError(Exception):
    """Base exception for token minting operations."""

    pass
