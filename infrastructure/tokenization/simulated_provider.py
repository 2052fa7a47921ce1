"""
Simulated Token Mint Provider
=============================

Stands in for a chain while ENABLE_BLOCKCHAIN is off: returns well-formed
contract addresses, token ids and transaction hashes without touching a node.
"""

import logging
import secrets

from django.conf import settings

from .interface import AnchorReceipt, MintReceipt, TokenMintProviderInterface, TokenMintRequest

logger = logging.getLogger(__name__)


def _hex(n_bytes: int) -> str:
    return "0x" + secrets.token_hex(n_bytes)


class SimulatedTokenMintProvider(TokenMintProviderInterface):
    name = "simulated"

    def __init__(self):
        self.network = getattr(settings, "BLOCKCHAIN_NETWORK", "polygon-amoy")
        self._block = 1_000_000

    def _next_block(self) -> int:
        self._block += 1
        return self._block

    def mint(self, request: TokenMintRequest) -> MintReceipt:
        receipt = MintReceipt(
            blockchain=self.network,
            contract_address=_hex(20),
            chain_token_id=str(secrets.randbelow(10**12)),
            tx_hash=_hex(32),
        )
        logger.info(f"Simulated mint of {request.token_number} on {self.network}: {receipt.tx_hash}")
        return receipt

    def transfer(self, contract_address: str, chain_token_id: str, to_address: str) -> str:
        return _hex(32)

    def anchor_proof(self, contract_address: str, chain_token_id: str, proof_hash: str) -> AnchorReceipt:
        return AnchorReceipt(tx_hash=_hex(32), block_number=self._next_block())
