"""In-process TokenMintProviderInterface for tests."""

from ..scripted import ScriptedProvider
from .interface import AnchorReceipt, MintReceipt, TokenMintError, TokenMintProviderInterface, TokenMintRequest


class MockTokenMintProvider(ScriptedProvider, TokenMintProviderInterface):
    name = "mock"
    network = "mocknet"

    def __init__(self):
        super().__init__()
        self._counter = 0

    def mint(self, request: TokenMintRequest) -> MintReceipt:
        self._perform("mint", TokenMintError, token_number=request.token_number)
        self._counter += 1
        return MintReceipt(
            blockchain=self.network,
            contract_address="0x" + "ab" * 20,
            chain_token_id=str(self._counter),
            tx_hash="0x" + f"{self._counter:064x}",
        )

    def transfer(self, contract_address: str, chain_token_id: str, to_address: str) -> str:
        self._perform("transfer", TokenMintError, chain_token_id=chain_token_id, to_address=to_address)
        return "0x" + "cd" * 32

    def anchor_proof(self, contract_address: str, chain_token_id: str, proof_hash: str) -> AnchorReceipt:
        self._perform("anchor_proof", TokenMintError, chain_token_id=chain_token_id, proof_hash=proof_hash)
        return AnchorReceipt(tx_hash="0x" + "ef" * 32, block_number=42)
