"""
Token Minting Infrastructure Tests
==================================
"""

from decimal import Decimal

from django.test import TestCase, override_settings

from infrastructure.scripted import Outcome
from infrastructure.tokenization import (
    MockTokenMintProvider,
    SimulatedTokenMintProvider,
    TokenMintError,
    TokenMintFactory,
    TokenMintRequest,
)


def mint_request():
    return TokenMintRequest(
        token_number="TKN-GH-2026-00000001", token_type="NFT", total_supply=Decimal("1"), owner_address=""
    )


class MockTokenMintProviderTest(TestCase):
    def setUp(self):
        self.provider = MockTokenMintProvider()

    def test_receipts_are_deterministic(self):
        first = self.provider.mint(mint_request())
        second = self.provider.mint(mint_request())

        self.assertEqual(first.blockchain, "mocknet")
        self.assertEqual((first.chain_token_id, second.chain_token_id), ("1", "2"))
        self.assertEqual(second.tx_hash, "0x" + "0" * 63 + "2")
        self.assertEqual(self.provider.anchor_proof(first.contract_address, "1", "sha256:abc").block_number, 42)

    def test_scripted_failure(self):
        self.provider.script(Outcome.FAIL, message="nonce too low")

        with self.assertRaisesMessage(TokenMintError, "nonce too low"):
            self.provider.mint(mint_request())
        self.assertEqual(self.provider.calls, [{"operation": "mint", "token_number": "TKN-GH-2026-00000001"}])


@override_settings(BLOCKCHAIN_NETWORK="polygon-amoy")
class SimulatedTokenMintProviderTest(TestCase):
    def test_well_formed_receipts(self):
        provider = SimulatedTokenMintProvider()

        receipt = provider.mint(mint_request())

        self.assertEqual(receipt.blockchain, "polygon-amoy")
        self.assertRegex(receipt.contract_address, r"^0x[0-9a-f]{40}$")
        self.assertRegex(receipt.tx_hash, r"^0x[0-9a-f]{64}$")
        first = provider.anchor_proof(receipt.contract_address, receipt.chain_token_id, "h1")
        second = provider.anchor_proof(receipt.contract_address, receipt.chain_token_id, "h2")
        self.assertEqual(second.block_number, first.block_number + 1)

    def test_factory(self):
        self.assertIsInstance(TokenMintFactory.create("simulated"), SimulatedTokenMintProvider)
        self.assertIsInstance(TokenMintFactory.create("mock"), MockTokenMintProvider)
        with self.assertRaises(ValueError):
            TokenMintFactory.create("ethereum")
