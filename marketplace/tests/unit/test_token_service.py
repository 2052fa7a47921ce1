from decimal import Decimal

import pytest

from infrastructure.scripted import Outcome
from marketplace.catalog.domain.models import Listing
from marketplace.services.base import ErrorCodes
from marketplace.tests.factories import BrokerFactory, ListingFactory, UserFactory
from marketplace.tokenization.domain.models import AssetToken

OWNER = "0x" + "11" * 20
BUYER_WALLET = "0x" + "22" * 20


@pytest.mark.unit
@pytest.mark.django_db
class TestMintToken:
    @pytest.fixture(autouse=True)
    def setup(self, db, mock_providers):
        self.provider = mock_providers.token_mint()
        self.service = mock_providers.token_service()
        self.listing = ListingFactory()
        self.producer_user = self.listing.producer.user
        yield
        self.provider.release()

    def test_mint_nft(self):
        result = self.service.mint_token(self.producer_user, self.listing.id, owner_address=OWNER)

        assert result.ok, result.error_detail
        token = result.value
        assert token.status == "MINTED"
        assert token.total_supply == Decimal("1")
        assert token.blockchain == "mocknet"
        assert token.contract_address == "0x" + "ab" * 20
        assert token.chain_token_id == "1"
        assert token.minted_at is not None
        assert token.token_number.startswith("TKN-GH-")
        assert token.metadata["quantity"] == "1000.000"
        self.listing.refresh_from_db()
        assert self.listing.is_tokenized

    def test_fungible_supply_matches_listed_quantity(self):
        result = self.service.mint_token(self.producer_user, self.listing.id, token_type="fungible")

        assert result.value.token_type == "FUNGIBLE"
        assert result.value.total_supply == Decimal("1000")

    def test_mint_failure_leaves_token_pending(self):
        self.provider.script(Outcome.FAIL, message="nonce too low")

        result = self.service.mint_token(self.producer_user, self.listing.id)

        token = AssetToken.objects.get(pk=result.value.pk)
        assert token.status == "PENDING"
        assert token.metadata["mint_error"] == "nonce too low"
        self.listing.refresh_from_db()
        assert not self.listing.is_tokenized

    def test_retry_after_timeout(self):
        self.provider.script(Outcome.HANG)
        token = self.service.mint_token(self.producer_user, self.listing.id).value
        assert AssetToken.objects.get(pk=token.pk).status == "PENDING"

        self.provider.release()
        self.provider.script(Outcome.SUCCEED)
        result = self.service.retry_mint(self.producer_user, token.id)

        assert result.value.status == "MINTED"
        assert "mint_error" not in result.value.metadata
        assert self.service.retry_mint(self.producer_user, token.id).error == ErrorCodes.INVALID_STATE

    def test_one_live_token_per_listing(self):
        self.service.mint_token(self.producer_user, self.listing.id)

        result = self.service.mint_token(self.producer_user, self.listing.id)

        assert result.error == ErrorCodes.CONFLICT
        assert AssetToken.objects.count() == 1

    def test_listing_must_be_active(self):
        Listing.objects.filter(pk=self.listing.pk).update(status=Listing.STATUS_DRAFT)

        assert self.service.mint_token(self.producer_user, self.listing.id).error == ErrorCodes.INVALID_STATE

    def test_buyer_cannot_mint(self):
        buyer = UserFactory(tenant=self.listing.tenant)

        assert self.service.mint_token(buyer, self.listing.id).error == ErrorCodes.FORBIDDEN

    def test_unknown_token_type(self):
        assert self.service.mint_token(self.producer_user, self.listing.id, "ERC404").error == (
            ErrorCodes.VALIDATION_ERROR
        )


@pytest.mark.unit
@pytest.mark.django_db
class TestLiveToken:
    @pytest.fixture(autouse=True)
    def setup(self, db, mock_providers):
        self.provider = mock_providers.token_mint()
        self.service = mock_providers.token_service()
        self.listing = ListingFactory()
        self.broker = BrokerFactory(tenant=self.listing.tenant)
        self.token = self.service.mint_token(self.broker, self.listing.id, owner_address=OWNER).value

    def test_transfer_records_history(self):
        result = self.service.transfer_token(self.broker, self.token.id, BUYER_WALLET)

        assert result.ok, result.error_detail
        token = result.value
        assert token.status == "TRANSFERRED"
        assert token.owner_address == BUYER_WALLET
        assert token.metadata["transfers"][0]["from"] == OWNER
        assert token.metadata["transfers"][0]["tx_hash"] == "0x" + "cd" * 32

    def test_transfer_failure_is_external_error(self):
        self.provider.script(Outcome.FAIL)

        result = self.service.transfer_token(self.broker, self.token.id, BUYER_WALLET)

        assert result.error == ErrorCodes.EXTERNAL_SERVICE_ERROR
        self.token.refresh_from_db()
        assert self.token.status == "MINTED"

    def test_transfer_requires_address(self):
        assert self.service.transfer_token(self.broker, self.token.id, "").error == ErrorCodes.VALIDATION_ERROR

    def test_anchor_proof(self):
        first = self.service.anchor_proof(self.broker, self.token.id, "sha256:abc")
        second = self.service.anchor_proof(self.broker, self.token.id, "sha256:def")

        assert first.ok
        hashes = second.value.proof_hashes
        assert [entry["hash"] for entry in hashes] == ["sha256:abc", "sha256:def"]
        assert hashes[0]["block_number"] == 42

    def test_pending_token_cannot_be_transferred(self):
        AssetToken.objects.filter(pk=self.token.pk).update(status="PENDING")

        assert self.service.transfer_token(self.broker, self.token.id, BUYER_WALLET).error == (
            ErrorCodes.INVALID_STATE
        )

    def test_list_tokens(self):
        result = self.service.list_tokens(self.broker, {"status": "MINTED"})

        assert [t.id for t in result.value["results"]] == [self.token.id]
