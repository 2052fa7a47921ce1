"""
TokenService - listing tokenization

A listing can carry one live token (NFT for the whole lot, or FUNGIBLE with a
supply equal to the listed quantity). Mint, transfer and proof anchoring go
through the configured TokenMintProvider outside any database transaction.
"""

import logging
from typing import Any, Dict, Optional

from django.db import transaction
from django.utils import timezone

from infrastructure.timeouts import ProviderTimeout, call_with_timeout
from infrastructure.tokenization import TokenMintError, TokenMintRequest
from marketplace.catalog.domain.models import Listing
from marketplace.domain.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    MarketplaceError,
    ValidationError,
)
from marketplace.domain.scoping import get_in_tenant, is_tenant_staff, owns_producer, scope_to_tenant
from marketplace.services.base import (
    BaseService,
    ErrorCodes,
    ServiceResult,
    paginate,
    service_err,
    service_err_from,
    service_ok,
)
from marketplace.tokenization.domain.models import AssetToken

logger = logging.getLogger(__name__)

TOKEN_TYPES = ("NFT", "FUNGIBLE")
LIVE_STATUSES = ("MINTED", "TRANSFERRED")


class TokenService(BaseService):
    """
    Service for asset tokens.

    Dependencies:
    - TokenMintProviderInterface: chain access (simulated, mock)
    - IdentifierService: token numbers
    """

    def __init__(self, provider=None, identifiers=None):
        super().__init__()
        if provider is None:
            from infrastructure.container import container

            provider = container.token_mint()
        if identifiers is None:
            from marketplace.domain.services.identifier_service import IdentifierService

            identifiers = IdentifierService()
        self.provider = provider
        self.identifiers = identifiers

    def _check_manager(self, actor, listing_producer_id) -> None:
        if not (is_tenant_staff(actor) or owns_producer(actor, listing_producer_id)):
            raise ForbiddenError("Only the listing producer or tenant staff can manage its token")

    @BaseService.log_performance
    def mint_token(
        self,
        actor,
        listing_id,
        token_type: str = "NFT",
        metadata: Optional[Dict[str, Any]] = None,
        owner_address: str = "",
    ) -> ServiceResult[AssetToken]:
        """
        Tokenize an ACTIVE listing.

        The token is saved PENDING, then minted. A provider timeout or error
        leaves it PENDING (``retry_mint`` tries again) with the reason in
        ``metadata["mint_error"]``.
        """
        token_type = (token_type or "NFT").upper()
        if token_type not in TOKEN_TYPES:
            return service_err(
                ErrorCodes.VALIDATION_ERROR,
                f"token_type must be one of {', '.join(TOKEN_TYPES)}",
                {"token_type": ["Invalid choice."]},
            )
        try:
            with transaction.atomic():
                listing = get_in_tenant(
                    Listing.objects.select_for_update().select_related("tenant", "commodity"),
                    actor,
                    listing_id,
                    "Listing",
                )
                self._check_manager(actor, listing.producer_id)
                if listing.status != Listing.STATUS_ACTIVE:
                    raise InvalidStateError(
                        f"Only ACTIVE listings can be tokenized (listing is {listing.status})",
                        {"status": listing.status},
                    )
                existing = AssetToken.objects.filter(listing=listing).exclude(status="BURNED").first()
                if existing is not None:
                    raise ConflictError(
                        f"Listing {listing.id} already has token {existing.token_number}",
                        {"token_id": str(existing.id)},
                    )

                token = AssetToken.objects.create(
                    token_number=self.identifiers.next_token_number(listing.tenant),
                    tenant_id=listing.tenant_id,
                    listing=listing,
                    minted_by=actor,
                    token_type=token_type,
                    total_supply=listing.listed_quantity if token_type == "FUNGIBLE" else 1,
                    blockchain=self.provider.network,
                    owner_address=owner_address,
                    metadata={
                        "commodity": listing.commodity.name,
                        "quantity": str(listing.listed_quantity),
                        "unit": listing.unit,
                        **(metadata or {}),
                    },
                    status="PENDING",
                )
        except MarketplaceError as e:
            return service_err_from(e)
        except Exception as e:
            return self.internal_error("mint_token", e)

        self._mint(token)
        return service_ok(token)

    def _mint(self, token: AssetToken) -> None:
        request = TokenMintRequest(
            token_number=token.token_number,
            token_type=token.token_type,
            total_supply=token.total_supply,
            owner_address=token.owner_address,
            metadata=token.metadata,
        )
        try:
            receipt = call_with_timeout(self.provider.mint, request, provider=self.provider.name, operation="mint")
        except (ProviderTimeout, TokenMintError) as e:
            token.metadata = {**token.metadata, "mint_error": str(e)}
            token.save(update_fields=["metadata", "updated_at"])
            self.logger.warning(f"Mint of {token.token_number} left PENDING: {e}")
            return

        with transaction.atomic():
            token.status = "MINTED"
            token.blockchain = receipt.blockchain
            token.contract_address = receipt.contract_address
            token.chain_token_id = receipt.chain_token_id
            token.tx_hash = receipt.tx_hash
            token.minted_at = timezone.now()
            token.metadata = {key: value for key, value in token.metadata.items() if key != "mint_error"}
            token.save()
            Listing.objects.filter(pk=token.listing_id).update(is_tokenized=True, updated_at=timezone.now())

        self.logger.info(f"Minted {token.token_number} on {token.blockchain}: {token.tx_hash}")

    @BaseService.log_performance
    def retry_mint(self, actor, token_id) -> ServiceResult[AssetToken]:
        try:
            token = get_in_tenant(AssetToken.objects.select_related("listing"), actor, token_id, "Token")
            self._check_manager(actor, token.listing.producer_id)
            if token.status != "PENDING":
                raise InvalidStateError(f"Token {token.token_number} is {token.status}", {"status": token.status})
        except MarketplaceError as e:
            return service_err_from(e)

        self._mint(token)
        return service_ok(token)

    def _live_token(self, actor, token_id) -> AssetToken:
        token = get_in_tenant(AssetToken.objects.select_related("listing"), actor, token_id, "Token")
        self._check_manager(actor, token.listing.producer_id)
        if token.status not in LIVE_STATUSES:
            raise InvalidStateError(
                f"Token {token.token_number} is {token.status}; it must be minted first", {"status": token.status}
            )
        return token

    @BaseService.log_performance
    def transfer_token(self, actor, token_id, to_address: str) -> ServiceResult[AssetToken]:
        if not to_address:
            return service_err(ErrorCodes.VALIDATION_ERROR, "to_address is required", {"to_address": ["Required."]})
        try:
            token = self._live_token(actor, token_id)
            tx_hash = call_with_timeout(
                self.provider.transfer,
                token.contract_address,
                token.chain_token_id,
                to_address,
                provider=self.provider.name,
                operation="transfer",
            )
        except MarketplaceError as e:
            return service_err_from(e)
        except (ProviderTimeout, TokenMintError) as e:
            self.logger.error(f"Transfer of token {token_id} failed: {e}")
            return service_err(ErrorCodes.EXTERNAL_SERVICE_ERROR, f"Token transfer failed: {e}")

        transfers = token.metadata.get("transfers", [])
        transfers.append(
            {"from": token.owner_address, "to": to_address, "tx_hash": tx_hash, "at": timezone.now().isoformat()}
        )
        token.metadata = {**token.metadata, "transfers": transfers}
        token.owner_address = to_address
        token.status = "TRANSFERRED"
        token.save(update_fields=["metadata", "owner_address", "status", "updated_at"])
        self.logger.info(f"Transferred {token.token_number} to {to_address}")
        return service_ok(token)

    @BaseService.log_performance
    def anchor_proof(self, actor, token_id, proof_hash: str) -> ServiceResult[AssetToken]:
        """Anchor a document hash (certificate, lab report) against the token."""
        try:
            if not proof_hash:
                raise ValidationError("proof_hash is required", {"proof_hash": ["Required."]})
            token = self._live_token(actor, token_id)
            receipt = call_with_timeout(
                self.provider.anchor_proof,
                token.contract_address,
                token.chain_token_id,
                proof_hash,
                provider=self.provider.name,
                operation="anchor_proof",
            )
        except MarketplaceError as e:
            return service_err_from(e)
        except (ProviderTimeout, TokenMintError) as e:
            self.logger.error(f"Anchoring proof on token {token_id} failed: {e}")
            return service_err(ErrorCodes.EXTERNAL_SERVICE_ERROR, f"Proof anchoring failed: {e}")

        token.proof_hashes = [
            *token.proof_hashes,
            {
                "hash": proof_hash,
                "tx_hash": receipt.tx_hash,
                "block_number": receipt.block_number,
                "anchored_at": timezone.now().isoformat(),
            },
        ]
        token.save(update_fields=["proof_hashes", "updated_at"])
        return service_ok(token)

    @BaseService.log_performance
    def get_token(self, actor, token_id) -> ServiceResult[AssetToken]:
        try:
            return service_ok(get_in_tenant(AssetToken.objects.select_related("listing"), actor, token_id, "Token"))
        except MarketplaceError as e:
            return service_err_from(e)

    @BaseService.log_performance
    def list_tokens(
        self, actor, filters: Optional[Dict[str, Any]] = None, page: int = 1, limit: int = 20
    ) -> ServiceResult[Dict[str, Any]]:
        filters = filters or {}
        queryset = scope_to_tenant(AssetToken.objects.select_related("listing"), actor)
        if filters.get("status"):
            queryset = queryset.filter(status=filters["status"])
        if filters.get("listing"):
            queryset = queryset.filter(listing_id=filters["listing"])
        return service_ok(paginate(queryset.order_by("-created_at"), page, limit))
