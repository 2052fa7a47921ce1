from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action

from infrastructure.container import container
from marketplace.api.serializers import ErrorResponseSerializer
from marketplace.permissions import ActionPermissionsMixin
from marketplace.services import TokenService
from marketplace.tokenization.api.serializers.token_serializers import (
    AnchorProofRequestSerializer,
    AssetTokenSerializer,
    MintTokenRequestSerializer,
    TokenQuerySerializer,
    TransferTokenRequestSerializer,
)
from utils.api_response import parse_pagination, result_response


class TokenViewSet(ActionPermissionsMixin, viewsets.ViewSet):
    """Asset tokens minted from ACTIVE listings."""

    action_permissions = {
        "list": ("listings:read",),
        "retrieve": ("listings:read",),
        "create": ("listings:update",),
        "transfer": ("listings:update",),
        "retry": ("listings:update",),
        "anchor": ("listings:update",),
    }

    def get_service(self) -> TokenService:
        return container.token_service()

    @extend_schema(
        operation_id="tokens_list",
        parameters=[
            TokenQuerySerializer,
            OpenApiParameter(name="page", type=int),
            OpenApiParameter(name="limit", type=int),
        ],
        responses={200: AssetTokenSerializer(many=True)},
        tags=["Marketplace - Tokens"],
    )
    def list(self, request):
        page, limit = parse_pagination(request)
        query = TokenQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = self.get_service().list_tokens(request.user, query.validated_data, page, limit)
        return result_response(request, result, AssetTokenSerializer)

    @extend_schema(
        operation_id="tokens_create",
        summary="Tokenize an ACTIVE listing",
        description="""
        The token is saved PENDING and then minted. When the chain is slow or
        refuses, it stays PENDING with `metadata.mint_error` set; retry it with
        `POST /tokens/{id}/retry/`.
        """,
        request=MintTokenRequestSerializer,
        responses={
            201: AssetTokenSerializer,
            409: OpenApiResponse(
                response=ErrorResponseSerializer, description="Listing not ACTIVE or already tokenized"
            ),
        },
        tags=["Marketplace - Tokens"],
    )
    def create(self, request):
        serializer = MintTokenRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = self.get_service().mint_token(
            request.user,
            data["listing_id"],
            token_type=data["token_type"],
            metadata=data["metadata"],
            owner_address=data["owner_address"],
        )
        return result_response(request, result, AssetTokenSerializer, http_status=status.HTTP_201_CREATED)

    @extend_schema(operation_id="tokens_retrieve", responses={200: AssetTokenSerializer}, tags=["Marketplace - Tokens"])
    def retrieve(self, request, pk=None):
        return result_response(request, self.get_service().get_token(request.user, pk), AssetTokenSerializer)

    @extend_schema(
        operation_id="tokens_transfer",
        request=TransferTokenRequestSerializer,
        responses={200: AssetTokenSerializer, 409: ErrorResponseSerializer, 502: ErrorResponseSerializer},
        tags=["Marketplace - Tokens"],
    )
    @action(detail=True, methods=["post"])
    def transfer(self, request, pk=None):
        serializer = TransferTokenRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self.get_service().transfer_token(request.user, pk, serializer.validated_data["to_address"])
        return result_response(request, result, AssetTokenSerializer)

    @extend_schema(
        operation_id="tokens_retry",
        summary="Retry minting a PENDING token",
        request=None,
        responses={200: AssetTokenSerializer, 409: ErrorResponseSerializer},
        tags=["Marketplace - Tokens"],
    )
    @action(detail=True, methods=["post"])
    def retry(self, request, pk=None):
        return result_response(request, self.get_service().retry_mint(request.user, pk), AssetTokenSerializer)

    @extend_schema(
        operation_id="tokens_anchor",
        summary="Anchor a document hash against the token",
        request=AnchorProofRequestSerializer,
        responses={200: AssetTokenSerializer, 409: ErrorResponseSerializer, 502: ErrorResponseSerializer},
        tags=["Marketplace - Tokens"],
    )
    @action(detail=True, methods=["post"])
    def anchor(self, request, pk=None):
        serializer = AnchorProofRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self.get_service().anchor_proof(request.user, pk, serializer.validated_data["proof_hash"])
        return result_response(request, result, AssetTokenSerializer)
