from drf_spectacular.utils import OpenApiExample, OpenApiResponse, extend_schema
from rest_framework import permissions, status
from rest_framework.views import APIView

from authentication.api.serializers import (
    ErrorResponseSerializer,
    LoginRequestSerializer,
    LoginResponseSerializer,
    MeResponseSerializer,
    RegisterRequestSerializer,
)
from infrastructure.container import container
from utils.api_response import result_response


# Dependency Injection Helper
def get_auth_service():
    """AuthService instance from the service container."""
    return container.auth_service()


class LoginAPIView(APIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    @extend_schema(
        operation_id="auth_login",
        summary="Login with email and password",
        description="""
        Authenticate a user with email and password.

        The access token carries `user_id`, `tenant_id`, `role` and `permissions`
        claims. Unknown email and wrong password answer identically.
        """,
        request=LoginRequestSerializer,
        responses={
            200: OpenApiResponse(
                response=LoginResponseSerializer,
                description="Login successful",
                examples=[
                    OpenApiExample(
                        "Successful Login",
                        value={
                            "success": True,
                            "data": {
                                "access": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                                "refresh": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                                "user": {
                                    "id": "123e4567-e89b-12d3-a456-426614174000",
                                    "email": "buyer@example.com",
                                    "role": "BUYER",
                                },
                            },
                            "meta": {"timestamp": "2026-01-01T00:00:00Z"},
                        },
                    )
                ],
            ),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Missing credentials"),
            401: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid credentials or inactive"),
        },
        tags=["Authentication"],
    )
    def post(self, request):
        serializer = LoginRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = get_auth_service().login(
            serializer.validated_data["email"], serializer.validated_data["password"], request
        )
        return result_response(request, result)


class RegisterAPIView(APIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    @extend_schema(
        operation_id="auth_register",
        summary="Register in an existing organisation",
        description="Self-service registration. Only PRODUCER, BUYER and BROKER can be chosen.",
        request=RegisterRequestSerializer,
        responses={
            201: LoginResponseSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Weak password or unknown tenant"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Email already registered"),
        },
        tags=["Authentication"],
    )
    def post(self, request):
        serializer = RegisterRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = get_auth_service().register(**serializer.validated_data)
        return result_response(request, result, http_status=status.HTTP_201_CREATED)


class MeAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    @extend_schema(
        operation_id="auth_me",
        summary="Current user",
        responses={200: MeResponseSerializer, 401: ErrorResponseSerializer},
        tags=["Authentication"],
    )
    def get(self, request):
        return result_response(request, get_auth_service().me(request.user))
