"""
AuthService - Core Authentication Business Logic.

Keeps login, registration and the current-user payload out of the views.
Results use the same ServiceResult envelope as the marketplace services so
the API layer renders them identically.
"""

import logging
from typing import Any, Dict, Optional

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.utils import timezone

from authentication.domain.models import Tenant
from authentication.infra.observability.metrics import (
    jwt_generation_total,
    login_duration,
    record_login_attempt,
    record_registration_attempt,
)
from authentication.infra.observability.tracing import add_span_attributes, tracer
from authentication.api.serializers.jwt_serializers import TradingRefreshToken
from marketplace.services.base import ErrorCodes, ServiceResult, service_err, service_ok
from utils.logging_utils import mask_value
from utils.rbac import ROLE_BUYER, SELF_SERVICE_ROLES

User = get_user_model()
logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
INVALID_CREDENTIALS = "Invalid email or password."


def user_payload(user) -> Dict[str, Any]:
    """Public representation of a user, including tenant and permissions."""
    tenant = user.tenant
    return {
        "id": str(user.id),
        "email": user.email,
        "username": user.username,
        "name": user.name,
        "phone": user.phone,
        "role": user.role,
        "permissions": user.permissions,
        "tenant": (
            {
                "id": str(tenant.id),
                "name": tenant.name,
                "slug": tenant.slug,
                "country": tenant.country,
                "currency": tenant.currency,
            }
            if tenant is not None
            else None
        ),
    }


class AuthService:
    """
    Authentication service encapsulating all auth business logic.

    Handles email/password login, self-service registration and the
    profile of the authenticated user.
    """

    def login(self, email: str, password: str, request=None) -> ServiceResult[Dict[str, Any]]:
        """
        Authenticate user with email/password.

        Business Logic:
        1. Check if user exists and the password matches
        2. Reject inactive users and users of a suspended tenant
        3. Generate JWT tokens carrying tenant, role and permissions

        Unknown email and wrong password answer with the same message.

        Args:
            email: User email address
            password: User password
            request: Optional Django request for IP tracking

        Returns:
            ServiceResult with ``{access, refresh, user}``
        """
        if not email or not password:
            record_login_attempt("missing_credentials")
            return service_err(ErrorCodes.VALIDATION_ERROR, "Email and password are required.")

        with login_duration.time(), tracer.start_as_current_span("auth.login") as span:
            add_span_attributes(span, email=mask_value(email))

            user = User.objects.select_related("tenant").filter(email__iexact=email.strip()).first()
            if user is None or not user.check_password(password):
                logger.info(f"Failed login for {mask_value(email)}")
                record_login_attempt("invalid_credentials")
                return service_err(ErrorCodes.UNAUTHORIZED, INVALID_CREDENTIALS)

            if not user.is_active:
                record_login_attempt("inactive_user")
                return service_err(ErrorCodes.UNAUTHORIZED, "This account is disabled.")

            if user.tenant is not None and not user.tenant.is_active:
                record_login_attempt("inactive_tenant")
                return service_err(ErrorCodes.UNAUTHORIZED, "This organisation is suspended.")

            user.last_login = timezone.now()
            user.last_login_ip = self._get_client_ip(request)
            user.save(update_fields=["last_login", "last_login_ip"])

            record_login_attempt("success")
            logger.info(f"User {user.id} logged in")
            return service_ok({**self._generate_tokens(user), "user": user_payload(user)})

    def _generate_tokens(self, user) -> Dict[str, str]:
        refresh = TradingRefreshToken.for_user(user)
        jwt_generation_total.labels(token_type="access").inc()
        jwt_generation_total.labels(token_type="refresh").inc()
        return {"access": str(refresh.access_token), "refresh": str(refresh)}

    @transaction.atomic
    def register(
        self,
        tenant_slug: str,
        email: str,
        password: str,
        name: str,
        phone: str = "",
        role: Optional[str] = None,
    ) -> ServiceResult[Dict[str, Any]]:
        """
        Register a user in an existing tenant.

        Business Logic:
        1. Validate the password length and the self-service role
        2. Resolve the active tenant by slug
        3. Create the user (email doubles as username) and issue tokens

        Returns:
            ServiceResult with ``{access, refresh, user}``
        """
        role = (role or ROLE_BUYER).upper()
        if role not in SELF_SERVICE_ROLES:
            record_registration_attempt("invalid_role")
            return service_err(
                ErrorCodes.VALIDATION_ERROR,
                f"role must be one of {', '.join(SELF_SERVICE_ROLES)}",
                {"role": ["This role cannot be self-assigned."]},
            )

        if not password or len(password) < MIN_PASSWORD_LENGTH:
            record_registration_attempt("weak_password")
            return service_err(
                ErrorCodes.VALIDATION_ERROR,
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters.",
                {"password": [f"Ensure this field has at least {MIN_PASSWORD_LENGTH} characters."]},
            )

        tenant = Tenant.objects.filter(slug=tenant_slug, status="ACTIVE").first()
        if tenant is None:
            record_registration_attempt("unknown_tenant")
            return service_err(
                ErrorCodes.VALIDATION_ERROR, f"Unknown tenant '{tenant_slug}'", {"tenant_slug": ["Unknown tenant."]}
            )

        email = User.objects.normalize_email(email).strip()
        if User.objects.filter(email__iexact=email).exists():
            record_registration_attempt("email_exists")
            return service_err(ErrorCodes.CONFLICT, "An account with this email already exists.", {"email": email})

        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    username=email,
                    email=email,
                    password=password,
                    name=name,
                    phone=phone or "",
                    tenant=tenant,
                    role=role,
                )
        except IntegrityError:
            record_registration_attempt("email_exists")
            return service_err(ErrorCodes.CONFLICT, "An account with this email already exists.", {"email": email})

        record_registration_attempt("success")
        logger.info(f"Registered {role} {user.id} in tenant {tenant.slug}")
        return service_ok({**self._generate_tokens(user), "user": user_payload(user)})

    def me(self, user) -> ServiceResult[Dict[str, Any]]:
        """The authenticated user with tenant and permissions."""
        if not getattr(user, "is_authenticated", False):
            return service_err(ErrorCodes.UNAUTHORIZED, "Authentication credentials were not provided.")
        return service_ok(user_payload(user))

    def _get_client_ip(self, request) -> Optional[str]:
        """Extract client IP from request."""
        if not request:
            return None
        x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
        if x_forwarded_for:
            return x_forwarded_for.split(",")[0].strip()
        return request.META.get("REMOTE_ADDR")
