import logging
from typing import Iterable

from django.core.exceptions import PermissionDenied

# Canonical role names
ROLE_SUPER_ADMIN = "SUPER_ADMIN"
ROLE_TENANT_ADMIN = "TENANT_ADMIN"
ROLE_PRODUCER = "PRODUCER"
ROLE_BUYER = "BUYER"
ROLE_BROKER = "BROKER"
ROLE_VALIDATOR = "VALIDATOR"
ROLE_FINANCE = "FINANCE"
ROLE_AUDITOR = "AUDITOR"

ROLE_CHOICES = [
    (ROLE_SUPER_ADMIN, "Super Admin"),
    (ROLE_TENANT_ADMIN, "Tenant Admin"),
    (ROLE_PRODUCER, "Producer"),
    (ROLE_BUYER, "Buyer"),
    (ROLE_BROKER, "Broker"),
    (ROLE_VALIDATOR, "Validator"),
    (ROLE_FINANCE, "Finance"),
    (ROLE_AUDITOR, "Auditor"),
]

# Roles allowed to act on any record inside their tenant
STAFF_ROLES = frozenset({ROLE_SUPER_ADMIN, ROLE_TENANT_ADMIN, ROLE_BROKER})

# Roles that self-service registration may assign
SELF_SERVICE_ROLES = (ROLE_PRODUCER, ROLE_BUYER, ROLE_BROKER)

ROLE_PERMISSIONS = {
    ROLE_SUPER_ADMIN: ("*",),
    ROLE_TENANT_ADMIN: (
        "tenant:read",
        "tenant:update",
        "users:*",
        "producers:*",
        "listings:*",
        "orders:*",
        "validations:*",
        "shipments:*",
        "notifications:create",
        "analytics:read",
    ),
    ROLE_PRODUCER: (
        "producer:read",
        "producer:update",
        "parcels:create",
        "parcels:read",
        "parcels:update",
        "listings:create",
        "listings:read",
        "listings:update",
        "listings:delete",
        "orders:read",
        "certificates:read",
        "shipments:create",
        "shipments:read",
        "shipments:update",
    ),
    ROLE_BUYER: (
        "listings:read",
        "orders:create",
        "orders:read",
        "orders:update",
        "payments:create",
        "payments:read",
        "shipments:read",
    ),
    ROLE_BROKER: (
        "producers:read",
        "listings:*",
        "orders:*",
        "validations:read",
        "insurance:*",
        "hedge:*",
        "shipments:*",
        "analytics:read",
    ),
    ROLE_VALIDATOR: (
        "validations:create",
        "validations:read",
        "validations:update",
        "certificates:create",
        "certificates:read",
    ),
    ROLE_FINANCE: (
        "payments:*",
        "orders:read",
        "insurance:read",
        "hedge:read",
        "shipments:read",
        "analytics:read",
    ),
    ROLE_AUDITOR: (
        "tenant:read",
        "users:read",
        "producers:read",
        "listings:read",
        "orders:read",
        "payments:read",
        "validations:read",
        "certificates:read",
        "shipments:read",
        "analytics:read",
        "audit_logs:read",
    ),
}

logger = logging.getLogger(__name__)


def permissions_for_role(role: str) -> list:
    return list(ROLE_PERMISSIONS.get(role, ()))


def _grants(granted: str, required: str) -> bool:
    if granted == "*" or granted == required:
        return True
    if granted.endswith(":*"):
        return required.split(":", 1)[0] == granted[:-2]
    return False


def has_permission(granted: Iterable[str], required: Iterable[str]) -> bool:
    """True when any of the required permissions is covered by the granted set.

    ``*`` grants everything, ``resource:*`` grants every action on ``resource``.
    """
    granted = list(granted)
    return any(_grants(g, r) for r in required for g in granted)


def user_has_permission(user, *required: str) -> bool:
    if not getattr(user, "is_authenticated", False):
        return False
    return has_permission(permissions_for_role(getattr(user, "role", None)), required)


def is_staff_role(user) -> bool:
    """Tenant-wide operators (super admin, tenant admin, broker)."""
    return getattr(user, "role", None) in STAFF_ROLES


def is_super_admin(user) -> bool:
    return getattr(user, "role", None) == ROLE_SUPER_ADMIN or bool(getattr(user, "is_superuser", False))


def has_any_role(user, roles: Iterable[str]) -> bool:
    return getattr(user, "role", None) in set(roles)


def require_role(user, roles: Iterable[str]):
    """Raise PermissionDenied unless the user has one of the roles."""
    roles = list(roles)
    if not has_any_role(user, roles):
        logger.warning(
            "RBAC denial: user_id=%s role=%s required=%s",
            getattr(user, "id", None),
            getattr(user, "role", None),
            roles,
        )
        raise PermissionDenied("Insufficient role to access this resource.")


def require_permission(user, *required: str):
    """Raise PermissionDenied unless the user's role grants one of the permissions."""
    if not user_has_permission(user, *required):
        logger.warning(
            "RBAC denial: user_id=%s role=%s required=%s",
            getattr(user, "id", None),
            getattr(user, "role", None),
            list(required),
        )
        raise PermissionDenied("Insufficient permissions to access this resource.")
