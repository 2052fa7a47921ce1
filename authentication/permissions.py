from typing import Iterable, Tuple

from rest_framework.permissions import BasePermission

from utils.rbac import user_has_permission


class HasPermission(BasePermission):
    """Grants access when the user's role holds any of ``required_permissions``."""

    required_permissions: Iterable[str] = ()
    message = "Insufficient permissions to access this resource."

    def has_permission(self, request, view) -> bool:
        user = getattr(request, "user", None)
        if user is None or not getattr(user, "is_authenticated", False):
            return False

        required = tuple(self.required_permissions)
        if not required:
            return True
        return user_has_permission(user, *required)

    def has_object_permission(self, request, view, obj) -> bool:
        return self.has_permission(request, view)


def require_permissions(*permissions: str) -> type:
    """
    Build a HasPermission subclass for the given permissions.

    Example:
        permission_classes = [require_permissions("orders:create")]
    """
    required: Tuple[str, ...] = tuple(permissions)
    name = "Require_" + "_".join(p.replace(":", "_").replace("*", "all") for p in required)
    return type(name, (HasPermission,), {"required_permissions": required})
