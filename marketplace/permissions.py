from typing import Dict, Tuple

from rest_framework.permissions import AllowAny, IsAuthenticated

from authentication.permissions import require_permissions


class ActionPermissionsMixin:
    """
    Per-action permission gate for ViewSets.

    ``action_permissions`` maps a ViewSet action to the permissions of which
    the caller needs at least one. Unlisted actions only need a login;
    actions in ``public_actions`` need nothing. Ownership and state rules
    stay in the services.
    """

    action_permissions: Dict[str, Tuple[str, ...]] = {}
    public_actions: Tuple[str, ...] = ()

    def get_permissions(self):
        if self.action in self.public_actions:
            return [AllowAny()]
        required = self.action_permissions.get(self.action)
        if not required:
            return [IsAuthenticated()]
        return [require_permissions(*required)()]
