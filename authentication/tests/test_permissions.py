from types import SimpleNamespace

import pytest
from django.core.exceptions import PermissionDenied
from rest_framework.test import APIRequestFactory

from authentication.permissions import HasPermission, require_permissions
from utils.rbac import (
    has_permission,
    is_staff_role,
    is_super_admin,
    permissions_for_role,
    require_permission,
    require_role,
    user_has_permission,
)


def make_user(role, authenticated=True, superuser=False):
    return SimpleNamespace(id="u-1", role=role, is_authenticated=authenticated, is_superuser=superuser)


@pytest.mark.unit
class TestRolePermissions:
    @pytest.mark.parametrize(
        "granted,required,expected",
        [
            (["*"], ["payments:update"], True),
            (["listings:*"], ["listings:delete"], True),
            (["listings:*"], ["orders:read"], False),
            (["orders:read"], ["orders:read"], True),
            (["orders:read"], ["orders:update"], False),
            (["orders:read"], ["orders:update", "orders:read"], True),
            ([], ["orders:read"], False),
        ],
    )
    def test_has_permission(self, granted, required, expected):
        assert has_permission(granted, required) is expected

    def test_role_tables(self):
        assert "payments:*" in permissions_for_role("FINANCE")
        assert permissions_for_role("NOBODY") == []

    def test_user_has_permission(self):
        assert user_has_permission(make_user("BROKER"), "insurance:create")
        assert not user_has_permission(make_user("BUYER"), "insurance:create")
        assert not user_has_permission(make_user("SUPER_ADMIN", authenticated=False), "orders:read")

    def test_staff_and_super_admin(self):
        assert is_staff_role(make_user("BROKER"))
        assert not is_staff_role(make_user("FINANCE"))
        assert is_super_admin(make_user("BUYER", superuser=True))

    def test_require_helpers_raise(self):
        with pytest.raises(PermissionDenied):
            require_role(make_user("BUYER"), ["TENANT_ADMIN"])
        with pytest.raises(PermissionDenied):
            require_permission(make_user("AUDITOR"), "payments:update")
        require_permission(make_user("AUDITOR"), "payments:read")


@pytest.mark.unit
class TestHasPermission:
    def _request(self, user):
        request = APIRequestFactory().get("/")
        request.user = user
        return request

    def test_generated_class(self):
        permission_class = require_permissions("orders:create")

        assert issubclass(permission_class, HasPermission)
        assert permission_class.__name__ == "Require_orders_create"
        assert permission_class().has_permission(self._request(make_user("BUYER")), None)
        assert not permission_class().has_permission(self._request(make_user("VALIDATOR")), None)

    def test_anonymous_is_denied(self):
        assert not HasPermission().has_permission(self._request(make_user("BUYER", authenticated=False)), None)

    def test_no_requirement_only_needs_authentication(self):
        assert HasPermission().has_permission(self._request(make_user("AUDITOR")), None)
