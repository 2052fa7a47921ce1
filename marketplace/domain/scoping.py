"""Tenant scoping helpers shared by the marketplace services."""

from django.core.exceptions import ObjectDoesNotExist
from django.core.exceptions import ValidationError as DjangoValidationError

from marketplace.domain.exceptions import NotFoundError
from utils.rbac import is_staff_role, is_super_admin


def scope_to_tenant(queryset, actor, field: str = "tenant"):
    """Restrict a queryset to the actor's tenant; super admins see every tenant."""
    if is_super_admin(actor):
        return queryset
    return queryset.filter(**{f"{field}_id": actor.tenant_id})


def get_in_tenant(queryset, actor, pk, label: str, field: str = "tenant"):
    """
    Fetch one row of the actor's tenant.

    Rows of other tenants are reported exactly like missing rows.

    Raises:
        NotFoundError
    """
    try:
        return scope_to_tenant(queryset, actor, field).get(pk=pk)
    except (ObjectDoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError(f"{label} {pk} not found")


def producer_profile(user):
    """The Producer owned by ``user``, or None."""
    try:
        return user.producer_profile
    except ObjectDoesNotExist:
        return None


def owns_producer(user, producer_id) -> bool:
    profile = producer_profile(user)
    return profile is not None and profile.pk == producer_id


def is_tenant_staff(user) -> bool:
    return is_staff_role(user) or is_super_admin(user)
