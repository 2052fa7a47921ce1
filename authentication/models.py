from authentication.domain.models.tenant import Tenant
from authentication.domain.models.user import CustomUser

__all__ = [
    "CustomUser",
    "Tenant",
]
