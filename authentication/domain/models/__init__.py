from .tenant import Tenant
from .user import CustomUser

__all__ = [
    "CustomUser",
    "Tenant",
]
