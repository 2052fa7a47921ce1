"""
Business logic services for authentication.

Services encapsulate business rules and coordinate between
infrastructure (tokens, metrics) and domain models.
"""

from .auth_service import AuthService, user_payload

__all__ = [
    "AuthService",
    "user_payload",
]
