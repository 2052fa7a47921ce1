"""
Marketplace domain exceptions.

Raised inside ``transaction.atomic()`` blocks so that a business-rule violation
found half-way through a unit of work rolls every write back. Services catch
them at their edge and return ``service_err(exc.code, exc.message, exc.details)``.
"""

from typing import Any, Dict, Optional


class MarketplaceError(Exception):
    """Base class for all marketplace business errors."""

    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(MarketplaceError):
    code = "VALIDATION_ERROR"


class ForbiddenError(MarketplaceError):
    code = "FORBIDDEN"


class NotFoundError(MarketplaceError):
    code = "NOT_FOUND"


class InvalidStateError(MarketplaceError):
    code = "INVALID_STATE"


class InvalidTransitionError(MarketplaceError):
    code = "INVALID_TRANSITION"

    def __init__(self, current: str, target: str, subject: str = "order"):
        super().__init__(
            f"Cannot transition {subject} from {current} to {target}",
            {"from": current, "to": target},
        )


class InsufficientQuantityError(MarketplaceError):
    code = "INSUFFICIENT_QUANTITY"


class ConflictError(MarketplaceError):
    code = "CONFLICT"


class ExternalServiceError(MarketplaceError):
    code = "EXTERNAL_SERVICE_ERROR"
