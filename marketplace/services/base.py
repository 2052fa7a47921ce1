"""
Base classes and utilities for the service layer.

Provides the ServiceResult pattern used by every marketplace, payment and
authentication service, the BaseService class with its performance logging,
and the shared error codes and pagination helper.
"""

import logging
import time
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from django.conf import settings
from django.core.paginator import Paginator

from marketplace.domain.exceptions import MarketplaceError

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@dataclass
class ServiceResult(Generic[T]):
    """
    A result type that encapsulates success or failure from service operations.

    Expected failures (not found, bad state, not enough quantity) come back as
    a failed result with a stable error code instead of an exception.

    Attributes:
        ok: True if operation succeeded, False otherwise
        value: The success value (present if ok=True)
        error: Error code (present if ok=False), one of ErrorCodes
        error_detail: Human-readable error message (present if ok=False)
        error_details: Structured context for the error (field errors, ids)

    Examples:
        >>> result = service_ok(order)
        >>> if not result.ok:
        ...     return result_response(request, result)

        >>> result = service_err(ErrorCodes.NOT_FOUND, "Listing 123 not found")
        >>> print(result.error)  # "NOT_FOUND"
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_detail: Optional[str] = None
    error_details: Dict[str, Any] = field(default_factory=dict)


def service_ok(value: T) -> ServiceResult[T]:
    """
    Create a successful ServiceResult.

    Example:
        >>> return service_ok(listing)
    """
    return ServiceResult(ok=True, value=value)


def service_err(error: str, error_detail: str = "", details: Optional[Dict[str, Any]] = None) -> ServiceResult:
    """
    Create a failed ServiceResult.

    Args:
        error: Error code (e.g., ErrorCodes.NOT_FOUND)
        error_detail: Human-readable error message
        details: Optional structured context

    Example:
        >>> return service_err(ErrorCodes.NOT_FOUND, f"Listing {listing_id} not found")
    """
    return ServiceResult(ok=False, error=error, error_detail=error_detail or error, error_details=details or {})


def service_err_from(exc: MarketplaceError) -> ServiceResult:
    """Turn a domain exception raised inside a unit of work into a failed result."""
    return service_err(exc.code, exc.message, exc.details)


class BaseService:
    """
    Base class for all services providing common functionality.

    Provides:
    - Logging with class name
    - Performance timing decorator
    - Unexpected-error conversion

    Usage:
        class ListingService(BaseService):
            @BaseService.log_performance
            def publish_listing(self, actor, listing_id):
                self.logger.info(f"Publishing listing {listing_id}")
                ...
    """

    def __init__(self):
        """Initialize base service with logger."""
        self.logger = logging.getLogger(self.__class__.__module__ + "." + self.__class__.__name__)

    @staticmethod
    def log_performance(func: Callable) -> Callable:
        """
        Decorator to log performance of service methods.

        Logs execution time, the error code of failed results, and any
        exception before re-raising it.
        """

        @wraps(func)
        def wrapper(self, *args, **kwargs):
            start_time = time.time()
            method_name = f"{self.__class__.__name__}.{func.__name__}"

            try:
                self.logger.debug(f"{method_name} started")
                result = func(self, *args, **kwargs)
                elapsed_time = (time.time() - start_time) * 1000  # Convert to ms

                if isinstance(result, ServiceResult):
                    if result.ok:
                        self.logger.info(f"{method_name} completed successfully in {elapsed_time:.2f}ms")
                    else:
                        self.logger.warning(
                            f"{method_name} failed with error '{result.error}' in {elapsed_time:.2f}ms"
                        )
                else:
                    self.logger.info(f"{method_name} completed in {elapsed_time:.2f}ms")

                return result

            except Exception as e:
                elapsed_time = (time.time() - start_time) * 1000
                self.logger.error(
                    f"{method_name} raised exception after {elapsed_time:.2f}ms: {str(e)}",
                    exc_info=True,
                )
                raise

        return wrapper

    def internal_error(self, operation: str, exc: Exception) -> ServiceResult:
        """Log an unexpected failure and hide its text outside DEBUG."""
        self.logger.error(f"Unexpected error during {operation}: {exc}", exc_info=True)
        message = str(exc) if settings.DEBUG else "An unexpected error occurred"
        return service_err(ErrorCodes.INTERNAL_ERROR, message)


def paginate(queryset, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> Dict[str, Any]:
    """
    Slice a queryset into one page.

    Returns:
        {"results": [...], "page", "limit", "total", "total_pages"}
    """
    paginator = Paginator(queryset, limit)
    total = paginator.count
    results = list(paginator.page(page).object_list) if total and page <= paginator.num_pages else []
    return {
        "results": results,
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": (total + limit - 1) // limit,
    }


class ErrorCodes:
    """Stable error codes returned to API clients."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"

    # Business-rule violations
    INVALID_STATE = "INVALID_STATE"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    INSUFFICIENT_QUANTITY = "INSUFFICIENT_QUANTITY"

    # Collaborators
    PAYMENT_FAILED = "PAYMENT_FAILED"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"

    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    INTERNAL_ERROR = "INTERNAL_ERROR"
