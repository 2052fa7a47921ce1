"""
Transaction Utilities
=====================

Retry helper around ``django.db.transaction`` for the write paths that contend on
shared rows (listing quantity, identifier counters).

Usage:
    # Retry the whole unit of work when the database aborts it
    @retry_on_deadlock(max_retries=3)
    def place_order(...):
        with transaction.atomic():
            ...
"""

import logging
import time
from functools import wraps

from django.db import OperationalError, connection

logger = logging.getLogger(__name__)

# Fragments of driver messages that mean "the transaction was aborted, try again".
# PostgreSQL: deadlock / serialization failure (SQLSTATE 40P01, 40001)
# MySQL: error 1213 / 1205
# SQLite: writer lock contention
RETRYABLE_ERROR_MARKERS = (
    "deadlock detected",
    "could not serialize access",
    "40001",
    "40p01",
    "deadlock found",
    "1213",
    "lock wait timeout",
    "database is locked",
)


class TransactionError(Exception):
    """Custom exception for transaction-related errors"""

    pass


class DeadlockError(TransactionError):
    """Exception raised when a deadlock is detected"""

    pass


def is_retryable_error(exc: Exception) -> bool:
    """True when the database aborted the transaction for a transient reason."""
    pgcode = getattr(getattr(exc, "__cause__", None), "pgcode", None)
    if pgcode in ("40001", "40P01"):
        return True
    message = str(exc).lower()
    return any(marker in message for marker in RETRYABLE_ERROR_MARKERS)


def retry_on_deadlock(max_retries=3, delay=0.1, backoff=2.0):
    """
    Decorator to retry operations on deadlock with exponential backoff.

    Only errors raised outside an enclosing atomic block are retried; inside
    one the connection is already unusable until the outer block rolls back.

    Args:
        max_retries (int): Maximum number of retry attempts
        delay (float): Initial delay between retries in seconds
        backoff (float): Backoff multiplier for delay
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            current_delay = delay
            last_exception = None

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except OperationalError as e:
                    if not is_retryable_error(e) or connection.in_atomic_block:
                        raise TransactionError(f"Database operation failed: {e}") from e
                    last_exception = DeadlockError(f"Deadlock detected: {e}")
                    if attempt < max_retries:
                        logger.warning(
                            f"Deadlock detected in {func.__name__}, retrying in {current_delay}s "
                            f"(attempt {attempt + 1}/{max_retries})"
                        )
                        time.sleep(current_delay)
                        current_delay *= backoff
                        continue

            logger.error(f"{func.__name__} gave up after {max_retries} deadlock retries")
            raise last_exception

        return wrapper

    return decorator
