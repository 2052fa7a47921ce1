"""
Bounded calls to external providers.

Payment, insurance and minting providers are called after the owning row has
been committed. A call that does not answer within ``PROVIDER_TIMEOUT_SECONDS``
raises ProviderTimeout; callers leave the record PENDING so it can be retried.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, Optional

from django.conf import settings

from authentication.infra.observability.tracing import add_span_attributes, tracer
from marketplace.infra.observability.metrics import provider_call_duration, provider_calls_total

logger = logging.getLogger(__name__)

_executor = ThreadPoolExecutor(max_workers=8, thread_name_prefix="provider_call")


class ProviderTimeout(Exception):
    """An external provider did not answer in time."""

    def __init__(self, provider: str, operation: str, timeout: float):
        self.provider = provider
        self.operation = operation
        self.timeout = timeout
        super().__init__(f"{provider}.{operation} did not respond within {timeout}s")


def call_with_timeout(
    func: Callable[..., Any],
    *args,
    provider: str = "unknown",
    operation: str = "call",
    timeout: Optional[float] = None,
    **kwargs,
) -> Any:
    """
    Run ``func(*args, **kwargs)`` on the provider pool and wait at most ``timeout`` seconds.

    Exceptions raised by ``func`` propagate unchanged.

    Raises:
        ProviderTimeout: If no result arrives in time
    """
    timeout = timeout if timeout is not None else getattr(settings, "PROVIDER_TIMEOUT_SECONDS", 10)
    start = time.monotonic()
    outcome = "success"

    with tracer.start_as_current_span(f"provider.{provider}.{operation}") as span:
        add_span_attributes(span, provider=provider, operation=operation, timeout=timeout)
        future = _executor.submit(func, *args, **kwargs)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError as e:
            outcome = "timeout"
            future.cancel()
            logger.warning(f"Provider call {provider}.{operation} timed out after {timeout}s")
            raise ProviderTimeout(provider, operation, timeout) from e
        except Exception:
            outcome = "error"
            raise
        finally:
            elapsed = time.monotonic() - start
            span.set_attribute("outcome", outcome)
            provider_calls_total.labels(provider=provider, operation=operation, outcome=outcome).inc()
            provider_call_duration.labels(provider=provider, operation=operation).observe(elapsed)
