"""
Observability Infrastructure

OpenTelemetry tracing for the whole backend and the Prometheus metrics of the
authentication service.
"""

from .metrics import (
    jwt_generation_total,
    login_attempts_total,
    login_duration,
    record_login_attempt,
    record_registration_attempt,
    registration_total,
)
from .tracing import add_span_attributes, get_tracer, setup_tracing

__all__ = [
    "setup_tracing",
    "get_tracer",
    "add_span_attributes",
    "login_attempts_total",
    "login_duration",
    "registration_total",
    "jwt_generation_total",
    "record_login_attempt",
    "record_registration_attempt",
]
