"""
OpenTelemetry Distributed Tracing

Configures OpenTelemetry for the whole backend. Spans are exported over OTLP
(HTTP) to the collector named by ``OTEL_EXPORTER_OTLP_ENDPOINT``.
"""

import logging
from typing import Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.django import DjangoInstrumentor
from opentelemetry.instrumentation.requests import RequestsInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

logger = logging.getLogger(__name__)

_initialized = False

# Proxy tracer: spans are no-ops until setup_tracing installs a provider
tracer = trace.get_tracer("trading-backend")


def setup_tracing(service_name: str = "trading-backend", endpoint: Optional[str] = None, enable: bool = True) -> None:
    """
    Initialize OpenTelemetry tracing with an OTLP exporter.

    Args:
        service_name: Name of the service for tracing
        endpoint: OTLP/HTTP traces endpoint; the exporter default is used when empty
        enable: Enable/disable tracing
    """
    global _initialized

    if _initialized:
        logger.warning("Tracing already initialized. Skipping.")
        return

    if not enable:
        logger.info("Tracing disabled via configuration")
        return

    resource = Resource(attributes={SERVICE_NAME: service_name})
    tracer_provider = TracerProvider(resource=resource)
    trace.set_tracer_provider(tracer_provider)

    exporter = OTLPSpanExporter(endpoint=endpoint) if endpoint else OTLPSpanExporter()
    tracer_provider.add_span_processor(BatchSpanProcessor(exporter))

    # Auto-instrument inbound HTTP requests and outgoing ``requests`` calls
    DjangoInstrumentor().instrument()
    RequestsInstrumentor().instrument()

    _initialized = True
    logger.info(f"OpenTelemetry tracing initialized for service: {service_name}")


def get_tracer(name: str = __name__) -> trace.Tracer:
    """
    Get tracer instance for creating custom spans.

    Example:
        tracer = get_tracer(__name__)

        with tracer.start_as_current_span("my_operation"):
            ...
    """
    return trace.get_tracer(name)


def add_span_attributes(span: trace.Span, **attributes) -> None:
    """
    Add custom attributes to a span; values are stringified.

    Example:
        with tracer.start_as_current_span("order_create") as span:
            add_span_attributes(span, listing_id=listing_id, quantity=quantity)
    """
    for key, value in attributes.items():
        if value is not None:
            span.set_attribute(key, str(value))
