import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class AuthenticationConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "authentication"

    def ready(self):
        """
        Initialize OpenTelemetry tracing for the whole backend.
        """
        from django.conf import settings

        if not getattr(settings, "OTEL_TRACING_ENABLED", False):
            return

        try:
            from authentication.infra.observability.tracing import setup_tracing

            setup_tracing(
                service_name=getattr(settings, "OTEL_SERVICE_NAME", "trading-backend"),
                endpoint=getattr(settings, "OTEL_EXPORTER_OTLP_ENDPOINT", "") or None,
                enable=True,
            )
            logger.info("OpenTelemetry tracing initialized successfully")
        except Exception as e:
            logger.warning(f"Failed to initialize OpenTelemetry tracing: {e}")
