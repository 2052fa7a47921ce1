import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class PaymentSystemConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "payment_system"
    verbose_name = "Payment System"

    def ready(self):
        """Register the payment collectors with the Prometheus registry."""
        from payment_system.infra.observability import metrics  # noqa: F401

        logger.debug("[STARTUP] Payment System ready")
