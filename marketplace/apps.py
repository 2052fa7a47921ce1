from django.apps import AppConfig


class MarketplaceConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "marketplace"
    verbose_name = "Commodity Marketplace"

    def ready(self):
        # Collectors register on import
        from marketplace.infra.observability import metrics  # noqa: F401
