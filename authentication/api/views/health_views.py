"""
Health Check Endpoints

Kubernetes-compatible health checks. Readiness only gates on the database; the
configured payment, insurance and minting backends are reported so operators
can tell a mock deployment from a live one.
"""

import logging

from django.conf import settings
from django.db import connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)

PROVIDER_SETTINGS = {
    "payment": "PAYMENT_PROVIDER",
    "insurance": "INSURANCE_PROVIDER",
    "tokenization": "TOKEN_MINT_PROVIDER",
}


def health_live(request):
    """Liveness check. 200 while the process can serve Django at all."""
    return JsonResponse({"status": "ok"})


def health_ready(request):
    """
    Readiness check.

    503 with ``status: not_ready`` when the database cannot be reached.
    """
    checks = {"database": database_reachable()}
    ready = all(checks.values())

    return JsonResponse(
        {"status": "ready" if ready else "not_ready", "checks": checks, "providers": configured_providers()},
        status=200 if ready else 503,
    )


def database_reachable() -> bool:
    try:
        connection.ensure_connection()
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
    return True


def configured_providers() -> dict:
    infrastructure = getattr(settings, "INFRASTRUCTURE", {})
    return {name: infrastructure.get(key, "unset") for name, key in PROVIDER_SETTINGS.items()}
