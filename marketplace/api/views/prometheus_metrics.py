from django.http import HttpResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny

# Registers the marketplace collectors before the first scrape
from marketplace.infra.observability import metrics  # noqa: F401


@api_view(["GET"])
@permission_classes([AllowAny])
def marketplace_prometheus_metrics(request):
    """
    Prometheus scrape endpoint.

    Serves the default registry: order, listing, identifier and provider-call
    collectors of the marketplace plus the payment and authentication ones.
    """
    return HttpResponse(generate_latest(), content_type=CONTENT_TYPE_LATEST)
