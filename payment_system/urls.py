from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .api.views.payment_views import PaymentViewSet, StripeWebhookView

router = SimpleRouter()
router.register(r"", PaymentViewSet, basename="payment")

app_name = "payment_system"

urlpatterns = [
    # Webhook endpoint (signature-verified, no user)
    path("webhook/", StripeWebhookView.as_view(), name="payment-webhook"),
    path("", include(router.urls)),
]
