from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from authentication.api.views import LoginAPIView, MeAPIView, RegisterAPIView, health_views

urlpatterns = [
    # Auth
    path("login/", LoginAPIView.as_view(), name="login"),
    path("refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("register/", RegisterAPIView.as_view(), name="register"),
    path("me/", MeAPIView.as_view(), name="me"),
    # Kubernetes health checks
    path("health/live/", health_views.health_live, name="health_live"),
    path("health/ready/", health_views.health_ready, name="health_ready"),
]
