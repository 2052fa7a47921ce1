import os

# Mock SECRET_KEY for tests BEFORE importing settings to bypass validation
os.environ.setdefault("SECRET_KEY", "django-insecure-test-key-for-unit-tests-only")

from .settings import *  # noqa: F403

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "test_db.sqlite3",  # noqa: F405
    }
}

# Every external collaborator runs against its in-process test double
INFRASTRUCTURE["PAYMENT_PROVIDER"] = "mock"  # noqa: F405
INFRASTRUCTURE["INSURANCE_PROVIDER"] = "mock"  # noqa: F405
INFRASTRUCTURE["TOKEN_MINT_PROVIDER"] = "mock"  # noqa: F405

PROVIDER_TIMEOUT_SECONDS = 0.5
STRIPE_SECRET_KEY = "sk_test_mock_key"
STRIPE_WEBHOOK_SECRET = "whsec_test_secret"

OTEL_TRACING_ENABLED = False

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []  # noqa: F405

# Enable SessionAuthentication for tests to support client.force_login()
if "DEFAULT_AUTHENTICATION_CLASSES" in REST_FRAMEWORK:  # noqa: F405
    REST_FRAMEWORK["DEFAULT_AUTHENTICATION_CLASSES"].append(  # noqa: F405
        "rest_framework.authentication.SessionAuthentication"
    )
else:
    REST_FRAMEWORK["DEFAULT_AUTHENTICATION_CLASSES"] = [  # noqa: F405
        "rest_framework.authentication.SessionAuthentication"
    ]
