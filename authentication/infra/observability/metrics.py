"""
Prometheus Metrics

Authentication metrics. Exposed with the rest of the backend at
/api/marketplace/metrics/ for Prometheus scraping.
"""

from prometheus_client import Counter, Histogram

# ===== Login Metrics =====

login_attempts_total = Counter("authentication_login_attempts_total", "Total login attempts", ["outcome"])
"""
Login attempts counter.
Labels: outcome (success, invalid_credentials, inactive_user, inactive_tenant, missing_credentials)

Example:
    login_attempts_total.labels(outcome='success').inc()
"""

login_duration = Histogram(
    "authentication_login_duration_seconds",
    "Login request duration in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)


# ===== Registration Metrics =====

registration_total = Counter("authentication_registration_total", "Total registration attempts", ["outcome"])
"""
Registration attempts.
Labels: outcome (success, weak_password, unknown_tenant, email_exists, invalid_role)
"""


# ===== JWT Metrics =====

jwt_generation_total = Counter("authentication_jwt_generation_total", "Total JWT tokens generated", ["token_type"])


# ===== Helper Functions =====


def record_login_attempt(outcome: str):
    login_attempts_total.labels(outcome=outcome).inc()


def record_registration_attempt(outcome: str):
    registration_total.labels(outcome=outcome).inc()
