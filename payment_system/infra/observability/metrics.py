from prometheus_client import Counter

# Payment attempts by method and resulting status
payments_total = Counter(
    "payment_system_payments_total", "Payments by method and resulting status", ["method", "status"]
)

# Confirmed payment volume
payment_volume_total = Counter(
    "payment_system_payment_volume_total", "Total completed payment volume processed", ["currency"]
)

webhook_events_total = Counter(
    "payment_system_webhook_events_total", "Provider webhook events received", ["event_type", "outcome"]
)
