from prometheus_client import Counter, Histogram

# Order Metrics
orders_placed_total = Counter("marketplace_orders_placed_total", "Total orders placed", ["status"])
order_value = Histogram(
    "marketplace_order_value",
    "Order value distribution",
    buckets=[100, 500, 1000, 5000, 10000, 50000, 100000, 500000, float("inf")],
)
order_transitions_total = Counter(
    "marketplace_order_transitions_total", "Order status transitions", ["from_status", "to_status"]
)

# Quantity Metrics
quantity_reservation_failures = Counter(
    "marketplace_quantity_reservation_failures_total",
    "Order placements rejected while reserving listing quantity",
    ["reason"],
)

# Shipment Metrics
shipment_transitions_total = Counter(
    "marketplace_shipment_transitions_total", "Shipment status transitions", ["from_status", "to_status"]
)

# Listing Metrics
listing_events_total = Counter("marketplace_listings_total", "Listing lifecycle events", ["event"])

# Identifier Metrics
identifiers_issued_total = Counter("marketplace_identifiers_issued_total", "Identifiers issued", ["prefix"])

# External Provider Metrics
provider_calls_total = Counter(
    "marketplace_provider_calls_total", "Calls to external providers", ["provider", "operation", "outcome"]
)
provider_call_duration = Histogram(
    "marketplace_provider_call_seconds",
    "External provider call latency",
    ["provider", "operation"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)
