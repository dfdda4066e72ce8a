"""Prometheus metrics for monitoring profiles, payments and provider health"""

from prometheus_client import Counter, Histogram

# Advisory metrics
insight_profile_counter = Counter(
    "finflow_insight_total",
    "Financial insights computed",
    ["profile"],  # defensive | balanced | accelerated | unknown
)

weekly_actions_histogram = Histogram(
    "finflow_weekly_actions",
    "Number of weekly actions returned per insight",
    buckets=[0, 1, 2, 3, 4, 5],
)

# Payment metrics
payment_counter = Counter(
    "finflow_payment_confirmations_total",
    "Payment confirmations by target kind and outcome",
    ["kind", "outcome"],  # obligation | debt ; confirmed | invalid_amount | not_found | in_progress | error
)

# Provider metrics
provider_failures_counter = Counter(
    "finflow_provider_failures_total",
    "Failed provider reads",
    ["source"],
)

inconsistent_records_counter = Counter(
    "finflow_inconsistent_records_total",
    "Records clamped because they violate a data invariant",
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "webhook_latency_seconds",
    "Payment webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "webhook_failures_total",
    "Failed webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_insight(profile: str, action_count: int) -> None:
    """Record profile distribution and action volume"""
    insight_profile_counter.labels(profile=profile).inc()
    weekly_actions_histogram.observe(action_count)


def record_payment(kind: str, outcome: str) -> None:
    payment_counter.labels(kind=kind, outcome=outcome).inc()
