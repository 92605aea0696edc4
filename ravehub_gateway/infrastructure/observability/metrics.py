"""Prometheus metrics for payment transitions, webhooks and revalidation"""

from prometheus_client import Counter, Histogram

# Transition metrics
transition_counter = Counter(
    "ravehub_transition_total",
    "Ticket transaction state transition attempts",
    ["source", "outcome"],  # outcome: approved | rejected | pending | conflict | invalid
)

installment_settled_counter = Counter(
    "ravehub_installment_settled_total",
    "First installments settled on approval",
    ["source"],
)

# Webhook metrics
webhook_signature_failure_counter = Counter(
    "ravehub_webhook_signature_failures_total",
    "Webhooks rejected for a missing or invalid signature",
    ["gateway"],
)

# Storefront revalidation
revalidation_failure_counter = Counter(
    "ravehub_capacity_revalidation_failures_total",
    "Failed event capacity revalidation calls",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_transition(source: str, outcome: str, installment_settled: bool = False) -> None:
    """Record transition metrics for approval/rejection rates per source"""
    transition_counter.labels(source=source, outcome=outcome).inc()
    if installment_settled:
        installment_settled_counter.labels(source=source).inc()
