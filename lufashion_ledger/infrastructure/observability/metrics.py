"""Prometheus metrics for ledger activity, store totals and notification delivery"""

from prometheus_client import Counter, Histogram, Gauge

from lufashion_ledger.domain.models import AggregateStats, LedgerResult

# Ledger metrics
ledger_operation_counter = Counter(
    "lufashion_ledger_operations_total",
    "Ledger operations processed",
    ["operation", "outcome"],  # outcome: applied | nothing_pending | unchanged
)

persistence_failure_counter = Counter(
    "lufashion_persistence_failures_total",
    "Mutations applied locally but not written to the store",
    ["operation"],
)

# Store totals, refreshed whenever stats are read
total_billed_gauge = Gauge("lufashion_total_billed_cents", "Sum of billed amounts across customers")
total_pending_gauge = Gauge("lufashion_total_pending_cents", "Sum of pending balances across customers")
total_settled_gauge = Gauge("lufashion_total_settled_cents", "Sum of settled amounts across customers")

# Notification metrics
notification_latency_histogram = Histogram(
    "notification_latency_seconds",
    "Notification webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

notification_failure_counter = Counter(
    "notification_failures_total",
    "Failed notification deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_ledger_operation(operation: str, result: LedgerResult) -> None:
    """Count an operation by outcome and flag local-only commits"""
    ledger_operation_counter.labels(operation=operation, outcome=result.outcome.value).inc()
    if not result.persisted:
        persistence_failure_counter.labels(operation=operation).inc()


def record_stats(stats: AggregateStats) -> None:
    total_billed_gauge.set(stats.total_billed_cents)
    total_pending_gauge.set(stats.total_pending_cents)
    total_settled_gauge.set(stats.total_settled_cents)
