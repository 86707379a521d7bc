"""Prometheus metrics for charge catch-up, ratings and resolution outcomes"""

from prometheus_client import Counter, Histogram

# Catch-up metrics
charges_materialized_counter = Counter(
    "ledger_charges_materialized_total",
    "Recurring charges written to the ledger by catch-up",
)

charge_failures_counter = Counter(
    "ledger_charge_failures_total",
    "Charge transactions rolled back by a database error",
)

idempotency_conflicts_counter = Counter(
    "ledger_idempotency_conflicts_total",
    "Catch-up iterations stopped because the charge already existed",
)

catch_up_duration_histogram = Histogram(
    "ledger_catch_up_duration_seconds",
    "Time spent materializing missed charges for one user",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

# Ratings
ratings_counter = Counter(
    "ledger_ratings_total",
    "Ratings saved",
    ["status"],  # RATED | LIFESAVING
)

# Resolutions
resolution_evaluations_counter = Counter(
    "ledger_resolution_evaluations_total",
    "Resolution evaluations",
    ["type", "outcome"],  # outcome: met | missed
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_catch_up(charges_created: int, conflicts: int, failures: int) -> None:
    """Record catch-up outcome counters"""
    if charges_created:
        charges_materialized_counter.inc(charges_created)
    if conflicts:
        idempotency_conflicts_counter.inc(conflicts)
    if failures:
        charge_failures_counter.inc(failures)


def record_resolution(resolution_type: str, is_met: bool) -> None:
    outcome = "met" if is_met else "missed"
    resolution_evaluations_counter.labels(type=resolution_type, outcome=outcome).inc()
