"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Admission metrics
reservation_attempts = Counter(
    'reservation_attempts_total',
    'Total reservation attempts',
    ['outcome']  # created, no_available_seat, slot_not_found
)

admission_latency = Histogram(
    'admission_latency_seconds',
    'Time spent inside the admission transaction, lock wait included',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Confirmation metrics
confirmation_attempts = Counter(
    'confirmation_attempts_total',
    'Total confirmation attempts',
    ['outcome']  # confirmed, failed, already_processed, reservation_not_found
)

# Expiry metrics
reservations_expired = Counter(
    'reservations_expired_total',
    'PENDING reservations demoted to FAILED by the expiry reclaimer',
    ['source']  # timer, sweep
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_reservation_attempt(outcome: str):
    reservation_attempts.labels(outcome=outcome).inc()


def record_confirmation(outcome: str):
    confirmation_attempts.labels(outcome=outcome).inc()


def record_expired(source: str, count: int = 1):
    """Record reclaimed reservations. Source: timer, sweep"""
    if count:
        reservations_expired.labels(source=source).inc(count)


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
