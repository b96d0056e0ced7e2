"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking metrics
booking_attempts = Counter(
    'booking_attempts_total',
    'Total booking attempts',
    ['status']  # success, conflict, invalid, error
)

booking_latency = Histogram(
    'booking_latency_seconds',
    'Booking request latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

booking_transitions = Counter(
    'booking_transitions_total',
    'Booking state transitions',
    ['to_status']
)

# Slot guard metrics
slot_guard_decisions = Counter(
    'slot_guard_decisions_total',
    'Slot guard admission decisions',
    ['result']  # admitted, rejected
)

slot_queries = Counter(
    'slot_queries_total',
    'Available-slot queries',
    ['source']  # cache, store
)

# Cancellation metrics
cancellations = Counter(
    'booking_cancellations_total',
    'Cancelled bookings by refund tier',
    ['refund_percentage']
)

refunded_amount = Counter(
    'booking_refunded_amount_total',
    'Total amount refunded on cancellation'
)

# Database metrics
db_operations = Counter(
    'db_operations_total',
    'Total database operations',
    ['operation']  # read, write, conflict
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)

redis_circuit_breaker_open = Gauge(
    'redis_circuit_breaker_open',
    'Redis circuit breaker state (1=open, 0=closed)'
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(status: str):
    """Record booking attempt. Status: success, conflict, invalid, error"""
    booking_attempts.labels(status=status).inc()


def record_transition(to_status: str):
    booking_transitions.labels(to_status=to_status).inc()


def record_slot_guard(admitted: bool):
    """Record slot guard decision."""
    result = "admitted" if admitted else "rejected"
    slot_guard_decisions.labels(result=result).inc()


def record_slot_query(cached: bool):
    slot_queries.labels(source="cache" if cached else "store").inc()


def record_cancellation(refund_percentage: int, amount: int):
    cancellations.labels(refund_percentage=str(refund_percentage)).inc()
    if amount > 0:
        refunded_amount.inc(amount)


def record_db_operation(operation: str):
    """Record database operation. Operation: read, write, conflict"""
    db_operations.labels(operation=operation).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
