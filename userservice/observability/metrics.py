"""Metrics for userservice.

Two families live here:
- Prometheus request metrics, scraped from /metrics
- OpenTelemetry instruments exported over OTLP through the meter provider
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING

from opentelemetry.metrics import CallbackOptions, Meter, Observation
from prometheus_client import Counter, Histogram

from userservice.observability.logging import get_logger

if TYPE_CHECKING:
    from userservice.db.pool import PostgresPool

logger = get_logger(__name__)

# Request metrics
REQUEST_COUNT = Counter(
    "userservice_request_count_total",
    "Total number of requests processed",
    labelnames=["method", "endpoint", "status"],
)

REQUEST_LATENCY = Histogram(
    "userservice_request_latency_seconds",
    "Request latency in seconds",
    labelnames=["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Error metrics
ERRORS = Counter(
    "userservice_errors_total",
    "Total number of errors",
    labelnames=["error_type"],
)


class UserMetrics:
    """OpenTelemetry instruments for the user resource and its pool.

    Recording is best effort: a failing instrument is logged and never
    propagates into the request that triggered it.
    """

    def __init__(self, meter: Meter, pool: "PostgresPool | None" = None) -> None:
        self._pool = pool
        self.users_created = meter.create_counter(
            "users.created",
            unit="1",
            description="Number of users created",
        )
        if pool is not None:
            meter.create_observable_gauge(
                "db.pool.size",
                callbacks=[self._observe_pool_size],
                unit="1",
                description="Open connections in the database pool",
            )
            meter.create_observable_gauge(
                "db.pool.idle",
                callbacks=[self._observe_pool_idle],
                unit="1",
                description="Idle connections in the database pool",
            )

    def record_user_created(self) -> None:
        try:
            self.users_created.add(1)
        except Exception as e:
            logger.warning("metric_record_failed", metric="users.created", error=str(e))

    def _observe_pool_size(self, _options: CallbackOptions) -> Iterable[Observation]:
        if self._pool is None:
            return []
        return [Observation(self._pool.size)]

    def _observe_pool_idle(self, _options: CallbackOptions) -> Iterable[Observation]:
        if self._pool is None:
            return []
        return [Observation(self._pool.free_size)]
