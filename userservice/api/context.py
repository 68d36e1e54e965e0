"""Application context shared by every request handler.

Built once by the entrypoint (or by tests) and attached to the FastAPI app;
handlers reach it through the dependencies in userservice.api.dependencies.
"""

from dataclasses import dataclass, field

from opentelemetry.trace import Tracer

from userservice.config.settings import Settings
from userservice.db.pool import PostgresPool
from userservice.observability.metrics import UserMetrics
from userservice.observability.telemetry import TelemetryProviders
from userservice.users.store import UserStore


@dataclass
class AppContext:
    """Everything a request needs, passed by reference."""

    settings: Settings
    store: UserStore
    telemetry: TelemetryProviders
    pool: PostgresPool | None = None
    metrics: UserMetrics = field(init=False)
    tracer: Tracer = field(init=False)

    def __post_init__(self) -> None:
        self.tracer = self.telemetry.tracer()
        self.metrics = UserMetrics(self.telemetry.meter(), pool=self.pool)
