"""Health check and metrics endpoints."""

import time
from datetime import UTC, datetime

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from userservice.api.dependencies import SettingsDep, UserStoreDep
from userservice.api.models.health import ComponentHealth, HealthResponse
from userservice.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: SettingsDep, store: UserStoreDep) -> HealthResponse:
    """Report service health and the reachability of the user store."""
    start = time.perf_counter()
    healthy = await store.health_check()
    latency_ms = (time.perf_counter() - start) * 1000

    component = ComponentHealth(
        name="user_store",
        status="healthy" if healthy else "unhealthy",
        latency_ms=latency_ms,
        message=None if healthy else "Store health check failed",
    )

    logger.debug("health_check_completed", status=component.status)

    return HealthResponse(
        status=component.status,
        version=settings.version,
        components=[component],
        timestamp=datetime.now(UTC),
    )


@router.get("/metrics")
async def get_metrics() -> Response:
    """Get Prometheus metrics in text exposition format."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
