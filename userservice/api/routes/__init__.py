"""API route registration."""

from fastapi import FastAPI

from userservice.api.routes.health import router as health_router
from userservice.api.routes.users import router as users_router
from userservice.observability.logging import get_logger

logger = get_logger(__name__)


def register_routes(app: FastAPI) -> None:
    """Register all routes with the FastAPI application.

    | Method | Path       | Handler     |
    |--------|------------|-------------|
    | GET    | /users     | list_users  |
    | GET    | /user/{id} | get_user    |
    | POST   | /user      | create_user |
    | GET    | /health    | health_check|
    | GET    | /metrics   | get_metrics |
    """
    app.include_router(users_router, tags=["Users"])
    app.include_router(health_router, tags=["Health"])

    logger.debug("routes_registered")
