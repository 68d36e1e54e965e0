"""Dependency injection for API routes.

Every dependency resolves from the AppContext stored on app.state, so
handlers never touch module-level state. Tests override these functions
through app.dependency_overrides.
"""

from typing import Annotated

from fastapi import Depends, Request
from opentelemetry.trace import Tracer

from userservice.api.context import AppContext
from userservice.config.settings import Settings
from userservice.observability.metrics import UserMetrics
from userservice.users.store import UserStore


def get_app_context(request: Request) -> AppContext:
    """Get the AppContext attached to the running application."""
    return request.app.state.context  # type: ignore[no-any-return]


AppContextDep = Annotated[AppContext, Depends(get_app_context)]


def get_settings(context: AppContextDep) -> Settings:
    """Get application settings."""
    return context.settings


def get_user_store(context: AppContextDep) -> UserStore:
    """Get the UserStore instance."""
    return context.store


def get_tracer(context: AppContextDep) -> Tracer:
    """Get the tracer for handler-level spans."""
    return context.tracer


def get_user_metrics(context: AppContextDep) -> UserMetrics:
    """Get the user metric instruments."""
    return context.metrics


# Type aliases for dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings)]
UserStoreDep = Annotated[UserStore, Depends(get_user_store)]
TracerDep = Annotated[Tracer, Depends(get_tracer)]
UserMetricsDep = Annotated[UserMetrics, Depends(get_user_metrics)]
