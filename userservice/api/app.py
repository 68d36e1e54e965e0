"""FastAPI application factory.

Creates and configures the FastAPI application with middleware,
exception handlers, and route registration.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from userservice.api.context import AppContext
from userservice.api.exceptions import (
    GENERIC_ERROR_MESSAGE,
    PERSISTENCE_ERROR_MESSAGE,
    UserServiceAPIError,
    error_response,
)
from userservice.api.middleware.context import RequestContextMiddleware
from userservice.api.models.errors import ErrorCode, ErrorDetail
from userservice.api.routes import register_routes
from userservice.db.errors import StoreError
from userservice.observability.logging import get_logger
from userservice.observability.metrics import ERRORS
from userservice.observability.tracing import record_exception

logger = get_logger(__name__)

def create_app(context: AppContext) -> FastAPI:
    """Create and configure the FastAPI application.

    This factory function creates a fully configured FastAPI app with:
    - Request context middleware (trace ids in responses, request metrics)
    - Global exception handlers
    - OpenTelemetry server spans, when a tracer provider is configured
    - All API routes registered
    - A lifespan that closes the pool and shuts telemetry down on exit

    Args:
        context: Application context shared by all handlers

    Returns:
        Configured FastAPI application
    """
    settings = context.settings

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        # Runs after uvicorn has drained in-flight requests
        try:
            if context.pool is not None:
                await context.pool.close()
        finally:
            context.telemetry.shutdown()

    app = FastAPI(
        title="userservice",
        description="Create, list and fetch users",
        version=settings.version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.context = context

    app.add_middleware(RequestContextMiddleware)

    _register_exception_handlers(app)

    register_routes(app)

    telemetry = context.telemetry
    if telemetry.tracer_provider is not None:
        FastAPIInstrumentor.instrument_app(
            app,
            tracer_provider=telemetry.tracer_provider,
            meter_provider=telemetry.meter_provider,
            excluded_urls="health,metrics",
        )
        logger.info("opentelemetry_instrumentation_enabled")

    logger.info("app_created", debug=settings.debug, store=type(context.store).__name__)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    Args:
        app: FastAPI application
    """

    @app.exception_handler(UserServiceAPIError)
    async def api_error_handler(request: Request, exc: UserServiceAPIError) -> JSONResponse:
        """Handle UserServiceAPIError and its subclasses."""
        logger.warning(
            "api_error",
            error_code=exc.error_code.value,
            message=exc.message,
            path=request.url.path,
        )
        return error_response(exc.status_code, exc.error_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle FastAPI request validation errors (bad JSON, missing fields)."""
        logger.warning(
            "validation_error",
            errors=[{"loc": list(e["loc"]), "type": e["type"]} for e in exc.errors()],
            path=request.url.path,
        )

        details = [
            ErrorDetail(
                field=".".join(str(loc) for loc in error["loc"]),
                message=error["msg"],
            )
            for error in exc.errors()
        ]
        return error_response(
            400,
            ErrorCode.INVALID_REQUEST,
            "Request validation failed",
            details,
        )

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        """Handle persistence failures: full detail in logs, generic body to callers."""
        error_type = type(exc).__name__
        logger.error(
            "store_error",
            error=str(exc),
            error_type=error_type,
            cause=repr(exc.cause) if exc.cause else None,
            path=request.url.path,
        )
        record_exception(trace.get_current_span(), exc)
        ERRORS.labels(error_type=error_type).inc()

        return error_response(500, ErrorCode.INTERNAL_ERROR, PERSISTENCE_ERROR_MESSAGE)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions raised outside the request middleware."""
        logger.exception(
            "unexpected_error",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        ERRORS.labels(error_type=type(exc).__name__).inc()

        return error_response(500, ErrorCode.INTERNAL_ERROR, GENERIC_ERROR_MESSAGE)

    logger.debug("exception_handlers_registered")
