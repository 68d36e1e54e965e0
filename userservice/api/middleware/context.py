"""Request context middleware for observability.

Runs inside the OpenTelemetry server span, so the trace id it reports is the
one the collector sees for the request.
"""

import time
import uuid
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from opentelemetry import trace
from starlette.middleware.base import BaseHTTPMiddleware
from structlog.contextvars import bind_contextvars, clear_contextvars

from userservice.api.exceptions import GENERIC_ERROR_MESSAGE, error_response
from userservice.api.models.errors import ErrorCode
from userservice.observability.logging import get_logger
from userservice.observability.metrics import ERRORS, REQUEST_COUNT, REQUEST_LATENCY
from userservice.observability.tracing import (
    get_current_trace_id,
    inject_context,
    record_exception,
)

logger = get_logger(__name__)

TRACE_ID_HEADER = "X-Trace-ID"
REQUEST_ID_HEADER = "X-Request-ID"


def _endpoint_label(request: Request) -> str:
    """Route template for metric labels (bounded cardinality)."""
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path if isinstance(path, str) else "unmatched"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware that binds request context and reports trace ids.

    For every request:
    - binds request_id/trace_id to structlog contextvars
    - writes X-Request-ID, X-Trace-ID and W3C traceparent to the response,
      including the 500 sent for an exception no handler claimed
    - records Prometheus request count and latency
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process request and bind context."""
        clear_contextvars()

        request_id = str(uuid.uuid4())
        trace_id = get_current_trace_id()
        bind_contextvars(trace_id=trace_id or request_id, request_id=request_id)

        logger.debug(
            "request_started",
            method=request.method,
            path=request.url.path,
        )

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            response = self._unhandled_error(request, exc)

        self._observe(request, response.status_code, start)

        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers[TRACE_ID_HEADER] = trace_id or request_id
        if trace_id:
            inject_context(response.headers)

        return response

    @staticmethod
    def _unhandled_error(request: Request, exc: Exception) -> Response:
        error_type = type(exc).__name__
        logger.exception(
            "unexpected_error",
            error=str(exc),
            error_type=error_type,
            path=request.url.path,
        )
        record_exception(trace.get_current_span(), exc)
        ERRORS.labels(error_type=error_type).inc()
        return error_response(500, ErrorCode.INTERNAL_ERROR, GENERIC_ERROR_MESSAGE)

    @staticmethod
    def _observe(request: Request, status_code: int, start: float) -> None:
        endpoint = _endpoint_label(request)
        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status=str(status_code),
        ).inc()
        REQUEST_LATENCY.labels(
            method=request.method,
            endpoint=endpoint,
        ).observe(time.perf_counter() - start)
