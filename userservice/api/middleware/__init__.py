"""API middleware package."""

from userservice.api.middleware.context import (
    REQUEST_ID_HEADER,
    TRACE_ID_HEADER,
    RequestContextMiddleware,
)

__all__ = [
    "REQUEST_ID_HEADER",
    "TRACE_ID_HEADER",
    "RequestContextMiddleware",
]
