"""API request/response models."""

from userservice.api.models.errors import ErrorBody, ErrorCode, ErrorDetail, ErrorResponse
from userservice.api.models.health import ComponentHealth, HealthResponse
from userservice.api.models.users import UserResponse

__all__ = [
    "ComponentHealth",
    "ErrorBody",
    "ErrorCode",
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse",
    "UserResponse",
]
