"""API exception hierarchy for consistent error handling.

All API exceptions inherit from UserServiceAPIError, which provides
status_code and error_code attributes used by the global exception
handler to generate consistent error responses.
"""

from fastapi.responses import JSONResponse

from userservice.api.models.errors import ErrorBody, ErrorCode, ErrorDetail, ErrorResponse

GENERIC_ERROR_MESSAGE = "An unexpected error occurred"
PERSISTENCE_ERROR_MESSAGE = "A database error occurred while processing the request"


class UserServiceAPIError(Exception):
    """Base exception for all API errors."""

    status_code: int = 500
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidRequestError(UserServiceAPIError):
    """Raised when request input cannot be coerced to the expected type."""

    status_code = 400
    error_code = ErrorCode.INVALID_REQUEST


def error_response(
    status_code: int,
    code: ErrorCode,
    message: str,
    details: list[ErrorDetail] | None = None,
) -> JSONResponse:
    """Render the standard ErrorResponse body."""
    response = ErrorResponse(error=ErrorBody(code=code, message=message, details=details))
    return JSONResponse(
        status_code=status_code,
        content=response.model_dump(mode="json", exclude_none=True),
    )
