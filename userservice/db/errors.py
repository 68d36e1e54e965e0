"""Store error hierarchy.

Store implementations wrap driver-specific errors in one of these so the API
layer can handle every backend the same way.
"""


class StoreError(Exception):
    """Base exception for all store errors.

    The original driver exception is kept on `cause` for server-side logs.
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConnectionError(StoreError):
    """Raised when a connection cannot be established or acquired.

    Examples:
        - Database unreachable at startup
        - Pool acquisition timeout
        - Connection dropped mid-query
    """


class ConflictError(StoreError):
    """Raised on unique constraint violation."""


class QueryError(StoreError):
    """Raised when a statement fails for any other database reason."""


class MigrationError(StoreError):
    """Raised when schema migrations cannot be applied at startup."""
