"""Database utilities for userservice.

This module contains:
- Connection pool management
- Store error hierarchy
- Alembic migrations, applied at startup
"""

from userservice.db.errors import (
    ConflictError,
    ConnectionError,
    MigrationError,
    QueryError,
    StoreError,
)

__all__ = [
    "StoreError",
    "ConnectionError",
    "ConflictError",
    "QueryError",
    "MigrationError",
]
