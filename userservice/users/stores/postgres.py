"""PostgreSQL implementation of UserStore."""

from collections.abc import Mapping
from typing import Any
from uuid import UUID

import asyncpg

from userservice.db.errors import ConflictError, ConnectionError, QueryError
from userservice.db.pool import PostgresPool
from userservice.observability.logging import get_logger
from userservice.users.models import User
from userservice.users.store import UserStore

logger = get_logger(__name__)

LIST_USERS_SQL = "SELECT id, first_name, last_name FROM users"
GET_USER_SQL = "SELECT id, first_name, last_name FROM users WHERE id = $1"
INSERT_USER_SQL = "INSERT INTO users (id, first_name, last_name) VALUES ($1, $2, $3)"


def _row_to_user(row: Mapping[str, Any]) -> User:
    return User(
        id=row["id"],
        first_name=row["first_name"],
        last_name=row["last_name"],
    )


class PostgresUserStore(UserStore):
    """PostgreSQL implementation of UserStore.

    Every operation is a single parameterized statement on a pooled
    connection; no transaction spans more than one statement.
    """

    def __init__(self, pool: PostgresPool) -> None:
        """Initialize PostgreSQL user store.

        Args:
            pool: Shared connection pool
        """
        self._pool = pool

    async def list_users(self) -> list[User]:
        """List every stored user."""
        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(LIST_USERS_SQL)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            logger.error("postgres_list_users_error", error=str(e))
            raise self._wrap("Failed to fetch users", e) from e

        return [_row_to_user(row) for row in rows]

    async def get_user(self, user_id: UUID) -> User | None:
        """Get a user by ID."""
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(GET_USER_SQL, user_id)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            logger.error("postgres_get_user_error", user_id=str(user_id), error=str(e))
            raise self._wrap("Failed to fetch user", e) from e

        if row is None:
            logger.debug("user_not_found", user_id=str(user_id))
            return None
        return _row_to_user(row)

    async def create_user(self, user: User) -> User:
        """Insert a new user."""
        try:
            async with self._pool.acquire() as conn:
                await conn.execute(
                    INSERT_USER_SQL,
                    user.id,
                    user.first_name,
                    user.last_name,
                )
        except asyncpg.UniqueViolationError as e:
            logger.error("postgres_insert_user_conflict", user_id=str(user.id))
            raise ConflictError(f"User {user.id} already exists", cause=e) from e
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            logger.error("postgres_insert_user_error", user_id=str(user.id), error=str(e))
            raise self._wrap("Failed to insert user", e) from e

        return user

    async def health_check(self) -> bool:
        """Report whether the pool answers a trivial query."""
        return await self._pool.health_check()

    @staticmethod
    def _wrap(message: str, error: Exception) -> QueryError | ConnectionError:
        if isinstance(error, asyncpg.PostgresError):
            return QueryError(f"{message}: {error}", cause=error)
        return ConnectionError(f"{message}: {error}", cause=error)
