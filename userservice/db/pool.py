"""PostgreSQL connection pool management.

Provides the single connection pool shared by every request handler.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import asyncpg

from userservice.db.errors import ConnectionError
from userservice.observability.logging import get_logger

logger = get_logger(__name__)


class PostgresPool:
    """Manages an asyncpg connection pool with health checks.

    Usage:
        pool = PostgresPool(dsn="postgresql://...")
        await pool.connect()
        try:
            async with pool.acquire() as conn:
                result = await conn.fetch("SELECT * FROM ...")
        finally:
            await pool.close()
    """

    def __init__(
        self,
        dsn: str,
        min_size: int = 2,
        max_size: int = 10,
        max_inactive_connection_lifetime: float = 300.0,
        command_timeout: float = 60.0,
        acquire_timeout: float = 30.0,
    ) -> None:
        """Initialize pool configuration.

        Args:
            dsn: Database connection string
            min_size: Minimum number of connections to keep open.
            max_size: Maximum number of connections in the pool.
            max_inactive_connection_lifetime: Close connections idle longer than this (seconds).
            command_timeout: Default timeout for queries (seconds).
            acquire_timeout: Longest wait for a free connection (seconds).
        """
        self._dsn = dsn
        self._min_size = min_size
        self._max_size = max_size
        self._max_inactive_connection_lifetime = max_inactive_connection_lifetime
        self._command_timeout = command_timeout
        self._acquire_timeout = acquire_timeout
        self._pool: asyncpg.Pool | None = None
        self._closed = False

    async def connect(self) -> None:
        """Initialize the connection pool.

        Raises:
            ConnectionError: If the database cannot be reached
        """
        if self._pool is not None:
            return

        try:
            self._pool = await asyncpg.create_pool(
                dsn=self._dsn,
                min_size=self._min_size,
                max_size=self._max_size,
                max_inactive_connection_lifetime=self._max_inactive_connection_lifetime,
                command_timeout=self._command_timeout,
            )
            self._closed = False
            logger.info(
                "postgres_pool_connected",
                min_size=self._min_size,
                max_size=self._max_size,
            )
        except Exception as e:
            logger.error("postgres_pool_connection_failed", error=str(e))
            raise ConnectionError(f"Failed to connect to PostgreSQL: {e}", cause=e) from e

    async def close(self) -> None:
        """Close the connection pool gracefully."""
        self._closed = True
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("postgres_pool_closed")

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """Acquire a connection from the pool.

        Waits at most acquire_timeout seconds for a free connection.

        Raises:
            ConnectionError: On timeout, when no connection can be opened, or
                after close()
        """
        if self._pool is None:
            if self._closed:
                raise ConnectionError("Connection pool is closed")
            await self.connect()
        if self._pool is None:
            raise ConnectionError("Connection pool is not connected")

        try:
            connection = await self._pool.acquire(timeout=self._acquire_timeout)
        except TimeoutError as e:
            logger.error("postgres_acquire_timeout", timeout=self._acquire_timeout)
            raise ConnectionError(
                f"Timed out after {self._acquire_timeout}s waiting for a connection",
                cause=e,
            ) from e
        except (asyncpg.PostgresError, OSError) as e:
            logger.error("postgres_connection_error", error=str(e))
            raise ConnectionError(f"PostgreSQL error: {e}", cause=e) from e

        try:
            yield connection
        finally:
            await self._pool.release(connection)

    async def health_check(self) -> bool:
        """Check if the pool is connected and responsive."""
        if self._pool is None:
            return False

        try:
            async with self._pool.acquire(timeout=self._acquire_timeout) as conn:
                await conn.fetchval("SELECT 1")
            return True
        except Exception as e:
            logger.warning("postgres_health_check_failed", error=str(e))
            return False

    @property
    def is_connected(self) -> bool:
        """Check if pool is initialized."""
        return self._pool is not None

    @property
    def size(self) -> int:
        """Get current number of open connections."""
        if self._pool is None:
            return 0
        return self._pool.get_size()

    @property
    def free_size(self) -> int:
        """Get number of idle connections in pool."""
        if self._pool is None:
            return 0
        return self._pool.get_idle_size()
