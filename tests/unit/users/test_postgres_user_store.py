"""Unit tests for PostgresUserStore against a fake pool."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock
from uuid import uuid4

import asyncpg
import pytest

from userservice.db.errors import ConflictError, ConnectionError, QueryError
from userservice.users.models import User
from userservice.users.stores.postgres import (
    GET_USER_SQL,
    INSERT_USER_SQL,
    LIST_USERS_SQL,
    PostgresUserStore,
)


class FakePool:
    """Hands out a single mocked connection."""

    def __init__(self) -> None:
        self.conn = AsyncMock()
        self.health_check = AsyncMock(return_value=True)

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[AsyncMock]:
        yield self.conn


@pytest.fixture
def pool() -> FakePool:
    return FakePool()


@pytest.fixture
def store(pool: FakePool) -> PostgresUserStore:
    return PostgresUserStore(pool)  # type: ignore[arg-type]


class TestQueries:
    """Each operation is one parameterized statement."""

    async def test_list_users_maps_rows(self, pool: FakePool, store: PostgresUserStore) -> None:
        user_id = uuid4()
        pool.conn.fetch.return_value = [
            {"id": user_id, "first_name": "Ada", "last_name": "Lovelace"}
        ]

        users = await store.list_users()

        pool.conn.fetch.assert_awaited_once_with(LIST_USERS_SQL)
        assert users == [User(id=user_id, first_name="Ada", last_name="Lovelace")]

    async def test_get_user_binds_id(self, pool: FakePool, store: PostgresUserStore) -> None:
        user_id = uuid4()
        pool.conn.fetchrow.return_value = None

        assert await store.get_user(user_id) is None
        pool.conn.fetchrow.assert_awaited_once_with(GET_USER_SQL, user_id)

    async def test_create_user_inserts_all_columns(
        self, pool: FakePool, store: PostgresUserStore
    ) -> None:
        user = User(first_name="Ada", last_name="Lovelace")

        created = await store.create_user(user)

        pool.conn.execute.assert_awaited_once_with(
            INSERT_USER_SQL, user.id, "Ada", "Lovelace"
        )
        assert created == user

    async def test_health_check_delegates_to_pool(
        self, pool: FakePool, store: PostgresUserStore
    ) -> None:
        assert await store.health_check() is True
        pool.health_check.assert_awaited_once()


class TestErrorMapping:
    """Driver errors become StoreError subclasses."""

    async def test_unique_violation_is_conflict(
        self, pool: FakePool, store: PostgresUserStore
    ) -> None:
        pool.conn.execute.side_effect = asyncpg.UniqueViolationError("duplicate key")

        with pytest.raises(ConflictError):
            await store.create_user(User(first_name="Ada", last_name="Lovelace"))

    async def test_postgres_error_is_query_error(
        self, pool: FakePool, store: PostgresUserStore
    ) -> None:
        pool.conn.fetch.side_effect = asyncpg.UndefinedTableError('relation "users" does not exist')

        with pytest.raises(QueryError) as exc_info:
            await store.list_users()

        assert isinstance(exc_info.value.cause, asyncpg.UndefinedTableError)

    async def test_dropped_connection_is_connection_error(
        self, pool: FakePool, store: PostgresUserStore
    ) -> None:
        pool.conn.fetchrow.side_effect = asyncpg.InterfaceError("connection is closed")

        with pytest.raises(ConnectionError):
            await store.get_user(uuid4())

    async def test_os_error_is_connection_error(
        self, pool: FakePool, store: PostgresUserStore
    ) -> None:
        pool.conn.fetch.side_effect = ConnectionResetError("reset by peer")

        with pytest.raises(ConnectionError):
            await store.list_users()
