"""Unit tests for the user endpoints."""

import asyncio
from unittest.mock import MagicMock
from uuid import UUID, uuid4

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from userservice.api.context import AppContext
from userservice.api.exceptions import PERSISTENCE_ERROR_MESSAGE, InvalidRequestError
from userservice.api.routes.users import parse_user_id
from userservice.db.errors import ConnectionError
from userservice.users.models import User
from userservice.users.store import UserStore
from userservice.users.stores.inmemory import InMemoryUserStore


class FailingUserStore(UserStore):
    """Store whose every operation fails like an unreachable database."""

    async def list_users(self) -> list[User]:
        raise ConnectionError("connection refused by 10.0.0.5:5432")

    async def get_user(self, user_id: UUID) -> User | None:
        raise ConnectionError("connection refused by 10.0.0.5:5432")

    async def create_user(self, user: User) -> User:
        raise ConnectionError("connection refused by 10.0.0.5:5432")


@pytest.fixture
def failing_client(app: FastAPI) -> TestClient:
    """Client for an app whose store always fails."""
    app.state.context.store = FailingUserStore()
    return TestClient(app, raise_server_exceptions=False)


class TestCreateUser:
    """Tests for POST /user."""

    def test_create_returns_201_with_generated_id(self, client: TestClient) -> None:
        """Creating a user returns the stored record with a fresh UUID."""
        response = client.post("/user", json={"first_name": "Ada", "last_name": "Lovelace"})

        assert response.status_code == 201
        data = response.json()
        assert UUID(data["id"])
        assert data["first_name"] == "Ada"
        assert data["last_name"] == "Lovelace"

    def test_create_persists_user(
        self, client: TestClient, user_store: InMemoryUserStore
    ) -> None:
        """The created user is in the store under the returned id."""
        response = client.post("/user", json={"first_name": "Grace", "last_name": "Hopper"})

        user = asyncio.run(user_store.get_user(UUID(response.json()["id"])))
        assert user is not None
        assert user.first_name == "Grace"

    def test_client_supplied_id_is_ignored(self, client: TestClient) -> None:
        """An id in the request body never becomes the stored id."""
        supplied = str(uuid4())

        response = client.post(
            "/user",
            json={"id": supplied, "first_name": "Ada", "last_name": "Lovelace"},
        )

        assert response.status_code == 201
        assert response.json()["id"] != supplied

    def test_missing_first_name_returns_400(
        self, client: TestClient, user_store: InMemoryUserStore
    ) -> None:
        """A body without first_name is rejected and nothing is stored."""
        response = client.post("/user", json={"last_name": "Lovelace"})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "INVALID_REQUEST"
        assert any("first_name" in detail["field"] for detail in error["details"])
        assert asyncio.run(user_store.list_users()) == []

    def test_malformed_json_returns_400(self, client: TestClient) -> None:
        """A body that is not JSON is a validation failure."""
        response = client.post(
            "/user",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"

    def test_wrong_field_type_returns_400(self, client: TestClient) -> None:
        """Names must be strings."""
        response = client.post("/user", json={"first_name": 42, "last_name": "Lovelace"})

        assert response.status_code == 400

    async def test_concurrent_creates_yield_distinct_ids(self, app: FastAPI) -> None:
        """K concurrent creates produce K distinct ids and K rows."""
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
            responses = await asyncio.gather(
                *(
                    http.post("/user", json={"first_name": f"user{i}", "last_name": "Test"})
                    for i in range(20)
                )
            )

            listed = await http.get("/users")

        assert all(r.status_code == 201 for r in responses)
        ids = {r.json()["id"] for r in responses}
        assert len(ids) == 20
        assert len(listed.json()) == 20

    def test_metric_failure_does_not_fail_request(
        self, client: TestClient, app_context: AppContext
    ) -> None:
        """A broken counter is logged, the user is still created."""
        app_context.metrics.users_created = MagicMock()
        app_context.metrics.users_created.add.side_effect = RuntimeError("exporter gone")

        response = client.post("/user", json={"first_name": "Ada", "last_name": "Lovelace"})

        assert response.status_code == 201

    def test_store_failure_returns_generic_500(self, failing_client: TestClient) -> None:
        """Persistence failures map to INTERNAL_ERROR without leaking detail."""
        response = failing_client.post(
            "/user", json={"first_name": "Ada", "last_name": "Lovelace"}
        )

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "INTERNAL_ERROR"
        assert error["message"] == PERSISTENCE_ERROR_MESSAGE
        assert "10.0.0.5" not in response.text


class TestGetUser:
    """Tests for GET /user/{id}."""

    def test_get_created_user(self, client: TestClient) -> None:
        """A created user can be fetched by its id."""
        created = client.post(
            "/user", json={"first_name": "Ada", "last_name": "Lovelace"}
        ).json()

        response = client.get(f"/user/{created['id']}")

        assert response.status_code == 200
        assert response.json() == created

    def test_unknown_id_returns_404_with_empty_body(self, client: TestClient) -> None:
        """A well-formed but unknown id is not an error."""
        response = client.get(f"/user/{uuid4()}")

        assert response.status_code == 404
        assert response.content == b""

    def test_malformed_id_returns_400(self, client: TestClient) -> None:
        """A path segment that is not a UUID is rejected."""
        response = client.get("/user/not-a-uuid")

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "INVALID_REQUEST"
        assert "not-a-uuid" in error["message"]

    def test_store_failure_returns_500(self, failing_client: TestClient) -> None:
        """Store errors on lookup map to INTERNAL_ERROR."""
        response = failing_client.get(f"/user/{uuid4()}")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "INTERNAL_ERROR"


class TestListUsers:
    """Tests for GET /users."""

    def test_empty_store_returns_empty_array(self, client: TestClient) -> None:
        """An empty table yields [] rather than 404."""
        response = client.get("/users")

        assert response.status_code == 200
        assert response.json() == []

    def test_lists_every_created_user(self, client: TestClient) -> None:
        """Every created user appears in the listing."""
        first = client.post("/user", json={"first_name": "Ada", "last_name": "Lovelace"})
        second = client.post("/user", json={"first_name": "Alan", "last_name": "Turing"})

        response = client.get("/users")

        assert response.status_code == 200
        ids = {user["id"] for user in response.json()}
        assert ids == {first.json()["id"], second.json()["id"]}

    def test_store_failure_returns_500(self, failing_client: TestClient) -> None:
        """Store errors on listing map to INTERNAL_ERROR."""
        response = failing_client.get("/users")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "INTERNAL_ERROR"


class TestParseUserId:
    """Tests for parse_user_id."""

    def test_parses_uuid(self) -> None:
        user_id = uuid4()
        assert parse_user_id(str(user_id)) == user_id

    def test_rejects_garbage(self) -> None:
        with pytest.raises(InvalidRequestError) as exc_info:
            parse_user_id("12345")

        assert exc_info.value.status_code == 400
