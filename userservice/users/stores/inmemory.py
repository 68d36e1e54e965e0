"""In-memory implementation of UserStore."""

import asyncio
from uuid import UUID

from userservice.db.errors import ConflictError
from userservice.users.models import User
from userservice.users.store import UserStore


class InMemoryUserStore(UserStore):
    """In-memory implementation of UserStore for testing and development.

    Insertion order is preserved, matching heap order of a fresh table.
    Not suitable for production use.
    """

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._users: dict[UUID, User] = {}
        self._lock = asyncio.Lock()

    async def list_users(self) -> list[User]:
        """List every stored user in insertion order."""
        return list(self._users.values())

    async def get_user(self, user_id: UUID) -> User | None:
        """Get a user by ID."""
        return self._users.get(user_id)

    async def create_user(self, user: User) -> User:
        """Insert a new user, rejecting a duplicate id."""
        async with self._lock:
            if user.id in self._users:
                raise ConflictError(f"User {user.id} already exists")
            self._users[user.id] = user
        return user
