"""UserStore abstract interface."""

from abc import ABC, abstractmethod
from uuid import UUID

from userservice.users.models import User


class UserStore(ABC):
    """Abstract interface for user storage.

    Implementations raise userservice.db.errors.StoreError subclasses on
    backend failure; an absent user is reported as None, never as an error.
    """

    @abstractmethod
    async def list_users(self) -> list[User]:
        """List every stored user in storage order."""
        pass

    @abstractmethod
    async def get_user(self, user_id: UUID) -> User | None:
        """Get a user by ID."""
        pass

    @abstractmethod
    async def create_user(self, user: User) -> User:
        """Insert a new user and return it."""
        pass

    async def health_check(self) -> bool:
        """Report whether the backend is reachable."""
        return True
