"""The user resource: domain models and storage."""

from userservice.users.models import CreateUserRequest, User
from userservice.users.store import UserStore

__all__ = ["CreateUserRequest", "User", "UserStore"]
