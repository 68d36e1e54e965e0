"""User store implementations."""

from userservice.users.store import UserStore
from userservice.users.stores.inmemory import InMemoryUserStore
from userservice.users.stores.postgres import PostgresUserStore

__all__ = [
    "UserStore",
    "InMemoryUserStore",
    "PostgresUserStore",
]
