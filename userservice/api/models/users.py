"""Response shapes for the user endpoints."""

from uuid import UUID

from pydantic import BaseModel

from userservice.users.models import User


class UserResponse(BaseModel):
    """A user as returned to clients."""

    id: UUID
    first_name: str
    last_name: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.id, first_name=user.first_name, last_name=user.last_name)
