"""User domain models."""

from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """A stored user. The id is assigned once, at creation."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4, description="Server-generated identifier")
    first_name: str = Field(..., description="First name")
    last_name: str = Field(..., description="Last name")


class CreateUserRequest(BaseModel):
    """Body of POST /user. Carries no identifier."""

    first_name: str = Field(..., description="First name")
    last_name: str = Field(..., description="Last name")

    def to_user(self) -> User:
        """Build a new User with a freshly generated id."""
        return User(first_name=self.first_name, last_name=self.last_name)
