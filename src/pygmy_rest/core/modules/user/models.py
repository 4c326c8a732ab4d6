from pydantic import BaseModel, Field

from pygmy_rest.core.db import MongoModel


class User(MongoModel):
    """User domain model with credentials."""

    username: str  # canonical lower-case form
    email: str
    password_hash: str  # bcrypt hash
    verified: bool = False


class UserView(BaseModel):
    """Public user information (API representation)."""

    id: str = Field(..., description="User ID")
    username: str = Field(..., description="Username")

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(id=user.id, username=user.username)


class UserSelfView(BaseModel):
    """The authorized user's own account (API representation)."""

    id: str = Field(..., description="User ID")
    email: str = Field(..., description="Email address")
    username: str = Field(..., description="Username")
    verified: bool = Field(..., description="Email address verified status")

    @classmethod
    def from_domain(cls, user: User) -> "UserSelfView":
        """Create view model from domain model."""
        return cls(id=user.id, email=user.email, username=user.username, verified=user.verified)
