"""Session management models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pygmy_rest.core.db import MongoModel
from pygmy_rest.core.snowflake import snowflake_time
from pygmy_rest.utils import now


class Session(MongoModel):
    """Server-held login session, revocable independently of its token.

    Indexed on user_id.
    """

    user_id: str
    last_use: datetime = Field(default_factory=now)


class LoginResult(BaseModel):
    """Credentials handed out at login (API representation)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    session_id: str = Field(..., description="Session ID")
    token: str = Field(..., description="Session token")


class SessionView(BaseModel):
    """Active session of the authorized user (API representation)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., description="Session ID")
    user_id: str = Field(..., description="User ID")
    last_used: datetime = Field(..., description="Last time the session was used")
    created_at: datetime = Field(..., description="Time the session was created")
    active: bool = Field(..., description="Whether this session is the current session (authorized/logged in)")

    @classmethod
    def from_domain(cls, session: Session, current_session_id: str) -> "SessionView":
        """Create view model from domain model."""
        return cls(
            id=session.id,
            user_id=session.user_id,
            last_used=session.last_use,
            created_at=snowflake_time(session.id),
            active=session.id == current_session_id,
        )
