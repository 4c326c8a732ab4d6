"""Friend request and friendship models."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from pygmy_rest.core.db import MongoModel
from pygmy_rest.utils import now


class RequestType(StrEnum):
    FRIEND = "FRIEND"


class RequestDirection(StrEnum):
    """Direction of a request from one party's perspective."""

    INCOMING = "INCOMING"
    OUTGOING = "OUTGOING"


class FriendRequest(MongoModel):
    """Directional, pending proposal to form a friendship.

    Indexed on pair_key (unique): at most one request per unordered pair.
    """

    from_user_id: str
    to_user_id: str
    type: RequestType = RequestType.FRIEND

    def direction_for(self, user_id: str) -> RequestDirection:
        """Direction of this request as seen by user_id."""
        return RequestDirection.OUTGOING if user_id == self.from_user_id else RequestDirection.INCOMING


class Friendship(MongoModel):
    """Undirected friendship edge, stored once with user_a < user_b.

    Indexed on (user_a, user_b) - unique.
    """

    user_a: str
    user_b: str
    created_at: datetime = Field(default_factory=now)

    @classmethod
    def between(cls, user_id: str, other_id: str) -> "Friendship":
        user_a, user_b = sorted((user_id, other_id))
        return cls(user_a=user_a, user_b=user_b)

    def other(self, user_id: str) -> str:
        return self.user_b if user_id == self.user_a else self.user_a


class FriendRequestView(BaseModel):
    """Pending friend request seen by one party (API representation)."""

    model_config = ConfigDict(populate_by_name=True)

    direction: RequestDirection = Field(..., description="INCOMING or OUTGOING, from the authorized user's perspective")
    from_user_id: str = Field(..., alias="from", description="User ID of the sender")
    to_user_id: str = Field(..., alias="to", description="User ID of the receiver")

    @classmethod
    def from_domain(cls, request: FriendRequest, user_id: str) -> "FriendRequestView":
        """Create view model from domain model."""
        return cls(
            direction=request.direction_for(user_id),
            from_user_id=request.from_user_id,
            to_user_id=request.to_user_id,
        )
