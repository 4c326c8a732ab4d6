"""Relay message contract shared with the real-time gateway.

Every message travels as an envelope ``{"from": <service>, "payload": {...}}``.
The payload carries ``type`` (request, response or event) plus either an
``action`` (requests/responses) or an ``event`` name and the recipient
``client`` (events).
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pygmy_rest.core.modules.relationship.models import FriendRequest, RequestDirection
from pygmy_rest.core.modules.user.models import UserView


class MessageType(StrEnum):
    REQUEST = "request"
    RESPONSE = "response"
    EVENT = "event"


class RelayAction(StrEnum):
    VERIFY_TOKEN = "VERIFY_TOKEN"
    FETCH_USER_DATA = "FETCH_USER_DATA"


class RelayEvent(StrEnum):
    FRIEND_CREATE = "FRIEND_CREATE"
    FRIEND_DELETE = "FRIEND_DELETE"
    REQUEST_CREATE = "REQUEST_CREATE"
    REQUEST_DELETE = "REQUEST_DELETE"


class RelayEnvelope(BaseModel):
    """Message as it travels over the relay."""

    model_config = ConfigDict(populate_by_name=True)

    sender: str = Field(..., alias="from")
    payload: dict[str, Any]


def friend_event(event: RelayEvent, client: str, user_id: str) -> dict[str, Any]:
    """FRIEND_CREATE / FRIEND_DELETE addressed to client about user_id."""
    return {"type": MessageType.EVENT, "event": event, "client": client, "userId": user_id}


def request_event(event: RelayEvent, client: str, request: FriendRequest) -> dict[str, Any]:
    """REQUEST_CREATE / REQUEST_DELETE labelled from client's perspective."""
    direction: RequestDirection = request.direction_for(client)
    return {
        "type": MessageType.EVENT,
        "event": event,
        "client": client,
        "from": request.from_user_id,
        "to": request.to_user_id,
        "direction": direction,
    }


def verify_token_response(token: Any, user_id: str | None) -> dict[str, Any]:
    return {
        "type": MessageType.RESPONSE,
        "action": RelayAction.VERIFY_TOKEN,
        "token": token,
        "valid": user_id is not None,
        "userId": user_id,
    }


def fetch_user_data_response(user_id: Any, users: list[UserView]) -> dict[str, Any]:
    return {
        "type": MessageType.RESPONSE,
        "action": RelayAction.FETCH_USER_DATA,
        "userId": user_id,
        "data": [user.model_dump() for user in users],
    }
