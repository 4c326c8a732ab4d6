from typing import Any, Protocol

import structlog

from pygmy_rest.core.modules.auth.guard import AuthGuard
from pygmy_rest.core.modules.relationship.repository import FriendshipRepo
from pygmy_rest.core.modules.relay.models import (
    MessageType,
    RelayAction,
    RelayEnvelope,
    fetch_user_data_response,
    verify_token_response,
)
from pygmy_rest.core.modules.relay.transport import Relay
from pygmy_rest.core.modules.user.models import UserView
from pygmy_rest.core.modules.user.repository import UserRepo
from pygmy_rest.errors import UserError

logger = structlog.get_logger(__name__)


class Notifier(Protocol):
    async def emit(self, payload: dict[str, Any]) -> None: ...


class RelayService:
    """Best-effort side channel to the real-time gateway.

    Outbound events never raise: a failed send is logged and the triggering
    mutation still succeeds. Inbound requests from the gateway are answered
    asynchronously and degrade to a negative or empty response on failure.
    """

    def __init__(
        self, relay: Relay, gateway: str, auth: AuthGuard, users: UserRepo, friendships: FriendshipRepo
    ) -> None:
        self._relay = relay
        self._gateway = gateway
        self._auth = auth
        self._users = users
        self._friendships = friendships

    async def on_start(self) -> None:
        await self._relay.start(self.handle_message)

    async def on_stop(self) -> None:
        await self._relay.stop()

    async def emit(self, payload: dict[str, Any]) -> None:
        """Send an event to the gateway without waiting for any acknowledgement."""
        try:
            await self._relay.send(self._gateway, payload)
        except Exception as e:
            logger.exception("relay_emit_failed", event=payload.get("event"), client=payload.get("client"), error=str(e))

    async def handle_message(self, envelope: RelayEnvelope) -> None:
        """Dispatch an inbound relay message."""
        payload = envelope.payload
        if "type" not in payload or "action" not in payload:
            return

        message_type = payload["type"]
        action = payload["action"]

        if message_type == MessageType.REQUEST and envelope.sender == self._gateway:
            if action == RelayAction.VERIFY_TOKEN and "token" in payload:
                await self._verify_token(payload["token"])
            elif action == RelayAction.FETCH_USER_DATA and "userId" in payload:
                await self._fetch_user_data(payload["userId"])
            else:
                logger.debug("relay_request_ignored", action=action)

        # Responses are not awaited by anything yet

    async def _verify_token(self, token: Any) -> None:
        """Reply with the token's user id, or as invalid.

        The token is echoed back as received so the gateway can match the reply.
        """
        user_id: str | None = None
        if not isinstance(token, str):
            logger.debug("relay_token_rejected", reason="token is not a string")
            await self.emit(verify_token_response(token, None))
            return

        try:
            auth = await self._auth.verify_session_token(token)
            user_id = auth.user_id
        except UserError as e:
            logger.debug("relay_token_rejected", reason=str(e))
        except Exception:
            logger.exception("relay_verify_token_failed")

        await self.emit(verify_token_response(token, user_id))

    async def _fetch_user_data(self, user_id: Any) -> None:
        """Reply with the public projection of the user's current friends."""
        data: list[UserView] = []
        if not isinstance(user_id, str):
            logger.debug("relay_fetch_user_data_rejected", reason="userId is not a string")
            await self.emit(fetch_user_data_response(user_id, data))
            return

        try:
            friend_ids = await self._friendships.list_friend_ids(user_id)
            users = await self._users.get_many(friend_ids)
            data = [UserView.from_domain(user) for user in users]
        except Exception:
            logger.exception("relay_fetch_user_data_failed", user_id=user_id)

        await self.emit(fetch_user_data_response(user_id, data))
