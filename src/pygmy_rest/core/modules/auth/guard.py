from datetime import timedelta

import structlog

from pygmy_rest import utils
from pygmy_rest.core.modules.auth.models import AuthContext
from pygmy_rest.core.modules.auth.tokens import TokenCodec
from pygmy_rest.core.modules.session.repository import SessionRepo
from pygmy_rest.errors import ExpiredTokenError, InvalidTokenError, InvalidTokenTypeError, MissingAuthHeaderError

logger = structlog.get_logger(__name__)

BEARER_SCHEME = "Bearer"


class AuthGuard:
    """Per-request gate combining token verification with session liveness.

    Both the HTTP layer and the relay's VERIFY_TOKEN handler go through
    verify_session_token, so they accept and reject exactly the same tokens.
    """

    def __init__(self, tokens: TokenCodec, sessions: SessionRepo, idle_expiry: timedelta) -> None:
        self._tokens = tokens
        self._sessions = sessions
        self._idle_expiry = idle_expiry

    async def authenticate(self, header: str | None) -> AuthContext:
        """Authenticate a raw Authorization header value."""
        if not header:
            raise MissingAuthHeaderError

        parts = header.split(" ")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise InvalidTokenError
        scheme, token = parts
        if scheme != BEARER_SCHEME:
            raise InvalidTokenTypeError

        return await self.verify_session_token(token)

    async def verify_session_token(self, token: str) -> AuthContext:
        """Verify a bare token and check its session is still alive.

        A stale session is deleted on discovery. A live one has its last use
        bumped before the identity is returned.
        """
        claims = self._tokens.verify(token)

        session = await self._sessions.lookup(claims.session_id)
        if session is None:
            raise ExpiredTokenError

        if utils.now() - session.last_use > self._idle_expiry:
            await self._sessions.delete(session.id)
            logger.info("session_expired", session_id=session.id, user_id=session.user_id)
            raise ExpiredTokenError

        await self._sessions.touch(session.id)
        return AuthContext(session_id=session.id, user_id=session.user_id)
