"""Signed, time-bound session tokens (HS256 JWT)."""

from datetime import timedelta
from typing import Any

import jwt
import structlog

from pygmy_rest import utils
from pygmy_rest.core.modules.auth.models import IssuedToken, TokenClaims
from pygmy_rest.core.snowflake import generate_snowflake
from pygmy_rest.errors import InvalidTokenError

logger = structlog.get_logger(__name__)

ALGORITHM = "HS256"


class TokenCodec:
    """Issues and verifies session tokens.

    The token is a long-lived capability binding a session id to a user id.
    It never touches storage: the session record decides whether a
    structurally valid token is still usable.
    """

    def __init__(self, secret: str, issuer: str, audience: list[str], lifetime: timedelta) -> None:
        if not secret:
            raise ValueError("Session secret must not be empty")
        if not audience:
            raise ValueError("Token audience must not be empty")
        self._secret = secret
        self._issuer = issuer
        self._audience = list(audience)
        self._lifetime = lifetime

    def issue(self, user_id: str) -> IssuedToken:
        """Mint a new session id and a token binding it to user_id."""
        if not user_id:
            raise ValueError("Missing user_id")

        session_id = generate_snowflake()
        issued_at = utils.now()
        claims: dict[str, Any] = {
            "sessionId": session_id,
            "userId": user_id,
            "iat": issued_at,
            "exp": issued_at + self._lifetime,
            "iss": self._issuer,
            "aud": self._audience,
        }
        token = jwt.encode(claims, self._secret, algorithm=ALGORITHM)
        return IssuedToken(session_id=session_id, token=token)

    def verify(self, token: str) -> TokenClaims:
        """Validate signature, issuer, audience and expiry.

        Raises:
            InvalidTokenError: On any structural, signature or claim mismatch.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                audience=self._audience[0],
                issuer=self._issuer,
                options={"require": ["exp", "iat", "iss", "aud"]},
            )
        except jwt.PyJWTError as e:
            logger.debug("token_rejected", reason=str(e))
            raise InvalidTokenError from e

        # PyJWT only requires the expected audience to be among the token's
        audience = payload["aud"]
        if isinstance(audience, str):
            audience = [audience]
        if sorted(audience) != sorted(self._audience):
            logger.debug("token_rejected", reason="audience mismatch")
            raise InvalidTokenError

        session_id = payload.get("sessionId")
        user_id = payload.get("userId")
        if not isinstance(session_id, str) or not session_id:
            logger.debug("token_rejected", reason="missing sessionId")
            raise InvalidTokenError
        if not isinstance(user_id, str) or not user_id:
            logger.debug("token_rejected", reason="missing userId")
            raise InvalidTokenError

        return TokenClaims(session_id=session_id, user_id=user_id)
