"""Authentication models."""

from pydantic import BaseModel, ConfigDict


class IssuedToken(BaseModel):
    """Freshly minted session id and the token that carries it."""

    session_id: str
    token: str


class TokenClaims(BaseModel):
    """Identity carried by a verified session token."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    user_id: str


class AuthContext(BaseModel):
    """Authenticated identity of the current caller.

    Only produced after the session record was found alive and touched.
    """

    model_config = ConfigDict(frozen=True)

    session_id: str
    user_id: str
