from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from pygmy_rest.core.core import Core
from pygmy_rest.core.modules.auth.models import AuthContext
from pygmy_rest.core.modules.relationship.models import FriendRequestView
from pygmy_rest.core.modules.session.models import LoginResult, SessionView
from pygmy_rest.core.modules.user.models import UserSelfView, UserView


class App:
    """Facade for all application operations.

    Every operation except registration and login takes the AuthContext
    produced by authenticate(), which has already checked and touched the
    caller's session.
    """

    def __init__(self, core: Core) -> None:
        self._core = core

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    async def authenticate(self, authorization: str | None) -> AuthContext:
        """Authenticate a raw Authorization header value."""
        return await self._core.services.auth.authenticate(authorization)

    # === Sessions ===
    async def login(self, email: str, password: str) -> LoginResult:
        """Check credentials and create a session."""
        return await self._core.services.session.create_session(email, password)

    async def get_sessions(self, auth: AuthContext) -> list[SessionView]:
        """List the caller's active sessions."""
        return await self._core.services.session.list_sessions(auth.user_id, auth.session_id)

    async def logout(self, auth: AuthContext, session_id: str) -> None:
        """Delete one of the caller's sessions."""
        await self._core.services.session.delete_session(auth.user_id, session_id)

    async def logout_all(self, auth: AuthContext) -> None:
        """Delete all of the caller's sessions, including the current one."""
        await self._core.services.session.delete_all_sessions(auth.user_id)

    # === Users ===
    async def create_user(self, email: str, username: str, password: str) -> str:
        """Register a new user and return its ID."""
        user = await self._core.services.user.create_user(email, username, password)
        return user.id

    async def get_current_user(self, auth: AuthContext) -> UserSelfView:
        """Get the caller's own account."""
        user = await self._core.services.user.get_authenticated_user(auth.user_id)
        return UserSelfView.from_domain(user)

    async def update_current_user(
        self,
        auth: AuthContext,
        email: str | None = None,
        username: str | None = None,
        new_password: str | None = None,
        current_password: str | None = None,
    ) -> UserSelfView | None:
        """Update the caller's account; None means nothing was requested."""
        user = await self._core.services.user.update_user(auth.user_id, email, username, new_password, current_password)
        return None if user is None else UserSelfView.from_domain(user)

    async def delete_current_user(self, auth: AuthContext) -> None:
        """Delete the caller's account (irreversible)."""
        await self._core.services.user.delete_user(auth.user_id)

    async def get_user(self, auth: AuthContext, user_id: str) -> UserView:
        """Get the public profile of any user."""
        user = await self._core.services.user.get_user(user_id)
        return UserView.from_domain(user)

    # === Relationships ===
    async def get_friends(self, auth: AuthContext) -> list[str]:
        """List the caller's friends' IDs."""
        return await self._core.services.relationship.list_friends(auth.user_id)

    async def remove_friend(self, auth: AuthContext, friend_id: str) -> None:
        await self._core.services.relationship.unfriend(auth.user_id, friend_id)

    async def get_friend_requests(self, auth: AuthContext) -> list[FriendRequestView]:
        """List the caller's incoming and outgoing friend requests."""
        return await self._core.services.relationship.list_requests(auth.user_id)

    async def send_friend_request(self, auth: AuthContext, username: str) -> FriendRequestView:
        """Send a friend request to the user with the given username."""
        target = await self._core.services.user.get_user_by_username(username)
        request = await self._core.services.relationship.create_request(auth.user_id, target.id)
        return FriendRequestView.from_domain(request, auth.user_id)

    async def respond_to_friend_request(self, auth: AuthContext, from_user_id: str, accept: bool) -> None:
        """Accept or ignore the request the given user sent to the caller."""
        await self._core.services.relationship.respond(auth.user_id, from_user_id, accept)

    async def cancel_friend_request(self, auth: AuthContext, to_user_id: str) -> None:
        """Withdraw the request the caller sent to the given user."""
        await self._core.services.relationship.cancel(auth.user_id, to_user_id)
