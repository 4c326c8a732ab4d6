import structlog

from pygmy_rest.core.modules.auth.tokens import TokenCodec
from pygmy_rest.core.modules.session.models import LoginResult, SessionView
from pygmy_rest.core.modules.session.repository import SessionRepo
from pygmy_rest.core.modules.user.service import UserService
from pygmy_rest.errors import InvalidEmailOrPasswordError, SessionNotFoundError

logger = structlog.get_logger(__name__)


class SessionService:
    """Service for managing user sessions."""

    def __init__(self, sessions: SessionRepo, tokens: TokenCodec, users: UserService) -> None:
        self._sessions = sessions
        self._tokens = tokens
        self._users = users

    async def create_session(self, email: str, password: str) -> LoginResult:
        """Check credentials, then mint a token and persist its session."""
        user = await self._users.get_user_by_email(email)
        if user is None or not self._users.check_password(user, password):
            raise InvalidEmailOrPasswordError

        issued = self._tokens.issue(user.id)
        await self._sessions.create(issued.session_id, user.id)
        logger.info("session_created", session_id=issued.session_id, user_id=user.id)
        return LoginResult(session_id=issued.session_id, token=issued.token)

    async def list_sessions(self, user_id: str, current_session_id: str) -> list[SessionView]:
        sessions = await self._sessions.list_for_user(user_id)
        return [SessionView.from_domain(session, current_session_id) for session in sessions]

    async def delete_session(self, user_id: str, session_id: str) -> None:
        """Log out one session of the user."""
        session = await self._sessions.lookup(session_id)
        # Sessions of other users are reported exactly like missing ones
        if session is None or session.user_id != user_id:
            raise SessionNotFoundError
        if not await self._sessions.delete(session_id):
            raise SessionNotFoundError
        logger.info("session_deleted", session_id=session_id, user_id=user_id)

    async def delete_all_sessions(self, user_id: str) -> None:
        """Log out every session of the user, including the current one."""
        count = await self._sessions.delete_all_for_user(user_id)
        logger.info("sessions_deleted", user_id=user_id, count=count)
