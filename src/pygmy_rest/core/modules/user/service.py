from typing import Any

import bcrypt
import structlog

from pygmy_rest.core.modules.relationship.service import RelationshipService
from pygmy_rest.core.modules.session.repository import SessionRepo
from pygmy_rest.core.modules.user.models import User
from pygmy_rest.core.modules.user.repository import UserRepo
from pygmy_rest.core.modules.user.validators import normalize_username, validate_password, validate_username
from pygmy_rest.errors import (
    CurrentPasswordRequiredError,
    EmailAlreadyInUseError,
    InvalidPasswordError,
    PasswordNotChangedError,
    ServerError,
    UsernameAlreadyInUseError,
    UserNotFoundError,
)

logger = structlog.get_logger(__name__)


class UserService:
    """Manages user accounts and their credentials."""

    def __init__(
        self, users: UserRepo, sessions: SessionRepo, relationships: RelationshipService, hash_rounds: int = 12
    ) -> None:
        self._users = users
        self._sessions = sessions
        self._relationships = relationships
        self._hash_rounds = hash_rounds

    def hash_password(self, password: str) -> str:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=self._hash_rounds)).decode("utf-8")

    @staticmethod
    def check_password(user: User, password: str) -> bool:
        """Verify password against stored hash."""
        return bcrypt.checkpw(password.encode("utf-8"), user.password_hash.encode("utf-8"))

    async def get_user(self, user_id: str) -> User:
        """Get user by ID."""
        user = await self._users.get(user_id)
        if user is None:
            raise UserNotFoundError
        return user

    async def get_user_by_username(self, username: str) -> User:
        """Get user by username, case insensitive."""
        user = await self._users.get_by_username(normalize_username(username))
        if user is None:
            raise UserNotFoundError
        return user

    async def get_user_by_email(self, email: str) -> User | None:
        return await self._users.get_by_email(email)

    async def get_authenticated_user(self, user_id: str) -> User:
        """Get the user behind an authenticated session.

        The session outlived its user only if the account vanished between
        authentication and this call, which is a server-side inconsistency.
        """
        user = await self._users.get(user_id)
        if user is None:
            raise ServerError(f"Authenticated user '{user_id}' not found")
        return user

    async def create_user(self, email: str, username: str, password: str) -> User:
        """Register a new, unverified user."""
        username = validate_username(username)
        validate_password(password)

        if await self._users.get_by_email(email) is not None:
            raise EmailAlreadyInUseError
        if await self._users.get_by_username(username) is not None:
            raise UsernameAlreadyInUseError

        user = User(username=username, email=email, password_hash=self.hash_password(password))
        await self._users.insert(user)
        logger.info("user_created", user_id=user.id, username=username)
        return user

    async def update_user(
        self,
        user_id: str,
        email: str | None = None,
        username: str | None = None,
        new_password: str | None = None,
        current_password: str | None = None,
    ) -> User | None:
        """Update profile fields of a user.

        Changing the email address or the password requires the current
        password. A password change logs out every session of the user.

        Returns:
            The updated user, or None if no change was requested.
        """
        if email is None and username is None and new_password is None:
            return None

        user = await self.get_authenticated_user(user_id)

        if (email is not None or new_password is not None) and current_password is None:
            raise CurrentPasswordRequiredError
        if current_password is not None and not self.check_password(user, current_password):
            raise InvalidPasswordError

        changes: dict[str, Any] = {}

        if email is not None and email != user.email:
            existing = await self._users.get_by_email(email)
            if existing is not None and existing.id != user_id:
                raise EmailAlreadyInUseError
            changes["email"] = email
            changes["verified"] = False

        if username is not None:
            username = validate_username(username)
            if username != user.username:
                existing = await self._users.get_by_username(username)
                if existing is not None and existing.id != user_id:
                    raise UsernameAlreadyInUseError
                changes["username"] = username

        if new_password is not None:
            validate_password(new_password)
            if self.check_password(user, new_password):
                raise PasswordNotChangedError
            changes["password_hash"] = self.hash_password(new_password)

        if not changes:
            return user

        updated = await self._users.update(user_id, changes)
        if updated is None:
            raise ServerError(f"User '{user_id}' vanished during update")
        logger.info("user_updated", user_id=user_id, fields=sorted(changes))

        if "password_hash" in changes:
            count = await self._sessions.delete_all_for_user(user_id)
            logger.info("sessions_invalidated", user_id=user_id, count=count)

        return updated

    async def delete_user(self, user_id: str) -> None:
        """Delete a user together with their sessions and relationships."""
        await self._sessions.delete_all_for_user(user_id)
        await self._relationships.remove_all_for_user(user_id)
        await self._users.delete(user_id)
        logger.info("user_deleted", user_id=user_id)
