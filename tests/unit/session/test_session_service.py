"""Tests for login, listing and logout of sessions."""

import pytest

from pygmy_rest.errors import ExpiredTokenError, InvalidEmailOrPasswordError, SessionNotFoundError


class TestCreateSession:
    """Test logging in."""

    async def test_login(self, services, repositories, alice):
        """Test that valid credentials create a stored session bound to the user."""
        result = await services.session.create_session("alice@example.com", "pw12345678")
        session = await repositories.sessions.lookup(result.session_id)
        assert session is not None
        assert session.user_id == alice.id
        assert services.tokens.verify(result.token).session_id == result.session_id

    async def test_wrong_password(self, services, alice):
        """Test that a wrong password is rejected."""
        with pytest.raises(InvalidEmailOrPasswordError):
            await services.session.create_session("alice@example.com", "wrongpassword")

    async def test_unknown_email(self, services, alice):
        """Test that an unknown email gives the same error as a wrong password."""
        with pytest.raises(InvalidEmailOrPasswordError):
            await services.session.create_session("nobody@example.com", "pw12345678")

    async def test_sessions_are_independent(self, services, alice):
        """Test that logging in twice yields two distinct sessions."""
        first = await services.session.create_session("alice@example.com", "pw12345678")
        second = await services.session.create_session("alice@example.com", "pw12345678")
        assert first.session_id != second.session_id
        assert len(await services.session.list_sessions(alice.id, first.session_id)) == 2


class TestListSessions:
    """Test listing the caller's sessions."""

    async def test_marks_current_session(self, services, alice):
        """Test that exactly the caller's own session is marked active."""
        first = await services.session.create_session("alice@example.com", "pw12345678")
        second = await services.session.create_session("alice@example.com", "pw12345678")
        views = await services.session.list_sessions(alice.id, second.session_id)
        active = {view.id: view.active for view in views}
        assert active == {first.session_id: False, second.session_id: True}

    async def test_only_own_sessions(self, services, alice, bob):
        """Test that other users' sessions are not listed."""
        own = await services.session.create_session("alice@example.com", "pw12345678")
        await services.session.create_session("bob@example.com", "bobpassword1")
        views = await services.session.list_sessions(alice.id, own.session_id)
        assert [view.id for view in views] == [own.session_id]
        assert views[0].user_id == alice.id


class TestDeleteSession:
    """Test logging out."""

    async def test_delete_own_session(self, services, alice):
        """Test that a deleted session's token stops working."""
        login = await services.session.create_session("alice@example.com", "pw12345678")
        await services.session.delete_session(alice.id, login.session_id)
        with pytest.raises(ExpiredTokenError):
            await services.auth.verify_session_token(login.token)

    async def test_delete_missing_session(self, services, alice):
        """Test that deleting an unknown session fails."""
        with pytest.raises(SessionNotFoundError):
            await services.session.delete_session(alice.id, "123")

    async def test_delete_foreign_session(self, services, repositories, alice, bob):
        """Test that another user's session can not be deleted and looks missing."""
        login = await services.session.create_session("bob@example.com", "bobpassword1")
        with pytest.raises(SessionNotFoundError):
            await services.session.delete_session(alice.id, login.session_id)
        assert await repositories.sessions.lookup(login.session_id) is not None

    async def test_delete_all(self, services, alice, bob):
        """Test that logging out everywhere only affects the caller."""
        first = await services.session.create_session("alice@example.com", "pw12345678")
        second = await services.session.create_session("alice@example.com", "pw12345678")
        other = await services.session.create_session("bob@example.com", "bobpassword1")

        await services.session.delete_all_sessions(alice.id)

        for login in (first, second):
            with pytest.raises(ExpiredTokenError):
                await services.auth.verify_session_token(login.token)
        assert (await services.auth.verify_session_token(other.token)).user_id == bob.id
