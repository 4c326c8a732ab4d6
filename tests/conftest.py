"""Shared pytest fixtures.

In-memory repositories stand in for MongoDB and a recording relay stands in
for Redis, so services can be exercised without external processes.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from fastapi.testclient import TestClient

from pygmy_rest import utils
from pygmy_rest.app import App
from pygmy_rest.config import Config
from pygmy_rest.core.core import Core, Repositories
from pygmy_rest.core.modules.relationship.models import FriendRequest, Friendship
from pygmy_rest.core.modules.relay.transport import MessageHandler
from pygmy_rest.core.modules.session.models import Session
from pygmy_rest.core.modules.user.models import User
from pygmy_rest.errors import EmailAlreadyInUseError, RequestAlreadySentError, UsernameAlreadyInUseError
from pygmy_rest.web.server import create_fastapi_app

TEST_SECRET = "test-secret-that-is-long-enough-for-hs256"


class InMemoryUserRepo:
    def __init__(self) -> None:
        self.users: dict[str, User] = {}

    async def on_start(self) -> None:
        pass

    def _check_unique(self, user_id: str, email: str, username: str) -> None:
        for other in self.users.values():
            if other.id == user_id:
                continue
            if other.email == email:
                raise EmailAlreadyInUseError
            if other.username == username:
                raise UsernameAlreadyInUseError

    async def insert(self, user: User) -> None:
        self._check_unique(user.id, user.email, user.username)
        self.users[user.id] = user.model_copy()

    async def get(self, user_id: str) -> User | None:
        user = self.users.get(user_id)
        return None if user is None else user.model_copy()

    async def get_by_email(self, email: str) -> User | None:
        return next((u.model_copy() for u in self.users.values() if u.email == email), None)

    async def get_by_username(self, username: str) -> User | None:
        return next((u.model_copy() for u in self.users.values() if u.username == username), None)

    async def get_many(self, user_ids: list[str]) -> list[User]:
        return [self.users[user_id].model_copy() for user_id in user_ids if user_id in self.users]

    async def update(self, user_id: str, changes: dict[str, Any]) -> User | None:
        user = self.users.get(user_id)
        if user is None:
            return None
        updated = user.model_copy(update=changes)
        self._check_unique(user_id, updated.email, updated.username)
        self.users[user_id] = updated
        return updated.model_copy()

    async def delete(self, user_id: str) -> bool:
        return self.users.pop(user_id, None) is not None


class InMemorySessionRepo:
    def __init__(self) -> None:
        self.sessions: dict[str, Session] = {}

    async def on_start(self) -> None:
        pass

    async def lookup(self, session_id: str) -> Session | None:
        session = self.sessions.get(session_id)
        return None if session is None else session.model_copy()

    async def touch(self, session_id: str) -> None:
        if session_id in self.sessions:
            self.sessions[session_id].last_use = utils.now()

    async def create(self, session_id: str, user_id: str) -> Session:
        session = Session(id=session_id, user_id=user_id, last_use=utils.now())
        self.sessions[session_id] = session
        return session.model_copy()

    async def delete(self, session_id: str) -> bool:
        return self.sessions.pop(session_id, None) is not None

    async def delete_all_for_user(self, user_id: str) -> int:
        doomed = [s.id for s in self.sessions.values() if s.user_id == user_id]
        for session_id in doomed:
            del self.sessions[session_id]
        return len(doomed)

    async def list_for_user(self, user_id: str) -> list[Session]:
        return [s.model_copy() for s in self.sessions.values() if s.user_id == user_id]


class InMemoryRequestRepo:
    def __init__(self) -> None:
        self.requests: dict[str, FriendRequest] = {}

    async def on_start(self) -> None:
        pass

    async def insert(self, request: FriendRequest) -> None:
        key = utils.pair_key(request.from_user_id, request.to_user_id)
        if any(utils.pair_key(r.from_user_id, r.to_user_id) == key for r in self.requests.values()):
            raise RequestAlreadySentError
        self.requests[request.id] = request.model_copy()

    async def find(self, from_user_id: str, to_user_id: str) -> FriendRequest | None:
        return next(
            (
                r.model_copy()
                for r in self.requests.values()
                if r.from_user_id == from_user_id and r.to_user_id == to_user_id
            ),
            None,
        )

    async def find_between(self, user_id: str, other_id: str) -> FriendRequest | None:
        return await self.find(user_id, other_id) or await self.find(other_id, user_id)

    async def delete(self, request_id: str) -> bool:
        return self.requests.pop(request_id, None) is not None

    async def list_for_user(self, user_id: str) -> list[FriendRequest]:
        return [r.model_copy() for r in self.requests.values() if user_id in (r.from_user_id, r.to_user_id)]

    async def delete_all_for_user(self, user_id: str) -> list[FriendRequest]:
        doomed = await self.list_for_user(user_id)
        for request in doomed:
            del self.requests[request.id]
        return doomed


class InMemoryFriendshipRepo:
    def __init__(self) -> None:
        self.edges: dict[tuple[str, str], Friendship] = {}

    async def on_start(self) -> None:
        pass

    async def add(self, user_id: str, other_id: str) -> bool:
        edge = Friendship.between(user_id, other_id)
        key = (edge.user_a, edge.user_b)
        if key in self.edges:
            return False
        self.edges[key] = edge
        return True

    async def remove(self, user_id: str, other_id: str) -> bool:
        user_a, user_b = sorted((user_id, other_id))
        return self.edges.pop((user_a, user_b), None) is not None

    async def exists(self, user_id: str, other_id: str) -> bool:
        user_a, user_b = sorted((user_id, other_id))
        return (user_a, user_b) in self.edges

    async def list_friend_ids(self, user_id: str) -> list[str]:
        return [edge.other(user_id) for edge in self.edges.values() if user_id in (edge.user_a, edge.user_b)]

    async def remove_all_for_user(self, user_id: str) -> list[str]:
        friend_ids = await self.list_friend_ids(user_id)
        for friend_id in friend_ids:
            await self.remove(user_id, friend_id)
        return friend_ids


class RecordingRelay:
    """Relay transport that records everything sent instead of publishing it."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, dict[str, Any]]] = []
        self.handler: MessageHandler | None = None
        self.fail_sends = False
        self.stopped = False

    async def start(self, handler: MessageHandler) -> None:
        self.handler = handler

    async def stop(self) -> None:
        self.stopped = True

    async def send(self, target: str, payload: dict[str, Any]) -> None:
        if self.fail_sends:
            raise ConnectionError("relay unavailable")
        self.sent.append((target, payload))

    def events(self, name: str | None = None) -> list[dict[str, Any]]:
        """Payloads of sent events, optionally only those with the given name."""
        return [p for _, p in self.sent if p.get("type") == "event" and (name is None or p.get("event") == name)]

    def responses(self) -> list[dict[str, Any]]:
        return [p for _, p in self.sent if p.get("type") == "response"]


class FakeClock:
    """Controllable replacement for utils.now; every reading moves time forward by 1 ms.

    Starts an hour in the past so tokens issued under it are never from the future.
    """

    def __init__(self) -> None:
        self.current = datetime.now(UTC) - timedelta(hours=1)

    def __call__(self) -> datetime:
        self.current += timedelta(milliseconds=1)
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock(monkeypatch):
    """Patch utils.now with a controllable clock."""
    fake = FakeClock()
    monkeypatch.setattr(utils, "now", fake)
    return fake


@pytest.fixture
def config():
    return Config(
        database_url="mongodb://localhost:27017/pygmy_test",
        redis_url="redis://localhost:6379/0",
        host="127.0.0.1",
        port=3002,
        debug=True,
        session_secret=TEST_SECRET,
        password_hash_rounds=4,
    )


@pytest.fixture
def repositories():
    return Repositories(
        users=InMemoryUserRepo(),
        sessions=InMemorySessionRepo(),
        requests=InMemoryRequestRepo(),
        friendships=InMemoryFriendshipRepo(),
    )


@pytest.fixture
def relay():
    return RecordingRelay()


@pytest.fixture
def core(config, repositories, relay):
    return Core(config, repositories=repositories, relay=relay)


@pytest.fixture
def services(core):
    return core.services


@pytest.fixture
def client(config, core):
    """HTTP client against the full FastAPI app backed by in-memory storage."""
    fastapi_app = create_fastapi_app(App(core), config)
    with TestClient(fastapi_app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
async def alice(services):
    return await services.user.create_user("alice@example.com", "alice", "pw12345678")


@pytest.fixture
async def bob(services):
    return await services.user.create_user("bob@example.com", "bob", "bobpassword1")


@pytest.fixture
async def carol(services):
    return await services.user.create_user("carol@example.com", "Carol", "carolpassword")
