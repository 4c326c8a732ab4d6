from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any
from urllib.parse import urlparse

from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from pygmy_rest.config import Config
from pygmy_rest.core.modules.auth.guard import AuthGuard
from pygmy_rest.core.modules.auth.tokens import TokenCodec
from pygmy_rest.core.modules.relationship.repository import (
    FriendshipRepo,
    MongoFriendshipRepo,
    MongoRequestRepo,
    RequestRepo,
)
from pygmy_rest.core.modules.relationship.service import RelationshipService
from pygmy_rest.core.modules.relay.service import RelayService
from pygmy_rest.core.modules.relay.transport import Relay, RedisRelay
from pygmy_rest.core.modules.session.repository import MongoSessionRepo, SessionRepo
from pygmy_rest.core.modules.session.service import SessionService
from pygmy_rest.core.modules.user.repository import MongoUserRepo, UserRepo
from pygmy_rest.core.modules.user.service import UserService


class Repositories:
    """Storage interfaces used by the services."""

    users: UserRepo
    sessions: SessionRepo
    requests: RequestRepo
    friendships: FriendshipRepo

    def __init__(self, users: UserRepo, sessions: SessionRepo, requests: RequestRepo, friendships: FriendshipRepo) -> None:
        self.users = users
        self.sessions = sessions
        self.requests = requests
        self.friendships = friendships

    @classmethod
    def mongo(cls, database: AsyncDatabase[dict[str, Any]]) -> Repositories:
        """MongoDB-backed repositories sharing one database."""
        return cls(
            users=MongoUserRepo(database),
            sessions=MongoSessionRepo(database),
            requests=MongoRequestRepo(database),
            friendships=MongoFriendshipRepo(database),
        )

    async def start_all(self) -> None:
        """Create indexes for every repository."""
        for repo in (self.users, self.sessions, self.requests, self.friendships):
            await repo.on_start()


class Services:
    """Service registry, wired once from config, repositories and relay."""

    tokens: TokenCodec
    auth: AuthGuard
    relay: RelayService
    relationship: RelationshipService
    user: UserService
    session: SessionService

    def __init__(self, config: Config, repositories: Repositories, relay: Relay) -> None:
        self.tokens = TokenCodec(
            secret=config.session_secret,
            issuer=config.token_issuer,
            audience=config.token_audience,
            lifetime=timedelta(weeks=config.token_lifetime_weeks),
        )
        self.auth = AuthGuard(self.tokens, repositories.sessions, timedelta(days=config.session_idle_days))
        self.relay = RelayService(relay, config.relay_gateway, self.auth, repositories.users, repositories.friendships)
        self.relationship = RelationshipService(
            repositories.users, repositories.requests, repositories.friendships, self.relay
        )
        self.user = UserService(
            repositories.users, repositories.sessions, self.relationship, hash_rounds=config.password_hash_rounds
        )
        self.session = SessionService(repositories.sessions, self.tokens, self.user)

    async def start_all(self) -> None:
        await self.relay.on_start()

    async def stop_all(self) -> None:
        await self.relay.on_stop()


class Core:
    """Container providing config, storage, relay and all service instances."""

    config: Config
    mongo_client: AsyncMongoClient[dict[str, Any]] | None
    repositories: Repositories
    services: Services

    def __init__(self, config: Config, repositories: Repositories | None = None, relay: Relay | None = None) -> None:
        """Initialize core; MongoDB and Redis are used unless replacements are given."""
        self.config = config
        self.mongo_client = None
        if repositories is None:
            self.mongo_client = AsyncMongoClient(config.database_url, tz_aware=True)
            database = self.mongo_client.get_database(urlparse(config.database_url).path[1:])
            repositories = Repositories.mongo(database)
        if relay is None:
            relay = RedisRelay(config.redis_url, config.relay_name, config.relay_channel_prefix)
        self.repositories = repositories
        self.services = Services(config, repositories, relay)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        """Create indexes, then start listening on the relay."""
        await self.repositories.start_all()
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop the relay and close MongoDB connection on shutdown."""
        await self.services.stop_all()
        if self.mongo_client is not None:
            await self.mongo_client.aclose()
