"""Session Store: persisted record of login sessions.

Idle expiry is not enforced here. Consumers decide whether a session found
by lookup is still alive (see AuthGuard).
"""

from typing import Protocol

from pygmy_rest import utils
from pygmy_rest.core.db import MongoRepository
from pygmy_rest.core.modules.session.models import Session


class SessionRepo(Protocol):
    async def on_start(self) -> None: ...

    async def lookup(self, session_id: str) -> Session | None: ...

    async def touch(self, session_id: str) -> None: ...

    async def create(self, session_id: str, user_id: str) -> Session: ...

    async def delete(self, session_id: str) -> bool: ...

    async def delete_all_for_user(self, user_id: str) -> int: ...

    async def list_for_user(self, user_id: str) -> list[Session]: ...


class MongoSessionRepo(MongoRepository):
    collection_name = "sessions"

    async def on_start(self) -> None:
        # Single index for user_id (for finding sessions by user)
        await self._collection.create_index([("user_id", 1)])

    async def lookup(self, session_id: str) -> Session | None:
        doc = await self._collection.find_one({"_id": session_id})
        if doc is None:
            return None
        return Session.model_validate(doc)

    async def touch(self, session_id: str) -> None:
        """Update last use to now."""
        await self._collection.update_one({"_id": session_id}, {"$set": {"last_use": utils.now()}})

    async def create(self, session_id: str, user_id: str) -> Session:
        session = Session(id=session_id, user_id=user_id, last_use=utils.now())
        await self._collection.insert_one(session.to_mongo())
        return session

    async def delete(self, session_id: str) -> bool:
        res = await self._collection.delete_one({"_id": session_id})
        return res.deleted_count > 0

    async def delete_all_for_user(self, user_id: str) -> int:
        res = await self._collection.delete_many({"user_id": user_id})
        return res.deleted_count

    async def list_for_user(self, user_id: str) -> list[Session]:
        return await Session.list_cursor(self._collection.find({"user_id": user_id}).sort("_id", 1))
