from typing import Any, Protocol

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from pygmy_rest.core.db import MongoRepository
from pygmy_rest.core.modules.user.models import User
from pygmy_rest.errors import EmailAlreadyInUseError, UsernameAlreadyInUseError


class UserRepo(Protocol):
    async def on_start(self) -> None: ...

    async def insert(self, user: User) -> None: ...

    async def get(self, user_id: str) -> User | None: ...

    async def get_by_email(self, email: str) -> User | None: ...

    async def get_by_username(self, username: str) -> User | None: ...

    async def get_many(self, user_ids: list[str]) -> list[User]: ...

    async def update(self, user_id: str, changes: dict[str, Any]) -> User | None: ...

    async def delete(self, user_id: str) -> bool: ...


def _duplicate_error(e: DuplicateKeyError) -> Exception:
    """Translate a unique index violation into the matching domain error."""
    key_pattern = (e.details or {}).get("keyPattern", {})
    if "username" in key_pattern:
        return UsernameAlreadyInUseError()
    return EmailAlreadyInUseError()


class MongoUserRepo(MongoRepository):
    collection_name = "users"

    async def on_start(self) -> None:
        await self._collection.create_index([("username", 1)], unique=True)
        await self._collection.create_index([("email", 1)], unique=True)

    async def insert(self, user: User) -> None:
        try:
            await self._collection.insert_one(user.to_mongo())
        except DuplicateKeyError as e:
            raise _duplicate_error(e) from e

    async def get(self, user_id: str) -> User | None:
        doc = await self._collection.find_one({"_id": user_id})
        return None if doc is None else User.model_validate(doc)

    async def get_by_email(self, email: str) -> User | None:
        doc = await self._collection.find_one({"email": email})
        return None if doc is None else User.model_validate(doc)

    async def get_by_username(self, username: str) -> User | None:
        doc = await self._collection.find_one({"username": username})
        return None if doc is None else User.model_validate(doc)

    async def get_many(self, user_ids: list[str]) -> list[User]:
        if not user_ids:
            return []
        return await User.list_cursor(self._collection.find({"_id": {"$in": user_ids}}))

    async def update(self, user_id: str, changes: dict[str, Any]) -> User | None:
        try:
            doc = await self._collection.find_one_and_update(
                {"_id": user_id}, {"$set": changes}, return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError as e:
            raise _duplicate_error(e) from e
        return None if doc is None else User.model_validate(doc)

    async def delete(self, user_id: str) -> bool:
        res = await self._collection.delete_one({"_id": user_id})
        return res.deleted_count > 0
