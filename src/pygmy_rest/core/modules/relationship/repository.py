from typing import Protocol

from pymongo.errors import DuplicateKeyError

from pygmy_rest import utils
from pygmy_rest.core.db import MongoRepository
from pygmy_rest.core.modules.relationship.models import FriendRequest, Friendship
from pygmy_rest.errors import RequestAlreadySentError


class RequestRepo(Protocol):
    async def on_start(self) -> None: ...

    async def insert(self, request: FriendRequest) -> None: ...

    async def find(self, from_user_id: str, to_user_id: str) -> FriendRequest | None: ...

    async def find_between(self, user_id: str, other_id: str) -> FriendRequest | None: ...

    async def delete(self, request_id: str) -> bool: ...

    async def list_for_user(self, user_id: str) -> list[FriendRequest]: ...

    async def delete_all_for_user(self, user_id: str) -> list[FriendRequest]: ...


class FriendshipRepo(Protocol):
    async def on_start(self) -> None: ...

    async def add(self, user_id: str, other_id: str) -> bool: ...

    async def remove(self, user_id: str, other_id: str) -> bool: ...

    async def exists(self, user_id: str, other_id: str) -> bool: ...

    async def list_friend_ids(self, user_id: str) -> list[str]: ...

    async def remove_all_for_user(self, user_id: str) -> list[str]: ...


class MongoRequestRepo(MongoRepository):
    collection_name = "friend_requests"

    async def on_start(self) -> None:
        # Unique index for the unordered pair, in either direction
        await self._collection.create_index([("pair_key", 1)], unique=True)
        await self._collection.create_index([("from_user_id", 1)])
        await self._collection.create_index([("to_user_id", 1)])

    async def insert(self, request: FriendRequest) -> None:
        doc = request.to_mongo()
        doc["pair_key"] = utils.pair_key(request.from_user_id, request.to_user_id)
        try:
            await self._collection.insert_one(doc)
        except DuplicateKeyError as e:
            raise RequestAlreadySentError from e

    async def find(self, from_user_id: str, to_user_id: str) -> FriendRequest | None:
        doc = await self._collection.find_one({"from_user_id": from_user_id, "to_user_id": to_user_id})
        return None if doc is None else FriendRequest.model_validate(doc)

    async def find_between(self, user_id: str, other_id: str) -> FriendRequest | None:
        doc = await self._collection.find_one(
            {
                "$or": [
                    {"from_user_id": user_id, "to_user_id": other_id},
                    {"from_user_id": other_id, "to_user_id": user_id},
                ]
            }
        )
        return None if doc is None else FriendRequest.model_validate(doc)

    async def delete(self, request_id: str) -> bool:
        res = await self._collection.delete_one({"_id": request_id})
        return res.deleted_count > 0

    async def list_for_user(self, user_id: str) -> list[FriendRequest]:
        cursor = self._collection.find({"$or": [{"from_user_id": user_id}, {"to_user_id": user_id}]}).sort("_id", 1)
        return await FriendRequest.list_cursor(cursor)

    async def delete_all_for_user(self, user_id: str) -> list[FriendRequest]:
        """Delete every request sent or received by user_id, returning the deleted ones."""
        requests = await self.list_for_user(user_id)
        if requests:
            await self._collection.delete_many({"_id": {"$in": [r.id for r in requests]}})
        return requests


class MongoFriendshipRepo(MongoRepository):
    collection_name = "friendships"

    async def on_start(self) -> None:
        await self._collection.create_index([("user_a", 1), ("user_b", 1)], unique=True)
        await self._collection.create_index([("user_b", 1)])

    async def add(self, user_id: str, other_id: str) -> bool:
        """Create the edge; returns False if it already existed."""
        edge = Friendship.between(user_id, other_id)
        try:
            res = await self._collection.update_one(
                {"user_a": edge.user_a, "user_b": edge.user_b},
                {"$setOnInsert": {"_id": edge.id, "created_at": edge.created_at}},
                upsert=True,
            )
        except DuplicateKeyError:
            # Lost a concurrent upsert race; the edge exists either way
            return False
        return res.upserted_id is not None

    async def remove(self, user_id: str, other_id: str) -> bool:
        user_a, user_b = sorted((user_id, other_id))
        res = await self._collection.delete_one({"user_a": user_a, "user_b": user_b})
        return res.deleted_count > 0

    async def exists(self, user_id: str, other_id: str) -> bool:
        user_a, user_b = sorted((user_id, other_id))
        return await self._collection.count_documents({"user_a": user_a, "user_b": user_b}, limit=1) > 0

    async def list_friend_ids(self, user_id: str) -> list[str]:
        edges = await Friendship.list_cursor(self._collection.find({"$or": [{"user_a": user_id}, {"user_b": user_id}]}))
        return [edge.other(user_id) for edge in edges]

    async def remove_all_for_user(self, user_id: str) -> list[str]:
        """Delete every edge touching user_id, returning the former friends."""
        friend_ids = await self.list_friend_ids(user_id)
        await self._collection.delete_many({"$or": [{"user_a": user_id}, {"user_b": user_id}]})
        return friend_ids
