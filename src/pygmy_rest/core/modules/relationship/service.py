import structlog

from pygmy_rest.core.modules.relationship.models import FriendRequest, FriendRequestView
from pygmy_rest.core.modules.relationship.repository import FriendshipRepo, RequestRepo
from pygmy_rest.core.modules.relay.models import RelayEvent, friend_event, request_event
from pygmy_rest.core.modules.relay.service import Notifier
from pygmy_rest.core.modules.user.repository import UserRepo
from pygmy_rest.errors import (
    AlreadyFriendsError,
    CannotSendRequestToSelfError,
    FriendNotFoundError,
    RequestAlreadySentError,
    RequestNotFoundError,
    UserNotFoundError,
)

logger = structlog.get_logger(__name__)


class RelationshipService:
    """Friend request / friendship state machine for unordered user pairs.

    A pair is in exactly one of: no relation, pending request, friends.
    Uniqueness is enforced by the storage layer (unique pair index on
    requests, canonical single-row friendship edges); the checks here only
    produce friendlier errors in the common case.
    """

    def __init__(self, users: UserRepo, requests: RequestRepo, friendships: FriendshipRepo, notifier: Notifier) -> None:
        self._users = users
        self._requests = requests
        self._friendships = friendships
        self._notifier = notifier

    async def list_friends(self, user_id: str) -> list[str]:
        return await self._friendships.list_friend_ids(user_id)

    async def list_requests(self, user_id: str) -> list[FriendRequestView]:
        requests = await self._requests.list_for_user(user_id)
        return [FriendRequestView.from_domain(request, user_id) for request in requests]

    async def create_request(self, from_user_id: str, to_user_id: str) -> FriendRequest:
        """Send a friend request from one user to another."""
        if from_user_id == to_user_id:
            raise CannotSendRequestToSelfError

        if await self._users.get(to_user_id) is None:
            raise UserNotFoundError

        if await self._friendships.exists(from_user_id, to_user_id):
            raise AlreadyFriendsError

        if await self._requests.find_between(from_user_id, to_user_id) is not None:
            raise RequestAlreadySentError

        request = FriendRequest(from_user_id=from_user_id, to_user_id=to_user_id)
        await self._requests.insert(request)
        logger.info("friend_request_created", from_user_id=from_user_id, to_user_id=to_user_id)

        await self._emit_request_event(RelayEvent.REQUEST_CREATE, request)
        return request

    async def respond(self, user_id: str, from_user_id: str, accept: bool) -> None:
        """Accept or ignore the incoming request sent to user_id by from_user_id."""
        request = await self._requests.find(from_user_id, user_id)
        if request is None:
            raise RequestNotFoundError

        # Deleting is the claim: only one concurrent responder gets past it
        if not await self._requests.delete(request.id):
            raise RequestNotFoundError
        await self._emit_request_event(RelayEvent.REQUEST_DELETE, request)

        if not accept:
            logger.info("friend_request_ignored", from_user_id=from_user_id, to_user_id=user_id)
            return

        await self._friendships.add(user_id, from_user_id)
        logger.info("friendship_created", user_id=user_id, friend_id=from_user_id)
        await self._notifier.emit(friend_event(RelayEvent.FRIEND_CREATE, user_id, from_user_id))
        await self._notifier.emit(friend_event(RelayEvent.FRIEND_CREATE, from_user_id, user_id))

    async def cancel(self, user_id: str, to_user_id: str) -> None:
        """Withdraw the outgoing request user_id sent to to_user_id."""
        request = await self._requests.find(user_id, to_user_id)
        if request is None or not await self._requests.delete(request.id):
            raise RequestNotFoundError

        logger.info("friend_request_cancelled", from_user_id=user_id, to_user_id=to_user_id)
        await self._emit_request_event(RelayEvent.REQUEST_DELETE, request)

    async def unfriend(self, user_id: str, friend_id: str) -> None:
        """Remove the friendship between user_id and friend_id."""
        if await self._users.get(user_id) is None or await self._users.get(friend_id) is None:
            raise FriendNotFoundError

        if not await self._friendships.remove(user_id, friend_id):
            raise FriendNotFoundError

        logger.info("friendship_deleted", user_id=user_id, friend_id=friend_id)
        await self._notifier.emit(friend_event(RelayEvent.FRIEND_DELETE, user_id, friend_id))
        await self._notifier.emit(friend_event(RelayEvent.FRIEND_DELETE, friend_id, user_id))

    async def remove_all_for_user(self, user_id: str) -> None:
        """Drop every request and friendship of a user that is being deleted."""
        for request in await self._requests.delete_all_for_user(user_id):
            other_id = request.to_user_id if request.from_user_id == user_id else request.from_user_id
            await self._notifier.emit(request_event(RelayEvent.REQUEST_DELETE, other_id, request))

        for friend_id in await self._friendships.remove_all_for_user(user_id):
            await self._notifier.emit(friend_event(RelayEvent.FRIEND_DELETE, friend_id, user_id))

    async def _emit_request_event(self, event: RelayEvent, request: FriendRequest) -> None:
        """Notify both parties, each from their own perspective."""
        await self._notifier.emit(request_event(event, request.from_user_id, request))
        await self._notifier.emit(request_event(event, request.to_user_id, request))
