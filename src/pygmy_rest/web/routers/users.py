from fastapi import APIRouter, Response
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from pygmy_rest.core.modules.relationship.models import FriendRequestView
from pygmy_rest.core.modules.user.models import UserSelfView, UserView
from pygmy_rest.web.deps import AppDep, AuthDep
from pygmy_rest.web.openapi import ErrorResponse

router = APIRouter(tags=["users"])


class CreateUserRequest(BaseModel):
    """Request to register a new user."""

    email: EmailStr = Field(..., description="Email address")
    username: str = Field(
        ..., description="Desired username. Usernames are unique and case insensitive (all lowercase)."
    )
    password: str = Field(..., description="Password (8 to 72 characters)")


class CreateUserResponse(BaseModel):
    """User created successfully."""

    id: str = Field(..., description="User ID")


class UpdateUserRequest(BaseModel):
    """Partial update of the authorized user."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    email: EmailStr | None = Field(None, description='New email address, requires "currentPassword" field')
    username: str | None = Field(None, description="New desired username")
    new_password: str | None = Field(None, description='New password, requires "currentPassword" field')
    current_password: str | None = Field(
        None, description="Current password, required to change email address or password"
    )


class CreateFriendRequestRequest(BaseModel):
    """Request to send a friend request."""

    username: str = Field(..., min_length=1, description="Username of user to send friend request to")


class RespondFriendRequestRequest(BaseModel):
    """Response to an incoming friend request."""

    accept: bool = Field(..., description="Whether to accept the friend request or not")


@router.post(
    "/users",
    summary="Register",
    description="Create a new user.",
    operation_id="createUser",
    status_code=201,
    responses={
        201: {"description": "User created"},
        400: {"model": ErrorResponse, "description": "Email or username in use, or invalid input"},
    },
)
async def create_user(create_data: CreateUserRequest, app: AppDep) -> CreateUserResponse:
    user_id = await app.create_user(create_data.email, create_data.username, create_data.password)
    return CreateUserResponse(id=user_id)


@router.get(
    "/users/@me",
    summary="Get current user",
    description="Fetch the authorized user.",
    operation_id="getCurrentUser",
    responses={
        200: {"description": "User object"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_current_user(app: AppDep, auth: AuthDep) -> UserSelfView:
    return await app.get_current_user(auth)


@router.patch(
    "/users/@me",
    summary="Update current user",
    description=(
        "Update the authorized user's details. To change the email address or password, "
        'the current password is required in the "currentPassword" field.'
    ),
    operation_id="updateCurrentUser",
    response_model=UserSelfView,
    responses={
        200: {"description": "User updated successfully"},
        304: {"description": "No changes saved"},
        400: {"model": ErrorResponse, "description": "Request failed"},
        401: {"model": ErrorResponse, "description": "Not authenticated or invalid current password"},
    },
)
async def update_current_user(update_data: UpdateUserRequest, app: AppDep, auth: AuthDep) -> UserSelfView | Response:
    user = await app.update_current_user(
        auth,
        email=update_data.email,
        username=update_data.username,
        new_password=update_data.new_password,
        current_password=update_data.current_password,
    )
    if user is None:
        return Response(status_code=304)
    return user


@router.delete(
    "/users/@me",
    summary="Delete current user",
    description="Delete the authorized user. This process is irreversible!",
    operation_id="deleteCurrentUser",
    status_code=204,
    responses={
        204: {"description": "User deleted successfully"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def delete_current_user(app: AppDep, auth: AuthDep) -> None:
    await app.delete_current_user(auth)


@router.get(
    "/users/@me/friends",
    summary="List friends",
    description="Fetch the user IDs of the authorized user's friends.",
    operation_id="listFriends",
    responses={
        200: {"description": "Array of user IDs"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_friends(app: AppDep, auth: AuthDep) -> list[str]:
    return await app.get_friends(auth)


@router.delete(
    "/users/@me/friends/{user_id}",
    summary="Remove friend",
    description="Remove a user from the authorized user's friends, on both sides.",
    operation_id="removeFriend",
    status_code=204,
    responses={
        204: {"description": "Friend removed"},
        400: {"model": ErrorResponse, "description": "Friend not found"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def remove_friend(user_id: str, app: AppDep, auth: AuthDep) -> None:
    await app.remove_friend(auth, user_id)


@router.get(
    "/users/@me/requests",
    summary="List friend requests",
    description="Fetch the authorized user's incoming and outgoing friend requests.",
    operation_id="listFriendRequests",
    responses={
        200: {"description": "Array of friend request objects"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_friend_requests(app: AppDep, auth: AuthDep) -> list[FriendRequestView]:
    return await app.get_friend_requests(auth)


@router.post(
    "/users/@me/requests",
    summary="Send friend request",
    description="Send a friend request to a user, by username.",
    operation_id="sendFriendRequest",
    status_code=201,
    responses={
        201: {"description": "Friend request sent"},
        400: {"model": ErrorResponse, "description": "Request already sent, already friends, or sent to self"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def send_friend_request(request: CreateFriendRequestRequest, app: AppDep, auth: AuthDep) -> FriendRequestView:
    return await app.send_friend_request(auth, request.username)


@router.patch(
    "/users/@me/requests/{user_id}",
    summary="Accept or ignore friend request",
    description="Respond to the incoming friend request sent by the given user.",
    operation_id="respondFriendRequest",
    status_code=204,
    responses={
        204: {"description": "Friend request accepted or ignored"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Friend request not found"},
    },
)
async def respond_friend_request(
    user_id: str, request: RespondFriendRequestRequest, app: AppDep, auth: AuthDep
) -> None:
    await app.respond_to_friend_request(auth, user_id, request.accept)


@router.delete(
    "/users/@me/requests/{user_id}",
    summary="Cancel friend request",
    description="Cancel the outgoing friend request sent to the given user.",
    operation_id="cancelFriendRequest",
    status_code=204,
    responses={
        204: {"description": "Friend request cancelled"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Friend request not found"},
    },
)
async def cancel_friend_request(user_id: str, app: AppDep, auth: AuthDep) -> None:
    await app.cancel_friend_request(auth, user_id)


@router.get(
    "/users/{user_id}",
    summary="Get user",
    description="Fetch the public profile of a user.",
    operation_id="getUser",
    responses={
        200: {"description": "User object"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def get_user(user_id: str, app: AppDep, auth: AuthDep) -> UserView:
    return await app.get_user(auth, user_id)

