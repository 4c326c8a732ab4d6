from fastapi import APIRouter
from pydantic import BaseModel, EmailStr, Field

from pygmy_rest.core.modules.session.models import LoginResult, SessionView
from pygmy_rest.web.deps import AppDep, AuthDep
from pygmy_rest.web.openapi import ErrorResponse, ValidationErrorResponse

router = APIRouter(tags=["sessions"])


class LoginRequest(BaseModel):
    """Authentication request."""

    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., description="Password")


@router.get(
    "/sessions",
    summary="List sessions",
    description="Fetch a list of the authorized user's active sessions.",
    operation_id="listSessions",
    responses={
        200: {"description": "List of sessions"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_sessions(app: AppDep, auth: AuthDep) -> list[SessionView]:
    return await app.get_sessions(auth)


@router.post(
    "/sessions",
    summary="Log in",
    description="Create a new session. The returned token authenticates both the REST API and the gateway.",
    operation_id="login",
    status_code=201,
    responses={
        201: {"description": "Session created"},
        400: {"model": ValidationErrorResponse, "description": "Invalid request"},
        401: {"model": ErrorResponse, "description": "Invalid email or password"},
    },
)
async def login(login_data: LoginRequest, app: AppDep) -> LoginResult:
    return await app.login(login_data.email, login_data.password)


@router.delete(
    "/sessions",
    summary="Log out everywhere",
    description="Delete (log out) all sessions, including the current session in use.",
    operation_id="logoutAll",
    status_code=204,
    responses={
        204: {"description": "All sessions deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def logout_all(app: AppDep, auth: AuthDep) -> None:
    await app.logout_all(auth)


@router.delete(
    "/sessions/{session_id}",
    summary="Log out a session",
    description="Delete (log out) a specific session by ID.",
    operation_id="logout",
    status_code=204,
    responses={
        204: {"description": "Session deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Session not found (invalid or expired)"},
    },
)
async def logout(session_id: str, app: AppDep, auth: AuthDep) -> None:
    await app.logout(auth, session_id)
