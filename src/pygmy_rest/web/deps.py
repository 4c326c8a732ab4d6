from typing import Annotated, cast

from fastapi import Depends, Request
from fastapi.security import APIKeyHeader

from pygmy_rest.app import App
from pygmy_rest.core.modules.auth.models import AuthContext

# Security scheme; the raw header is parsed by the auth guard so that
# malformed and non-Bearer values get their own errors
authorization_scheme = APIKeyHeader(
    name="Authorization", scheme_name="BearerAuth", description="Bearer session token", auto_error=False
)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_auth(
    app: Annotated[App, Depends(get_app)],
    authorization: Annotated[str | None, Depends(authorization_scheme)] = None,
) -> AuthContext:
    """Authenticate the request from its Authorization header."""
    return await app.authenticate(authorization)


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
AuthDep = Annotated[AuthContext, Depends(get_auth)]
