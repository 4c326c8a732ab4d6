from pygmy_rest.web.routers.sessions import router as sessions_router
from pygmy_rest.web.routers.users import router as users_router

__all__ = [
    "sessions_router",
    "users_router",
]
