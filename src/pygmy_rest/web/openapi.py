from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field

API_TITLE = "Pygmy REST API"
API_VERSION = "0.1.0"


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title=API_TITLE,
            version=API_VERSION,
            summary="Users, sessions and friendships of the Pygmy platform",
            routes=app.routes,
        )

        # Present the Authorization header as a proper bearer scheme
        openapi_schema.setdefault("components", {}).setdefault("securitySchemes", {})["BearerAuth"] = {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": "Session token returned by POST /sessions",
        }

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str = Field(..., description="Human-readable error message")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"error": "Invalid token"},
                {"error": "Friend request already sent"},
                {"error": "User not found"},
            ]
        }
    }


class ValidationErrorResponse(BaseModel):
    """Request schema violations."""

    errors: list[str] = Field(..., description='One "<path>": <message> entry per violation')
