import structlog
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from pygmy_rest.errors import AuthenticationError, NotFoundError, ValidationError

logger = structlog.get_logger(__name__)

SERVER_ERROR_MESSAGE = "Server Error"


def create_json_error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def status_code_for(exc: Exception) -> int:
    if isinstance(exc, AuthenticationError):
        return 401
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, ValidationError):
        return 400
    # Default for any other UserError subclass
    return 400


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    return create_json_error_response(status_code=status_code_for(exc), message=str(exc))


async def request_validation_error_handler(_: Request, exc: RequestValidationError) -> Response:
    """Report request schema violations as a list of messages."""
    errors = []
    for error in exc.errors():
        # Drop the leading location ("body", "path", ...) from the path
        path = ".".join(str(part) for part in error["loc"][1:])
        errors.append(f'"{path}": {error["msg"]}')
    return JSONResponse(status_code=400, content={"errors": errors})


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500), including ServerError."""
    logger.exception("unexpected_error", error=str(exc), exc_info=exc)
    return create_json_error_response(status_code=500, message=SERVER_ERROR_MESSAGE)
