import structlog
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from annotab.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


def create_json_error_response(status_code: int, message: str) -> JSONResponse:
    """Create a failure envelope in the same shape as successful action responses."""
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    if isinstance(exc, NotFoundError):
        status_code = 404
    elif isinstance(exc, ValidationError):
        status_code = 400
    else:
        # Default for any other UserError subclass
        status_code = 400

    return create_json_error_response(status_code=status_code, message=str(exc))


async def request_validation_error_handler(_: Request, exc: Exception) -> Response:
    """Handle request bodies that are not a JSON action envelope."""
    message = "Invalid request body"
    if isinstance(exc, RequestValidationError) and exc.errors():
        message = f"Invalid request body: {exc.errors()[0].get('msg', '')}"
    return create_json_error_response(status_code=400, message=message)


async def config_error_handler(_: Request, exc: Exception) -> Response:
    """Handle missing deployment settings (500)."""
    logger.error("config_error", error=str(exc))
    return create_json_error_response(status_code=500, message=str(exc))


async def upstream_error_handler(_: Request, exc: Exception) -> Response:
    """Handle record store failures, passing the upstream message through (502)."""
    logger.warning("upstream_error", error=str(exc))
    return create_json_error_response(status_code=502, message=str(exc))


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("unexpected_error", error=str(exc))
    return create_json_error_response(status_code=500, message="An unexpected error occurred.")
