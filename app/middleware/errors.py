"""Error handling middleware."""

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.status import (
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_500_INTERNAL_SERVER_ERROR,
)
from starlette.types import ASGIApp

from app.core.exceptions import ServiceError
from app.core.logging import get_logger

logger = get_logger()

# Exceptions rendered by FastAPI exception handlers; anything else reaches
# the middleware
HANDLED_EXCEPTIONS: tuple[type[Exception], ...] = (
    RequestValidationError,
    StarletteHTTPException,
    ServiceError,
)


def _format_validation_errors(exc: RequestValidationError) -> str:
    """Flatten request validation errors into one readable line."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg', 'invalid')}")
    return "; ".join(parts) or "Invalid request"


def _get_error_detail(exc: Exception) -> tuple[str, int]:
    """Get error detail and status code from exception."""
    if isinstance(exc, RequestValidationError):
        return _format_validation_errors(exc), HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(exc, StarletteHTTPException):
        return str(exc.detail), exc.status_code

    status_code = getattr(exc, "status_code", HTTP_500_INTERNAL_SERVER_ERROR)
    detail = str(exc.args[0] if exc.args else exc) or exc.__class__.__name__
    return detail, status_code


def _create_error_response(
    error_type: str,
    detail: str,
    status_code: int,
    correlation_id: str | None,
) -> JSONResponse:
    """Create JSON error response with optional correlation ID."""
    response = JSONResponse(
        status_code=status_code,
        content={
            "error": error_type,
            "message": detail,
            "status_code": status_code,
            "correlation_id": correlation_id if correlation_id else "unknown",
        },
        media_type="application/json",
    )
    if correlation_id:
        response.headers["X-Request-ID"] = correlation_id
    return response


def _log_error(
    request: Request,
    error_type: str,
    detail: str,
    status_code: int,
    correlation_id: str | None,
) -> None:
    """Log error details; server errors at error level, client errors at warning."""
    log = logger.warning
    if status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        log = logger.error
    log(
        "request_error",
        error_type=error_type,
        error_message=detail,
        status_code=status_code,
        path=request.url.path,
        method=request.method,
        correlation_id=correlation_id,
    )


async def handle_exception(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle any exception and return a JSON response.

    Args:
    ----
        request: The request that caused the exception
        exc: The exception to handle

    Returns:
    -------
        A JSON response with error details
    """
    correlation_id = getattr(request.state, "correlation_id", None)
    error_type = exc.__class__.__name__
    detail, status_code = _get_error_detail(exc)

    _log_error(request, error_type, detail, status_code, correlation_id)
    return _create_error_response(error_type, detail, status_code, correlation_id)


def register_exception_handlers(app: FastAPI) -> None:
    """Route handled exception types through ``handle_exception``."""
    for exc_type in HANDLED_EXCEPTIONS:
        app.add_exception_handler(exc_type, handle_exception)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware turning unhandled exceptions into consistent error responses."""

    def __init__(self, app: ASGIApp) -> None:
        """
        Initialize middleware.

        Args:
        ----
            app: The ASGI application
        """
        super().__init__(app)

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """
        Process the request/response cycle and handle errors.

        Args:
        ----
            request: The incoming request
            call_next: The next handler in the middleware chain

        Returns:
        -------
            The response from downstream handlers or error response
        """
        try:
            return await call_next(request)
        except Exception as exc:
            return await handle_exception(request, exc)
