"""Correlation ID middleware for request tracking."""

import re
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp
from structlog.contextvars import bind_contextvars, clear_contextvars

CORRELATION_HEADER = "X-Request-ID"

# Client-supplied ids are echoed into headers and logs
_CORRELATION_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,128}$")


class CorrelationMiddleware(BaseHTTPMiddleware):
    """
    Middleware to handle request correlation IDs.

    Reuses the caller's ``X-Request-ID`` when it is well formed, otherwise
    assigns a UUID, and exposes it through request state, the response
    header and the structured logging context.
    """

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)

    def _validate_correlation_id(self, value: str | None) -> bool:
        """Check a client-supplied correlation ID."""
        return bool(value) and bool(_CORRELATION_ID_PATTERN.match(value or ""))

    def _get_correlation_id(self, request: Request) -> str:
        """Get the caller's correlation ID or generate a new one."""
        header_value = request.headers.get(CORRELATION_HEADER, "")
        if self._validate_correlation_id(header_value):
            return header_value
        return str(uuid.uuid4())

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """
        Process the request/response cycle.

        Args:
        ----
            request: The incoming request
            call_next: The next handler in the middleware chain

        Returns:
        -------
            The response from downstream handlers
        """
        clear_contextvars()

        correlation_id = self._get_correlation_id(request)
        bind_contextvars(correlation_id=correlation_id)
        request.state.correlation_id = correlation_id

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response
