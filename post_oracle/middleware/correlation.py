"""Correlation ID middleware for request tracking."""

import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from structlog.contextvars import bind_contextvars, clear_contextvars

HEADER = "X-Request-ID"


def valid_correlation_id(value: str | None) -> bool:
    """
    Check whether a client-supplied correlation ID is usable.

    Args:
    ----
        value: Header value

    Returns:
    -------
        True for UUIDs and ``test-`` prefixed IDs
    """
    if not value:
        return False
    if value.startswith("test-"):
        return True
    try:
        uuid.UUID(value)
    except (ValueError, AttributeError, TypeError):
        return False
    return True


class CorrelationMiddleware(BaseHTTPMiddleware):
    """
    Assigns a correlation ID to each intake request.

    The ID is stored on request state, echoed in the response header and
    bound to the structured logging context.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        clear_contextvars()

        header_value = request.headers.get(HEADER, "")
        correlation_id = (
            header_value if valid_correlation_id(header_value) else str(uuid.uuid4())
        )

        bind_contextvars(correlation_id=correlation_id)
        request.state.correlation_id = correlation_id

        response = await call_next(request)
        response.headers[HEADER] = correlation_id
        return response
