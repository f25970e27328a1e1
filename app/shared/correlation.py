"""
Correlation IDs for request and background-task tracing.

Every HTTP request gets an ID (taken from X-Correlation-ID / X-Request-ID if
the caller sent one). Background ingestion tasks inherit the ID of the request
that dispatched them, so a transcription failure logged minutes later can be
tied back to the upload that triggered it.

Usage:
    app.add_middleware(CorrelationMiddleware)

    with CorrelationContext(parent_id):
        await pipeline.run(...)
"""

import contextvars
import uuid
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

_current: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("memora_correlation_id", default=None)

# First header present wins
INCOMING_HEADERS = ("X-Correlation-ID", "X-Request-ID")
RESPONSE_HEADER = "X-Correlation-ID"


def get_correlation_id() -> Optional[str]:
    """Correlation ID of the current request or task, if any."""
    return _current.get()


def generate_correlation_id() -> str:
    """Short random ID, unique enough to grep logs by."""
    return uuid.uuid4().hex[:8]


def _incoming_id(request: Request) -> Optional[str]:
    for header in INCOMING_HEADERS:
        value = request.headers.get(header)
        if value:
            return value
    return None


class CorrelationMiddleware(BaseHTTPMiddleware):
    """
    Attach a correlation ID to each request.

    The ID is stored on request.state (for error responses), in a context
    variable (for logging and task dispatch) and echoed in the response headers.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = _incoming_id(request) or generate_correlation_id()
        request.state.correlation_id = correlation_id

        with CorrelationContext(correlation_id):
            response = await call_next(request)
        response.headers[RESPONSE_HEADER] = correlation_id
        return response


class CorrelationContext:
    """
    Make `correlation_id` current for the duration of a block.

    Example:
        with CorrelationContext("ingest-42") as cid:
            logger.info("Indexing source")  # carries correlation_id=ingest-42
    """

    def __init__(self, correlation_id: Optional[str] = None):
        self.correlation_id = correlation_id or generate_correlation_id()
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> str:
        self._token = _current.set(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _current.reset(self._token)
            self._token = None
