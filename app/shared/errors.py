"""
Error taxonomy and standardized error responses for the Memora ingestion core.

Exceptions raised inside the core all derive from MemoraError so that the
HTTP boundary and the background dispatcher can tell domain failures apart
from programmer errors.

Usage:
    from app.shared.errors import (
        NotFound, ProviderUnavailable, ValidationError,
        exception_response, internal_error,
    )

    # In a gateway:
    raise ProviderUnavailable("deepgram", "Transcription request timed out")

    # In an exception handler:
    return exception_response(exc, correlation_id=request.state.correlation_id)
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel
from fastapi import Request
from fastapi.responses import JSONResponse


class ErrorCode(str, Enum):
    """Standard error codes used across the service."""

    # Client errors (4xx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"

    # Server errors (5xx)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"

    # Domain-specific
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


# =============================================================================
# EXCEPTIONS
# =============================================================================


class MemoraError(Exception):
    """Base class for every failure the ingestion core reports on purpose."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(MemoraError):
    """Bad input from the caller (empty URL, empty query, unsupported file)."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 400


class FragmentLimitExceeded(ValidationError):
    """Content chunks into more fragments than the point-ID scheme can address."""

    def __init__(self, source_id: int, fragment_count: int, limit: int):
        super().__init__(
            f"Source {source_id} produced {fragment_count} fragments; "
            f"at most {limit} can be indexed per source",
            details={"source_id": source_id, "fragment_count": fragment_count, "limit": limit},
        )


class NotFound(MemoraError):
    """A Source, container, bot or recording does not exist."""

    code = ErrorCode.NOT_FOUND
    status_code = 404

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        resource_id: Optional[Any] = None,
    ):
        details = {}
        if resource_type:
            details["resource_type"] = resource_type
        if resource_id is not None:
            details["resource_id"] = str(resource_id)
        super().__init__(message, details=details)
        self.resource_type = resource_type
        self.resource_id = resource_id


class RecordingNotAvailable(NotFound):
    """A capture bot has no downloadable audio or video recording."""

    def __init__(self, bot_id: str, reason: str = "no audio or video recording found"):
        super().__init__(
            f"Recording for bot {bot_id} is not available: {reason}",
            resource_type="recording",
            resource_id=bot_id,
        )


class ProviderUnavailable(MemoraError):
    """An external dependency is down, rate-limited or answered with an error."""

    code = ErrorCode.SERVICE_UNAVAILABLE
    status_code = 503

    def __init__(self, provider: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(f"{provider}: {message}", details={"provider": provider, **(details or {})})
        self.provider = provider


class CaptureTimeout(MemoraError):
    """A capture bot did not reach a terminal state within the allowed wait."""

    code = ErrorCode.TIMEOUT
    status_code = 504


class ConfigurationError(MemoraError):
    """The service is configured inconsistently (e.g. vector dimensionality drift)."""

    code = ErrorCode.CONFIGURATION_ERROR
    status_code = 500


# =============================================================================
# RESPONSES
# =============================================================================


class ErrorDetail(BaseModel):
    """Structured error detail model."""
    code: str
    message: str
    details: Optional[dict[str, Any]] = None
    correlation_id: Optional[str] = None


def get_correlation_id(request: Optional[Request] = None) -> Optional[str]:
    """
    Extract correlation ID from request state.

    Args:
        request: FastAPI request object (optional)

    Returns:
        Correlation ID string or None if not available
    """
    if request is None:
        return None
    return getattr(request.state, "correlation_id", None)


def error_response(
    code: ErrorCode,
    message: str,
    status_code: int,
    details: Optional[dict[str, Any]] = None,
    correlation_id: Optional[str] = None,
) -> JSONResponse:
    """
    Create a standardized JSON error response.

    Args:
        code: Error code from ErrorCode enum
        message: Human-readable error message
        status_code: HTTP status code
        details: Optional additional error details
        correlation_id: Request correlation ID for tracing

    Returns:
        JSONResponse with standardized error format
    """
    error_detail = ErrorDetail(
        code=code.value,
        message=message,
        details=details,
        correlation_id=correlation_id,
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": error_detail.model_dump(exclude_none=True)},
    )


def internal_error(
    message: str = "Internal server error",
    correlation_id: Optional[str] = None,
) -> JSONResponse:
    """
    Create a 500 internal error response.

    Note: Be careful not to expose sensitive internal details to clients.
    """
    return error_response(
        code=ErrorCode.INTERNAL_ERROR,
        message=message,
        status_code=500,
        correlation_id=correlation_id,
    )


def exception_response(
    exc: MemoraError,
    correlation_id: Optional[str] = None,
) -> JSONResponse:
    """
    Render a MemoraError as a standardized JSON error response.

    The status code and error code come from the exception class, so a
    NotFound becomes a 404 and a ProviderUnavailable a 503.
    """
    return error_response(
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details or None,
        correlation_id=correlation_id,
    )
