"""Tests for the error taxonomy, Result and error responses."""

import json

import pytest

from app.shared.errors import (
    CaptureTimeout,
    ConfigurationError,
    ErrorCode,
    FragmentLimitExceeded,
    MemoraError,
    NotFound,
    ProviderUnavailable,
    RecordingNotAvailable,
    ValidationError,
    exception_response,
    internal_error,
)
from app.shared.result import Result


@pytest.mark.parametrize("error,status,code", [
    (ValidationError("bad"), 400, ErrorCode.VALIDATION_ERROR),
    (FragmentLimitExceeded(1, 10_001, 10_000), 400, ErrorCode.VALIDATION_ERROR),
    (NotFound("missing"), 404, ErrorCode.NOT_FOUND),
    (RecordingNotAvailable("bot-1"), 404, ErrorCode.NOT_FOUND),
    (ProviderUnavailable("qdrant", "down"), 503, ErrorCode.SERVICE_UNAVAILABLE),
    (CaptureTimeout("too slow"), 504, ErrorCode.TIMEOUT),
    (ConfigurationError("drift"), 500, ErrorCode.CONFIGURATION_ERROR),
])
def test_status_and_code(error, status, code):
    assert isinstance(error, MemoraError)
    assert error.status_code == status
    assert error.code == code


def test_provider_unavailable_names_the_provider():
    error = ProviderUnavailable("deepgram", "HTTP 500", details={"status_code": 500})

    assert str(error) == "deepgram: HTTP 500"
    assert error.provider == "deepgram"
    assert error.details == {"provider": "deepgram", "status_code": 500}


def test_not_found_details():
    error = NotFound("Source 3 not found", resource_type="source", resource_id=3)
    assert error.details == {"resource_type": "source", "resource_id": "3"}


def test_fragment_limit_details():
    error = FragmentLimitExceeded(42, 12_000, 10_000)
    assert error.details == {"source_id": 42, "fragment_count": 12_000, "limit": 10_000}
    assert "12000 fragments" in error.message


def test_exception_response():
    response = exception_response(NotFound("Source 3 not found", resource_type="source"), correlation_id="abc")

    assert response.status_code == 404
    assert json.loads(response.body) == {
        "error": {
            "code": "NOT_FOUND",
            "message": "Source 3 not found",
            "details": {"resource_type": "source"},
            "correlation_id": "abc",
        }
    }


def test_helper_responses_omit_empty_fields():
    assert json.loads(exception_response(ValidationError("bad input")).body) == {"error": {"code": "VALIDATION_ERROR", "message": "bad input"}}
    assert internal_error().status_code == 500


def test_result():
    ok = Result.success(3)
    assert ok.ok and ok.unwrap() == 3

    error = ProviderUnavailable("qdrant", "down")
    failed = Result.failure(error)
    assert not failed.ok
    with pytest.raises(ProviderUnavailable) as exc_info:
        failed.unwrap()
    assert exc_info.value is error
