"""Tests for result, stream event and error types."""

from __future__ import annotations

import pytest
from pydantic import TypeAdapter, ValidationError

import sambung
from sambung.models.types import (
    AppError,
    DeltaEvent,
    ErrorEvent,
    ErrorKind,
    FinishEvent,
    StreamChunk,
    StreamEvent,
)
from sambung.types import SambungError, Usage


class TestErrorKind:
    @pytest.mark.parametrize(
        ("kind", "status"),
        [
            (ErrorKind.CONFIGURATION, 500),
            (ErrorKind.INVALID_PARAMETER, 400),
            (ErrorKind.AUTHENTICATION_FAILED, 401),
            (ErrorKind.RATE_LIMITED, 429),
            (ErrorKind.MODEL_NOT_FOUND, 404),
            (ErrorKind.CONTEXT_EXCEEDED, 400),
            (ErrorKind.CONTENT_POLICY_VIOLATION, 400),
            (ErrorKind.UNAVAILABLE, 503),
            (ErrorKind.UNKNOWN, 500),
        ],
    )
    def test_status_codes(self, kind: ErrorKind, status: int) -> None:
        assert kind.status_code == status


class TestAppError:
    def test_info(self) -> None:
        err = AppError(ErrorKind.RATE_LIMITED, "slow down", details={"retry_after_seconds": 5})
        info = err.info
        assert info.kind is ErrorKind.RATE_LIMITED
        assert info.status_code == 429
        assert info.details == {"retry_after_seconds": 5}
        assert info.model_dump(mode="json")["kind"] == "rate_limited"

    def test_is_sambung_error(self) -> None:
        err = AppError(ErrorKind.UNKNOWN, "x")
        assert isinstance(err, SambungError)
        assert str(err) == "x"
        assert err.details == {}

    def test_details_copied(self) -> None:
        details = {"a": 1}
        err = AppError(ErrorKind.UNKNOWN, "x", details=details)
        details["b"] = 2
        assert err.details == {"a": 1}


class TestStreamEvents:
    def test_discriminated_union(self) -> None:
        adapter = TypeAdapter(StreamEvent)
        assert isinstance(adapter.validate_python({"type": "delta", "text": "hi"}), DeltaEvent)
        finish = adapter.validate_python({"type": "finish", "finish_reason": "length"})
        assert isinstance(finish, FinishEvent)
        assert finish.usage == Usage()
        error = adapter.validate_python(
            {"type": "error", "error": {"kind": "unknown", "message": "oops"}}
        )
        assert isinstance(error, ErrorEvent)

    def test_invalid_finish_reason(self) -> None:
        with pytest.raises(ValidationError):
            StreamChunk(finish_reason="exploded")  # type: ignore[arg-type]

    def test_events_frozen(self) -> None:
        event = DeltaEvent(text="a")
        with pytest.raises(ValidationError):
            event.text = "b"  # type: ignore[misc]


class TestPackageExports:
    def test_top_level(self) -> None:
        assert sambung.__version__ == "0.1.0"
        assert sambung.ChatGateway is not None
        assert sambung.configure is not None
