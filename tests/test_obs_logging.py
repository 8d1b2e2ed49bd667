"""Tests for sambung.observability.logging."""

from __future__ import annotations

import io
import json
import logging
import sys
from collections.abc import Iterator

import pytest

from sambung.observability.logging import (
    JsonFormatter,
    LogContext,
    RedactingFilter,
    TextFormatter,
    _configure_from_env,
    configure_logging,
    current_context,
    get_logger,
    redact,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging() -> Iterator[None]:
    reset_logging()
    yield
    reset_logging()


def _record(msg: str = "hello", level: int = logging.INFO, *args: object) -> logging.LogRecord:
    return logging.LogRecord("sambung.models.gateway", level, __file__, 1, msg, args, None)


# ---------------------------------------------------------------------------
# get_logger
# ---------------------------------------------------------------------------


class TestGetLogger:
    def test_prefixes_name(self) -> None:
        assert get_logger("gateway").name == "sambung.gateway"

    def test_keeps_prefixed_name(self) -> None:
        assert get_logger("sambung.models").name == "sambung.models"
        assert get_logger("sambung").name == "sambung"


# ---------------------------------------------------------------------------
# Redaction
# ---------------------------------------------------------------------------


class TestRedact:
    @pytest.mark.parametrize(
        "secret",
        [
            "sk-proj-abcdefghijklmnop",
            "sk-ant-api03-abcdefghijkl",
            "gsk_abcdefghijklmnop",
            "AIzaSyA1234567890abcdefghijk",
            "Bearer abcdefghijklmnop",
        ],
    )
    def test_secrets_replaced(self, secret: str) -> None:
        result = redact(f"Incorrect API key provided: {secret}.")
        assert secret not in result
        assert "[redacted]" in result

    def test_plain_text_untouched(self) -> None:
        text = "Model 'gpt-4o-mini' was not found (task-12345)."
        assert redact(text) == text

    def test_filter_rewrites_record(self) -> None:
        record = _record("key=%s", logging.WARNING, "sk-abcdefghijklmnop")
        assert RedactingFilter().filter(record)
        assert record.getMessage() == "key=[redacted]"
        assert record.args is None

    def test_filter_leaves_clean_record(self) -> None:
        record = _record("%d messages", logging.INFO, 3)
        RedactingFilter().filter(record)
        assert record.args == (3,)


# ---------------------------------------------------------------------------
# LogContext
# ---------------------------------------------------------------------------


class TestLogContext:
    def test_binds_and_restores(self) -> None:
        assert current_context() == {}
        with LogContext(provider="openai"):
            assert current_context() == {"provider": "openai"}
            with LogContext(user_id="u-1"):
                assert current_context() == {"provider": "openai", "user_id": "u-1"}
            assert current_context() == {"provider": "openai"}
        assert current_context() == {}

    def test_inner_overrides(self) -> None:
        with LogContext(model="a"), LogContext(model="b"):
            assert current_context()["model"] == "b"


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


class TestFormatters:
    def test_text_layout(self) -> None:
        with LogContext(provider="groq"):
            line = TextFormatter(color=False).format(_record("stream requested"))
        assert " I models.gateway provider=groq ▸ stream requested" in line
        assert "\033[" not in line

    def test_text_color(self) -> None:
        line = TextFormatter(color=True).format(_record("x", logging.ERROR))
        assert "\033[31m" in line

    def test_json_fields(self) -> None:
        with LogContext(user_id="u-1", message="ignored"):
            entry = json.loads(JsonFormatter().format(_record("done")))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "sambung.models.gateway"
        assert entry["message"] == "done"
        assert entry["user_id"] == "u-1"

    def test_context_values_redacted(self) -> None:
        with LogContext(api_key="sk-abcdefghijklmnop"):
            line = TextFormatter(color=False).format(_record("x"))
        assert "sk-abcdefghijklmnop" not in line

    def test_exception_text_redacted(self) -> None:
        try:
            raise RuntimeError("bad key sk-abcdefghijklmnop")
        except RuntimeError:
            record = logging.LogRecord(
                "sambung", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
            )
        entry = json.loads(JsonFormatter().format(record))
        assert "sk-abcdefghijklmnop" not in entry["exception"]
        assert "RuntimeError" in entry["exception"]


# ---------------------------------------------------------------------------
# configure_logging
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    def test_writes_redacted_output(self) -> None:
        buf = io.StringIO()
        configure_logging("INFO", stream=buf)
        get_logger("test").info("using key %s", "sk-abcdefghijklmnop")
        output = buf.getvalue()
        assert "using key [redacted]" in output
        assert "sk-abcdefghijklmnop" not in output

    def test_idempotent_unless_forced(self) -> None:
        first, second = io.StringIO(), io.StringIO()
        configure_logging("INFO", stream=first)
        configure_logging("INFO", stream=second)
        get_logger("test").info("one")
        assert "one" in first.getvalue()
        assert second.getvalue() == ""

        configure_logging("INFO", "json", stream=second, force=True)
        get_logger("test").info("two")
        assert json.loads(second.getvalue())["message"] == "two"
        assert len(logging.getLogger("sambung").handlers) == 1

    def test_level_respected(self) -> None:
        buf = io.StringIO()
        configure_logging("WARNING", stream=buf)
        get_logger("test").info("hidden")
        assert buf.getvalue() == ""


class TestConfigureFromEnv:
    def test_debug_flag(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SAMBUNG_DEBUG", "1")
        monkeypatch.setenv("SAMBUNG_LOG_LEVEL", "ERROR")
        _configure_from_env()
        root = logging.getLogger("sambung")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1

    def test_invalid_level_falls_back(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SAMBUNG_DEBUG", raising=False)
        monkeypatch.setenv("SAMBUNG_LOG_LEVEL", "chatty")
        _configure_from_env()
        assert logging.getLogger("sambung").level == logging.WARNING

    def test_json_format(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SAMBUNG_DEBUG", raising=False)
        monkeypatch.setenv("SAMBUNG_LOG_LEVEL", "info")
        monkeypatch.setenv("SAMBUNG_LOG_FORMAT", "json")
        _configure_from_env()
        (handler,) = logging.getLogger("sambung").handlers
        assert isinstance(handler.formatter, JsonFormatter)

    def test_no_handler_without_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SAMBUNG_DEBUG", raising=False)
        monkeypatch.delenv("SAMBUNG_LOG_LEVEL", raising=False)
        _configure_from_env()
        assert logging.getLogger("sambung").handlers == []
