"""Structured logging for Sambung, built on stdlib ``logging``.

Everything logs under the ``sambung`` namespace. Handlers installed here
carry a ``RedactingFilter`` because this layer handles user API keys and
provider error messages sometimes echo them back.

Usage::

    from sambung.observability.logging import get_logger, configure_logging, LogContext

    log = get_logger("gateway")        # -> sambung.gateway
    configure_logging(level="DEBUG")   # idempotent
    with LogContext(user_id="u-1", provider="anthropic"):
        log.info("streaming")          # ... user_id=u-1 provider=anthropic ▸ streaming
"""

from __future__ import annotations

import json
import logging
import os
import re
import sys
import threading
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any, TextIO

_PREFIX = "sambung"

# ---------------------------------------------------------------------------
# Request context
# ---------------------------------------------------------------------------

_log_context: ContextVar[dict[str, Any] | None] = ContextVar("_log_context", default=None)


def current_context() -> dict[str, Any]:
    """Return a copy of the key-value pairs bound in the current scope."""
    ctx = _log_context.get()
    return dict(ctx) if ctx else {}


class LogContext:
    """Context manager that binds key-value pairs to all log records in scope.

    Bindings nest: an inner scope sees the outer keys plus its own. Uses
    ``contextvars`` so concurrent requests on one event loop keep separate
    bindings. Do not hold one open across ``yield`` in an async generator;
    the generator may be resumed in a different context.

    Usage::

        with LogContext(user_id="u-1", provider="openai"):
            log.info("request dispatched")
    """

    def __init__(self, **kwargs: Any) -> None:
        self._bindings = kwargs
        self._token: Any = None

    def __enter__(self) -> LogContext:
        merged = current_context()
        merged.update(self._bindings)
        self._token = _log_context.set(merged)
        return self

    def __exit__(self, *_: object) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None


# ---------------------------------------------------------------------------
# Secret redaction
# ---------------------------------------------------------------------------

_SECRET_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bsk-[A-Za-z0-9_\-]{8,}"),  # OpenAI, Anthropic (sk-ant-), OpenRouter (sk-or-)
    re.compile(r"\bgsk_[A-Za-z0-9]{8,}"),  # Groq
    re.compile(r"\bAIza[0-9A-Za-z_\-]{20,}"),  # Google
    re.compile(r"(?i)\bbearer\s+[A-Za-z0-9._\-]{8,}"),
)
_REDACTED = "[redacted]"


def redact(text: str) -> str:
    """Replace anything that looks like a provider API key in *text*."""
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(_REDACTED, text)
    return text


class RedactingFilter(logging.Filter):
    """Scrub API keys from the rendered message; formatters scrub bound context."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True


def _safe_context() -> dict[str, Any]:
    return {k: redact(v) if isinstance(v, str) else v for k, v in current_context().items()}


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------

_COLORS: dict[int, str] = {
    logging.DEBUG: "\033[2m",  # dim
    logging.INFO: "\033[36m",  # cyan
    logging.WARNING: "\033[33m",  # yellow
    logging.ERROR: "\033[31m",  # red
    logging.CRITICAL: "\033[1;31m",  # bold red
}
_RESET = "\033[0m"
_DIM = "\033[2m"


class TextFormatter(logging.Formatter):
    """Compact single-line formatter: ``12:00:01 W models.streaming user_id=u-1 ▸ msg``.

    Args:
        color: Emit ANSI colors. Disable when writing to files.
    """

    def __init__(self, *, color: bool = True) -> None:
        super().__init__()
        self.color = color

    def _paint(self, code: str, text: str) -> str:
        return f"{code}{text}{_RESET}" if self.color and code else text

    def format(self, record: logging.LogRecord) -> str:
        name = record.name.removeprefix(f"{_PREFIX}.")
        head = " ".join(
            (
                self._paint(_DIM, self.formatTime(record, "%H:%M:%S")),
                self._paint(_COLORS.get(record.levelno, ""), f"{record.levelname[0]} {name}"),
            )
        )
        ctx = _safe_context()
        if ctx:
            head += " " + " ".join(f"{k}={v}" for k, v in ctx.items())
        line = f"{head} ▸ {record.getMessage()}"
        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            line += "\n" + redact(record.exc_text)
        return line


class JsonFormatter(logging.Formatter):
    """One JSON object per line; bound context keys appear at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in _safe_context().items():
            entry.setdefault(key, value)
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = redact(self.formatException(record.exc_info))
        return json.dumps(entry, default=str)


def _make_formatter(fmt: str) -> logging.Formatter:
    if fmt == "json":
        return JsonFormatter()
    return TextFormatter()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Return a stdlib ``Logger`` under the ``sambung.`` namespace.

    If *name* does not start with ``sambung.``, it is auto-prefixed.
    """
    if not name.startswith(f"{_PREFIX}.") and name != _PREFIX:
        name = f"{_PREFIX}.{name}"
    return logging.getLogger(name)


_configure_lock = threading.Lock()
_configured = False


def _install_handler(root: logging.Logger, fmt: str, stream: TextIO | None) -> None:
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(_make_formatter(fmt))
    handler.addFilter(RedactingFilter())
    root.addHandler(handler)


def configure_logging(
    level: str | int = "WARNING",
    fmt: str = "text",
    *,
    force: bool = False,
    stream: TextIO | None = None,
) -> None:
    """One-time handler setup on the ``sambung`` root logger.

    Calling twice is a no-op unless *force* is set.

    Args:
        level: Log level name or int (e.g. ``"DEBUG"``, ``logging.INFO``).
        fmt: ``"text"`` for compact output, ``"json"`` for one JSON object per line.
        force: Replace handlers installed by an earlier call.
        stream: Destination, ``sys.stderr`` by default.
    """
    global _configured

    with _configure_lock:
        if _configured and not force:
            return
        root = logging.getLogger(_PREFIX)
        root.handlers.clear()
        _install_handler(root, fmt, stream)
        if isinstance(level, str):
            level = getattr(logging, level.upper(), logging.WARNING)
        root.setLevel(level)
        _configured = True


def reset_logging() -> None:
    """Drop handlers and restore the default level. Used by tests."""
    global _configured
    with _configure_lock:
        _configured = False
        root = logging.getLogger(_PREFIX)
        root.handlers.clear()
        root.setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# Environment-variable driven auto-configuration
# ---------------------------------------------------------------------------

_VALID_ENV_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


def _configure_from_env() -> None:
    """Apply ``SAMBUNG_*`` logging variables to the root ``sambung`` logger.

    Called at import time, and safe to call again after the environment
    changes (tests use ``monkeypatch.setenv``).

    - ``SAMBUNG_DEBUG=1`` forces DEBUG regardless of ``SAMBUNG_LOG_LEVEL``.
    - ``SAMBUNG_LOG_LEVEL`` accepts DEBUG / INFO / WARNING / ERROR
      (case-insensitive); anything else falls back to WARNING.
    - ``SAMBUNG_LOG_FORMAT`` picks ``text`` (default) or ``json``.

    A handler is attached only when one of the first two is set, and only
    once per reset.
    """
    global _configured

    debug = os.environ.get("SAMBUNG_DEBUG", "") == "1"
    level_name = os.environ.get("SAMBUNG_LOG_LEVEL", "WARNING").upper()
    if level_name not in _VALID_ENV_LEVELS:
        level_name = "WARNING"
    if debug:
        level_name = "DEBUG"

    root = logging.getLogger(_PREFIX)
    root.setLevel(getattr(logging, level_name))

    if debug or "SAMBUNG_LOG_LEVEL" in os.environ:
        fmt = os.environ.get("SAMBUNG_LOG_FORMAT", "text").lower()
        with _configure_lock:
            if not _configured:
                _install_handler(root, fmt, None)
                _configured = True


_configure_from_env()
