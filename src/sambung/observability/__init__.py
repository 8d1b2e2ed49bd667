"""Sambung observability: structured logging and tracing.

    from sambung.observability import get_logger, configure_logging, LogContext, aspan
"""

from __future__ import annotations

from sambung.observability.logging import (
    JsonFormatter,
    LogContext,
    RedactingFilter,
    TextFormatter,
    configure_logging,
    current_context,
    get_logger,
    redact,
    reset_logging,
)
from sambung.observability.tracing import aspan, mark_error, span, traced

__all__ = [
    "JsonFormatter",
    "LogContext",
    "RedactingFilter",
    "TextFormatter",
    "aspan",
    "configure_logging",
    "current_context",
    "get_logger",
    "mark_error",
    "redact",
    "reset_logging",
    "span",
    "traced",
]
