"""Translate provider SDK failures into ``AppError`` values.

Each provider reports the same failure differently: OpenAI raises
``openai.RateLimitError`` with ``code="rate_limit_exceeded"``, Anthropic
nests ``{"error": {"type": "rate_limit_error"}}`` in the body, Google puts
the HTTP status in ``code``, and self-hosted servers often only say
"429 Too Many Requests" in the message. ``translate_error`` looks at all
three signals (HTTP status, native error code, message text) and applies
one ordered rule set, first match wins.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

import anthropic
import openai

from sambung.config import ProviderKind

from .registry import ModelRegistry, model_registry
from .types import AppError, ErrorKind

DEFAULT_RETRY_AFTER_SECONDS = 60

PROVIDER_LABELS: dict[ProviderKind, str] = {
    ProviderKind.OPENAI: "OpenAI",
    ProviderKind.ANTHROPIC: "Anthropic",
    ProviderKind.GOOGLE: "Google",
    ProviderKind.GROQ: "Groq",
    ProviderKind.OLLAMA: "Ollama",
    ProviderKind.OPENROUTER: "OpenRouter",
    ProviderKind.CUSTOM: "the custom provider",
}

_CONTENT_FILTERS: dict[ProviderKind, str] = {
    ProviderKind.OPENAI: "OpenAI's content moderation",
    ProviderKind.ANTHROPIC: "Anthropic's usage policy filter",
    ProviderKind.GOOGLE: "Google's safety filters",
    ProviderKind.OPENROUTER: "the upstream provider's moderation",
}

_TROUBLESHOOTING: tuple[str, ...] = (
    "Verify that your API key is valid and has not expired.",
    "Check your network connection and the provider's status page.",
    "Try again with a different model.",
    "Contact support if the problem persists.",
)

_AUTH_CODES = frozenset({"invalid_api_key", "authentication_error", "permission_error"})
_RATE_CODES = frozenset({"rate_limit_exceeded", "rate_limit_error"})
_MODEL_CODES = frozenset({"model_not_found", "not_found_error"})
_CONTEXT_CODES = frozenset({"context_length_exceeded"})
_CONTENT_CODES = frozenset({"content_filter", "content_policy_violation"})

_AUTH_WORDS = ("authentication", "unauthorized", "invalid api key")
_RATE_WORDS = ("rate limit", "too many requests")
_MODEL_WORDS = ("model not found", "unknown model")
# Input-length language only; "maximum" alone also matches max_tokens range errors.
_CONTEXT_WORDS = ("context", "too long", "input token", "prompt")
_CONTENT_WORDS = ("content policy", "content filter", "safety")

_STATUS_IN_MESSAGE = re.compile(r"\b(401|403|404|429)\b(?!\s*tokens)")
_RETRY_HINT = re.compile(r"(?:retry after|try again in)\s+(\d+(?:\.\d+)?)")

_TIMEOUT_ERRORS: tuple[type[BaseException], ...] = (
    TimeoutError,
    openai.APITimeoutError,
    anthropic.APITimeoutError,
)
_CONNECTION_ERRORS: tuple[type[BaseException], ...] = (
    ConnectionError,
    openai.APIConnectionError,
    anthropic.APIConnectionError,
)

# ---------------------------------------------------------------------------
# Signal extraction
# ---------------------------------------------------------------------------


def _valid_status(value: Any) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool) and 100 <= value < 600:
        return value
    return None


def _extract_status(exc: BaseException) -> int | None:
    """Return the HTTP status carried by *exc*, if any.

    Checked in order: ``exc.status_code``, ``exc.status``,
    ``exc.response.status_code``, then an integer ``exc.code`` (Google).
    """
    for attr in ("status_code", "status"):
        status = _valid_status(getattr(exc, attr, None))
        if status is not None:
            return status
    response = getattr(exc, "response", None)
    if response is not None:
        status = _valid_status(getattr(response, "status_code", None))
        if status is not None:
            return status
    return _valid_status(getattr(exc, "code", None))


def _native_codes(exc: BaseException) -> set[str]:
    """Collect provider-native error codes from the exception and its body."""
    codes: set[str] = set()

    def add(value: Any) -> None:
        if isinstance(value, str) and value:
            codes.add(value.lower())

    add(getattr(exc, "code", None))
    add(getattr(exc, "type", None))
    body = getattr(exc, "body", None)
    if isinstance(body, Mapping):
        add(body.get("type"))
        add(body.get("code"))
        nested = body.get("error")
        if isinstance(nested, Mapping):
            add(nested.get("type"))
            add(nested.get("code"))
    return codes


def _message(exc: BaseException) -> str:
    try:
        return str(exc).lower()
    except Exception:  # noqa: BLE001 - a broken __str__ must not break translation
        return ""


def _retry_after(exc: BaseException, message: str) -> int:
    response = getattr(exc, "response", None)
    headers = getattr(response, "headers", None)
    if headers is not None:
        try:
            raw = headers.get("retry-after")
        except Exception:  # noqa: BLE001
            raw = None
        if raw is not None:
            try:
                return max(0, round(float(raw)))
            except (TypeError, ValueError):
                pass
    match = _RETRY_HINT.search(message)
    if match:
        return max(0, round(float(match.group(1))))
    return DEFAULT_RETRY_AFTER_SECONDS


def _coerce_provider(provider: ProviderKind | str | None) -> ProviderKind | None:
    if provider is None:
        return None
    try:
        return ProviderKind(provider)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Translation
# ---------------------------------------------------------------------------


def translate_error(
    exc: BaseException,
    *,
    provider: ProviderKind | str | None = None,
    model_id: str | None = None,
    registry: ModelRegistry | None = None,
) -> AppError:
    """Map any exception onto the closed ``ErrorKind`` taxonomy.

    Rules are applied in this order and the first match wins:
    authentication, rate limit, model not found, context exceeded,
    content policy, unknown. Each rule matches on an HTTP status, a
    provider-native code, or keywords in the message text.

    This function never raises. An ``AppError`` is returned unchanged.

    Args:
        exc: The failure to translate.
        provider: Provider that served the request, used for hints.
        model_id: Model that was requested, used for hints.
        registry: Catalogue for model suggestions and context windows.

    Returns:
        An ``AppError`` with a user-facing message and structured details.
    """
    if isinstance(exc, AppError):
        return exc
    registry = registry or model_registry
    kind = _coerce_provider(provider)
    label = PROVIDER_LABELS[kind] if kind is not None else "the AI provider"

    message = _message(exc)
    codes = _native_codes(exc)
    status = _extract_status(exc)
    mentioned = {int(m) for m in _STATUS_IN_MESSAGE.findall(message)}

    def matches(statuses: set[int], native: frozenset[str], words: tuple[str, ...]) -> bool:
        return (
            status in statuses
            or bool(statuses & mentioned)
            or bool(codes & native)
            or any(word in message for word in words)
        )

    if matches({401, 403}, _AUTH_CODES, _AUTH_WORDS):
        return AppError(
            ErrorKind.AUTHENTICATION_FAILED,
            f"Authentication with {label} failed. "
            "Check that your API key is valid and has access to this model.",
        )

    if matches({429}, _RATE_CODES, _RATE_WORDS):
        seconds = _retry_after(exc, message)
        return AppError(
            ErrorKind.RATE_LIMITED,
            f"Rate limit reached for {label}. Please retry in {seconds} seconds.",
            details={"retry_after_seconds": seconds},
        )

    if matches({404}, _MODEL_CODES, _MODEL_WORDS):
        available = registry.available_model_ids(kind) if kind is not None else []
        subject = f"Model '{model_id}'" if model_id else "The requested model"
        hint = f" Available models: {', '.join(available)}." if available else ""
        return AppError(
            ErrorKind.MODEL_NOT_FOUND,
            f"{subject} was not found on {label}.{hint}",
            details={"available_models": available},
        )

    if codes & _CONTEXT_CODES or (
        "token" in message and any(word in message for word in _CONTEXT_WORDS)
    ):
        max_tokens = registry.context_window(kind, model_id) if kind is not None else None
        limit = f" of {max_tokens} tokens" if max_tokens else ""
        return AppError(
            ErrorKind.CONTEXT_EXCEEDED,
            f"The conversation exceeds the model's context window{limit}. "
            "Shorten the conversation or choose a model with a larger context window.",
            details={"max_tokens": max_tokens},
        )

    if codes & _CONTENT_CODES or any(word in message for word in _CONTENT_WORDS):
        if kind is None:
            system = "the provider's content filter"
        else:
            system = _CONTENT_FILTERS.get(kind, f"{label}'s content filter")
        return AppError(
            ErrorKind.CONTENT_POLICY_VIOLATION,
            f"The request was blocked by {system}. Rephrase your message and try again.",
            details={"provider": kind.value if kind is not None else None},
        )

    if isinstance(exc, _TIMEOUT_ERRORS) or "timed out" in message or "timeout" in message:
        summary = f"The request to {label} timed out."
    elif isinstance(exc, _CONNECTION_ERRORS) or "connection" in message:
        summary = f"Could not connect to {label}."
    else:
        summary = f"The request to {label} failed unexpectedly."
    return AppError(
        ErrorKind.UNKNOWN,
        summary,
        details={"troubleshooting": list(_TROUBLESHOOTING)},
    )
