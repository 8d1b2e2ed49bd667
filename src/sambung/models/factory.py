"""Build a ready-to-call provider from a ``ProviderConfig``.

``create_provider()`` validates settings, resolves credentials and base
URL, picks the adapter for the provider kind and wraps it in
``InstrumentedProvider``. It never touches the network and holds no
shared state; every call builds a fresh client.

Resolution order:

- API key: explicit ``config.api_key``, then the caller's stored key,
  then the process-wide default for the provider. OpenAI, Groq,
  Anthropic and Google refuse to build without one; the other kinds
  fall back to a placeholder.
- Base URL: explicit ``config.base_url``, then the process-wide default,
  then the provider's public endpoint. Every base URL is sanitized.
- Model: ``config.model_id``, then the registry default for the provider.
"""

from __future__ import annotations

import importlib
import logging
from types import ModuleType
from typing import assert_never

from anthropic import AnthropicError
from openai import OpenAIError

from sambung.config import ProviderConfig, ProviderDefaults, ProviderEndpoint, ProviderKind
from sambung.observability.tracing import traced

from .anthropic import AnthropicProvider
from .errors import PROVIDER_LABELS
from .middleware import InstrumentedProvider
from .openai import OpenAICompatibleProvider
from .provider import ModelProvider, ResolvedClient
from .registry import ModelRegistry, model_registry
from .types import AppError, ErrorKind
from .urls import sanitize_base_url
from .validation import validate_settings

_log = logging.getLogger(__name__)

PUBLIC_BASE_URLS: dict[ProviderKind, str] = {
    ProviderKind.OPENAI: "https://api.openai.com/v1",
    ProviderKind.CUSTOM: "https://api.openai.com/v1",
    ProviderKind.GROQ: "https://api.groq.com/openai/v1",
    ProviderKind.OLLAMA: "http://localhost:11434/v1",
    ProviderKind.OPENROUTER: "https://openrouter.ai/api/v1",
}
"""Endpoints used when neither the caller nor the environment names one."""

PLACEHOLDER_KEYS: dict[ProviderKind, str] = {
    ProviderKind.OLLAMA: "ollama",
    ProviderKind.OPENROUTER: "sambung",
    ProviderKind.CUSTOM: "sambung",
}
"""Keys sent when a provider usable without one resolves none."""

# Failures raised by SDK client constructors.
_CLIENT_SETUP_ERRORS: tuple[type[Exception], ...] = (OpenAIError, AnthropicError, ValueError)


# ---------------------------------------------------------------------------
# Resolution helpers
# ---------------------------------------------------------------------------


def parse_provider_kind(provider: str) -> ProviderKind:
    """Return the ``ProviderKind`` named by *provider*.

    Raises:
        AppError: ``CONFIGURATION`` for unknown provider names.
    """
    try:
        return ProviderKind(provider)
    except ValueError:
        supported = ", ".join(kind.value for kind in ProviderKind)
        raise AppError(
            ErrorKind.CONFIGURATION,
            f"Unknown provider '{provider}'. Supported providers: {supported}.",
            details={"provider": provider},
        ) from None


def _fallback_endpoint(defaults: ProviderDefaults, kind: ProviderKind) -> ProviderEndpoint:
    endpoint = defaults.for_provider(kind)
    if kind is ProviderKind.CUSTOM and not (endpoint.api_key or endpoint.base_url):
        return defaults.for_provider(ProviderKind.OPENAI)
    return endpoint


def _load_gemini() -> ModuleType:
    try:
        return importlib.import_module("sambung.models.gemini")
    except ImportError as exc:
        if not (exc.name or "").startswith("google"):
            raise
        raise AppError(
            ErrorKind.UNAVAILABLE,
            "The Google provider needs the 'google-genai' package. "
            "Install it with: pip install 'sambung-ai[google]'.",
            details={"provider": ProviderKind.GOOGLE.value},
        ) from exc


def _missing_key(kind: ProviderKind) -> AppError:
    return AppError(
        ErrorKind.CONFIGURATION,
        f"{PROVIDER_LABELS[kind]} API key is not configured. "
        "Add a key in settings or set it in the environment.",
        details={"provider": kind.value},
    )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@traced("sambung.create_provider")
def create_provider(
    config: ProviderConfig,
    *,
    defaults: ProviderDefaults | None = None,
    stored_api_key: str | None = None,
    registry: ModelRegistry = model_registry,
) -> ResolvedClient:
    """Build an instrumented provider for *config*.

    Args:
        config: What to call and how.
        defaults: Process-wide fallback credentials; read from the
            environment when omitted.
        stored_api_key: Key saved for the calling user, if any.
        registry: Catalogue supplying the model when *config* names none.

    Returns:
        A provider whose ``config`` carries the resolved model, key and
        base URL.

    Raises:
        AppError: ``CONFIGURATION`` for unknown providers, missing
            required keys or an SDK client that refuses its settings,
            ``INVALID_PARAMETER`` for out-of-range settings,
            ``UNAVAILABLE`` when the Google SDK is not installed.
    """
    kind = parse_provider_kind(config.provider)
    validate_settings(kind, config.settings)

    defaults = ProviderDefaults.from_env() if defaults is None else defaults
    endpoint = _fallback_endpoint(defaults, kind)
    api_key = config.api_key or stored_api_key or endpoint.api_key
    base_url = sanitize_base_url(
        config.base_url or endpoint.base_url or PUBLIC_BASE_URLS.get(kind)
    )
    model_id = config.model_id or registry.default_model(kind)

    def resolved(key: str) -> ProviderConfig:
        return config.model_copy(
            update={
                "provider": kind.value,
                "model_id": model_id,
                "api_key": key,
                "base_url": base_url,
            }
        )

    inner: ModelProvider
    try:
        match kind:
            case ProviderKind.OPENAI | ProviderKind.GROQ:
                if not api_key:
                    raise _missing_key(kind)
                inner = OpenAICompatibleProvider(resolved(api_key))
            case ProviderKind.OLLAMA | ProviderKind.OPENROUTER | ProviderKind.CUSTOM:
                inner = OpenAICompatibleProvider(resolved(api_key or PLACEHOLDER_KEYS[kind]))
            case ProviderKind.ANTHROPIC:
                if not api_key:
                    raise _missing_key(kind)
                inner = AnthropicProvider(resolved(api_key))
            case ProviderKind.GOOGLE:
                gemini = _load_gemini()
                if not api_key:
                    raise _missing_key(kind)
                inner = gemini.GeminiProvider(resolved(api_key))
            case _:
                assert_never(kind)
    except _CLIENT_SETUP_ERRORS as exc:
        raise AppError(
            ErrorKind.CONFIGURATION,
            f"Could not set up the {kind.value} client: {exc}",
            details={"provider": kind.value},
        ) from exc

    _log.debug(
        "Resolved provider '%s' for model '%s' (base_url=%s, key=%s)",
        kind.value,
        model_id,
        base_url,
        "set" if api_key else "placeholder",
    )
    return InstrumentedProvider(inner)


def is_provider_configured(
    provider: str,
    *,
    defaults: ProviderDefaults | None = None,
    stored_api_key: str | None = None,
) -> bool:
    """Whether a request to *provider* would find credentials.

    Ollama, OpenRouter and custom endpoints count as configured without a
    key; the other providers need a stored or default key.
    """
    try:
        kind = ProviderKind(provider)
    except ValueError:
        return False
    if kind in PLACEHOLDER_KEYS:
        return True
    defaults = ProviderDefaults.from_env() if defaults is None else defaults
    return bool(stored_api_key or _fallback_endpoint(defaults, kind).api_key)
