"""Configuration types for the Sambung AI layer."""

from __future__ import annotations

import os
from collections.abc import Mapping
from enum import StrEnum

from pydantic import BaseModel, Field


class ProviderKind(StrEnum):
    """LLM backends the gateway knows how to talk to."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    GROQ = "groq"
    OLLAMA = "ollama"
    OPENROUTER = "openrouter"
    CUSTOM = "custom"


OPENAI_COMPATIBLE_KINDS: frozenset[ProviderKind] = frozenset(
    {
        ProviderKind.OPENAI,
        ProviderKind.GROQ,
        ProviderKind.OLLAMA,
        ProviderKind.OPENROUTER,
        ProviderKind.CUSTOM,
    }
)
"""Kinds served by the shared OpenAI-compatible adapter."""


class GenerationSettings(BaseModel):
    """Optional sampling knobs for a completion request.

    ``None`` means "use the provider default". Ranges differ per provider
    and are enforced by ``sambung.models.validation``.

    Args:
        temperature: Sampling temperature.
        max_tokens: Maximum output tokens.
        top_p: Nucleus sampling probability mass.
        top_k: Top-k sampling cutoff.
        frequency_penalty: Penalty for frequent tokens.
        presence_penalty: Penalty for tokens already present.
    """

    model_config = {"frozen": True}

    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    top_k: int | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None


class ProviderConfig(BaseModel):
    """Configuration for one provider call.

    Immutable; the factory derives a resolved copy with credentials and
    base URL filled in.

    Args:
        provider: Provider name, one of the ``ProviderKind`` values. Unknown
            names are rejected by the factory with a configuration error.
        model_id: Model identifier, passed to the provider as-is. When
            omitted the factory uses the provider's catalogue default.
        api_key: Explicit API key, overrides stored and environment keys.
        base_url: Explicit API base URL.
        settings: Generation settings.
        timeout: Transport timeout in seconds.
    """

    model_config = {"frozen": True}

    provider: str
    model_id: str | None = Field(default=None, min_length=1)
    api_key: str | None = None
    base_url: str | None = None
    settings: GenerationSettings = Field(default_factory=GenerationSettings)
    timeout: float = Field(default=60.0, gt=0)


class ProviderEndpoint(BaseModel):
    """Fallback credentials for one provider."""

    model_config = {"frozen": True}

    api_key: str | None = None
    base_url: str | None = None


# Environment variable names per provider: (api key vars, base URL var).
_ENV_VARS: dict[ProviderKind, tuple[tuple[str, ...], str | None]] = {
    ProviderKind.OPENAI: (("OPENAI_API_KEY",), "OPENAI_BASE_URL"),
    ProviderKind.ANTHROPIC: (("ANTHROPIC_API_KEY",), "ANTHROPIC_BASE_URL"),
    ProviderKind.GOOGLE: (("GOOGLE_GENERATIVE_AI_API_KEY", "GOOGLE_API_KEY"), None),
    ProviderKind.GROQ: (("GROQ_API_KEY",), "GROQ_BASE_URL"),
    ProviderKind.OLLAMA: ((), "OLLAMA_BASE_URL"),
    ProviderKind.OPENROUTER: (("OPENROUTER_API_KEY",), "OPENROUTER_BASE_URL"),
}


class ProviderDefaults(BaseModel):
    """Process-wide fallback credentials, keyed by provider.

    Built once at startup (usually via ``from_env()``) and injected into
    the factory. ``custom`` has no entry of its own; the factory falls back
    to the ``openai`` entry for it.

    Args:
        endpoints: Fallback endpoint per provider kind.
    """

    model_config = {"frozen": True}

    endpoints: dict[ProviderKind, ProviderEndpoint] = Field(default_factory=dict)

    def for_provider(self, kind: ProviderKind) -> ProviderEndpoint:
        """Return the fallback endpoint for *kind*, empty when none is set."""
        return self.endpoints.get(kind, ProviderEndpoint())

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ProviderDefaults:
        """Read fallback keys and base URLs from environment variables.

        Empty strings count as unset.

        Args:
            environ: Mapping to read from, ``os.environ`` by default.
        """
        env = os.environ if environ is None else environ
        endpoints: dict[ProviderKind, ProviderEndpoint] = {}
        for kind, (key_vars, url_var) in _ENV_VARS.items():
            api_key = next((env[v] for v in key_vars if env.get(v)), None)
            base_url = (env.get(url_var) or None) if url_var else None
            if api_key or base_url:
                endpoints[kind] = ProviderEndpoint(api_key=api_key, base_url=base_url)
        return cls(endpoints=endpoints)
