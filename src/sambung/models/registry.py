"""Static catalogue of well-known models per provider.

The catalogue is used to pick default models, to suggest alternatives when
a model is not found, and to report context limits. Providers ship new
models faster than this table changes, so an unknown model id is never a
reason to refuse a request.
"""

from __future__ import annotations

from collections.abc import Mapping

from sambung.config import ProviderKind

from .types import ModelInfo

MODEL_CATALOG: dict[ProviderKind, tuple[ModelInfo, ...]] = {
    ProviderKind.OPENAI: (
        ModelInfo(
            id="gpt-4o-mini",
            display_name="GPT-4o Mini",
            context_window=128000,
            cost_tier="low",
            capabilities=("chat", "vision"),
            best_for="General chat, fast responses",
        ),
        ModelInfo(
            id="gpt-4o",
            display_name="GPT-4o",
            context_window=128000,
            cost_tier="medium",
            capabilities=("chat", "vision"),
            best_for="Complex reasoning, vision, multimodal",
        ),
        ModelInfo(
            id="o1-mini",
            display_name="o1-mini",
            context_window=128000,
            cost_tier="medium",
            capabilities=("chat", "reasoning"),
            best_for="Code, math, logic",
        ),
        ModelInfo(
            id="o1-preview",
            display_name="o1-preview",
            context_window=128000,
            cost_tier="high",
            capabilities=("chat", "reasoning"),
            best_for="Complex problem-solving",
        ),
        ModelInfo(
            id="gpt-4-turbo",
            display_name="GPT-4 Turbo",
            context_window=128000,
            cost_tier="medium",
            capabilities=("chat", "vision"),
            best_for="Legacy GPT-4 tasks",
        ),
        ModelInfo(
            id="gpt-3.5-turbo",
            display_name="GPT-3.5 Turbo",
            context_window=16385,
            cost_tier="low",
            capabilities=("chat",),
            best_for="Simple tasks, legacy support",
        ),
    ),
    ProviderKind.ANTHROPIC: (
        ModelInfo(
            id="claude-3-5-sonnet-20241022",
            display_name="Claude 3.5 Sonnet",
            context_window=200000,
            cost_tier="medium",
            capabilities=("chat", "vision"),
            best_for="Balanced quality and speed",
        ),
        ModelInfo(
            id="claude-3-5-haiku-20241022",
            display_name="Claude 3.5 Haiku",
            context_window=200000,
            cost_tier="low",
            capabilities=("chat",),
            best_for="Fast, inexpensive responses",
        ),
        ModelInfo(
            id="claude-3-opus-20240229",
            display_name="Claude 3 Opus",
            context_window=200000,
            cost_tier="high",
            capabilities=("chat", "vision"),
            best_for="Hardest reasoning tasks",
        ),
        ModelInfo(
            id="claude-3-sonnet-20240229",
            display_name="Claude 3 Sonnet",
            context_window=200000,
            cost_tier="medium",
            capabilities=("chat", "vision"),
            best_for="Legacy Claude 3 workloads",
        ),
        ModelInfo(
            id="claude-3-haiku-20240307",
            display_name="Claude 3 Haiku",
            context_window=200000,
            cost_tier="low",
            capabilities=("chat", "vision"),
            best_for="High-volume, low-latency chat",
        ),
    ),
    ProviderKind.GOOGLE: (
        ModelInfo(
            id="gemini-2.5-flash",
            display_name="Gemini 2.5 Flash",
            context_window=1048576,
            cost_tier="low",
            capabilities=("chat", "vision", "reasoning"),
            best_for="Fast multimodal chat",
        ),
        ModelInfo(
            id="gemini-2.5-pro",
            display_name="Gemini 2.5 Pro",
            context_window=1048576,
            cost_tier="high",
            capabilities=("chat", "vision", "reasoning"),
            best_for="Long-context reasoning",
        ),
        ModelInfo(
            id="gemini-2.0-flash",
            display_name="Gemini 2.0 Flash",
            context_window=1048576,
            cost_tier="low",
            capabilities=("chat", "vision"),
            best_for="General chat",
        ),
        ModelInfo(
            id="gemini-1.5-pro",
            display_name="Gemini 1.5 Pro",
            context_window=2097152,
            cost_tier="medium",
            capabilities=("chat", "vision"),
            best_for="Very long documents",
        ),
    ),
    ProviderKind.GROQ: (
        ModelInfo(
            id="llama-3.3-70b-versatile",
            display_name="Llama 3.3 70B Versatile",
            context_window=131072,
            cost_tier="low",
            capabilities=("chat",),
            best_for="General chat at high speed",
        ),
        ModelInfo(
            id="llama-3.1-8b-instant",
            display_name="Llama 3.1 8B Instant",
            context_window=131072,
            cost_tier="low",
            capabilities=("chat",),
            best_for="Lowest latency",
        ),
        ModelInfo(
            id="mixtral-8x7b-32768",
            display_name="Mixtral 8x7B",
            context_window=32768,
            cost_tier="low",
            supported=False,
            capabilities=("chat",),
            best_for="Deprecated by Groq",
        ),
    ),
    ProviderKind.OLLAMA: (
        ModelInfo(
            id="llama3.2",
            display_name="Llama 3.2",
            context_window=131072,
            cost_tier="free",
            capabilities=("chat",),
            best_for="Local general chat",
        ),
        ModelInfo(
            id="llama3.1",
            display_name="Llama 3.1",
            context_window=131072,
            cost_tier="free",
            capabilities=("chat",),
            best_for="Local general chat",
        ),
        ModelInfo(
            id="mistral",
            display_name="Mistral 7B",
            context_window=32768,
            cost_tier="free",
            capabilities=("chat",),
            best_for="Small local model",
        ),
        ModelInfo(
            id="qwen2.5",
            display_name="Qwen 2.5",
            context_window=32768,
            cost_tier="free",
            capabilities=("chat",),
            best_for="Local multilingual chat",
        ),
    ),
    ProviderKind.OPENROUTER: (
        ModelInfo(
            id="openai/gpt-4o-mini",
            display_name="GPT-4o Mini (OpenRouter)",
            context_window=128000,
            cost_tier="low",
            capabilities=("chat", "vision"),
            best_for="General chat",
        ),
        ModelInfo(
            id="anthropic/claude-3.5-sonnet",
            display_name="Claude 3.5 Sonnet (OpenRouter)",
            context_window=200000,
            cost_tier="medium",
            capabilities=("chat", "vision"),
            best_for="Balanced quality and speed",
        ),
        ModelInfo(
            id="meta-llama/llama-3.3-70b-instruct",
            display_name="Llama 3.3 70B Instruct (OpenRouter)",
            context_window=131072,
            cost_tier="low",
            capabilities=("chat",),
            best_for="Open-weight general chat",
        ),
    ),
    ProviderKind.CUSTOM: (
        ModelInfo(
            id="custom-model",
            display_name="Custom model",
            context_window=8192,
            cost_tier="medium",
            capabilities=("chat",),
            best_for="Any OpenAI-compatible endpoint",
        ),
    ),
}

DEFAULT_MODELS: dict[ProviderKind, str] = {
    ProviderKind.OPENAI: "gpt-4o-mini",
    ProviderKind.ANTHROPIC: "claude-3-5-sonnet-20241022",
    ProviderKind.GOOGLE: "gemini-2.5-flash",
    ProviderKind.GROQ: "llama-3.3-70b-versatile",
    ProviderKind.OLLAMA: "llama3.2",
    ProviderKind.OPENROUTER: "openai/gpt-4o-mini",
    ProviderKind.CUSTOM: "custom-model",
}

# Used when a model is missing from the catalogue.
PROVIDER_CONTEXT_WINDOWS: dict[ProviderKind, int] = {
    ProviderKind.OPENAI: 128000,
    ProviderKind.ANTHROPIC: 200000,
    ProviderKind.GOOGLE: 1048576,
    ProviderKind.GROQ: 131072,
    ProviderKind.OLLAMA: 8192,
    ProviderKind.OPENROUTER: 128000,
    ProviderKind.CUSTOM: 8192,
}


class ModelRegistry:
    """Read-only lookup over a model catalogue.

    Args:
        catalog: Models per provider, in display order.
        defaults: Default model id per provider.
    """

    def __init__(
        self,
        catalog: Mapping[ProviderKind, tuple[ModelInfo, ...]] = MODEL_CATALOG,
        defaults: Mapping[ProviderKind, str] = DEFAULT_MODELS,
    ) -> None:
        self._catalog = {kind: tuple(models) for kind, models in catalog.items()}
        self._index = {
            (kind, info.id): info for kind, models in self._catalog.items() for info in models
        }
        self._defaults = dict(defaults)

    def lookup(self, provider: ProviderKind, model_id: str) -> ModelInfo | None:
        """Return the catalogue entry, or ``None`` when the pair is unknown."""
        return self._index.get((provider, model_id))

    def list_for(self, provider: ProviderKind) -> list[ModelInfo]:
        """Return every catalogued model for *provider*, in display order."""
        return list(self._catalog.get(provider, ()))

    def default_model(self, provider: ProviderKind) -> str:
        """Return the model used when a caller does not pick one."""
        return self._defaults[provider]

    def providers(self) -> list[ProviderKind]:
        """Return the providers that have catalogue entries."""
        return list(self._catalog)

    def available_model_ids(self, provider: ProviderKind) -> list[str]:
        """Return ids of supported models, for "did you mean" hints."""
        return [info.id for info in self._catalog.get(provider, ()) if info.supported]

    def context_window(self, provider: ProviderKind, model_id: str | None) -> int:
        """Return the model's context window, or the provider-wide default."""
        info = self.lookup(provider, model_id) if model_id else None
        if info is not None:
            return info.context_window
        return PROVIDER_CONTEXT_WINDOWS[provider]


model_registry = ModelRegistry()
"""Registry over the built-in catalogue."""
