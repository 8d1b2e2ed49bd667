"""Sambung Models: provider adapters, services and the chat gateway.

``GeminiProvider`` is not re-exported here; it needs the optional
``google-genai`` package and is imported by the factory on demand.
"""

from .anthropic import AnthropicProvider
from .completion import complete
from .errors import translate_error
from .factory import (
    PUBLIC_BASE_URLS,
    create_provider,
    is_provider_configured,
    parse_provider_kind,
)
from .gateway import ChatGateway, CredentialStore
from .middleware import InstrumentedProvider
from .openai import OpenAICompatibleProvider
from .provider import ModelProvider, ResolvedClient
from .registry import DEFAULT_MODELS, MODEL_CATALOG, ModelRegistry, model_registry
from .streaming import stream
from .types import (
    AppError,
    CompletionResult,
    DeltaEvent,
    ErrorEvent,
    ErrorInfo,
    ErrorKind,
    FinishEvent,
    FinishReason,
    ModelInfo,
    ModelResponse,
    ModelValidation,
    StreamChunk,
    StreamEvent,
)
from .urls import sanitize_base_url
from .validation import ParameterRange, parameter_ranges, validate_settings

__all__ = [
    "DEFAULT_MODELS",
    "MODEL_CATALOG",
    "PUBLIC_BASE_URLS",
    "AnthropicProvider",
    "AppError",
    "ChatGateway",
    "CompletionResult",
    "CredentialStore",
    "DeltaEvent",
    "ErrorEvent",
    "ErrorInfo",
    "ErrorKind",
    "FinishEvent",
    "FinishReason",
    "InstrumentedProvider",
    "ModelInfo",
    "ModelProvider",
    "ModelRegistry",
    "ModelResponse",
    "ModelValidation",
    "OpenAICompatibleProvider",
    "ParameterRange",
    "ResolvedClient",
    "StreamChunk",
    "StreamEvent",
    "complete",
    "create_provider",
    "is_provider_configured",
    "model_registry",
    "parameter_ranges",
    "parse_provider_kind",
    "sanitize_base_url",
    "stream",
    "translate_error",
    "validate_settings",
]
