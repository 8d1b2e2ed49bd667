"""Abstract base class for LLM provider adapters.

``ModelProvider`` defines the contract that concrete adapters (OpenAI
compatible, Anthropic, Gemini) implement. Adapters are built by
``sambung.models.factory.create_provider()`` from a resolved
``ProviderConfig`` and let SDK exceptions propagate; translation into
``AppError`` happens in the completion and streaming services.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

from sambung.config import ProviderConfig, ProviderKind
from sambung.types import Message

from .types import ModelResponse, StreamChunk

# ---------------------------------------------------------------------------
# Abstract base class
# ---------------------------------------------------------------------------


class ModelProvider(ABC):
    """Abstract base class for LLM providers.

    Subclasses implement ``complete()`` for single-shot calls and
    ``stream()`` for incremental token delivery. Generation settings come
    from ``config.settings``.

    Args:
        config: Resolved configuration with credentials and base URL filled in.
    """

    def __init__(self, config: ProviderConfig) -> None:
        self.config = config

    @property
    def kind(self) -> ProviderKind:
        """Provider this adapter talks to."""
        return ProviderKind(self.config.provider)

    @property
    def model_id(self) -> str:
        return self.config.model_id or ""

    @abstractmethod
    async def complete(self, messages: list[Message]) -> ModelResponse:
        """Send a completion request and return the full response.

        Args:
            messages: Conversation history.

        Returns:
            The provider's complete response.
        """

    @abstractmethod
    async def stream(self, messages: list[Message]) -> AsyncIterator[StreamChunk]:
        """Stream a completion request, yielding chunks incrementally.

        Closing the returned generator closes the underlying SDK stream.

        Args:
            messages: Conversation history.

        Yields:
            Incremental response chunks.
        """
        # Sentinel yield for async generator typing.
        yield  # type: ignore[misc]  # pragma: no cover


ResolvedClient = ModelProvider
"""A ready-to-call provider as returned by the factory."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def release_stream(response: Any) -> None:
    """Close an SDK streaming response.

    SDK streams expose an async ``close()``; plain async generators expose
    ``aclose()``. Objects with neither are left alone.
    """
    for name in ("aclose", "close"):
        closer = getattr(response, name, None)
        if closer is None:
            continue
        result = closer()
        if inspect.isawaitable(result):
            await result
        return
