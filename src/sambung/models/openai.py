"""OpenAI-compatible LLM provider implementation.

Wraps the ``openai`` SDK to implement ``ModelProvider.complete()`` and
``ModelProvider.stream()``. One adapter serves OpenAI, Groq, Ollama,
OpenRouter and custom endpoints; they differ only in base URL and key.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

from openai import AsyncOpenAI

from sambung.config import ProviderConfig
from sambung.types import Message, Usage

from .provider import ModelProvider, release_stream
from .types import FinishReason, ModelResponse, StreamChunk

_log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Finish reason mapping
# ---------------------------------------------------------------------------

_FINISH_REASON_MAP: dict[str | None, FinishReason] = {
    "stop": "stop",
    "length": "length",
    "content_filter": "content-filter",
    "tool_calls": "stop",
    "function_call": "stop",
    None: "stop",
}


def _map_finish_reason(raw: str | None) -> FinishReason:
    """Normalize an OpenAI finish reason to a ``FinishReason``."""
    return _FINISH_REASON_MAP.get(raw, "stop")


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


def _parse_usage(raw: Any) -> Usage | None:
    if not raw:
        return None
    return Usage(
        prompt_tokens=raw.prompt_tokens or 0,
        completion_tokens=raw.completion_tokens or 0,
        total_tokens=raw.total_tokens or 0,
    )


def _parse_response(raw: Any, model_id: str) -> ModelResponse:
    """Convert an OpenAI ChatCompletion to a ``ModelResponse``.

    Args:
        raw: The raw OpenAI API response object.
        model_id: Fallback model id when the response omits it.

    Returns:
        A normalized ``ModelResponse``.
    """
    choice = raw.choices[0]
    return ModelResponse(
        id=raw.id or "",
        model=raw.model or model_id,
        content=choice.message.content or "",
        usage=_parse_usage(getattr(raw, "usage", None)) or Usage(),
        finish_reason=_map_finish_reason(choice.finish_reason),
    )


def _parse_stream_chunk(chunk: Any) -> StreamChunk:
    """Convert a single OpenAI streaming chunk to a ``StreamChunk``.

    With ``include_usage`` the final chunk has no choices and carries only
    usage.
    """
    usage = _parse_usage(getattr(chunk, "usage", None))
    if not chunk.choices:
        return StreamChunk(usage=usage)

    choice = chunk.choices[0]
    finish_reason = _map_finish_reason(choice.finish_reason) if choice.finish_reason else None
    return StreamChunk(
        delta=choice.delta.content or "",
        finish_reason=finish_reason,
        usage=usage,
    )


# ---------------------------------------------------------------------------
# Provider class
# ---------------------------------------------------------------------------


class OpenAICompatibleProvider(ModelProvider):
    """Provider for any endpoint speaking the OpenAI chat completions API.

    SDK retries are disabled so each call is exactly one HTTP request.

    Args:
        config: Resolved provider configuration.
    """

    def __init__(self, config: ProviderConfig) -> None:
        super().__init__(config)
        self._client = AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            max_retries=0,
            timeout=config.timeout,
        )

    async def complete(self, messages: list[Message]) -> ModelResponse:
        """Send a chat completion request.

        Args:
            messages: Conversation history.

        Returns:
            Normalized model response.
        """
        kwargs = self._build_kwargs(messages)
        _log.debug(
            "%s complete: model=%s, messages=%d",
            self.config.provider,
            self.config.model_id,
            len(messages),
        )
        response = await self._client.chat.completions.create(**kwargs)
        return _parse_response(response, self.config.model_id)

    async def stream(self, messages: list[Message]) -> AsyncIterator[StreamChunk]:
        """Stream a chat completion.

        Args:
            messages: Conversation history.

        Yields:
            Incremental response chunks.
        """
        kwargs = self._build_kwargs(messages)
        kwargs["stream"] = True
        kwargs["stream_options"] = {"include_usage": True}
        _log.debug(
            "%s stream: model=%s, messages=%d",
            self.config.provider,
            self.config.model_id,
            len(messages),
        )
        response = await self._client.chat.completions.create(**kwargs)
        try:
            async for chunk in response:
                yield _parse_stream_chunk(chunk)
        finally:
            await release_stream(response)

    def _build_kwargs(self, messages: list[Message]) -> dict[str, Any]:
        """Build keyword arguments for ``chat.completions.create()``.

        ``top_k`` is not part of the OpenAI schema; compatible servers that
        accept it read it from the request body extras.
        """
        settings = self.config.settings
        kwargs: dict[str, Any] = {
            "model": self.config.model_id,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }
        for name in ("temperature", "max_tokens", "top_p", "frequency_penalty", "presence_penalty"):
            value = getattr(settings, name)
            if value is not None:
                kwargs[name] = value
        if settings.top_k is not None:
            kwargs["extra_body"] = {"top_k": settings.top_k}
        return kwargs
