"""Anthropic LLM provider implementation.

Wraps the ``anthropic`` SDK to implement ``ModelProvider.complete()`` and
``ModelProvider.stream()`` with normalized response types.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

from anthropic import AsyncAnthropic

from sambung.config import ProviderConfig
from sambung.types import Message, SystemMessage, Usage

from .provider import ModelProvider, release_stream
from .types import FinishReason, ModelResponse, StreamChunk

_log = logging.getLogger(__name__)

_DEFAULT_MAX_TOKENS = 4096

# ---------------------------------------------------------------------------
# Stop reason mapping
# ---------------------------------------------------------------------------

_STOP_REASON_MAP: dict[str | None, FinishReason] = {
    "end_turn": "stop",
    "stop_sequence": "stop",
    "tool_use": "stop",
    "max_tokens": "length",
    "refusal": "content-filter",
    None: "stop",
}


def _map_stop_reason(raw: str | None) -> FinishReason:
    """Normalize an Anthropic stop reason to a ``FinishReason``."""
    return _STOP_REASON_MAP.get(raw, "stop")


# ---------------------------------------------------------------------------
# Message conversion
# ---------------------------------------------------------------------------


def _build_messages(messages: list[Message]) -> tuple[str, list[dict[str, Any]]]:
    """Split system messages out of the conversation.

    Anthropic takes the system prompt as a separate ``system=`` argument.

    Returns:
        A ``(system, messages)`` tuple for the Anthropic API.
    """
    system_parts: list[str] = []
    result: list[dict[str, Any]] = []
    for msg in messages:
        if isinstance(msg, SystemMessage):
            system_parts.append(msg.content)
        else:
            result.append({"role": msg.role, "content": msg.content})
    return "\n".join(system_parts), result


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


def _parse_response(raw: Any, model_id: str) -> ModelResponse:
    """Convert an Anthropic Message to a ``ModelResponse``."""
    text = "".join(
        block.text for block in raw.content if getattr(block, "type", None) == "text"
    )
    usage = Usage()
    if raw.usage:
        usage = Usage(
            prompt_tokens=raw.usage.input_tokens,
            completion_tokens=raw.usage.output_tokens,
            total_tokens=raw.usage.input_tokens + raw.usage.output_tokens,
        )
    return ModelResponse(
        id=raw.id or "",
        model=raw.model or model_id,
        content=text,
        usage=usage,
        finish_reason=_map_stop_reason(raw.stop_reason),
    )


# ---------------------------------------------------------------------------
# Provider class
# ---------------------------------------------------------------------------


class AnthropicProvider(ModelProvider):
    """Anthropic LLM provider.

    Wraps the ``anthropic.AsyncAnthropic`` client for message completions.
    ``frequency_penalty`` and ``presence_penalty`` have no Anthropic
    equivalent and are dropped.

    Args:
        config: Resolved provider configuration; ``api_key`` must be set.
    """

    def __init__(self, config: ProviderConfig) -> None:
        super().__init__(config)
        self._client = AsyncAnthropic(
            api_key=config.api_key,
            base_url=config.base_url,
            max_retries=0,
            timeout=config.timeout,
        )

    async def complete(self, messages: list[Message]) -> ModelResponse:
        """Send a message completion request to Anthropic.

        Args:
            messages: Conversation history.

        Returns:
            Normalized model response.
        """
        kwargs = self._build_kwargs(messages)
        _log.debug(
            "anthropic complete: model=%s, messages=%d", self.config.model_id, len(messages)
        )
        response = await self._client.messages.create(**kwargs)
        return _parse_response(response, self.config.model_id)

    async def stream(self, messages: list[Message]) -> AsyncIterator[StreamChunk]:
        """Stream a message completion from Anthropic.

        Input tokens arrive on ``message_start``; output tokens and the stop
        reason arrive on ``message_delta``.

        Args:
            messages: Conversation history.

        Yields:
            Incremental response chunks.
        """
        kwargs = self._build_kwargs(messages)
        kwargs["stream"] = True
        input_tokens = 0
        _log.debug("anthropic stream: model=%s, messages=%d", self.config.model_id, len(messages))
        response = await self._client.messages.create(**kwargs)
        try:
            async for event in response:
                event_type = event.type
                if event_type == "message_start":
                    usage = getattr(event.message, "usage", None)
                    if usage is not None:
                        input_tokens = usage.input_tokens or 0
                elif event_type == "content_block_delta":
                    if getattr(event.delta, "type", None) == "text_delta" and event.delta.text:
                        yield StreamChunk(delta=event.delta.text)
                elif event_type == "message_delta":
                    output_tokens = 0
                    if getattr(event, "usage", None):
                        output_tokens = event.usage.output_tokens or 0
                    yield StreamChunk(
                        finish_reason=_map_stop_reason(getattr(event.delta, "stop_reason", None)),
                        usage=Usage(
                            prompt_tokens=input_tokens,
                            completion_tokens=output_tokens,
                            total_tokens=input_tokens + output_tokens,
                        ),
                    )
        finally:
            await release_stream(response)

    def _build_kwargs(self, messages: list[Message]) -> dict[str, Any]:
        """Build keyword arguments for ``messages.create()``."""
        settings = self.config.settings
        system, converted = _build_messages(messages)
        kwargs: dict[str, Any] = {
            "model": self.config.model_id,
            "messages": converted,
            "max_tokens": settings.max_tokens or _DEFAULT_MAX_TOKENS,
        }
        if system:
            kwargs["system"] = system
        for name in ("temperature", "top_p", "top_k"):
            value = getattr(settings, name)
            if value is not None:
                kwargs[name] = value
        if settings.frequency_penalty is not None or settings.presence_penalty is not None:
            _log.debug("anthropic: dropping frequency/presence penalties")
        return kwargs
