"""Google Gemini LLM provider implementation.

Wraps the ``google-genai`` SDK to implement ``ModelProvider.complete()`` and
``ModelProvider.stream()``. The SDK is an optional extra, so the factory
imports this module lazily.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

from google import genai

from sambung.config import ProviderConfig
from sambung.types import AssistantMessage, Message, SystemMessage, Usage

from .provider import ModelProvider, release_stream
from .types import FinishReason, ModelResponse, StreamChunk

_log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Finish reason mapping
# ---------------------------------------------------------------------------

_FINISH_REASON_MAP: dict[str | None, FinishReason] = {
    "STOP": "stop",
    "MAX_TOKENS": "length",
    "SAFETY": "content-filter",
    "RECITATION": "content-filter",
    "BLOCKLIST": "content-filter",
    "PROHIBITED_CONTENT": "content-filter",
    "SPII": "content-filter",
    "OTHER": "stop",
    None: "stop",
}


def _map_finish_reason(raw: Any) -> FinishReason:
    """Normalize a Google finish reason (enum or string) to a ``FinishReason``."""
    if raw is None:
        return "stop"
    name = getattr(raw, "name", None) or str(raw)
    return _FINISH_REASON_MAP.get(name, "stop")


# ---------------------------------------------------------------------------
# Message conversion
# ---------------------------------------------------------------------------


def _to_google_contents(messages: list[Message]) -> tuple[list[dict[str, Any]], str]:
    """Convert messages to Google API format.

    System messages become the system instruction; assistant turns use the
    ``model`` role.

    Returns:
        A ``(contents, system_instruction)`` tuple.
    """
    system_parts: list[str] = []
    contents: list[dict[str, Any]] = []
    for msg in messages:
        if isinstance(msg, SystemMessage):
            system_parts.append(msg.content)
        elif isinstance(msg, AssistantMessage):
            contents.append({"role": "model", "parts": [{"text": msg.content}]})
        else:
            contents.append({"role": "user", "parts": [{"text": msg.content}]})
    return contents, "\n".join(system_parts)


def _build_config(config: ProviderConfig, system_instruction: str) -> dict[str, Any]:
    """Build the ``config`` dict for ``generate_content()``."""
    settings = config.settings
    result: dict[str, Any] = {}
    if system_instruction:
        result["system_instruction"] = system_instruction
    if settings.max_tokens is not None:
        result["max_output_tokens"] = settings.max_tokens
    for name in ("temperature", "top_p", "top_k", "frequency_penalty", "presence_penalty"):
        value = getattr(settings, name)
        if value is not None:
            result[name] = value
    return result


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


def _parse_usage(raw: Any) -> Usage | None:
    metadata = getattr(raw, "usage_metadata", None)
    if not metadata:
        return None
    return Usage(
        prompt_tokens=metadata.prompt_token_count or 0,
        completion_tokens=metadata.candidates_token_count or 0,
        total_tokens=metadata.total_token_count or 0,
    )


def _candidate_text(candidate: Any) -> str:
    content = getattr(candidate, "content", None)
    parts = getattr(content, "parts", None) or []
    return "".join(getattr(part, "text", None) or "" for part in parts)


def _blocked(raw: Any) -> bool:
    """Whether the prompt itself was rejected before any candidate was produced."""
    feedback = getattr(raw, "prompt_feedback", None)
    return bool(getattr(feedback, "block_reason", None))


def _parse_response(raw: Any, model_id: str) -> ModelResponse:
    """Convert a Google GenerateContentResponse to a ``ModelResponse``."""
    usage = _parse_usage(raw) or Usage()
    if not raw.candidates:
        return ModelResponse(
            model=model_id,
            usage=usage,
            finish_reason="content-filter" if _blocked(raw) else "stop",
        )
    candidate = raw.candidates[0]
    return ModelResponse(
        id=getattr(raw, "response_id", None) or "",
        model=model_id,
        content=_candidate_text(candidate),
        usage=usage,
        finish_reason=_map_finish_reason(candidate.finish_reason),
    )


def _parse_stream_chunk(chunk: Any) -> StreamChunk:
    """Convert a single Google streaming chunk to a ``StreamChunk``."""
    usage = _parse_usage(chunk)
    if not chunk.candidates:
        finish = "content-filter" if _blocked(chunk) else None
        return StreamChunk(finish_reason=finish, usage=usage)
    candidate = chunk.candidates[0]
    raw_finish = candidate.finish_reason
    return StreamChunk(
        delta=_candidate_text(candidate),
        finish_reason=_map_finish_reason(raw_finish) if raw_finish else None,
        usage=usage,
    )


# ---------------------------------------------------------------------------
# Provider class
# ---------------------------------------------------------------------------


class GeminiProvider(ModelProvider):
    """Google Gemini LLM provider.

    Wraps the ``google.genai.Client`` for Gemini API completions.

    Args:
        config: Resolved provider configuration; ``api_key`` must be set.
    """

    def __init__(self, config: ProviderConfig) -> None:
        super().__init__(config)
        http_options: dict[str, Any] = {"timeout": int(config.timeout * 1000)}
        if config.base_url:
            http_options["base_url"] = config.base_url
        self._client = genai.Client(api_key=config.api_key, http_options=http_options)

    async def complete(self, messages: list[Message]) -> ModelResponse:
        """Send a completion request to Google Gemini.

        Args:
            messages: Conversation history.

        Returns:
            Normalized model response.
        """
        contents, system_instruction = _to_google_contents(messages)
        _log.debug("google complete: model=%s, messages=%d", self.config.model_id, len(messages))
        response = await self._client.aio.models.generate_content(
            model=self.config.model_id,
            contents=contents,
            config=_build_config(self.config, system_instruction),
        )
        return _parse_response(response, self.config.model_id)

    async def stream(self, messages: list[Message]) -> AsyncIterator[StreamChunk]:
        """Stream a completion from Google Gemini.

        Args:
            messages: Conversation history.

        Yields:
            Incremental response chunks.
        """
        contents, system_instruction = _to_google_contents(messages)
        _log.debug("google stream: model=%s, messages=%d", self.config.model_id, len(messages))
        response = await self._client.aio.models.generate_content_stream(
            model=self.config.model_id,
            contents=contents,
            config=_build_config(self.config, system_instruction),
        )
        try:
            async for chunk in response:
                yield _parse_stream_chunk(chunk)
        finally:
            await release_stream(response)
