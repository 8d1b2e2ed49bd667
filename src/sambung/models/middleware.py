"""Tracing wrapper around any ``ModelProvider``.

``InstrumentedProvider`` delegates to the wrapped adapter and records one
span per call. Responses, chunks and exceptions pass through unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import aclosing

from sambung.observability import semconv
from sambung.observability.tracing import aspan, get_tracer, mark_error
from sambung.types import Message

from .provider import ModelProvider
from .types import ModelResponse, StreamChunk

_log = logging.getLogger(__name__)


class InstrumentedProvider(ModelProvider):
    """Wrap *inner* so every call is traced.

    Args:
        inner: The adapter doing the actual work.
    """

    def __init__(self, inner: ModelProvider) -> None:
        super().__init__(inner.config)
        self.inner = inner

    def _attributes(self, streaming: bool) -> dict[str, str | bool]:
        return {
            semconv.GEN_AI_SYSTEM: self.config.provider,
            semconv.GEN_AI_REQUEST_MODEL: self.config.model_id,
            semconv.GEN_AI_REQUEST_STREAMING: streaming,
        }

    async def complete(self, messages: list[Message]) -> ModelResponse:
        async with aspan("sambung.model.complete", self._attributes(False)) as s:
            response = await self.inner.complete(messages)
            s.set_attribute(semconv.GEN_AI_RESPONSE_ID, response.id)
            s.set_attribute(semconv.GEN_AI_RESPONSE_MODEL, response.model)
            s.set_attribute(semconv.GEN_AI_RESPONSE_FINISH_REASONS, [response.finish_reason])
            s.set_attribute(semconv.GEN_AI_USAGE_INPUT_TOKENS, response.usage.prompt_tokens)
            s.set_attribute(semconv.GEN_AI_USAGE_OUTPUT_TOKENS, response.usage.completion_tokens)
        _log.debug(
            "%s complete done: model=%s, finish=%s, tokens=%d",
            self.config.provider,
            self.config.model_id,
            response.finish_reason,
            response.usage.total_tokens,
        )
        return response

    async def stream(self, messages: list[Message]) -> AsyncIterator[StreamChunk]:
        # Not made current: the generator may be resumed or closed from
        # another context than the one that started it.
        s = get_tracer().start_span("sambung.model.stream", attributes=self._attributes(True))
        chunks = 0
        try:
            async with aclosing(self.inner.stream(messages)) as gen:
                async for chunk in gen:
                    chunks += 1
                    if chunk.finish_reason is not None:
                        s.set_attribute(
                            semconv.GEN_AI_RESPONSE_FINISH_REASONS, [chunk.finish_reason]
                        )
                    if chunk.usage is not None:
                        s.set_attribute(
                            semconv.GEN_AI_USAGE_INPUT_TOKENS, chunk.usage.prompt_tokens
                        )
                        s.set_attribute(
                            semconv.GEN_AI_USAGE_OUTPUT_TOKENS, chunk.usage.completion_tokens
                        )
                    yield chunk
        except Exception as exc:
            mark_error(s, exc)
            raise
        finally:
            s.set_attribute(semconv.SAMBUNG_STREAM_CHUNKS, chunks)
            s.end()
            _log.debug(
                "%s stream closed: model=%s, chunks=%d",
                self.config.provider,
                self.config.model_id,
                chunks,
            )
