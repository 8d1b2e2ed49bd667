"""Streaming completion service.

``stream()`` turns the adapter's ``StreamChunk`` sequence into
``StreamEvent`` values:

- one ``DeltaEvent`` per chunk with non-empty text, in arrival order;
- then exactly one terminal event, either ``FinishEvent`` once the
  transport is exhausted or ``ErrorEvent`` when it fails.

The stream moves ``idle -> streaming -> finished | errored`` and nothing
follows a terminal event. Closing the generator (``aclose()``, leaving an
``aclosing`` block early, task cancellation) closes the adapter stream and
with it the HTTP response. ``CancelledError`` and ``GeneratorExit`` are
never turned into events.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import aclosing

from sambung.types import Message, Usage

from .errors import translate_error
from .provider import ResolvedClient
from .registry import ModelRegistry
from .types import DeltaEvent, ErrorEvent, FinishEvent, FinishReason, StreamEvent

_log = logging.getLogger(__name__)


async def stream(
    client: ResolvedClient,
    messages: list[Message],
    *,
    registry: ModelRegistry | None = None,
) -> AsyncGenerator[StreamEvent, None]:
    """Stream a completion as events.

    Pull based: the next chunk is requested from the provider only when
    the consumer asks for the next event.

    Args:
        client: Provider built by ``create_provider()``.
        messages: Conversation history.
        registry: Catalogue used for error hints.

    Yields:
        ``DeltaEvent`` values followed by one ``FinishEvent`` or ``ErrorEvent``.
    """
    finish_reason: FinishReason = "stop"
    usage: Usage | None = None
    deltas = 0
    try:
        async with aclosing(client.stream(messages)) as chunks:
            async for chunk in chunks:
                if chunk.finish_reason is not None:
                    finish_reason = chunk.finish_reason
                if chunk.usage is not None:
                    usage = chunk.usage
                if chunk.delta:
                    deltas += 1
                    yield DeltaEvent(text=chunk.delta)
    except Exception as exc:
        error = translate_error(
            exc,
            provider=client.config.provider,
            model_id=client.config.model_id,
            registry=registry,
        )
        _log.warning(
            "stream failed: provider=%s, model=%s, kind=%s, deltas=%d",
            client.config.provider,
            client.config.model_id,
            error.kind.value,
            deltas,
        )
        _log.debug("stream failure detail", exc_info=exc)
        yield ErrorEvent(error=error.info)
        return

    _log.debug(
        "stream finished: provider=%s, model=%s, finish=%s, deltas=%d",
        client.config.provider,
        client.config.model_id,
        finish_reason,
        deltas,
    )
    yield FinishEvent(finish_reason=finish_reason, usage=usage or Usage())
