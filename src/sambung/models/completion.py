"""Non-streaming completion service."""

from __future__ import annotations

import logging

from sambung.types import Message

from .errors import translate_error
from .provider import ResolvedClient
from .registry import ModelRegistry
from .types import CompletionResult

_log = logging.getLogger(__name__)


async def complete(
    client: ResolvedClient,
    messages: list[Message],
    *,
    registry: ModelRegistry | None = None,
) -> CompletionResult:
    """Run one blocking completion.

    Args:
        client: Provider built by ``create_provider()``.
        messages: Conversation history.
        registry: Catalogue used for error hints.

    Returns:
        The generated text with finish reason and usage.

    Raises:
        AppError: The translated failure, chained from the original
            exception. No partial text is returned on failure.
    """
    try:
        response = await client.complete(messages)
    except Exception as exc:
        error = translate_error(
            exc,
            provider=client.config.provider,
            model_id=client.config.model_id,
            registry=registry,
        )
        _log.warning(
            "completion failed: provider=%s, model=%s, kind=%s",
            client.config.provider,
            client.config.model_id,
            error.kind.value,
        )
        _log.debug("completion failure detail", exc_info=exc)
        if error is exc:
            raise
        raise error from exc
    return CompletionResult(
        text=response.content,
        finish_reason=response.finish_reason,
        usage=response.usage,
        model=response.model or client.config.model_id,
        provider=client.config.provider,
    )
