"""Caller-facing entry point: ``ChatGateway``.

The gateway ties the pieces together for request handlers. It parses the
conversation, looks up the caller's stored key, builds a provider and runs
the completion or streaming service. Everything that can fail without a
network call (bad messages, unknown provider, missing key, out-of-range
settings) raises ``AppError`` before any event is produced.

Usage::

    gateway = ChatGateway(credentials=my_store)
    config = ProviderConfig(provider="anthropic", model_id="claude-3-5-haiku-20241022")
    events = await gateway.stream(config, [{"role": "user", "content": "Hi"}], user_id="u-1")
    async with aclosing(events):
        async for event in events:
            ...
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, AsyncIterator
from typing import Any, Protocol, runtime_checkable

from pydantic import ValidationError

from sambung.config import ProviderConfig, ProviderDefaults, ProviderKind
from sambung.observability.logging import LogContext
from sambung.types import Message, parse_messages

from .completion import complete
from .errors import translate_error
from .factory import create_provider, is_provider_configured, parse_provider_kind
from .provider import ResolvedClient
from .registry import ModelRegistry, model_registry
from .streaming import stream
from .types import AppError, CompletionResult, ErrorKind, ModelInfo, ModelValidation, StreamEvent

_log = logging.getLogger(__name__)


@runtime_checkable
class CredentialStore(Protocol):
    """Source of per-user API keys, typically backed by encrypted storage."""

    async def get_api_key(self, user_id: str, provider: str) -> str | None:
        """Return the key *user_id* saved for *provider*, or ``None``."""
        ...


def _request_bindings(config: ProviderConfig, user_id: str | None) -> dict[str, str]:
    bindings = {"provider": config.provider}
    if config.model_id is not None:
        bindings["model"] = config.model_id
    if user_id is not None:
        bindings["user_id"] = user_id
    return bindings


async def _bound_events(
    events: AsyncGenerator[StreamEvent, None], bindings: dict[str, str]
) -> AsyncIterator[StreamEvent]:
    """Re-enter the request's ``LogContext`` for each step of *events*.

    The context is held only while the next event is produced, never
    across ``yield``.
    """
    try:
        while True:
            with LogContext(**bindings):
                try:
                    event = await anext(events)
                except StopAsyncIteration:
                    return
            yield event
    finally:
        with LogContext(**bindings):
            await events.aclose()


class ChatGateway:
    """Multi-provider chat entry point.

    Args:
        defaults: Process-wide fallback credentials; read from the
            environment when omitted.
        credentials: Per-user key store. Without one only explicit and
            default keys are used.
        registry: Model catalogue.
    """

    def __init__(
        self,
        defaults: ProviderDefaults | None = None,
        credentials: CredentialStore | None = None,
        registry: ModelRegistry = model_registry,
    ) -> None:
        self.defaults = ProviderDefaults.from_env() if defaults is None else defaults
        self.credentials = credentials
        self.registry = registry

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _parse(messages: list[Message] | list[dict[str, Any]]) -> list[Message]:
        if not messages:
            raise AppError(ErrorKind.INVALID_PARAMETER, "At least one message is required.")
        try:
            return parse_messages(messages)
        except ValidationError as exc:
            raise AppError(
                ErrorKind.INVALID_PARAMETER,
                f"Invalid message list: {exc.error_count()} problem(s) found.",
                details={
                    "errors": [
                        {"loc": list(err["loc"]), "msg": err["msg"]} for err in exc.errors()
                    ]
                },
            ) from exc

    async def _stored_key(self, user_id: str | None, kind: ProviderKind) -> str | None:
        if user_id is None or self.credentials is None:
            return None
        try:
            return await self.credentials.get_api_key(user_id, kind.value)
        except Exception as exc:
            error = translate_error(exc, provider=kind, registry=self.registry)
            _log.warning("credential lookup failed: provider=%s, kind=%s", kind, error.kind.value)
            if error is exc:
                raise
            raise error from exc

    async def _client(self, config: ProviderConfig, user_id: str | None) -> ResolvedClient:
        kind = parse_provider_kind(config.provider)
        stored = None if config.api_key else await self._stored_key(user_id, kind)
        return create_provider(
            config, defaults=self.defaults, stored_api_key=stored, registry=self.registry
        )

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    async def complete(
        self,
        config: ProviderConfig,
        messages: list[Message] | list[dict[str, Any]],
        *,
        user_id: str | None = None,
    ) -> CompletionResult:
        """Run one blocking completion.

        Raises:
            AppError: Validation, configuration or translated provider errors.
        """
        with LogContext(**_request_bindings(config, user_id)):
            chat = self._parse(messages)
            client = await self._client(config, user_id)
            _log.info(
                "completion requested: model=%s, messages=%d", client.config.model_id, len(chat)
            )
            return await complete(client, chat, registry=self.registry)

    async def stream(
        self,
        config: ProviderConfig,
        messages: list[Message] | list[dict[str, Any]],
        *,
        user_id: str | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Prepare a streaming completion and return its event iterator.

        Awaiting this performs all checks that need no network; failures
        raise ``AppError`` here. Provider failures after that arrive as a
        terminal ``ErrorEvent``.
        """
        bindings = _request_bindings(config, user_id)
        with LogContext(**bindings):
            chat = self._parse(messages)
            client = await self._client(config, user_id)
            _log.info(
                "stream requested: model=%s, messages=%d", client.config.model_id, len(chat)
            )
        bindings["model"] = client.config.model_id
        return _bound_events(stream(client, chat, registry=self.registry), bindings)

    # ------------------------------------------------------------------
    # Models
    # ------------------------------------------------------------------

    def list_models(self, provider: str | None = None) -> list[ModelInfo]:
        """List catalogued models, for one provider or all of them.

        Raises:
            AppError: ``CONFIGURATION`` for unknown provider names.
        """
        if provider is None:
            return [
                info for kind in self.registry.providers() for info in self.registry.list_for(kind)
            ]
        return self.registry.list_for(parse_provider_kind(provider))

    async def validate_model(
        self, provider: str, model_id: str, *, user_id: str | None = None
    ) -> ModelValidation:
        """Report whether *model_id* on *provider* is usable by *user_id*.

        Models missing from the catalogue are still reported as usable;
        ``info`` is simply ``None`` for them.
        """
        kind = parse_provider_kind(provider)
        stored = await self._stored_key(user_id, kind)
        return ModelValidation(
            provider=kind.value,
            model_id=model_id,
            configured=is_provider_configured(
                kind, defaults=self.defaults, stored_api_key=stored
            ),
            info=self.registry.lookup(kind, model_id),
        )

    async def configured_providers(self, *, user_id: str | None = None) -> list[ProviderKind]:
        """Return the providers a request from *user_id* could use right now."""
        configured: list[ProviderKind] = []
        for kind in ProviderKind:
            stored = await self._stored_key(user_id, kind)
            if is_provider_configured(kind, defaults=self.defaults, stored_api_key=stored):
                configured.append(kind)
        return configured
