"""Shared fixtures: an in-memory span exporter and a scripted provider."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from typing import Any

import pytest
from opentelemetry import trace
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor, SpanExporter, SpanExportResult

from sambung.config import ProviderConfig
from sambung.models.provider import ModelProvider
from sambung.models.types import ModelResponse, StreamChunk
from sambung.types import Message

# ---------------------------------------------------------------------------
# In-memory exporter
# ---------------------------------------------------------------------------


class MemoryExporter(SpanExporter):
    """Collects finished spans in a list for test assertions."""

    def __init__(self) -> None:
        self._spans: list[ReadableSpan] = []

    def export(self, spans: Any) -> SpanExportResult:
        self._spans.extend(spans)
        return SpanExportResult.SUCCESS

    def shutdown(self) -> None:
        pass

    def get_finished_spans(self) -> list[ReadableSpan]:
        return list(self._spans)

    def by_name(self, name: str) -> list[ReadableSpan]:
        return [s for s in self._spans if s.name == name]


@pytest.fixture
def span_exporter() -> Any:
    """Install a fresh SDK tracer provider that records into memory."""
    # Reset the global singleton guard so we can install a fresh provider.
    trace._TRACER_PROVIDER_SET_ONCE._done = False  # type: ignore[attr-defined]
    trace._TRACER_PROVIDER = None  # type: ignore[attr-defined]

    exporter = MemoryExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    yield exporter
    provider.shutdown()


# ---------------------------------------------------------------------------
# Scripted provider
# ---------------------------------------------------------------------------


class ScriptedProvider(ModelProvider):
    """Provider that replays a fixed script instead of calling an SDK.

    ``chunks`` items are yielded in order; an ``Exception`` item is raised
    at that point instead. ``closed`` flips when the stream is closed.
    """

    def __init__(
        self,
        config: ProviderConfig,
        *,
        response: ModelResponse | None = None,
        error: Exception | None = None,
        chunks: list[StreamChunk | Exception] | None = None,
    ) -> None:
        super().__init__(config)
        self.response = response or ModelResponse(content="ok")
        self.error = error
        self.chunks = chunks or []
        self.calls = 0
        self.pulled = 0
        self.closed = False

    async def complete(self, messages: list[Message]) -> ModelResponse:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.response

    async def stream(self, messages: list[Message]) -> AsyncIterator[StreamChunk]:
        self.calls += 1
        try:
            if self.error is not None:
                raise self.error
            for item in self.chunks:
                self.pulled += 1
                if isinstance(item, Exception):
                    raise item
                yield item
        finally:
            self.closed = True


@pytest.fixture
def make_scripted() -> Callable[..., ScriptedProvider]:
    def factory(provider: str = "openai", model_id: str = "gpt-4o-mini", **kwargs: Any):
        config = ProviderConfig(provider=provider, model_id=model_id)
        return ScriptedProvider(config, **kwargs)

    return factory
