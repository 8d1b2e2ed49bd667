"""Tests for the tracing wrapper and the traced factory call."""

from __future__ import annotations

import pytest
from opentelemetry.trace import StatusCode

from sambung.config import ProviderConfig, ProviderDefaults
from sambung.models.factory import create_provider
from sambung.models.middleware import InstrumentedProvider
from sambung.models.types import ModelResponse, StreamChunk
from sambung.observability import semconv
from sambung.types import Usage, UserMessage

MESSAGES = [UserMessage(content="hi")]


class TestInstrumentedComplete:
    async def test_span_attributes(self, span_exporter, make_scripted) -> None:
        usage = Usage(prompt_tokens=7, completion_tokens=3, total_tokens=10)
        inner = make_scripted(response=ModelResponse(id="r-1", content="x", usage=usage))
        provider = InstrumentedProvider(inner)

        response = await provider.complete(MESSAGES)

        assert response is inner.response
        (s,) = span_exporter.by_name("sambung.model.complete")
        attrs = dict(s.attributes)
        assert attrs[semconv.GEN_AI_SYSTEM] == "openai"
        assert attrs[semconv.GEN_AI_REQUEST_MODEL] == "gpt-4o-mini"
        assert attrs[semconv.GEN_AI_REQUEST_STREAMING] is False
        assert attrs[semconv.GEN_AI_RESPONSE_ID] == "r-1"
        assert attrs[semconv.GEN_AI_USAGE_INPUT_TOKENS] == 7

    async def test_error_recorded_and_reraised(self, span_exporter, make_scripted) -> None:
        cause = RuntimeError("boom")
        provider = InstrumentedProvider(make_scripted(error=cause))

        with pytest.raises(RuntimeError) as exc_info:
            await provider.complete(MESSAGES)
        assert exc_info.value is cause

        (s,) = span_exporter.by_name("sambung.model.complete")
        assert s.status.status_code is StatusCode.ERROR
        assert any(e.name == "exception" for e in s.events)


class TestInstrumentedStream:
    async def test_chunks_pass_through(self, span_exporter, make_scripted) -> None:
        chunks = [
            StreamChunk(delta="a"),
            StreamChunk(delta="b", finish_reason="length"),
            StreamChunk(usage=Usage(prompt_tokens=2, completion_tokens=2, total_tokens=4)),
        ]
        inner = make_scripted(chunks=list(chunks))
        provider = InstrumentedProvider(inner)

        received = [c async for c in provider.stream(MESSAGES)]

        assert received == chunks
        (s,) = span_exporter.by_name("sambung.model.stream")
        attrs = dict(s.attributes)
        assert attrs[semconv.SAMBUNG_STREAM_CHUNKS] == 3
        assert attrs[semconv.GEN_AI_RESPONSE_FINISH_REASONS] == ("length",)
        assert attrs[semconv.GEN_AI_USAGE_OUTPUT_TOKENS] == 2

    async def test_early_close_ends_span_and_closes_inner(
        self, span_exporter, make_scripted
    ) -> None:
        inner = make_scripted(chunks=[StreamChunk(delta=c) for c in "abc"])
        gen = InstrumentedProvider(inner).stream(MESSAGES)
        await gen.__anext__()
        await gen.aclose()

        assert inner.closed
        (s,) = span_exporter.by_name("sambung.model.stream")
        assert s.attributes[semconv.SAMBUNG_STREAM_CHUNKS] == 1
        assert s.status.status_code is not StatusCode.ERROR

    async def test_failure_marks_span(self, span_exporter, make_scripted) -> None:
        inner = make_scripted(chunks=[StreamChunk(delta="a"), ConnectionError("reset")])
        received = []
        with pytest.raises(ConnectionError):
            async for chunk in InstrumentedProvider(inner).stream(MESSAGES):
                received.append(chunk)

        assert len(received) == 1
        (s,) = span_exporter.by_name("sambung.model.stream")
        assert s.status.status_code is StatusCode.ERROR


class TestFactorySpan:
    def test_create_provider_traced(self, span_exporter) -> None:
        config = ProviderConfig(provider="ollama", model_id="llama3.2")
        create_provider(config, defaults=ProviderDefaults())
        (s,) = span_exporter.by_name("sambung.create_provider")
        assert s.attributes["code.function"] == "create_provider"
