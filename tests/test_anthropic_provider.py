"""Tests for the Anthropic provider."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import anthropic
import httpx
import pytest

from sambung.config import GenerationSettings, ProviderConfig
from sambung.models.anthropic import (
    AnthropicProvider,
    _build_messages,
    _map_stop_reason,
    _parse_response,
)
from sambung.models.errors import translate_error
from sambung.models.types import ErrorKind
from sambung.types import AssistantMessage, SystemMessage, UserMessage

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_config(**overrides: Any) -> ProviderConfig:
    defaults: dict[str, Any] = {
        "provider": "anthropic",
        "model_id": "claude-3-5-haiku-20241022",
        "api_key": "sk-ant-test",
    }
    defaults.update(overrides)
    return ProviderConfig(**defaults)


def _make_response(*, text: str = "hello", stop_reason: str = "end_turn") -> SimpleNamespace:
    return SimpleNamespace(
        id="msg_1",
        model="claude-3-5-haiku-20241022",
        content=[SimpleNamespace(type="text", text=text)],
        usage=SimpleNamespace(input_tokens=12, output_tokens=3),
        stop_reason=stop_reason,
    )


def _text_delta(text: str) -> SimpleNamespace:
    return SimpleNamespace(
        type="content_block_delta", delta=SimpleNamespace(type="text_delta", text=text)
    )


class FakeEventStream:
    def __init__(self, events: list[Any]) -> None:
        self._events = events
        self.closed = False

    async def __aiter__(self) -> Any:
        for event in self._events:
            yield event

    async def close(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Conversion and parsing
# ---------------------------------------------------------------------------


class TestConversion:
    def test_system_messages_split_out(self) -> None:
        system, messages = _build_messages(
            [
                SystemMessage(content="one"),
                UserMessage(content="hi"),
                SystemMessage(content="two"),
                AssistantMessage(content="hey"),
            ]
        )
        assert system == "one\ntwo"
        assert messages == [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hey"},
        ]

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("end_turn", "stop"),
            ("stop_sequence", "stop"),
            ("max_tokens", "length"),
            ("refusal", "content-filter"),
            (None, "stop"),
        ],
    )
    def test_stop_reason(self, raw: str | None, expected: str) -> None:
        assert _map_stop_reason(raw) == expected

    def test_parse_response_joins_text_blocks(self) -> None:
        raw = _make_response()
        raw.content.append(SimpleNamespace(type="tool_use", id="t1"))
        raw.content.append(SimpleNamespace(type="text", text=" world"))
        resp = _parse_response(raw, "fallback")
        assert resp.content == "hello world"
        assert resp.usage.prompt_tokens == 12
        assert resp.usage.total_tokens == 15


# ---------------------------------------------------------------------------
# complete()
# ---------------------------------------------------------------------------


class TestComplete:
    async def test_basic_complete(self) -> None:
        provider = AnthropicProvider(_make_config())
        create = AsyncMock(return_value=_make_response(stop_reason="max_tokens"))
        provider._client.messages.create = create

        result = await provider.complete(
            [SystemMessage(content="be brief"), UserMessage(content="hi")]
        )

        assert result.content == "hello"
        assert result.finish_reason == "length"
        create.assert_awaited_once()
        kwargs = create.call_args.kwargs
        assert kwargs["system"] == "be brief"
        assert kwargs["max_tokens"] == 4096

    async def test_settings_forwarded_and_penalties_dropped(self) -> None:
        settings = GenerationSettings(
            temperature=0.5, max_tokens=256, top_k=10, frequency_penalty=0.5
        )
        provider = AnthropicProvider(_make_config(settings=settings))
        create = AsyncMock(return_value=_make_response())
        provider._client.messages.create = create

        await provider.complete([UserMessage(content="hi")])

        kwargs = create.call_args.kwargs
        assert kwargs["temperature"] == 0.5
        assert kwargs["max_tokens"] == 256
        assert kwargs["top_k"] == 10
        assert "frequency_penalty" not in kwargs
        assert "system" not in kwargs

    def test_client_retries_disabled(self) -> None:
        provider = AnthropicProvider(_make_config())
        assert provider._client.max_retries == 0

    async def test_rate_limit_reaches_transport_once(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                429,
                json={
                    "type": "error",
                    "error": {"type": "rate_limit_error", "message": "Rate limited"},
                },
            )

        provider = AnthropicProvider(_make_config())
        provider._client = provider._client.with_options(
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
        )

        with pytest.raises(anthropic.RateLimitError) as exc_info:
            await provider.complete([UserMessage(content="hi")])

        assert len(requests) == 1
        err = translate_error(exc_info.value, provider="anthropic")
        assert err.kind is ErrorKind.RATE_LIMITED


# ---------------------------------------------------------------------------
# stream()
# ---------------------------------------------------------------------------


class TestStream:
    async def test_events_normalized(self) -> None:
        events = [
            SimpleNamespace(
                type="message_start",
                message=SimpleNamespace(usage=SimpleNamespace(input_tokens=9)),
            ),
            SimpleNamespace(type="content_block_start"),
            _text_delta("Hel"),
            _text_delta("lo"),
            SimpleNamespace(type="content_block_stop"),
            SimpleNamespace(
                type="message_delta",
                delta=SimpleNamespace(stop_reason="end_turn"),
                usage=SimpleNamespace(output_tokens=2),
            ),
            SimpleNamespace(type="message_stop"),
        ]
        fake = FakeEventStream(events)
        provider = AnthropicProvider(_make_config())
        create = AsyncMock(return_value=fake)
        provider._client.messages.create = create

        chunks = [c async for c in provider.stream([UserMessage(content="hi")])]

        assert [c.delta for c in chunks] == ["Hel", "lo", ""]
        final = chunks[-1]
        assert final.finish_reason == "stop"
        assert final.usage is not None
        assert (final.usage.prompt_tokens, final.usage.completion_tokens) == (9, 2)
        assert create.call_args.kwargs["stream"] is True
        assert fake.closed

    async def test_early_close_releases_stream(self) -> None:
        fake = FakeEventStream([_text_delta("a"), _text_delta("b")])
        provider = AnthropicProvider(_make_config())
        provider._client.messages.create = AsyncMock(return_value=fake)

        gen = provider.stream([UserMessage(content="hi")])
        await gen.__anext__()
        await gen.aclose()

        assert fake.closed
