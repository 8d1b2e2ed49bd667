"""Span helpers and the ``@traced`` decorator, built on the OpenTelemetry API.

Spans go to whatever tracer provider the host application installed. With
only ``opentelemetry-api`` present and no SDK configured, the API hands out
non-recording spans, so instrumentation costs next to nothing.
"""

from __future__ import annotations

import functools
import inspect
from collections.abc import AsyncIterator, Iterator
from contextlib import aclosing, asynccontextmanager, contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode

_TRACER_NAME = "sambung"


def get_tracer() -> trace.Tracer:
    """Return the package tracer from the current global provider."""
    return trace.get_tracer(_TRACER_NAME)


def mark_error(s: Span, exc: BaseException) -> None:
    """Record *exc* on *s* and flag the span as failed."""
    s.record_exception(exc)
    s.set_status(Status(StatusCode.ERROR, type(exc).__name__))


# ---------------------------------------------------------------------------
# Span context managers
# ---------------------------------------------------------------------------


@contextmanager
def span(name: str, attributes: dict[str, Any] | None = None) -> Iterator[Span]:
    """Synchronous span context manager."""
    with get_tracer().start_as_current_span(name, attributes=attributes or {}) as s:
        yield s


@asynccontextmanager
async def aspan(name: str, attributes: dict[str, Any] | None = None) -> AsyncIterator[Span]:
    """Asynchronous span context manager.

    Exceptions raised inside the block are recorded on the span and
    re-raised unchanged.
    """
    with get_tracer().start_as_current_span(
        name,
        attributes=attributes or {},
        record_exception=False,
        set_status_on_exception=False,
    ) as s:
        try:
            yield s
        except Exception as exc:
            mark_error(s, exc)
            raise


# ---------------------------------------------------------------------------
# @traced decorator
# ---------------------------------------------------------------------------


def traced(name: str | None = None, *, attributes: dict[str, Any] | None = None) -> Any:
    """Decorator that wraps a function in a span.

    Supports sync functions, async functions and async generators. For async
    generators the span covers the whole iteration, not just creation.

    Args:
        name: Span name override (defaults to ``func.__qualname__``).
        attributes: Extra attributes set on the span.
    """

    def decorator(func: Any) -> Any:
        span_name = name or func.__qualname__
        attrs = {"code.function": func.__qualname__, "code.module": func.__module__}
        if attributes:
            attrs.update(attributes)

        if inspect.isasyncgenfunction(func):

            @functools.wraps(func)
            async def async_gen_wrapper(*args: Any, **kwargs: Any) -> Any:
                # Not made current: the generator may be resumed or closed
                # from another context than the one that started it.
                s = get_tracer().start_span(span_name, attributes=attrs)
                try:
                    async with aclosing(func(*args, **kwargs)) as gen:
                        async for item in gen:
                            yield item
                except Exception as exc:
                    mark_error(s, exc)
                    raise
                finally:
                    s.end()

            return async_gen_wrapper

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                async with aspan(span_name, attrs):
                    return await func(*args, **kwargs)

            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with span(span_name, attrs):
                return func(*args, **kwargs)

        return sync_wrapper

    return decorator
