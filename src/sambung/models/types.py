"""Provider-agnostic result, stream and error types.

``CompletionResult`` is returned by the completion service, ``StreamEvent``
values are yielded by the streaming service, and ``StreamChunk`` is the
lower-level unit adapters yield from ``ModelProvider.stream()``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

from sambung.types import SambungError, Usage

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ErrorKind(StrEnum):
    """Closed taxonomy of failures surfaced to callers."""

    CONFIGURATION = "configuration"
    INVALID_PARAMETER = "invalid_parameter"
    AUTHENTICATION_FAILED = "authentication_failed"
    RATE_LIMITED = "rate_limited"
    MODEL_NOT_FOUND = "model_not_found"
    CONTEXT_EXCEEDED = "context_exceeded"
    CONTENT_POLICY_VIOLATION = "content_policy_violation"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"

    @property
    def status_code(self) -> int:
        """HTTP-style status a request handler should answer with."""
        return _STATUS_CODES[self]


_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.CONFIGURATION: 500,
    ErrorKind.INVALID_PARAMETER: 400,
    ErrorKind.AUTHENTICATION_FAILED: 401,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.MODEL_NOT_FOUND: 404,
    ErrorKind.CONTEXT_EXCEEDED: 400,
    ErrorKind.CONTENT_POLICY_VIOLATION: 400,
    ErrorKind.UNAVAILABLE: 503,
    ErrorKind.UNKNOWN: 500,
}


class ErrorInfo(BaseModel):
    """Serializable form of an ``AppError``.

    Args:
        kind: Error category.
        message: User-facing explanation with a remediation hint.
        details: Structured extras (parameter bounds, retry hints, model lists).
        status_code: HTTP-style status for the kind.
    """

    model_config = {"frozen": True}

    kind: ErrorKind
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
    status_code: int = 500


class AppError(SambungError):
    """Structured failure raised by the AI layer.

    Args:
        kind: Error category.
        message: User-facing explanation.
        details: Optional structured extras.
    """

    def __init__(
        self, kind: ErrorKind, message: str, *, details: dict[str, Any] | None = None
    ) -> None:
        self.kind = kind
        self.message = message
        self.details: dict[str, Any] = dict(details or {})
        super().__init__(message)

    @property
    def info(self) -> ErrorInfo:
        """The error as a serializable model."""
        return ErrorInfo(
            kind=self.kind,
            message=self.message,
            details=self.details,
            status_code=self.kind.status_code,
        )

    def __repr__(self) -> str:
        return f"AppError(kind={self.kind.value!r}, message={self.message!r})"


# ---------------------------------------------------------------------------
# FinishReason
# ---------------------------------------------------------------------------

FinishReason = Literal["stop", "length", "content-filter", "error"]
"""Why the model stopped generating.

Adapters normalize their native values to these categories:
- ``"stop"``: Natural completion (Anthropic ``"end_turn"``, Google ``"STOP"``).
- ``"length"``: Hit the max tokens limit.
- ``"content-filter"``: Output was filtered by the provider.
- ``"error"``: The provider reported a failure in-band.
"""

# ---------------------------------------------------------------------------
# Non-streaming results
# ---------------------------------------------------------------------------


class ModelResponse(BaseModel):
    """Raw normalized response from an adapter's ``complete()``.

    Args:
        id: Provider-assigned correlation ID.
        model: Which model produced this response.
        content: Text output from the model.
        usage: Token usage statistics.
        finish_reason: Why the model stopped generating.
    """

    model_config = {"frozen": True}

    id: str = ""
    model: str = ""
    content: str = ""
    usage: Usage = Field(default_factory=Usage)
    finish_reason: FinishReason = "stop"


class CompletionResult(BaseModel):
    """Full result of a non-streaming completion.

    Args:
        text: Generated text.
        finish_reason: Why generation stopped.
        usage: Token usage.
        model: Model id that produced the text.
        provider: Provider that served the request.
    """

    model_config = {"frozen": True}

    text: str
    finish_reason: FinishReason
    usage: Usage = Field(default_factory=Usage)
    model: str = ""
    provider: str = ""


# ---------------------------------------------------------------------------
# Streaming
# ---------------------------------------------------------------------------


class StreamChunk(BaseModel):
    """A single chunk yielded by an adapter during streaming.

    Args:
        delta: Incremental text content, possibly empty.
        finish_reason: Set on the chunk that carries the stop signal.
        usage: Token usage, set on the chunk that carries it.
    """

    model_config = {"frozen": True}

    delta: str = ""
    finish_reason: FinishReason | None = None
    usage: Usage | None = None


class DeltaEvent(BaseModel):
    """An incremental fragment of generated text."""

    model_config = {"frozen": True}

    type: Literal["delta"] = "delta"
    text: str


class FinishEvent(BaseModel):
    """Terminal event of a successful stream."""

    model_config = {"frozen": True}

    type: Literal["finish"] = "finish"
    finish_reason: FinishReason = "stop"
    usage: Usage = Field(default_factory=Usage)


class ErrorEvent(BaseModel):
    """Terminal event of a failed stream."""

    model_config = {"frozen": True}

    type: Literal["error"] = "error"
    error: ErrorInfo


StreamEvent = Annotated[DeltaEvent | FinishEvent | ErrorEvent, Field(discriminator="type")]

# ---------------------------------------------------------------------------
# Model catalogue entries
# ---------------------------------------------------------------------------

CostTier = Literal["free", "low", "medium", "high"]


class ModelInfo(BaseModel):
    """Reference data for one known model.

    Args:
        id: Model identifier as the provider expects it.
        display_name: Human-readable name.
        context_window: Maximum context size in tokens.
        cost_tier: Relative price bucket.
        supported: Whether the model is offered to users.
        capabilities: Capability tags such as ``"vision"`` or ``"reasoning"``.
        best_for: Short usage hint.
    """

    model_config = {"frozen": True}

    id: str
    display_name: str
    context_window: int
    cost_tier: CostTier = "medium"
    supported: bool = True
    capabilities: tuple[str, ...] = ()
    best_for: str = ""


class ModelValidation(BaseModel):
    """Answer to "can this user call this model right now?".

    Args:
        provider: Provider asked about.
        model_id: Model asked about.
        configured: Whether credentials for the provider resolve.
        info: Catalogue entry, ``None`` for models the catalogue does not know.
    """

    model_config = {"frozen": True}

    provider: str
    model_id: str
    configured: bool
    info: ModelInfo | None = None
