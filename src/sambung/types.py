"""Core message types for the Sambung AI layer."""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter


class SambungError(Exception):
    """Base exception for all Sambung errors."""


# ---------------------------------------------------------------------------
# Message types
# ---------------------------------------------------------------------------


class SystemMessage(BaseModel):
    """A system instruction message."""

    model_config = {"frozen": True}

    role: Literal["system"] = "system"
    content: str


class UserMessage(BaseModel):
    """A message from the user."""

    model_config = {"frozen": True}

    role: Literal["user"] = "user"
    content: str


class AssistantMessage(BaseModel):
    """A previous response from the assistant, replayed as history."""

    model_config = {"frozen": True}

    role: Literal["assistant"] = "assistant"
    content: str = ""


Message = Annotated[
    SystemMessage | UserMessage | AssistantMessage,
    Field(discriminator="role"),
]

_MESSAGE_LIST: TypeAdapter[list[Message]] = TypeAdapter(list[Message])


def parse_messages(raw: list[Message] | list[dict[str, Any]]) -> list[Message]:
    """Validate a conversation supplied as message models or plain dicts.

    Args:
        raw: Ordered ``{"role": ..., "content": ...}`` entries.

    Returns:
        The conversation as typed message models, order preserved.

    Raises:
        pydantic.ValidationError: If an entry has an unknown role or no content.
    """
    return _MESSAGE_LIST.validate_python(
        [m.model_dump() if isinstance(m, BaseModel) else m for m in raw]
    )


# ---------------------------------------------------------------------------
# Usage
# ---------------------------------------------------------------------------


class Usage(BaseModel):
    """Token usage statistics for one request.

    Args:
        prompt_tokens: Tokens consumed by the conversation sent.
        completion_tokens: Tokens generated by the model.
        total_tokens: Sum of both.
    """

    model_config = {"frozen": True}

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
