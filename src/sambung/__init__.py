"""Sambung: one chat interface over many LLM providers."""

__version__ = "0.1.0"

from sambung.config import (
    GenerationSettings,
    ProviderConfig,
    ProviderDefaults,
    ProviderEndpoint,
    ProviderKind,
)
from sambung.models import AppError, ChatGateway, CredentialStore, ErrorKind
from sambung.observability.logging import configure_logging as configure
from sambung.observability.logging import get_logger
from sambung.types import (
    AssistantMessage,
    Message,
    SambungError,
    SystemMessage,
    Usage,
    UserMessage,
)

__all__ = [
    "AppError",
    "AssistantMessage",
    "ChatGateway",
    "CredentialStore",
    "ErrorKind",
    "GenerationSettings",
    "Message",
    "ProviderConfig",
    "ProviderDefaults",
    "ProviderEndpoint",
    "ProviderKind",
    "SambungError",
    "SystemMessage",
    "Usage",
    "UserMessage",
    "configure",
    "get_logger",
]
