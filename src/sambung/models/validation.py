"""Provider-specific range checks for generation settings.

Each provider accepts a different range per knob (Anthropic caps
``temperature`` at 1, OpenAI-compatible APIs allow 2). Checking locally
turns a provider 400 into a precise ``INVALID_PARAMETER`` error before
any request is sent.
"""

from __future__ import annotations

import math
from typing import NamedTuple

from sambung.config import GenerationSettings, ProviderKind

from .types import AppError, ErrorKind


class ParameterRange(NamedTuple):
    """Inclusive bounds for one setting; ``math.inf`` means unbounded."""

    min: float
    max: float


_DEFAULT_RANGES: dict[str, ParameterRange] = {
    "temperature": ParameterRange(0, 2),
    "max_tokens": ParameterRange(1, math.inf),
    "top_p": ParameterRange(0, 1),
    "top_k": ParameterRange(0, 100),
    "frequency_penalty": ParameterRange(-2, 2),
    "presence_penalty": ParameterRange(-2, 2),
}

# Anthropic has no frequency/presence penalties; the adapter drops them.
_ANTHROPIC_RANGES: dict[str, ParameterRange] = {
    "temperature": ParameterRange(0, 1),
    "max_tokens": ParameterRange(1, 8192),
    "top_k": ParameterRange(0, 40),
    "top_p": ParameterRange(0, 1),
}

_PROVIDER_RANGES: dict[ProviderKind, dict[str, ParameterRange]] = {
    ProviderKind.ANTHROPIC: _ANTHROPIC_RANGES,
}


def parameter_ranges(provider: ProviderKind) -> dict[str, ParameterRange]:
    """Return the range table applied to *provider*."""
    return dict(_PROVIDER_RANGES.get(provider, _DEFAULT_RANGES))


def validate_settings(provider: ProviderKind, settings: GenerationSettings) -> GenerationSettings:
    """Check supplied settings against the provider's accepted ranges.

    Fields are checked in declaration order and the first violation is
    raised; a caller fixing one field may hit the next on retry. Fields
    left as ``None``, and fields the provider has no range for, are not
    checked.

    Args:
        provider: Provider the request will go to.
        settings: Settings to check.

    Returns:
        *settings*, unchanged.

    Raises:
        AppError: ``INVALID_PARAMETER`` with ``details`` holding
            ``parameter``, ``min``, ``max`` and ``provided``.
    """
    ranges = _PROVIDER_RANGES.get(provider, _DEFAULT_RANGES)
    for name in GenerationSettings.model_fields:
        value = getattr(settings, name)
        bounds = ranges.get(name)
        if value is None or bounds is None:
            continue
        if bounds.min <= value <= bounds.max:
            continue
        upper = None if math.isinf(bounds.max) else bounds.max
        if upper is None:
            allowed = f"at least {_fmt(bounds.min)}"
        else:
            allowed = f"between {_fmt(bounds.min)} and {_fmt(upper)}"
        raise AppError(
            ErrorKind.INVALID_PARAMETER,
            f"{name} must be {allowed} for {provider.value} models (got {_fmt(value)}).",
            details={
                "parameter": name,
                "min": _fmt(bounds.min),
                "max": None if upper is None else _fmt(upper),
                "provided": value,
            },
        )
    return settings


def _fmt(value: float) -> int | float:
    """Render whole-number bounds as ints so ``max=1`` reads as ``1``."""
    return int(value) if float(value).is_integer() else value
