"""Span attribute names, following the OpenTelemetry GenAI conventions."""

from __future__ import annotations

# ---------------------------------------------------------------------------
# GenAI semantic conventions (gen_ai.*)
# ---------------------------------------------------------------------------

GEN_AI_SYSTEM = "gen_ai.system"
GEN_AI_REQUEST_MODEL = "gen_ai.request.model"
GEN_AI_REQUEST_STREAMING = "gen_ai.request.streaming"
GEN_AI_RESPONSE_ID = "gen_ai.response.id"
GEN_AI_RESPONSE_MODEL = "gen_ai.response.model"
GEN_AI_RESPONSE_FINISH_REASONS = "gen_ai.response.finish_reasons"
GEN_AI_USAGE_INPUT_TOKENS = "gen_ai.usage.input_tokens"
GEN_AI_USAGE_OUTPUT_TOKENS = "gen_ai.usage.output_tokens"

# ---------------------------------------------------------------------------
# Sambung-specific
# ---------------------------------------------------------------------------

SAMBUNG_STREAM_CHUNKS = "sambung.stream.chunks"
