"""AI-assisted transcript analysis for Scripture Cue."""

from .engine import (
    AIProviderError,
    ChatCompletionEngine,
    CompletionEngine,
    DEFAULT_MODELS,
    PROVIDER_ENDPOINTS,
    create_engine,
)
from .analyzer import ParaphraseResolver, TranscriptAnalyzer, parse_json_leniently

__all__ = [
    "AIProviderError",
    "ChatCompletionEngine",
    "CompletionEngine",
    "DEFAULT_MODELS",
    "PROVIDER_ENDPOINTS",
    "create_engine",
    "ParaphraseResolver",
    "TranscriptAnalyzer",
    "parse_json_leniently",
]
