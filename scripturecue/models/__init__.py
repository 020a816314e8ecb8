"""Data models for the Scripture Cue application."""

from .transcription import (
    TranscriptKind,
    KeyPointCategory,
    TranscriptSegment,
    KeyPoint,
    ParaphrasedVerse,
    TranscriptAnalysis,
    TranscriptEvent,
)
from .references import (
    ReferenceSource,
    SearchMethod,
    ParsedReference,
    DetectedReference,
    SearchResult,
    normalize_display_ref,
    make_reference_id,
    now_ms,
)
from .session import SessionState, SourceKind, TranscriptionSession
from .live import LiveCueState, IDLE_STATE
from .events import SessionStatusEvent, ReferencesEvent, KeyPointsEvent, LiveCueEvent
from .settings import (
    SessionConfig,
    DetectionSettings,
    ProviderConfig,
    AISettings,
    ProPresenterConnection,
    PresentationActivation,
    LiveCueSettings,
)

__all__ = [
    "TranscriptKind",
    "KeyPointCategory",
    "TranscriptSegment",
    "KeyPoint",
    "ParaphrasedVerse",
    "TranscriptAnalysis",
    "TranscriptEvent",
    "ReferenceSource",
    "SearchMethod",
    "ParsedReference",
    "DetectedReference",
    "SearchResult",
    "normalize_display_ref",
    "make_reference_id",
    "now_ms",
    "SessionState",
    "SourceKind",
    "TranscriptionSession",
    "LiveCueState",
    "IDLE_STATE",
    # Session channel events
    "SessionStatusEvent",
    "ReferencesEvent",
    "KeyPointsEvent",
    "LiveCueEvent",
    # Settings
    "SessionConfig",
    "DetectionSettings",
    "ProviderConfig",
    "AISettings",
    "ProPresenterConnection",
    "PresentationActivation",
    "LiveCueSettings",
]
