"""Services layer for Scripture Cue."""

from .live_cue import LiveCueController
from .search_service import SearchCascade, ScriptureLookupService
from .transcript_pipeline import TranscriptPipeline
from .session_manager import SessionManager

__all__ = [
    "LiveCueController",
    "SearchCascade",
    "ScriptureLookupService",
    "TranscriptPipeline",
    "SessionManager",
]
