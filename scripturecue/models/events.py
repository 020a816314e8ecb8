"""Event models published on a session channel."""

from dataclasses import dataclass, field
from typing import List, Optional

from .live import LiveCueState
from .references import DetectedReference
from .session import SessionState
from .transcription import KeyPoint, TranscriptSegment


@dataclass(frozen=True)
class SessionStatusEvent:
    """Session lifecycle change."""
    session_id: str
    state: SessionState
    message: Optional[str] = None


@dataclass(frozen=True)
class ReferencesEvent:
    """References surfaced for a transcript segment."""
    session_id: str
    references: List[DetectedReference]
    segment_id: Optional[str] = None
    is_interim: bool = False


@dataclass(frozen=True)
class KeyPointsEvent:
    """Key points attached to a final segment."""
    session_id: str
    segment: TranscriptSegment
    key_points: List[KeyPoint] = field(default_factory=list)


@dataclass(frozen=True)
class LiveCueEvent:
    """Live cue change, reported by the live cue controller."""
    state: LiveCueState
    reference: Optional[DetectedReference] = None
