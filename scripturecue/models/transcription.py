"""Transcription-related data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class TranscriptKind(Enum):
    """Kind of transcript update delivered by a segment source."""
    INTERIM = "interim"
    FINAL = "final"


class KeyPointCategory(Enum):
    """Category assigned to an extracted key point."""
    QUOTE = "quote"
    ACTION = "action"
    PRINCIPLE = "principle"
    ENCOURAGEMENT = "encouragement"


@dataclass(frozen=True)
class TranscriptSegment:
    """A committed piece of transcript for one utterance."""
    id: str
    text: str
    timestamp_ms: int
    is_final: bool = True


@dataclass(frozen=True)
class KeyPoint:
    """Quotable statement extracted from a segment."""
    text: str
    category: KeyPointCategory


@dataclass(frozen=True)
class ParaphrasedVerse:
    """Verse candidate the AI believes is paraphrased in a segment."""
    reference: str           # e.g. "John 3:16"
    confidence: float        # 0.0 to 1.0
    matched_phrase: str = ""


@dataclass
class TranscriptAnalysis:
    """Result of AI transcript analysis."""
    key_points: List[KeyPoint] = field(default_factory=list)
    paraphrased_verses: List[ParaphrasedVerse] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.key_points and not self.paraphrased_verses


@dataclass(frozen=True)
class TranscriptEvent:
    """Transport-agnostic transcript update emitted by every segment source.

    Relay sources may attach hints computed on the remote side; they are
    treated as untrusted and go through the same dedup rules as local results.
    """
    kind: TranscriptKind
    text: str
    timestamp_ms: int
    engine: str = "unknown"
    segment: Optional[TranscriptSegment] = None
    scripture_references: List[str] = field(default_factory=list)
    key_points: List[KeyPoint] = field(default_factory=list)
    paraphrased_verses: List[ParaphrasedVerse] = field(default_factory=list)

    @property
    def is_final(self) -> bool:
        return self.kind is TranscriptKind.FINAL
