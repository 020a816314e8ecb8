"""Scripture reference data models."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class ReferenceSource(Enum):
    """How a reference was detected."""
    DIRECT = "direct"
    PARAPHRASE = "paraphrase"


class SearchMethod(Enum):
    """Stage of the search cascade that produced a result."""
    DIRECT = "direct"
    AI = "ai"
    TEXT = "text"


@dataclass(frozen=True)
class ParsedReference:
    """A citation recognised in text, before any verse text lookup."""
    book: str
    chapter: int
    start_verse: int
    end_verse: Optional[int] = None

    @property
    def display_ref(self) -> str:
        if self.end_verse and self.end_verse != self.start_verse:
            return f"{self.book} {self.chapter}:{self.start_verse}-{self.end_verse}"
        return f"{self.book} {self.chapter}:{self.start_verse}"

    def verses(self) -> List[int]:
        """All verse numbers covered by this reference."""
        end = self.end_verse if self.end_verse and self.end_verse >= self.start_verse else self.start_verse
        return list(range(self.start_verse, end + 1))


@dataclass(frozen=True)
class DetectedReference:
    """A resolved reference ready for display. Never mutated once created."""
    id: str
    reference: str
    display_ref: str
    verse_text: str
    source: ReferenceSource
    timestamp_ms: int
    transcript_text: str = ""
    book: Optional[str] = None
    chapter: Optional[int] = None
    verse: Optional[int] = None
    confidence: Optional[float] = None       # paraphrase only
    matched_phrase: Optional[str] = None     # paraphrase only
    is_navigation_result: bool = False

    @property
    def normalized_key(self) -> str:
        """Normalized display form used for dedup comparisons."""
        return normalize_display_ref(self.display_ref)


@dataclass
class SearchResult:
    """Outcome of one search cascade run."""
    query: str
    method: SearchMethod
    references: List[DetectedReference] = field(default_factory=list)
    error: Optional[str] = None


def normalize_display_ref(display_ref: Optional[str]) -> str:
    """Lower-cased, trimmed display reference."""
    return (display_ref or "").strip().lower()


def make_reference_id() -> str:
    return f"ref_{uuid.uuid4().hex[:12]}"


def now_ms() -> int:
    """Wall-clock time in milliseconds."""
    return int(datetime.now().timestamp() * 1000)
