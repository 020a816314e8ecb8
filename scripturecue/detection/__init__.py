"""Scripture reference detection for Scripture Cue."""

from .books import BOOK_ALIASES, canonical_book_name
from .parser import (
    parse_references,
    parse_reference,
    detect_navigation_command,
    normalize_text,
    words_to_numbers,
)
from .throttle import InterimThrottle, RecencyDeduplicator, reference_signature, unique_by_display_ref
from .detector import DirectReferenceDetector, ParseContext

__all__ = [
    "BOOK_ALIASES",
    "canonical_book_name",
    "parse_references",
    "parse_reference",
    "detect_navigation_command",
    "normalize_text",
    "words_to_numbers",
    "InterimThrottle",
    "RecencyDeduplicator",
    "reference_signature",
    "unique_by_display_ref",
    "DirectReferenceDetector",
    "ParseContext",
]
