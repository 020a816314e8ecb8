"""Interim throttling and duplicate suppression for detected references."""

import logging
from collections import deque
from typing import Deque, Iterable, List, Optional

from ..models.references import DetectedReference, ReferenceSource, normalize_display_ref

logger = logging.getLogger(__name__)


def reference_signature(references: Iterable[DetectedReference]) -> str:
    """Order-independent signature of a reference set ("john 3:16|romans 8:28")."""
    return "|".join(sorted(normalize_display_ref(ref.display_ref) for ref in references))


def unique_by_display_ref(references: Iterable[DetectedReference]) -> List[DetectedReference]:
    """Keep the first reference for each normalized display form."""
    seen = set()
    unique = []
    for ref in references:
        key = ref.normalized_key
        if key in seen:
            continue
        seen.add(key)
        unique.append(ref)
    return unique


class InterimThrottle:
    """Limits how often interim transcript text is parsed and re-surfaced.

    An interim parse runs only when enough time has passed since the previous
    one and the transcript grew by enough words. Results are surfaced only
    when their signature differs from the last one surfaced.
    """

    def __init__(self, min_interval_ms: int = 150, min_word_delta: int = 2):
        self.min_interval_ms = min_interval_ms
        self.min_word_delta = min_word_delta
        self._last_parse_ms: Optional[int] = None
        self._last_word_count = 0
        self._pending_word_count = 0
        self._last_signature = ""

    def should_parse(self, text: str, now_ms: int) -> bool:
        """Check whether this interim text is worth parsing.

        Args:
            text: Interim transcript text
            now_ms: Current time in milliseconds

        Returns:
            True if the caller should run the parser now
        """
        word_count = len(text.split())
        if self._last_parse_ms is not None and now_ms - self._last_parse_ms < self.min_interval_ms:
            return False
        if word_count - self._last_word_count < self.min_word_delta:
            return False

        self._last_parse_ms = now_ms
        self._pending_word_count = word_count
        return True

    def accept(self, references: List[DetectedReference]) -> bool:
        """Record a parse result; True if it should be surfaced."""
        signature = reference_signature(references)
        if not signature:
            return False

        # Only parses that found something move the word baseline
        self._last_word_count = self._pending_word_count
        if signature == self._last_signature:
            logger.debug(f"Suppressing repeated interim signature: {signature}")
            return False

        self._last_signature = signature
        return True

    def reset(self) -> None:
        """Forget interim state; called on every final segment."""
        self._last_parse_ms = None
        self._last_word_count = 0
        self._pending_word_count = 0
        self._last_signature = ""


class RecencyDeduplicator:
    """Drops paraphrase detections that repeat a recently detected reference."""

    def __init__(self, window: int = 5):
        self.window = window
        self._recent: Deque[str] = deque(maxlen=window if window > 0 else None)

    def filter(self, references: Iterable[DetectedReference]) -> List[DetectedReference]:
        """Return only the references that should be surfaced.

        Direct references always pass. Paraphrase references whose display
        form matches one of the last ``window`` detections are dropped.
        """
        if self.window <= 0:
            return list(references)

        recent = set(self._recent)
        kept = []
        for ref in references:
            if ref.source is ReferenceSource.PARAPHRASE and ref.normalized_key in recent:
                logger.debug(f"Dropping recently detected paraphrase: {ref.display_ref}")
                continue
            kept.append(ref)
        return kept

    def record(self, references: Iterable[DetectedReference]) -> None:
        """Remember surfaced references, newest last."""
        if self.window <= 0:
            return
        for ref in references:
            self._recent.append(ref.normalized_key)

    def recent(self) -> List[str]:
        return list(self._recent)

    def clear(self) -> None:
        self._recent.clear()
