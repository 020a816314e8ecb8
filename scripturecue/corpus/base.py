"""Verse corpus interface."""

from typing import List, Optional, Protocol, Tuple

from ..models.references import DetectedReference

VerseKey = Tuple[str, int, int]


class VerseCorpus(Protocol):
    """Lookup interface the detector, resolver and search cascade rely on."""

    async def resolve_verse(self, book: str, chapter: int, verse: int) -> Optional[str]:
        """Verse text, or None when the verse is unknown."""
        ...

    async def text_search(self, query: str, limit: int = 5) -> List[DetectedReference]:
        """Free-text search returning direct references, best first."""
        ...

    def next_verse(self, book: str, chapter: int, verse: int) -> Optional[VerseKey]:
        ...

    def previous_verse(self, book: str, chapter: int, verse: int) -> Optional[VerseKey]:
        ...

    def first_verse_of_chapter(self, book: str, chapter: int) -> Optional[VerseKey]:
        ...
