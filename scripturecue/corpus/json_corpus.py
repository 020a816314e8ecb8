"""Verse corpus backed by a flat JSON lookup table."""

import json
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional

from ..detection.books import BOOK_ALIASES
from ..models.references import DetectedReference, ReferenceSource, make_reference_id, now_ms
from .base import VerseKey

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r"^(.+?)\s+(\d+):(\d+)$")
_TOKEN_RE = re.compile(r"[a-z']+")

# Words too common to rank a text search by
_STOP_WORDS = frozenset(
    "a an and are as at be but by for from he his i in is it of on or that the "
    "their them they this to was we were will with you your".split()
)


def clean_verse_text(text: str) -> str:
    """Strip paragraph markers and translator brackets from a verse."""
    text = text.strip()
    if text.startswith("#"):
        text = text[1:].lstrip()
    return re.sub(r"[\[\]]", "", text)


class JsonVerseCorpus:
    """Verse corpus loaded from ``{"Book C:V": "verse text", ...}``.

    Keys must use canonical book names. Navigation follows the canonical book
    order, so "next verse" at the end of a chapter moves into the next chapter.
    """

    def __init__(self, verses_path: str):
        self.verses_path = Path(verses_path)
        self._verses: Dict[VerseKey, str] = {}
        self._ordered: List[VerseKey] = []
        self._positions: Dict[VerseKey, int] = {}
        self._tokens: Dict[VerseKey, frozenset] = {}
        self._load()

    def _load(self) -> None:
        try:
            with open(self.verses_path, 'r', encoding='utf-8') as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ValueError(f"Failed to load verse corpus {self.verses_path}: {e}")

        if not isinstance(raw, dict):
            raise ValueError(f"Verse corpus must be a JSON object: {self.verses_path}")

        book_order = {name: i for i, name in enumerate(BOOK_ALIASES)}
        skipped = 0
        for key, text in raw.items():
            match = _KEY_RE.match(key.strip())
            if not match or match.group(1) not in book_order or not isinstance(text, str):
                skipped += 1
                continue
            verse_key = (match.group(1), int(match.group(2)), int(match.group(3)))
            cleaned = clean_verse_text(text)
            if not cleaned:
                # Verses omitted by the translation carry no text
                skipped += 1
                continue
            self._verses[verse_key] = cleaned
            self._tokens[verse_key] = frozenset(_TOKEN_RE.findall(cleaned.lower()))

        self._ordered = sorted(self._verses, key=lambda k: (book_order[k[0]], k[1], k[2]))
        self._positions = {key: i for i, key in enumerate(self._ordered)}

        if skipped:
            logger.warning(f"Skipped {skipped} malformed or blank corpus entries in {self.verses_path}")
        logger.info(f"Loaded {len(self._verses)} verses from {self.verses_path}")

    def __len__(self) -> int:
        return len(self._verses)

    def get_verse(self, book: str, chapter: int, verse: int) -> Optional[str]:
        return self._verses.get((book, chapter, verse))

    async def resolve_verse(self, book: str, chapter: int, verse: int) -> Optional[str]:
        """Look up verse text. None when the corpus does not have the verse."""
        text = self.get_verse(book, chapter, verse)
        if text is None:
            logger.debug(f"Verse not in corpus: {book} {chapter}:{verse}")
        return text

    def next_verse(self, book: str, chapter: int, verse: int) -> Optional[VerseKey]:
        position = self._positions.get((book, chapter, verse))
        if position is None or position + 1 >= len(self._ordered):
            return None
        return self._ordered[position + 1]

    def previous_verse(self, book: str, chapter: int, verse: int) -> Optional[VerseKey]:
        position = self._positions.get((book, chapter, verse))
        if not position:
            return None
        return self._ordered[position - 1]

    def first_verse_of_chapter(self, book: str, chapter: int) -> Optional[VerseKey]:
        key = (book, chapter, 1)
        return key if key in self._verses else None

    async def text_search(self, query: str, limit: int = 5) -> List[DetectedReference]:
        """Rank verses by how many of the query's words they contain.

        Args:
            query: Free text, e.g. "love is patient"
            limit: Maximum number of results

        Returns:
            Best matches first, as direct references
        """
        terms = {t for t in _TOKEN_RE.findall(query.lower()) if t not in _STOP_WORDS}
        if not terms:
            return []

        phrase = query.strip().lower()
        scored = []
        for key, tokens in self._tokens.items():
            overlap = len(terms & tokens)
            if not overlap:
                continue
            score = overlap / len(terms)
            if phrase and phrase in self._verses[key].lower():
                score += 1.0
            scored.append((score, self._positions[key], key))

        scored.sort(key=lambda item: (-item[0], item[1]))

        timestamp = now_ms()
        results = []
        for _, _, (book, chapter, verse) in scored[:limit]:
            display_ref = f"{book} {chapter}:{verse}"
            results.append(DetectedReference(
                id=make_reference_id(),
                reference=display_ref,
                display_ref=display_ref,
                verse_text=self._verses[(book, chapter, verse)],
                source=ReferenceSource.DIRECT,
                timestamp_ms=timestamp,
                transcript_text=query,
                book=book,
                chapter=chapter,
                verse=verse,
            ))

        logger.debug(f"Text search '{query}' returned {len(results)} results")
        return results
