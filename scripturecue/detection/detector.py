"""Direct reference detector: parser output resolved against the verse corpus."""

import logging
from dataclasses import dataclass
from typing import List, Optional

from ..corpus.base import VerseCorpus
from ..models.references import (
    DetectedReference,
    ParsedReference,
    ReferenceSource,
    make_reference_id,
    now_ms,
)
from .parser import (
    NAV_NEXT,
    NAV_NEXT_CHAPTER,
    NAV_PREVIOUS,
    NAV_PREVIOUS_CHAPTER,
    detect_navigation_command,
    parse_references,
)

logger = logging.getLogger(__name__)


@dataclass
class ParseContext:
    """Last verse mentioned, used to resolve "next verse" style commands."""
    book: Optional[str] = None
    chapter: Optional[int] = None
    verse: Optional[int] = None

    @property
    def is_set(self) -> bool:
        return self.book is not None and self.chapter is not None and self.verse is not None


class DirectReferenceDetector:
    """Finds explicit references in transcript text and resolves their verse text."""

    def __init__(self, corpus: VerseCorpus):
        self.corpus = corpus
        self.context = ParseContext()

    async def detect(
        self,
        text: str,
        aggressive_normalization: bool = False,
        is_final: bool = True,
    ) -> List[DetectedReference]:
        """Detect references in a piece of transcript.

        Args:
            text: Transcript text
            aggressive_normalization: Accept space-separated "Book C V"
            is_final: Final text updates the parse context and may trigger
                navigation commands; interim text does neither

        Returns:
            Resolved references in order of appearance. Unresolvable
            references are dropped.
        """
        parsed = parse_references(text, aggressive_normalization)

        references = []
        for ref in parsed:
            detected = await self.resolve(ref, text)
            if detected is not None:
                references.append(detected)

        if not is_final:
            return references

        if references:
            last = references[-1]
            self.context = ParseContext(last.book, last.chapter, last.verse)
            return references

        command = detect_navigation_command(text)
        if command and self.context.is_set:
            navigated = await self.navigate(
                self.context.book, self.context.chapter, self.context.verse, command, text
            )
            if navigated is not None:
                self.context = ParseContext(navigated.book, navigated.chapter, navigated.verse)
                return [navigated]

        return []

    async def resolve(
        self,
        ref: ParsedReference,
        transcript_text: str = "",
        source: ReferenceSource = ReferenceSource.DIRECT,
        confidence: Optional[float] = None,
        matched_phrase: Optional[str] = None,
    ) -> Optional[DetectedReference]:
        """Resolve a parsed reference to a DetectedReference, or None if unknown."""
        texts = []
        for verse in ref.verses():
            verse_text = await self.corpus.resolve_verse(ref.book, ref.chapter, verse)
            if not verse_text or not verse_text.strip():
                if verse == ref.start_verse:
                    logger.debug(f"Dropping unresolved reference: {ref.display_ref}")
                    return None
                break
            texts.append(verse_text)

        return DetectedReference(
            id=make_reference_id(),
            reference=ref.display_ref,
            display_ref=ref.display_ref,
            verse_text=" ".join(texts),
            source=source,
            timestamp_ms=now_ms(),
            transcript_text=transcript_text,
            book=ref.book,
            chapter=ref.chapter,
            verse=ref.start_verse,
            confidence=confidence,
            matched_phrase=matched_phrase,
        )

    async def navigate(
        self,
        book: str,
        chapter: int,
        verse: int,
        command: str,
        transcript_text: str = "",
    ) -> Optional[DetectedReference]:
        """Step from a verse to its neighbour. Returns a new reference."""
        if command == NAV_NEXT:
            target = self.corpus.next_verse(book, chapter, verse)
        elif command == NAV_PREVIOUS:
            target = self.corpus.previous_verse(book, chapter, verse)
        elif command == NAV_NEXT_CHAPTER:
            target = self.corpus.first_verse_of_chapter(book, chapter + 1)
        elif command == NAV_PREVIOUS_CHAPTER:
            target = self.corpus.first_verse_of_chapter(book, chapter - 1) if chapter > 1 else None
        else:
            raise ValueError(f"Unknown navigation command: {command}")

        if target is None:
            logger.debug(f"No {command} verse from {book} {chapter}:{verse}")
            return None

        target_book, target_chapter, target_verse = target
        verse_text = await self.corpus.resolve_verse(target_book, target_chapter, target_verse)
        if not verse_text or not verse_text.strip():
            logger.debug(f"No verse text for {target_book} {target_chapter}:{target_verse}")
            return None

        display_ref = f"{target_book} {target_chapter}:{target_verse}"
        return DetectedReference(
            id=make_reference_id(),
            reference=display_ref,
            display_ref=display_ref,
            verse_text=verse_text,
            source=ReferenceSource.DIRECT,
            timestamp_ms=now_ms(),
            transcript_text=transcript_text,
            book=target_book,
            chapter=target_chapter,
            verse=target_verse,
            is_navigation_result=True,
        )

    def reset_context(self) -> None:
        self.context = ParseContext()
