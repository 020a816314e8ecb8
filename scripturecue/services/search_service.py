"""Manual scripture search and remote-control lookups."""

import logging
from typing import Optional

from ..analysis.analyzer import TranscriptAnalyzer
from ..corpus.base import VerseCorpus
from ..detection.detector import DirectReferenceDetector
from ..models.references import DetectedReference, SearchMethod, SearchResult
from ..models.settings import AISettings
from .live_cue import LiveCueController

logger = logging.getLogger(__name__)

NO_RESULTS_MESSAGE = "No matching verses found"


class SearchCascade:
    """Direct parse, then AI search or text search. Stops at the first stage with results."""

    def __init__(
        self,
        detector: DirectReferenceDetector,
        analyzer: TranscriptAnalyzer,
        corpus: VerseCorpus,
        ai_settings: AISettings,
        text_search_limit: int = 5,
    ):
        self.detector = detector
        self.analyzer = analyzer
        self.corpus = corpus
        self.ai_settings = ai_settings
        self.text_search_limit = text_search_limit

    async def search(self, query: str) -> SearchResult:
        """Search for verses matching a typed or spoken query.

        Args:
            query: Reference ("John 3:16", "romans eight twenty eight") or free text

        Returns:
            SearchResult naming the stage that produced the references. An
            empty AI result is final; it does not fall back to text search.
        """
        query = (query or "").strip()
        if not query:
            return SearchResult(query=query, method=SearchMethod.DIRECT, error=NO_RESULTS_MESSAGE)

        direct = await self.detector.detect(query, aggressive_normalization=True, is_final=False)
        if direct:
            logger.info(f"Search '{query}': {len(direct)} direct match(es)")
            return SearchResult(query=query, method=SearchMethod.DIRECT, references=direct)

        if self.ai_settings.enable_ai_search and self.ai_settings.search_provider_config().has_credential:
            references = await self.analyzer.search(query, self.ai_settings)
            logger.info(f"Search '{query}': {len(references)} AI match(es)")
            return SearchResult(
                query=query,
                method=SearchMethod.AI,
                references=references,
                error=None if references else NO_RESULTS_MESSAGE,
            )

        references = await self.corpus.text_search(query, self.text_search_limit)
        logger.info(f"Search '{query}': {len(references)} text match(es)")
        return SearchResult(
            query=query,
            method=SearchMethod.TEXT,
            references=references,
            error=None if references else NO_RESULTS_MESSAGE,
        )


class ScriptureLookupService:
    """Puts looked-up or neighbouring verses live on request."""

    def __init__(
        self,
        detector: DirectReferenceDetector,
        corpus: VerseCorpus,
        controller: LiveCueController,
    ):
        self.detector = detector
        self.corpus = corpus
        self.controller = controller

    async def go_live_query(self, query: str) -> Optional[DetectedReference]:
        """Resolve a query (direct parse, then text search) and put the first hit live.

        Returns:
            The reference put live, or None if nothing matched
        """
        references = await self.detector.detect(query, aggressive_normalization=True, is_final=False)
        if not references:
            references = await self.corpus.text_search(query, 1)
        if not references:
            logger.info(f"go_live_query '{query}': no match")
            return None

        await self.controller.go_live(references[0])
        return references[0]

    async def navigate(self, ref: DetectedReference, direction: str) -> Optional[DetectedReference]:
        """Previous/next verse or chapter relative to a reference.

        Args:
            ref: Starting reference; needs book, chapter and verse
            direction: "next", "previous", "next_chapter" or "previous_chapter"

        Returns:
            A new reference marked as a navigation result, or None at the edges
        """
        if ref.book is None or ref.chapter is None or ref.verse is None:
            logger.debug(f"Cannot navigate from {ref.display_ref}: missing components")
            return None
        return await self.detector.navigate(ref.book, ref.chapter, ref.verse, direction)

    async def navigate_live(self, direction: str) -> Optional[DetectedReference]:
        """Move the live cue to the neighbouring verse."""
        current = self.controller.live_reference
        if current is None:
            return None

        target = await self.navigate(current, direction)
        if target is not None:
            await self.controller.go_live(target)
        return target
