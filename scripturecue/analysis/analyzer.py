"""AI transcript analysis: paraphrased verses, key points and verse search."""

import json
import logging
from typing import Any, Callable, Dict, List, Optional

from ..detection.detector import DirectReferenceDetector
from ..detection.parser import parse_reference
from ..models.references import DetectedReference, ReferenceSource
from ..models.settings import AISettings, ProviderConfig
from ..models.transcription import KeyPoint, KeyPointCategory, ParaphrasedVerse, TranscriptAnalysis
from .engine import AIProviderError, CompletionEngine, create_engine

logger = logging.getLogger(__name__)

MAX_PARAPHRASES = 3
MAX_KEY_POINTS = 2
ANALYSIS_TEMPERATURE = 0.7
SEARCH_TEMPERATURE = 0.3

ANALYSIS_SYSTEM_PROMPT = """You are an expert Bible scholar and sermon analyst. Analyze sermon transcripts to:

1. DETECT PARAPHRASED BIBLE VERSES: identify when the speaker paraphrases or alludes to a specific verse without quoting its reference. Be conservative: only clear paraphrases, not vague thematic connections.

2. EXTRACT KEY POINTS: identify quotable statements suitable for lower-thirds or social media.

Key point categories:
- "quote": a memorable, shareable statement
- "action": an actionable step or call to action
- "principle": a life principle or teaching point
- "encouragement": an encouraging or uplifting statement

RULES:
- Return at most 3 paraphrased verses, each with confidence >= {threshold}
- Return at most 2 key points
- If nothing is found, return empty arrays
- Use standard reference format, e.g. "John 3:16" or "Romans 8:28-30"

Return valid JSON with exactly this structure:
{{
  "paraphrasedVerses": [
    {{"reference": "John 3:16", "confidence": 0.85, "matchedPhrase": "the matching portion of text"}}
  ],
  "keyPoints": [
    {{"text": "The quotable statement", "category": "quote"}}
  ]
}}"""

SEARCH_SYSTEM_PROMPT = """You are an expert Bible verse finder. Find the Bible verses the user's query refers to.

- Return every verse the query quotes, paraphrases or cites
- For themes or topics, return the most relevant verses (max 5)
- "reference" MUST be "Book Chapter:Verse" or "Book Chapter:StartVerse-EndVerse" with full book names
- "highlight" lists words from the query that appear in the verse

Return ONLY valid JSON:
{"verses": [{"reference": "John 3:16", "highlight": ["love", "world"]}]}

If no verse can be identified, return {"verses": []}"""


def parse_json_leniently(raw_text: str) -> Optional[Dict[str, Any]]:
    """Parse the JSON object embedded in a model response.

    Models sometimes wrap JSON in prose or code fences, so everything from the
    first "{" to the last "}" is tried.

    Returns:
        Parsed object, or None if no JSON object could be parsed
    """
    if not raw_text:
        return None

    start = raw_text.find("{")
    end = raw_text.rfind("}")
    if start == -1 or end <= start:
        return None

    try:
        parsed = json.loads(raw_text[start:end + 1])
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _parse_paraphrases(items: Any, threshold: float) -> List[ParaphrasedVerse]:
    verses = []
    for item in items if isinstance(items, list) else []:
        if not isinstance(item, dict) or not isinstance(item.get("reference"), str):
            continue
        try:
            confidence = float(item.get("confidence", 0))
        except (TypeError, ValueError):
            continue
        if not 0.0 <= confidence <= 1.0 or confidence < threshold:
            continue
        verses.append(ParaphrasedVerse(
            reference=item["reference"].strip(),
            confidence=confidence,
            matched_phrase=str(item.get("matchedPhrase") or ""),
        ))
    return verses[:MAX_PARAPHRASES]


def _parse_key_points(items: Any) -> List[KeyPoint]:
    key_points = []
    for item in items if isinstance(items, list) else []:
        if not isinstance(item, dict) or not str(item.get("text") or "").strip():
            continue
        try:
            category = KeyPointCategory(str(item.get("category", "")).lower())
        except ValueError:
            logger.debug(f"Dropping key point with unknown category: {item.get('category')}")
            continue
        key_points.append(KeyPoint(text=str(item["text"]).strip(), category=category))
    return key_points[:MAX_KEY_POINTS]


class ParaphraseResolver:
    """Turns AI paraphrase candidates into resolved references."""

    def __init__(self, detector: DirectReferenceDetector):
        self.detector = detector

    async def resolve(
        self,
        paraphrased_verses: List[ParaphrasedVerse],
        transcript_text: str = "",
    ) -> List[DetectedReference]:
        """Resolve candidates through the corpus.

        Candidates whose reference does not parse or has no verse text are dropped.
        """
        resolved = []
        for candidate in paraphrased_verses:
            parsed = parse_reference(candidate.reference)
            if parsed is None:
                logger.debug(f"Unparseable paraphrase reference: {candidate.reference!r}")
                continue
            ref = await self.detector.resolve(
                parsed,
                transcript_text,
                source=ReferenceSource.PARAPHRASE,
                confidence=candidate.confidence,
                matched_phrase=candidate.matched_phrase,
            )
            if ref is not None:
                resolved.append(ref)
        return resolved


class TranscriptAnalyzer:
    """Runs AI analysis and AI search with any compatible completion engine."""

    def __init__(
        self,
        detector: DirectReferenceDetector,
        engine_factory: Callable[[ProviderConfig], CompletionEngine] = create_engine,
    ):
        """Initialize transcript analyzer.

        Args:
            detector: Used to resolve AI-suggested references against the corpus
            engine_factory: Builds a completion engine for a provider config
        """
        self.detector = detector
        self.engine_factory = engine_factory

        logger.info("TranscriptAnalyzer initialized")

    async def analyze(self, text: str, settings: AISettings) -> TranscriptAnalysis:
        """Detect paraphrased verses and extract key points from a final segment.

        Args:
            text: Final transcript text
            settings: AI settings (features, thresholds, provider)

        Returns:
            TranscriptAnalysis; empty when skipped or on any provider failure
        """
        if not text or not text.strip() or not settings.analysis_enabled:
            return TranscriptAnalysis()

        word_count = len(text.split())
        if word_count < settings.min_word_count:
            logger.debug(f"Skipping AI analysis: {word_count} words (min {settings.min_word_count})")
            return TranscriptAnalysis()

        provider = settings.analysis_provider()
        if not provider.has_credential:
            logger.warning("Skipping AI analysis: no provider or API key configured")
            return TranscriptAnalysis()

        requests = []
        if settings.enable_paraphrase_detection:
            requests.append("Detect any paraphrased Bible verses.")
        if settings.enable_key_point_extraction:
            requests.append("Extract any quotable key points.")
            if settings.key_point_instructions:
                requests.append(f"Key point guidance: {settings.key_point_instructions}")

        prompt = (
            f'Analyze this sermon transcript chunk:\n\n"{text}"\n\n'
            + "\n".join(requests)
            + "\n\nReturn ONLY valid JSON, no other text."
        )
        system_prompt = ANALYSIS_SYSTEM_PROMPT.format(threshold=settings.paraphrase_confidence_threshold)

        try:
            engine = self.engine_factory(provider)
            raw_text = await engine.send_prompt(
                prompt, system_prompt=system_prompt, temperature=ANALYSIS_TEMPERATURE
            )
        except (AIProviderError, ValueError) as e:
            logger.error(f"AI analysis failed: {e}")
            return TranscriptAnalysis()

        parsed = parse_json_leniently(raw_text)
        if parsed is None:
            logger.error(f"Failed to parse AI analysis response: {raw_text[:200]!r}")
            return TranscriptAnalysis()

        analysis = TranscriptAnalysis(
            key_points=_parse_key_points(parsed.get("keyPoints"))
            if settings.enable_key_point_extraction else [],
            paraphrased_verses=_parse_paraphrases(
                parsed.get("paraphrasedVerses"), settings.paraphrase_confidence_threshold
            ) if settings.enable_paraphrase_detection else [],
        )
        logger.info(
            f"AI analysis: {len(analysis.paraphrased_verses)} paraphrase(s), "
            f"{len(analysis.key_points)} key point(s)"
        )
        return analysis

    async def search(self, query: str, settings: AISettings) -> List[DetectedReference]:
        """Find verses for a natural-language query.

        Returns:
            Resolved direct references; [] on any failure
        """
        if not query or not query.strip():
            return []

        provider = settings.search_provider_config()
        if not provider.has_credential:
            logger.warning("Skipping AI search: no provider or API key configured")
            return []

        try:
            engine = self.engine_factory(provider)
            raw_text = await engine.send_prompt(
                query, system_prompt=SEARCH_SYSTEM_PROMPT, temperature=SEARCH_TEMPERATURE
            )
        except (AIProviderError, ValueError) as e:
            logger.error(f"AI search failed: {e}")
            return []

        parsed = parse_json_leniently(raw_text)
        verses = parsed.get("verses") if parsed else None
        if not isinstance(verses, list):
            logger.error(f"Failed to parse AI search response: {raw_text[:200]!r}")
            return []

        results = []
        for item in verses:
            reference = item.get("reference") if isinstance(item, dict) else None
            parsed_ref = parse_reference(reference) if isinstance(reference, str) else None
            if parsed_ref is None:
                continue
            ref = await self.detector.resolve(parsed_ref, query)
            if ref is not None:
                results.append(ref)

        logger.info(f"AI search '{query}' resolved {len(results)} verse(s)")
        return results
