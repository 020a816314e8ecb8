"""Unit tests for DirectReferenceDetector."""

import asyncio
import json
from pathlib import Path

import pytest

from scripturecue.corpus.json_corpus import JsonVerseCorpus
from scripturecue.detection.detector import DirectReferenceDetector
from scripturecue.models.references import ParsedReference, ReferenceSource


@pytest.mark.unit
class TestDirectReferenceDetector:
    """Test cases for DirectReferenceDetector."""

    def test_detect_resolves_verse_text(self, detector):
        refs = asyncio.run(detector.detect("Turn with me to John chapter 3 verse 16"))

        assert len(refs) == 1
        ref = refs[0]
        assert ref.display_ref == "John 3:16"
        assert ref.source is ReferenceSource.DIRECT
        assert ref.verse_text.startswith("For God so loved the world")
        assert ref.transcript_text == "Turn with me to John chapter 3 verse 16"
        assert ref.id.startswith("ref_")
        assert ref.confidence is None

    def test_unknown_verse_is_dropped(self, detector):
        assert asyncio.run(detector.detect("Exodus 20:3")) == []

    def test_range_joins_available_verses(self, detector):
        refs = asyncio.run(detector.detect("John 3:17-20"))

        assert refs[0].display_ref == "John 3:17-20"
        assert "saved." in refs[0].verse_text
        assert refs[0].verse_text.endswith("condemned already.")

    def test_final_text_sets_context(self, detector):
        asyncio.run(detector.detect("John 3:16"))

        assert detector.context.book == "John"
        assert detector.context.chapter == 3
        assert detector.context.verse == 16

    def test_interim_text_leaves_context_alone(self, detector):
        asyncio.run(detector.detect("John 3:16", is_final=False))

        assert detector.context.is_set is False

    def test_navigation_uses_context(self, detector):
        asyncio.run(detector.detect("John 3:16"))

        refs = asyncio.run(detector.detect("now look at the next verse"))

        assert [ref.display_ref for ref in refs] == ["John 3:17"]
        assert refs[0].is_navigation_result is True
        assert detector.context.verse == 17

    def test_navigation_ignored_for_interim_text(self, detector):
        asyncio.run(detector.detect("John 3:16"))

        assert asyncio.run(detector.detect("the next verse", is_final=False)) == []
        assert detector.context.verse == 16

    def test_navigation_without_context(self, detector):
        assert asyncio.run(detector.detect("the next verse")) == []

    def test_next_verse_crosses_chapter(self, detector):
        ref = asyncio.run(detector.navigate("John", 3, 18, "next"))

        assert ref.display_ref == "John 4:1"
        # Paragraph marker and brackets are stripped from corpus text
        assert ref.verse_text.startswith("When therefore")
        assert "[" not in ref.verse_text

    def test_chapter_navigation(self, detector):
        assert asyncio.run(detector.navigate("John", 3, 16, "next_chapter")).display_ref == "John 4:1"
        # John 2 is not in the sample corpus
        assert asyncio.run(detector.navigate("John", 3, 16, "previous_chapter")) is None
        assert asyncio.run(detector.navigate("John", 4, 1, "previous_chapter")) is None
        assert asyncio.run(detector.navigate("John", 1, 1, "previous_chapter")) is None

    def test_previous_verse_at_corpus_start(self, detector):
        assert asyncio.run(detector.navigate("Genesis", 1, 1, "previous")) is None

    def test_unknown_command_raises(self, detector):
        with pytest.raises(ValueError):
            asyncio.run(detector.navigate("John", 3, 16, "sideways"))

    def test_resolve_paraphrase_keeps_confidence(self, detector):
        parsed = ParsedReference("Romans", 8, 28)

        ref = asyncio.run(detector.resolve(
            parsed, "all things work out", source=ReferenceSource.PARAPHRASE,
            confidence=0.82, matched_phrase="all things work out",
        ))

        assert ref.source is ReferenceSource.PARAPHRASE
        assert ref.confidence == 0.82
        assert ref.matched_phrase == "all things work out"

    def test_reset_context(self, detector):
        asyncio.run(detector.detect("John 3:16"))
        detector.reset_context()

        assert detector.context.is_set is False

    def test_works_with_any_corpus(self):
        class OneVerseCorpus:
            async def resolve_verse(self, book, chapter, verse):
                return "Jesus wept." if (book, chapter, verse) == ("John", 11, 35) else None

        refs = asyncio.run(DirectReferenceDetector(OneVerseCorpus()).detect("John 11:35"))

        assert refs[0].verse_text == "Jesus wept."

    def test_blank_verses_are_never_surfaced(self, temp_data_dir):
        path = Path(temp_data_dir) / "omitted.json"
        path.write_text(json.dumps({
            "Matthew 17:20": "If ye have faith as a grain of mustard seed",
            "Matthew 17:21": "",
            "Matthew 17:22": "And while they abode in Galilee",
            "Mark 9:44": "#",
        }), encoding="utf-8")
        detector = DirectReferenceDetector(JsonVerseCorpus(str(path)))

        assert asyncio.run(detector.detect("Matthew 17:21")) == []
        assert asyncio.run(detector.detect("Mark 9:44")) == []

        ref = asyncio.run(detector.navigate("Matthew", 17, 20, "next"))
        assert ref.display_ref == "Matthew 17:22"

    def test_whitespace_verse_text_is_unresolved(self):
        class BlankCorpus:
            async def resolve_verse(self, book, chapter, verse):
                return "   "

            def next_verse(self, book, chapter, verse):
                return (book, chapter, verse + 1)

        detector = DirectReferenceDetector(BlankCorpus())

        assert asyncio.run(detector.detect("John 11:35")) == []
        assert asyncio.run(detector.navigate("John", 11, 35, "next")) is None
