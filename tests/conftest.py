"""Pytest configuration and fixtures for Scripture Cue tests."""

import pytest
import tempfile
import json
import logging
from pathlib import Path
from unittest.mock import Mock, AsyncMock

from scripturecue.corpus.json_corpus import JsonVerseCorpus
from scripturecue.detection.detector import DirectReferenceDetector
from scripturecue.models.references import DetectedReference, ReferenceSource
from scripturecue.models.settings import AISettings, DetectionSettings, LiveCueSettings
from scripturecue.output.sink import PresentationTriggerResult


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SAMPLE_VERSES = {
    "Genesis 1:1": "In the beginning God created the heaven and the earth.",
    "John 1:1": "In the beginning was the Word, and the Word was with God, and the Word was God.",
    "John 3:15": "That whosoever believeth in him should not perish, but have eternal life.",
    "John 3:16": "For God so loved the world, that he gave his only begotten Son, that whosoever "
                 "believeth in him should not perish, but have everlasting life.",
    "John 3:17": "For God sent not his Son into the world to condemn the world; but that the world "
                 "through him might be saved.",
    "John 3:18": "He that believeth on him is not condemned: but he that believeth not is condemned already.",
    "John 4:1": "# When therefore the Lord knew how the Pharisees had heard that Jesus made [and] baptized more disciples,",
    "Acts 2:1": "And when the day of Pentecost was fully come, they were all with one accord in one place.",
    "Romans 8:28": "And we know that all things work together for good to them that love God.",
    "Psalms 23:1": "The LORD is my shepherd; I shall not want.",
    "1 John 4:8": "He that loveth not knoweth not God; for God is love.",
}


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without network or hardware")
    config.addinivalue_line("markers", "slow: tests that wait on timers")


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def verses_file(temp_data_dir):
    """Write a small verse corpus to disk."""
    path = Path(temp_data_dir) / "verses.json"
    path.write_text(json.dumps(SAMPLE_VERSES), encoding="utf-8")
    return str(path)


@pytest.fixture
def corpus(verses_file):
    return JsonVerseCorpus(verses_file)


@pytest.fixture
def detector(corpus):
    return DirectReferenceDetector(corpus)


@pytest.fixture
def detection_settings():
    return DetectionSettings()


@pytest.fixture
def ai_settings():
    """AI settings with a (fake) credential for the default provider."""
    return AISettings(
        default_provider="groq",
        api_keys={"groq": "test-key"},
        enable_paraphrase_detection=True,
        enable_key_point_extraction=True,
        search_provider="groq",
    )


@pytest.fixture
def live_settings(temp_data_dir):
    return LiveCueSettings(
        output_path=str(Path(temp_data_dir) / "live"),
        text_file_name="verse.txt",
        reference_file_name="reference.txt",
    )


@pytest.fixture
def mock_sink():
    """Output sink that records calls and always succeeds."""
    sink = Mock()
    sink.write_text_to_file = AsyncMock(return_value=True)
    sink.trigger_presentation = AsyncMock(return_value=PresentationTriggerResult(success_count=1))
    return sink


@pytest.fixture
def make_reference():
    """Factory for DetectedReference test values."""
    counter = {"n": 0}

    def _make(display_ref="John 3:16", source=ReferenceSource.DIRECT, verse_text="For God so loved the world",
              confidence=None):
        counter["n"] += 1
        book, _, cv = display_ref.rpartition(" ")
        chapter, _, verse = cv.partition(":")
        return DetectedReference(
            id=f"ref_test_{counter['n']}",
            reference=display_ref,
            display_ref=display_ref,
            verse_text=verse_text,
            source=source,
            timestamp_ms=1_000 + counter["n"],
            book=book,
            chapter=int(chapter),
            verse=int(verse.split("-")[0]),
            confidence=confidence,
        )

    return _make


@pytest.fixture
def config_file(temp_data_dir, verses_file):
    """Write a minimal YAML configuration next to the verse corpus."""
    path = Path(temp_data_dir) / "scripture_cue.yaml"
    path.write_text(
        "transcription:\n"
        "  source: local\n"
        "  transcript_path: sermon.txt\n"
        "detection:\n"
        "  interim_min_interval_ms: 200\n"
        "ai:\n"
        "  default_provider: openai\n"
        "  api_keys:\n"
        "    openai: sk-test\n"
        "live:\n"
        "  output_path: live\n"
        "  text_file_name: verse.txt\n"
        "  reference_file_name: reference.txt\n"
        "  clear_text_delay_ms: 5000\n"
        "  presentation:\n"
        "    presentation_uuid: abc-123\n"
        "    take_off_clicks: 2\n"
        "propresenter:\n"
        "  connections:\n"
        "    - id: main\n"
        "      api_url: http://10.0.0.5:1025/\n"
        "    - name: no url\n"
        "corpus:\n"
        "  verses_path: verses.json\n"
        "logging:\n"
        "  file_path: logs/test.log\n",
        encoding="utf-8",
    )
    return str(path)
