"""Verse corpus for Scripture Cue."""

from .base import VerseCorpus, VerseKey
from .json_corpus import JsonVerseCorpus, clean_verse_text

__all__ = [
    "VerseCorpus",
    "VerseKey",
    "JsonVerseCorpus",
    "clean_verse_text",
]
