"""Direct scripture reference parser.

Pure functions only: text in, ParsedReference values out. Verse text lookup
happens in DirectReferenceDetector.
"""

import logging
import re
from typing import List, Optional, Tuple

from ..models.references import ParsedReference
from .books import BOOKS_PATTERN, BOOK_RE, TRANSCRIPTION_ERRORS, canonical_book_name, contains_book

logger = logging.getLogger(__name__)

MAX_CHAPTER = 150
MAX_VERSE = 176

NAV_NEXT = "next"
NAV_PREVIOUS = "previous"
NAV_NEXT_CHAPTER = "next_chapter"
NAV_PREVIOUS_CHAPTER = "previous_chapter"

_UNITS = {
    "zero": 0, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
    "eleven": 11, "twelve": 12, "thirteen": 13, "fourteen": 14, "fifteen": 15,
    "sixteen": 16, "seventeen": 17, "eighteen": 18, "nineteen": 19,
}
_TENS = {
    "twenty": 20, "thirty": 30, "forty": 40, "fifty": 50,
    "sixty": 60, "seventy": 70, "eighty": 80, "ninety": 90,
}
_ORDINAL_WORDS = {"first": 1, "second": 2, "third": 3}

_COMPOUND_RE = re.compile(
    r"\b(" + "|".join(_TENS) + r")[\s-]+(one|two|three|four|five|six|seven|eight|nine)\b",
    re.IGNORECASE,
)
_NUMBER_WORD_RE = re.compile(
    r"\b(" + "|".join(list(_UNITS) + list(_TENS) + list(_ORDINAL_WORDS)) + r")\b",
    re.IGNORECASE,
)
_HUNDRED_RE = re.compile(r"\b(\d)\s+hundred(?:\s+and)?(?:\s+(\d{1,2})\b)?", re.IGNORECASE)
_A_HUNDRED_RE = re.compile(r"\ba\s+hundred\b", re.IGNORECASE)
_ORDINAL_SUFFIX_RE = re.compile(r"\b(\d+)(?:st|nd|rd|th)\b", re.IGNORECASE)
_DASH_RE = re.compile(r"[‐-―]")

_TRANSCRIPTION_ERROR_RE = re.compile(
    r"\b("
    + "|".join(re.escape(k).replace(r"\ ", r"\s+") for k in sorted(TRANSCRIPTION_ERRORS, key=len, reverse=True))
    + r")\b(?=\s+(?:\d|chapter\b))",
    re.IGNORECASE,
)

_NUMBERED_LIST_RE = re.compile(r"\bnumber\s+\d+\b", re.IGNORECASE)

_NUM = r"(\d{1,3})"
# The end verse must not be the ordinal of a following book ("and 1 John 4:8")
_RANGE = r"(?:\s*(?:-|to|through|and|&)\s*(\d{1,3})(?!\s*" + BOOKS_PATTERN + r"))?"
_BOOK = r"\b(" + BOOKS_PATTERN + r")"
_CHAPTER_WORD = r"(?:chapter\s+|ch\.?\s*)"
_VERSE_WORD = r"(?:verses?|vs?\.?)"

# Book C:V, Book chapter C:V
_COLON_RE = re.compile(
    _BOOK + r"\s*,?\s*" + _CHAPTER_WORD + r"?" + _NUM + r"\s*:\s*" + _NUM + _RANGE + r"(?![\d:])",
    re.IGNORECASE,
)
# Book (chapter) C (,) verse V (to W)
_VERSE_PHRASE_RE = re.compile(
    _BOOK + r"\s+" + _CHAPTER_WORD + r"?" + _NUM + r"\s*,?\s*" + _VERSE_WORD + r"\s+" + _NUM + _RANGE + r"(?![\d:])",
    re.IGNORECASE,
)
# Book C V, only with aggressive normalization
_SPOKEN_RE = re.compile(
    _BOOK + r"\s+" + _CHAPTER_WORD + r"?" + _NUM + r"\s+" + _NUM + _RANGE + r"(?![\d:])",
    re.IGNORECASE,
)
# chapter C verse V, book taken from earlier in the text
_BARE_CHAPTER_VERSE_RE = re.compile(
    r"\bchapter\s+" + _NUM + r"\s*,?\s*" + _VERSE_WORD + r"\s+" + _NUM + _RANGE + r"(?![\d:])",
    re.IGNORECASE,
)
# Book chapter C, resolved to verse 1
_CHAPTER_ONLY_RE = re.compile(
    _BOOK + r"\s+chapter\s+" + _NUM + r"\b(?!\s*(?:[:,\d]|" + _VERSE_WORD + r"))",
    re.IGNORECASE,
)

_NAVIGATION_PATTERNS = [
    (NAV_NEXT_CHAPTER, re.compile(r"\b(?:next\s+chapter|chapter\s+after)\b", re.IGNORECASE)),
    (NAV_PREVIOUS_CHAPTER, re.compile(
        r"\b(?:(?:previous|prior|last)\s+chapter|go\s+back\s+a\s+chapter)\b", re.IGNORECASE)),
    (NAV_NEXT, re.compile(
        r"\b(?:next\s+(?:verse|scripture|one)|go\s+(?:to\s+)?(?:the\s+)?next|show\s+(?:the\s+)?next)\b",
        re.IGNORECASE)),
    (NAV_PREVIOUS, re.compile(
        r"\b(?:(?:previous|last)\s+(?:verse|scripture|one)|go\s+back)\b", re.IGNORECASE)),
]


def words_to_numbers(text: str) -> str:
    """Replace spoken numbers and ordinals with digits ("twenty one" -> "21")."""
    text = _COMPOUND_RE.sub(
        lambda m: str(_TENS[m.group(1).lower()] + _UNITS[m.group(2).lower()]), text
    )
    text = _NUMBER_WORD_RE.sub(lambda m: str(_word_value(m.group(1))), text)
    text = _A_HUNDRED_RE.sub("1 hundred", text)
    text = _HUNDRED_RE.sub(
        lambda m: str(int(m.group(1)) * 100 + int(m.group(2) or 0)), text
    )
    return text


def _word_value(word: str) -> int:
    word = word.lower()
    if word in _UNITS:
        return _UNITS[word]
    if word in _TENS:
        return _TENS[word]
    return _ORDINAL_WORDS[word]


def fix_transcription_errors(text: str) -> str:
    """Replace misheard book names, only when a number or "chapter" follows."""
    return _TRANSCRIPTION_ERROR_RE.sub(
        lambda m: TRANSCRIPTION_ERRORS[re.sub(r"\s+", " ", m.group(1).lower())], text
    )


def normalize_text(text: str) -> str:
    """Normalize spoken text into a form the reference patterns understand."""
    text = _DASH_RE.sub("-", text)
    text = words_to_numbers(text)
    text = _ORDINAL_SUFFIX_RE.sub(r"\1", text)
    return fix_transcription_errors(text)


def _is_numbered_list(text: str) -> bool:
    return bool(_NUMBERED_LIST_RE.search(text)) and not contains_book(text)


def _build(book_text: str, chapter: str, verse: str, end: Optional[str]) -> Optional[ParsedReference]:
    book = canonical_book_name(book_text)
    if book is None:
        return None

    chapter_num, verse_num = int(chapter), int(verse)
    if not (1 <= chapter_num <= MAX_CHAPTER and 1 <= verse_num <= MAX_VERSE):
        return None

    end_num = int(end) if end else None
    if end_num is not None and (end_num <= verse_num or end_num > MAX_VERSE):
        end_num = None

    return ParsedReference(book=book, chapter=chapter_num, start_verse=verse_num, end_verse=end_num)


def _overlaps(span: Tuple[int, int], taken: List[Tuple[int, int]]) -> bool:
    return any(span[0] < end and start < span[1] for start, end in taken)


def parse_references(text: str, aggressive_normalization: bool = False) -> List[ParsedReference]:
    """Find every scripture reference in a piece of transcript.

    Args:
        text: Raw transcript text
        aggressive_normalization: Also accept space-separated "Book C V"

    Returns:
        References in order of appearance, unique by display form
    """
    if not text or not text.strip():
        return []

    normalized = normalize_text(text)
    if _is_numbered_list(normalized):
        logger.debug(f"Ignoring numbered-list speech: {text!r}")
        return []

    found = []  # (start, end, ParsedReference)
    taken = []

    def collect(pattern, builder):
        for match in pattern.finditer(normalized):
            span = match.span()
            if _overlaps(span, taken):
                continue
            ref = builder(match)
            if ref is not None:
                taken.append(span)
                found.append((span[0], ref))

    collect(_COLON_RE, lambda m: _build(m.group(1), m.group(2), m.group(3), m.group(4)))
    collect(_VERSE_PHRASE_RE, lambda m: _build(m.group(1), m.group(2), m.group(3), m.group(4)))
    if aggressive_normalization:
        collect(_SPOKEN_RE, _build_spoken)
    collect(_BARE_CHAPTER_VERSE_RE, lambda m: _build_bare(normalized, m))
    collect(_CHAPTER_ONLY_RE, lambda m: _build(m.group(1), m.group(2), "1", None))

    found.sort(key=lambda item: item[0])

    results = []
    seen = set()
    for _, ref in found:
        key = ref.display_ref.lower()
        if key not in seen:
            seen.add(key)
            results.append(ref)
    return results


def _build_spoken(match) -> Optional[ParsedReference]:
    # Short abbreviations like "Ps 23 4" are too easy to hit by accident
    if not re.search(r"[A-Za-z]{3,}", match.group(1)):
        return None
    return _build(match.group(1), match.group(2), match.group(3), match.group(4))


def _build_bare(text: str, match) -> Optional[ParsedReference]:
    books = list(BOOK_RE.finditer(text, 0, match.start()))
    if not books:
        return None
    return _build(books[-1].group(0), match.group(1), match.group(2), match.group(3))


def parse_reference(reference: str) -> Optional[ParsedReference]:
    """Parse a single reference string such as "John 3:16" (AI output, search box)."""
    refs = parse_references(reference, aggressive_normalization=True)
    return refs[0] if refs else None


def detect_navigation_command(text: str) -> Optional[str]:
    """Return "next", "previous", "next_chapter", "previous_chapter" or None."""
    if not text:
        return None
    for command, pattern in _NAVIGATION_PATTERNS:
        if pattern.search(text):
            return command
    return None
