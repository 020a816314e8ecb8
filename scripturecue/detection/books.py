"""Bible book names, spoken aliases and the regex built from them."""

import re
from collections import OrderedDict
from typing import Dict, Optional

# Canonical name -> aliases. Numbered books are matched after spoken ordinals
# ("First", "1st") have been normalized to digits.
BOOK_ALIASES = OrderedDict(
    [
        # --- Old Testament ---
        ("Genesis", ["Genesis", "Gen"]),
        ("Exodus", ["Exodus", "Exod"]),
        ("Leviticus", ["Leviticus", "Lev"]),
        ("Numbers", ["Numbers", "Num"]),
        ("Deuteronomy", ["Deuteronomy", "Deut"]),
        ("Joshua", ["Joshua", "Josh"]),
        ("Judges", ["Judges", "Judg"]),
        ("Ruth", ["Ruth"]),
        ("1 Samuel", ["1 Samuel", "I Samuel", "1 Sam"]),
        ("2 Samuel", ["2 Samuel", "II Samuel", "2 Sam"]),
        ("1 Kings", ["1 Kings", "I Kings", "1 Kgs"]),
        ("2 Kings", ["2 Kings", "II Kings", "2 Kgs"]),
        ("1 Chronicles", ["1 Chronicles", "I Chronicles", "1 Chron", "1 Chr"]),
        ("2 Chronicles", ["2 Chronicles", "II Chronicles", "2 Chron", "2 Chr"]),
        ("Ezra", ["Ezra"]),
        ("Nehemiah", ["Nehemiah", "Neh"]),
        ("Esther", ["Esther", "Esth"]),
        ("Job", ["Job"]),
        ("Psalms", ["Psalms", "Psalm", "Ps"]),
        ("Proverbs", ["Proverbs", "Proverb", "Prov"]),
        ("Ecclesiastes", ["Ecclesiastes", "Eccl"]),
        ("Song of Solomon", ["Song of Solomon", "Song of Songs", "Songs of Solomon", "Canticles"]),
        ("Isaiah", ["Isaiah", "Isa"]),
        ("Jeremiah", ["Jeremiah", "Jer"]),
        ("Lamentations", ["Lamentations", "Lam"]),
        ("Ezekiel", ["Ezekiel", "Ezek"]),
        ("Daniel", ["Daniel", "Dan"]),
        ("Hosea", ["Hosea", "Hos"]),
        ("Joel", ["Joel"]),
        ("Amos", ["Amos"]),
        ("Obadiah", ["Obadiah", "Obad"]),
        ("Jonah", ["Jonah"]),
        ("Micah", ["Micah", "Mic"]),
        ("Nahum", ["Nahum", "Nah"]),
        ("Habakkuk", ["Habakkuk", "Hab"]),
        ("Zephaniah", ["Zephaniah", "Zeph"]),
        ("Haggai", ["Haggai", "Hag"]),
        ("Zechariah", ["Zechariah", "Zech"]),
        ("Malachi", ["Malachi", "Mal"]),
        # --- New Testament ---
        ("Matthew", ["Matthew", "Matt"]),
        ("Mark", ["Mark"]),
        ("Luke", ["Luke"]),
        ("John", ["John", "Jn"]),
        ("Acts", ["Acts"]),
        ("Romans", ["Romans", "Rom"]),
        ("1 Corinthians", ["1 Corinthians", "I Corinthians", "1 Cor"]),
        ("2 Corinthians", ["2 Corinthians", "II Corinthians", "2 Cor"]),
        ("Galatians", ["Galatians", "Gal"]),
        ("Ephesians", ["Ephesians", "Eph"]),
        ("Philippians", ["Philippians", "Phil"]),
        ("Colossians", ["Colossians", "Col"]),
        ("1 Thessalonians", ["1 Thessalonians", "I Thessalonians", "1 Thess"]),
        ("2 Thessalonians", ["2 Thessalonians", "II Thessalonians", "2 Thess"]),
        ("1 Timothy", ["1 Timothy", "I Timothy", "1 Tim"]),
        ("2 Timothy", ["2 Timothy", "II Timothy", "2 Tim"]),
        ("Titus", ["Titus"]),
        ("Philemon", ["Philemon", "Phlm"]),
        ("Hebrews", ["Hebrews", "Heb"]),
        ("James", ["James", "Jas"]),
        ("1 Peter", ["1 Peter", "I Peter", "1 Pet"]),
        ("2 Peter", ["2 Peter", "II Peter", "2 Pet"]),
        ("1 John", ["1 John", "I John", "1 Jn"]),
        ("2 John", ["2 John", "II John", "2 Jn"]),
        ("3 John", ["3 John", "III John", "3 Jn"]),
        ("Jude", ["Jude"]),
        ("Revelation", ["Revelation", "Revelations", "Rev"]),
    ]
)

# Speech-to-text misrecognitions of book names. Only applied when followed by
# a number or "chapter".
TRANSCRIPTION_ERRORS = {
    "fast chronicles": "1 Chronicles",
    "fast kings": "1 Kings",
    "fast samuel": "1 Samuel",
    "force corinthians": "1 Corinthians",
    "the tronomy": "Deuteronomy",
    "axe": "Acts",
    "romance": "Romans",
    "viticus": "Leviticus",
    "route": "Ruth",
    "look": "Luke",
}


def _alias_pattern(alias: str) -> str:
    parts = alias.split(" ")
    # "1 John" also matches "1John"; multi-word names need at least one space
    if parts[0].isdigit() or parts[0] in ("I", "II", "III"):
        head, rest = parts[0], parts[1:]
        return re.escape(head) + r"\s*" + r"\s+".join(re.escape(p) for p in rest)
    return r"\s+".join(re.escape(p) for p in parts)


def _build_alias_lookup() -> Dict[str, str]:
    lookup = {}
    for canonical, aliases in BOOK_ALIASES.items():
        for alias in aliases:
            lookup[_squash(alias)] = canonical
    return lookup


def _squash(text: str) -> str:
    return re.sub(r"\s+", "", text).lower()


_ALIAS_LOOKUP = _build_alias_lookup()

# Longest aliases first so "1 John" wins over "John"
_ALL_ALIASES = sorted(
    {alias for aliases in BOOK_ALIASES.values() for alias in aliases},
    key=len,
    reverse=True,
)

BOOKS_PATTERN = "(?:" + "|".join(_alias_pattern(a) for a in _ALL_ALIASES) + ")"

BOOK_RE = re.compile(r"\b" + BOOKS_PATTERN + r"\b", re.IGNORECASE)


def canonical_book_name(book_text: str) -> Optional[str]:
    """Map any recognised alias ("1john", "Psalm", "Rom") to its canonical name."""
    if not book_text:
        return None
    return _ALIAS_LOOKUP.get(_squash(book_text))


def contains_book(text: str) -> bool:
    return bool(BOOK_RE.search(text or ""))
