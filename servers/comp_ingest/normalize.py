"""
Title normalization for cross-source matching.

Produces a comparison key from a display title:
1. Strip the trailing source tag added by adapters ("... [HKU]")
2. Drop institution names, filler words and generic event nouns
3. Collapse whitespace

The key is lower-cased and only ever used for comparison, never for display.
"""

import re

# Trailing source annotation, e.g. "Datathon 2024 [UST]"
SOURCE_TAG_PATTERN = re.compile(r"\s*\[.*?\]\s*$")

INSTITUTION_WORDS = ["hku", "ust", "hkust"]

FILLER_WORDS = [
    "the", "a", "an", "and", "of", "in", "on", "at",
    "to", "for", "with", "by", "up",
]

EVENT_WORDS = [
    "competition", "case", "challenge", "hackathon", "datathon",
    "program", "event", "session", "workshop", "seminar",
    "deadline", "register", "join", "now",
]

STOP_WORDS = frozenset(INSTITUTION_WORDS + FILLER_WORDS + EVENT_WORDS)

# Whole words only so "Cases" or "Atlas" survive intact
STOP_WORD_PATTERN = re.compile(
    r"\b(?:" + "|".join(sorted(STOP_WORDS, key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)


def strip_source_tag(title: str) -> str:
    """Remove a trailing bracketed source tag."""
    return SOURCE_TAG_PATTERN.sub("", title)


def remove_stop_words(text: str) -> str:
    """Remove stop-list words regardless of case."""
    return STOP_WORD_PATTERN.sub(" ", text)


def _normalize_once(text: str) -> str:
    text = strip_source_tag(text)
    text = remove_stop_words(text)
    return re.sub(r"\s+", " ", text).strip().lower()


def normalize_title(title: str) -> str:
    """Normalize a title into a comparison key.

    Repeats until stable: dropping a trailing filler word can expose another
    bracketed tag, and the key must not change when normalized again.
    An empty key is valid.
    """
    if not title:
        return ""

    current = _normalize_once(title)
    while True:
        again = _normalize_once(current)
        if again == current:
            return current
        current = again
