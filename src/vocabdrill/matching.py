"""Answer comparison: normalization, edit distance, fuzzy matching, transliteration."""

from __future__ import annotations

import re
from dataclasses import dataclass

DEFAULT_MAX_DISTANCE = 2

_WHITESPACE = re.compile(r"\s+")

CYRILLIC_TO_LATIN = {
    "а": "a",
    "б": "b",
    "в": "v",
    "г": "g",
    "д": "d",
    "ђ": "đ",
    "е": "e",
    "ж": "ž",
    "з": "z",
    "и": "i",
    "ј": "j",
    "к": "k",
    "л": "l",
    "љ": "lj",
    "м": "m",
    "н": "n",
    "њ": "nj",
    "о": "o",
    "п": "p",
    "р": "r",
    "с": "s",
    "т": "t",
    "ћ": "ć",
    "у": "u",
    "ф": "f",
    "х": "h",
    "ц": "c",
    "ч": "č",
    "џ": "dž",
    "ш": "š",
}


@dataclass(frozen=True)
class MatchResult:
    """Fuzzy comparison outcome."""

    exact: bool
    close: bool
    distance: int


def normalize(text: str) -> str:
    """Trim, lowercase and collapse whitespace runs to single spaces."""
    return _WHITESPACE.sub(" ", text.strip().lower())


def levenshtein(a: str, b: str) -> int:
    """Return the edit distance between two normalized strings."""
    left = normalize(a)
    right = normalize(b)
    if len(left) < len(right):
        left, right = right, left
    # Two-row dynamic programming over the shorter string.
    previous = list(range(len(right) + 1))
    for i, left_char in enumerate(left, start=1):
        current = [i]
        for j, right_char in enumerate(right, start=1):
            if left_char == right_char:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j], current[j - 1], previous[j - 1]))
        previous = current
    return previous[-1]


def fuzzy_match(answer: str, expected: str, max_distance: int = DEFAULT_MAX_DISTANCE) -> MatchResult:
    """Classify an answer as exact, close (within max_distance edits) or wrong."""
    left = normalize(answer)
    right = normalize(expected)
    if left == right:
        return MatchResult(exact=True, close=True, distance=0)
    distance = levenshtein(left, right)
    return MatchResult(exact=False, close=distance <= max_distance, distance=distance)


def transliterate_serbian_cyrillic_to_latin(text: str) -> str:
    """Convert Serbian Cyrillic letters to Latin script, preserving letter case."""
    parts: list[str] = []
    for char in text:
        lower = char.lower()
        mapped = CYRILLIC_TO_LATIN.get(lower)
        if mapped is None:
            parts.append(char)
        elif char == lower:
            parts.append(mapped)
        else:
            parts.append(mapped[0].upper() + mapped[1:])
    return "".join(parts)
