"""Two-tier hint disclosure: sister language first, Russian fallback last."""

from __future__ import annotations

from collections.abc import MutableMapping
from dataclasses import dataclass

from .models import Direction, VocabularyEntry

NO_HINTS = 0
HINT_TIER = 1
FALLBACK_TIER = 2


@dataclass(frozen=True)
class Hint:
    """One disclosed hint."""

    tier: int
    language: str
    text: str


class HintEngine:
    """Advance a word's hint tier and return the text to disclose.

    Tier counters are keyed by entry id in ``hints_shown`` and never go down,
    so a re-queued word keeps the hints it already revealed.
    """

    def __init__(self, direction: Direction) -> None:
        self.direction = direction

    def next_hint(self, entry: VocabularyEntry | None, hints_shown: MutableMapping[str, int]) -> Hint | None:
        """Return the next hint for entry, or None when nothing is left to show."""
        if entry is None:
            return None
        hint_language = self.direction.hint_language
        fallback_language = self.direction.fallback_language
        hint_text = entry.translations.get(hint_language)
        fallback_text = entry.translations.get(fallback_language)
        if not hint_text and not fallback_text:
            return None

        tier = hints_shown.get(entry.id, NO_HINTS)
        if tier == NO_HINTS:
            if hint_text:
                hints_shown[entry.id] = HINT_TIER
                return Hint(tier=HINT_TIER, language=hint_language, text=hint_text)
            hints_shown[entry.id] = FALLBACK_TIER
            return Hint(tier=FALLBACK_TIER, language=fallback_language, text=str(fallback_text))
        if tier == HINT_TIER:
            hints_shown[entry.id] = FALLBACK_TIER
            if fallback_text:
                return Hint(tier=FALLBACK_TIER, language=fallback_language, text=fallback_text)
            return None
        return None
