"""Core domain models for trilingual vocabulary drills."""

from __future__ import annotations

from dataclasses import dataclass, field

LANGUAGES = ("en", "sr", "ru")
SOURCE_LANGUAGES = ("en", "sr")
FALLBACK_LANGUAGE = "ru"


@dataclass(frozen=True)
class Translations:
    """Per-language translation text; `None` means the language is absent."""

    en: str | None = None
    sr: str | None = None
    ru: str | None = None

    def __post_init__(self) -> None:
        for language in LANGUAGES:
            value = getattr(self, language)
            if value is not None and not value.strip():
                object.__setattr__(self, language, None)

    def get(self, language: str) -> str | None:
        """Return translation text for a language code, or None."""
        if language not in LANGUAGES:
            return None
        value: str | None = getattr(self, language)
        return value

    def as_dict(self) -> dict[str, str | None]:
        return {language: self.get(language) for language in LANGUAGES}


@dataclass(frozen=True)
class VocabularyEntry:
    """One vocabulary word or phrase."""

    id: str
    term: str
    source_language: str
    translations: Translations
    difficulty: int = 1
    type: str = "word"
    examples: dict[str, tuple[str, ...]] = field(default_factory=dict)
    explanation: str | None = None
    category: str | None = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class Direction:
    """Learning direction: the language being learned and its sister hint language."""

    target_language: str
    hint_language: str

    def __post_init__(self) -> None:
        if self.target_language not in SOURCE_LANGUAGES:
            raise ValueError(f"Unsupported target language: {self.target_language!r}")
        if self.hint_language not in LANGUAGES:
            raise ValueError(f"Unsupported hint language: {self.hint_language!r}")
        if self.target_language == self.hint_language:
            raise ValueError("Target and hint languages must differ.")
        if self.hint_language == FALLBACK_LANGUAGE:
            raise ValueError(f"Hint language must be a sister language, not the {FALLBACK_LANGUAGE!r} fallback.")

    @property
    def fallback_language(self) -> str:
        return FALLBACK_LANGUAGE

    @classmethod
    def parse(cls, value: str) -> Direction:
        """Build a direction from a two-token string such as ``en-sr``."""
        tokens = value.strip().lower().split("-")
        if len(tokens) != 2 or not all(tokens):
            raise ValueError(f"Direction must look like 'en-sr', got {value!r}.")
        return cls(target_language=tokens[0], hint_language=tokens[1])

    def __str__(self) -> str:
        return f"{self.target_language}-{self.hint_language}"


def is_playable(entry: VocabularyEntry, direction: Direction) -> bool:
    """Return whether an entry has a term and a usable hint or fallback translation."""
    if not entry.term or not entry.term.strip():
        return False
    translations = entry.translations
    return bool(translations.get(direction.hint_language) or translations.get(direction.fallback_language))
