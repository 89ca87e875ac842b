"""Load vocabulary entries from bundled or user-supplied JSON."""

from __future__ import annotations

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any

from .models import LANGUAGES, SOURCE_LANGUAGES, Translations, VocabularyEntry

logger = logging.getLogger(__name__)

CONTENT_PACKAGE = "vocabdrill.content"
BUNDLED_FILE = "vocabulary.json"
MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _object_field(raw: dict[str, Any], key: str, entry_id: str) -> dict[str, Any]:
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"Entry '{entry_id}' field '{key}' must be a JSON object.")
    return value


def _text_list(value: Any, entry_id: str, key: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ValueError(f"Entry '{entry_id}' field '{key}' must be a list of strings.")
    return tuple(str(item) for item in value)


def _entry_from_dict(raw: dict[str, Any]) -> VocabularyEntry:
    """Build an entry from raw JSON content."""
    entry_id = str(raw.get("id", "")).strip()
    if not entry_id:
        raise ValueError("Vocabulary entry has no id.")

    source_language = str(raw.get("source_language", "")).strip().lower()
    if source_language not in SOURCE_LANGUAGES:
        raise ValueError(f"Entry '{entry_id}' has unsupported source_language {source_language!r}.")

    raw_difficulty = raw.get("difficulty")
    try:
        difficulty = MIN_DIFFICULTY if raw_difficulty is None else int(raw_difficulty)
    except (TypeError, ValueError):
        raise ValueError(f"Entry '{entry_id}' difficulty {raw_difficulty!r} is not a number.") from None
    if not MIN_DIFFICULTY <= difficulty <= MAX_DIFFICULTY:
        raise ValueError(f"Entry '{entry_id}' difficulty {difficulty} is outside {MIN_DIFFICULTY}..{MAX_DIFFICULTY}.")

    raw_translations = _object_field(raw, "translations", entry_id)
    translations = Translations(**{language: _optional_text(raw_translations.get(language)) for language in LANGUAGES})

    raw_examples = _object_field(raw, "examples", entry_id)
    examples = {
        language: _text_list(raw_examples.get(language), entry_id, f"examples.{language}")
        for language in LANGUAGES
        if raw_examples.get(language)
    }

    return VocabularyEntry(
        id=entry_id,
        term=str(raw.get("term") or "").strip(),
        source_language=source_language,
        translations=translations,
        difficulty=difficulty,
        type=str(raw.get("type") or "word"),
        examples=examples,
        explanation=_optional_text(raw.get("explanation")),
        category=_optional_text(raw.get("category")),
        tags=_text_list(raw.get("tags"), entry_id, "tags"),
    )


def _entries_from_payload(raw: Any) -> list[VocabularyEntry]:
    """Build entries from a payload root (`{"entries": [...]}` or a bare list)."""
    if isinstance(raw, dict):
        items = raw.get("entries", [])
    elif isinstance(raw, list):
        items = raw
    else:
        raise ValueError("Vocabulary root must be a JSON object or list.")
    if not isinstance(items, list):
        raise ValueError("Vocabulary 'entries' must be a list.")

    entries: list[VocabularyEntry] = []
    seen: set[str] = set()
    for item in items:
        if not isinstance(item, dict):
            raise ValueError("Vocabulary entries must be JSON objects.")
        entry = _entry_from_dict(item)
        if entry.id in seen:
            raise ValueError(f"Duplicate entry id: {entry.id}")
        seen.add(entry.id)
        entries.append(entry)
    return entries


def load_vocabulary() -> list[VocabularyEntry]:
    """Load the bundled vocabulary."""
    resource = resources.files(CONTENT_PACKAGE).joinpath(BUNDLED_FILE)
    entries = _entries_from_payload(json.loads(resource.read_text(encoding="utf-8-sig")))
    logger.debug("loaded %d bundled entries", len(entries))
    return entries


def load_vocabulary_from_file(path: Path | str) -> list[VocabularyEntry]:
    """Load vocabulary from a JSON file on disk."""
    file_path = Path(path)
    entries = _entries_from_payload(json.loads(file_path.read_text(encoding="utf-8-sig")))
    logger.info("loaded %d entries from %s", len(entries), file_path)
    return entries
