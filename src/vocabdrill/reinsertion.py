"""Re-queue missed words later in the running session."""

from __future__ import annotations

import logging
from collections.abc import MutableMapping, MutableSequence
from dataclasses import dataclass
from typing import Protocol

from .models import VocabularyEntry

logger = logging.getLogger(__name__)

DEFAULT_REINSERT_ENABLED = True
DEFAULT_REINSERT_GAP = 10


@dataclass(frozen=True)
class ReinsertSettings:
    """User-facing re-insertion settings."""

    reinsert_enabled: bool = DEFAULT_REINSERT_ENABLED
    reinsert_gap: int = DEFAULT_REINSERT_GAP
    max_reinsertions: int | None = None

    def __post_init__(self) -> None:
        if self.reinsert_gap < 1:
            raise ValueError(f"reinsert_gap must be at least 1, got {self.reinsert_gap}.")
        if self.max_reinsertions is not None and self.max_reinsertions < 0:
            raise ValueError(f"max_reinsertions must not be negative, got {self.max_reinsertions}.")


class SettingsProvider(Protocol):
    def get_settings(self) -> ReinsertSettings: ...


class StaticSettings:
    """Settings provider returning a fixed value."""

    def __init__(self, settings: ReinsertSettings | None = None) -> None:
        self.settings = settings or ReinsertSettings()

    def get_settings(self) -> ReinsertSettings:
        return self.settings


class QueueState(Protocol):
    words: MutableSequence[VocabularyEntry]
    current_index: int
    reinsertions: MutableMapping[str, int]


class ReinsertionPolicy:
    """Insert a missed entry `reinsert_gap` positions after the cursor.

    Repeat misses re-insert again; only `max_reinsertions` (when set) stops it.
    """

    def apply(self, session: QueueState, entry: VocabularyEntry, settings: ReinsertSettings) -> int | None:
        """Re-queue entry and return its new index, or None when nothing was inserted."""
        if not settings.reinsert_enabled:
            return None
        done = session.reinsertions.get(entry.id, 0)
        if settings.max_reinsertions is not None and done >= settings.max_reinsertions:
            logger.debug("re-insertion cap reached for %s", entry.id)
            return None
        target_index = min(session.current_index + settings.reinsert_gap, len(session.words))
        session.words.insert(target_index, entry)
        session.reinsertions[entry.id] = done + 1
        logger.debug("re-queued %s at %d (queue length %d)", entry.id, target_index, len(session.words))
        return target_index
