"""Application service wiring vocabulary, progress and the session engine."""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from pathlib import Path

from . import events
from .engine import DEFAULT_SESSION_SIZE, SessionEngine, SessionSummary
from .matching import DEFAULT_MAX_DISTANCE
from .models import Direction, VocabularyEntry
from .progress import ProgressStats, ProgressStore

logger = logging.getLogger(__name__)


class DrillService:
    """Coordinates vocabulary, persisted progress and drill sessions."""

    def __init__(
        self,
        vocabulary: Sequence[VocabularyEntry],
        db_path: Path | str,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize service with vocabulary and database path."""
        self.vocabulary = list(vocabulary)
        self.progress = ProgressStore(db_path)
        self.rng = rng

    def entries_for(self, direction: Direction) -> list[VocabularyEntry]:
        """Return entries whose term is in the language being learned."""
        return [entry for entry in self.vocabulary if entry.source_language == direction.target_language]

    def create_engine(
        self,
        direction: Direction | str,
        session_size: int = DEFAULT_SESSION_SIZE,
        fuzzy_max_distance: int = DEFAULT_MAX_DISTANCE,
    ) -> SessionEngine:
        """Build an engine that records every answer and finished session."""
        parsed = direction if isinstance(direction, Direction) else Direction.parse(direction)
        engine = SessionEngine(
            self.entries_for(parsed),
            parsed,
            session_size,
            settings=self.progress,
            rng=self.rng,
            wrong_history=self.progress.wrong_history_ids(),
            fuzzy_max_distance=fuzzy_max_distance,
        )
        engine.on(events.ANSWER_CORRECT, self._on_answer_correct)
        engine.on(events.ANSWER_WRONG, self._on_answer_wrong)
        engine.on(events.SESSION_ENDED, lambda summary: self._on_session_ended(summary, str(parsed)))
        logger.debug("engine created for %s with %d entries", parsed, len(engine.entries))
        return engine

    def review_ids(self) -> list[str]:
        """Return weak word ids for a review session."""
        return self.progress.weak_word_ids()

    def stats(self) -> ProgressStats:
        return self.progress.stats()

    def _on_answer_correct(self, payload: events.AnswerCorrect) -> None:
        self.progress.record_word_result(payload.word_id, True)

    def _on_answer_wrong(self, payload: events.AnswerWrong) -> None:
        self.progress.record_word_result(payload.word_id, False)

    def _on_session_ended(self, summary: SessionSummary, direction: str) -> None:
        # Sessions ended before any answer leave no trace in history.
        if summary.total_answered == 0:
            return
        self.progress.record_session(summary, direction)

    def close(self) -> None:
        """Close resources."""
        self.progress.close()
