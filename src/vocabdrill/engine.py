"""Learning session engine shared by every play mode."""

from __future__ import annotations

import enum
import logging
import random
from collections.abc import Callable, Collection, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from . import events
from .events import Notifier
from .hints import NO_HINTS, Hint, HintEngine
from .matching import DEFAULT_MAX_DISTANCE, MatchResult, fuzzy_match, transliterate_serbian_cyrillic_to_latin
from .models import Direction, VocabularyEntry, is_playable
from .reinsertion import ReinsertionPolicy, SettingsProvider, StaticSettings
from .selection import WeightedSelector

logger = logging.getLogger(__name__)

DEFAULT_SESSION_SIZE = 20
BASE_POINTS = 10
NO_HINT_BONUS = 5
MAX_STREAK_MULTIPLIER = 5


class NoPlayableEntries(Exception):
    """Raised when a session cannot start because no entry is playable."""


class SessionState(enum.Enum):
    """Engine lifecycle.

    ``ENDED`` marks an engine whose last session finished; it behaves like
    ``IDLE`` (no current word, `start_session` begins a new one) but lets
    callers tell "never started" from "finished".
    """

    IDLE = "idle"
    ACTIVE = "active"
    ENDED = "ended"


@dataclass
class Session:
    """Mutable state of the one active session."""

    words: list[VocabularyEntry]
    started_at: datetime
    current_index: int = 0
    score: int = 0
    streak: int = 0
    best_streak: int = 0
    hints_shown: dict[str, int] = field(default_factory=dict)
    wrong_words: dict[str, None] = field(default_factory=dict)
    reinsertions: dict[str, int] = field(default_factory=dict)
    total_answered: int = 0
    total_correct: int = 0
    ended_at: datetime | None = None


@dataclass(frozen=True)
class SessionSummary:
    """End-of-session report."""

    score: int
    total_words: int
    total_answered: int
    total_correct: int
    accuracy: int
    best_streak: int
    wrong_words: tuple[str, ...]
    elapsed_time_ms: int


@dataclass(frozen=True)
class AnswerResult:
    """Outcome of one checked answer."""

    correct: bool
    expected: str
    hints_used_for_this_word: int
    close: bool
    distance: int


@dataclass(frozen=True)
class AnswerBundle:
    """Everything known about the current word, for post-answer display."""

    id: str
    term: str
    translations: dict[str, str | None]
    examples: dict[str, tuple[str, ...]]
    explanation: str | None


class SessionEngine:
    """Runs one session at a time: select words, reveal hints, judge answers, score."""

    def __init__(
        self,
        entries: Sequence[VocabularyEntry],
        direction: Direction | str,
        session_size: int = DEFAULT_SESSION_SIZE,
        *,
        settings: SettingsProvider | None = None,
        rng: random.Random | None = None,
        notifier: Notifier | None = None,
        wrong_history: Iterable[str] = (),
        fuzzy_max_distance: int = DEFAULT_MAX_DISTANCE,
    ) -> None:
        self.entries = list(entries)
        self.direction = direction if isinstance(direction, Direction) else Direction.parse(direction)
        self.session_size = session_size
        self.settings = settings if settings is not None else StaticSettings()
        self.rng = rng if rng is not None else random.Random()
        self.notifier = notifier if notifier is not None else Notifier()
        self.wrong_history = set(wrong_history)
        self.fuzzy_max_distance = fuzzy_max_distance
        self.selector = WeightedSelector(self.rng)
        self.hints = HintEngine(self.direction)
        self.reinsertion = ReinsertionPolicy()
        self.session: Session | None = None
        self._state = SessionState.IDLE

    @property
    def state(self) -> SessionState:
        return self._state

    def on(self, event: str, handler: Callable[[object], None]) -> Callable[[], None]:
        """Subscribe to an engine event."""
        return self.notifier.on(event, handler)

    def off(self, event: str, handler: Callable[[object], None]) -> None:
        """Unsubscribe from an engine event."""
        self.notifier.off(event, handler)

    def get_playable_entries(self) -> list[VocabularyEntry]:
        """Return entries usable in the configured direction."""
        return [entry for entry in self.entries if is_playable(entry, self.direction)]

    def start_session(self, filter_ids: Collection[str] | None = None) -> VocabularyEntry | None:
        """Start a fresh session and return its first word.

        With `filter_ids` the session is a review of exactly those playable
        entries, shuffled, without weighted selection.
        """
        playable = self.get_playable_entries()
        if filter_ids is not None:
            wanted = set(filter_ids)
            words = [entry for entry in playable if entry.id in wanted]
            if not words:
                raise NoPlayableEntries(f"None of {len(wanted)} requested ids are playable for {self.direction}.")
            self.rng.shuffle(words)
        else:
            if not playable:
                raise NoPlayableEntries(f"No playable entries for direction {self.direction}.")
            words = self.selector.select(playable, self.session_size, self.wrong_history)

        if self.session is not None:
            logger.info("discarding unfinished session at word %d", self.session.current_index)
        self.session = Session(words=words, started_at=datetime.now(UTC))
        self._state = SessionState.ACTIVE
        logger.info(
            "session started: %d words, direction %s%s",
            len(words),
            self.direction,
            " (review)" if filter_ids is not None else "",
        )

        self.notifier.emit(
            events.SESSION_STARTED,
            events.SessionStarted(total_words=len(words), direction=str(self.direction)),
        )
        # A listener may have ended or replaced the session.
        current = self.get_current_word()
        if current is not None:
            self._emit_word_loaded(current)
        return current

    def get_current_word(self) -> VocabularyEntry | None:
        """Return the word under the cursor without side effects."""
        session = self.session
        if session is None or session.current_index >= len(session.words):
            return None
        return session.words[session.current_index]

    def get_hint(self) -> Hint | None:
        """Reveal the next hint tier for the current word."""
        session = self.session
        entry = self.get_current_word()
        if session is None or entry is None:
            return None
        hint = self.hints.next_hint(entry, session.hints_shown)
        if hint is not None:
            self.notifier.emit(
                events.HINT_REVEALED,
                events.HintRevealed(tier=hint.tier, language=hint.language, text=hint.text, word_id=entry.id),
            )
        return hint

    def get_answers(self) -> AnswerBundle | None:
        """Return translations and examples of the current word."""
        entry = self.get_current_word()
        if entry is None:
            return None
        return AnswerBundle(
            id=entry.id,
            term=entry.term,
            translations=entry.translations.as_dict(),
            examples=dict(entry.examples),
            explanation=entry.explanation,
        )

    def expected_answer(self, language: str | None = None) -> str | None:
        """Return the text `check_answer` compares against for the current word."""
        entry = self.get_current_word()
        if entry is None:
            return None
        return entry.translations.get(language or self.direction.hint_language) or entry.term

    def preview_answer(self, answer: str, language: str | None = None) -> MatchResult | None:
        """Compare an answer with the current word without recording anything."""
        entry = self.get_current_word()
        if entry is None:
            return None
        _, match = self._judge(entry, answer, language)
        return match

    def _judge(self, entry: VocabularyEntry, answer: str, language: str | None) -> tuple[str, MatchResult]:
        check_language = language or self.direction.hint_language
        expected = entry.translations.get(check_language) or entry.term
        given = answer
        target = expected
        # Serbian may be typed in either script; compare in Latin.
        if check_language == "sr":
            given = transliterate_serbian_cyrillic_to_latin(given)
            target = transliterate_serbian_cyrillic_to_latin(target)
        return expected, fuzzy_match(given, target, self.fuzzy_max_distance)

    def check_answer(self, answer: str, language: str | None = None) -> AnswerResult | None:
        """Judge an answer for the current word and update score, streak and queue."""
        session = self.session
        entry = self.get_current_word()
        if session is None or entry is None:
            return None

        expected, match = self._judge(entry, answer, language)
        correct = match.exact
        hints_used = session.hints_shown.get(entry.id, NO_HINTS)

        session.total_answered += 1
        if correct:
            session.total_correct += 1
            session.streak += 1
            session.best_streak = max(session.best_streak, session.streak)
            points = BASE_POINTS
            if hints_used == NO_HINTS:
                points += NO_HINT_BONUS
            points *= min(session.streak, MAX_STREAK_MULTIPLIER)
            session.score += points
            logger.debug("correct %s: +%d (streak %d)", entry.id, points, session.streak)
            self.notifier.emit(
                events.ANSWER_CORRECT,
                events.AnswerCorrect(word_id=entry.id, points=points, streak=session.streak, score=session.score),
            )
        else:
            session.streak = 0
            session.wrong_words.setdefault(entry.id, None)
            self.reinsertion.apply(session, entry, self.settings.get_settings())
            logger.debug("wrong %s: expected %r, got %r", entry.id, expected, answer)
            self.notifier.emit(
                events.ANSWER_WRONG,
                events.AnswerWrong(word_id=entry.id, expected=expected, given=answer),
            )

        return AnswerResult(
            correct=correct,
            expected=expected,
            hints_used_for_this_word=hints_used,
            close=match.close,
            distance=match.distance,
        )

    def next_word(self) -> VocabularyEntry | SessionSummary | None:
        """Advance the cursor; returns the next word or the summary when the queue is done."""
        session = self.session
        if session is None:
            return None
        session.current_index += 1
        if session.current_index >= len(session.words):
            return self.end_session()
        entry = session.words[session.current_index]
        self._emit_word_loaded(entry)
        return entry

    def end_session(self) -> SessionSummary | None:
        """Finish the active session and return its summary."""
        session = self.session
        if session is None:
            return None
        session.ended_at = datetime.now(UTC)
        elapsed = session.ended_at - session.started_at
        accuracy = 0
        if session.total_answered > 0:
            accuracy = round(session.total_correct / session.total_answered * 100)
        summary = SessionSummary(
            score=session.score,
            total_words=len(session.words),
            total_answered=session.total_answered,
            total_correct=session.total_correct,
            accuracy=accuracy,
            best_streak=session.best_streak,
            wrong_words=tuple(session.wrong_words),
            elapsed_time_ms=int(elapsed.total_seconds() * 1000),
        )
        logger.info(
            "session ended: score %d, %d/%d correct, %d missed",
            summary.score,
            summary.total_correct,
            summary.total_answered,
            len(summary.wrong_words),
        )
        self.notifier.emit(events.SESSION_ENDED, summary)
        if self.session is session:
            self.session = None
            self._state = SessionState.ENDED
        return summary

    def _emit_word_loaded(self, entry: VocabularyEntry) -> None:
        session = self.session
        if session is None:
            return
        self.notifier.emit(
            events.WORD_LOADED,
            events.WordLoaded(
                index=session.current_index,
                total=len(session.words),
                term=entry.term,
                type=entry.type,
                id=entry.id,
            ),
        )
