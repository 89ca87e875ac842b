"""Synchronous publish/subscribe channel for session state changes."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

SESSION_STARTED = "session:started"
WORD_LOADED = "word:loaded"
HINT_REVEALED = "hint:revealed"
ANSWER_CORRECT = "answer:correct"
ANSWER_WRONG = "answer:wrong"
SESSION_ENDED = "session:ended"

EVENTS = frozenset(
    {
        SESSION_STARTED,
        WORD_LOADED,
        HINT_REVEALED,
        ANSWER_CORRECT,
        ANSWER_WRONG,
        SESSION_ENDED,
    }
)

Handler = Callable[[Any], None]


@dataclass(frozen=True)
class SessionStarted:
    total_words: int
    direction: str


@dataclass(frozen=True)
class WordLoaded:
    index: int
    total: int
    term: str
    type: str
    id: str


@dataclass(frozen=True)
class HintRevealed:
    tier: int
    language: str
    text: str
    word_id: str


@dataclass(frozen=True)
class AnswerCorrect:
    word_id: str
    points: int
    streak: int
    score: int


@dataclass(frozen=True)
class AnswerWrong:
    word_id: str
    expected: str
    given: str


class Notifier:
    """Event channel; handlers run in subscription order on the caller's stack."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Handler]] = {}

    def on(self, event: str, handler: Handler) -> Callable[[], None]:
        """Subscribe a handler and return a callable that unsubscribes it."""
        if event not in EVENTS:
            raise ValueError(f"Unknown event: {event!r}")
        self._listeners.setdefault(event, []).append(handler)
        return lambda: self.off(event, handler)

    def off(self, event: str, handler: Handler) -> None:
        """Remove one registration of a handler; unknown handlers are ignored."""
        handlers = self._listeners.get(event)
        if not handlers:
            return
        try:
            handlers.remove(handler)
        except ValueError:
            pass

    def emit(self, event: str, payload: object) -> None:
        """Deliver payload to every handler registered for event."""
        handlers = self._listeners.get(event)
        if not handlers:
            return
        logger.debug("emit %s to %d handler(s)", event, len(handlers))
        for handler in list(handlers):
            handler(payload)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))
