"""SQLite persistence for learner settings, word results and session history."""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import asdict, dataclass, replace
from datetime import UTC, date, datetime, timedelta
from pathlib import Path
from typing import Any

from .engine import SessionSummary
from .reinsertion import ReinsertSettings

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
SESSION_HISTORY_LIMIT = 30
MASTERY_NEW = "new"
MASTERY_LEARNING = "learning"
MASTERY_KNOWN = "known"
MASTERY_MASTERED = "mastered"
SETTING_KEYS = ("reinsert_enabled", "reinsert_gap", "max_reinsertions")


@dataclass(frozen=True)
class WordProgress:
    """Lifetime results for one word."""

    word_id: str
    total: int
    correct: int
    last_seen: str | None
    mastery_level: str

    @property
    def accuracy(self) -> int:
        if self.total == 0:
            return 0
        return round(self.correct / self.total * 100)


@dataclass(frozen=True)
class SessionRecord:
    """One finished session as stored."""

    id: int
    date: str
    direction: str
    score: int
    total_words: int
    total_answered: int
    total_correct: int
    accuracy: int
    best_streak: int
    duration_seconds: int
    wrong_words: tuple[str, ...]


@dataclass(frozen=True)
class ProgressStats:
    """Aggregate view for the stats screen."""

    streak_days: int
    last_session_date: str | None
    session_count: int
    words_seen: int
    mastery_counts: dict[str, int]
    recent_sessions: tuple[SessionRecord, ...]


def compute_mastery_level(total: int, correct: int) -> str:
    """Return mastery level for an attempt/correct count pair."""
    if total == 0:
        return MASTERY_NEW
    accuracy = correct / total
    if accuracy >= 0.85 and total >= 5:
        return MASTERY_MASTERED
    if accuracy >= 0.6:
        return MASTERY_KNOWN
    return MASTERY_LEARNING


class ProgressStore:
    """Database access layer for one learner's progress and settings."""

    def __init__(self, db_path: Path | str, today: date | None = None) -> None:
        """Initialize database and schema."""
        if isinstance(db_path, Path):
            db_path.parent.mkdir(parents=True, exist_ok=True)
            target = str(db_path)
        else:
            target = db_path
        self._conn = sqlite3.connect(target)
        self._conn.row_factory = sqlite3.Row
        self._today = today
        self._apply_migrations()

    def _apply_migrations(self) -> None:
        """Apply forward-only schema migrations to latest version."""
        current = int(self._conn.execute("PRAGMA user_version").fetchone()[0])
        if current > SCHEMA_VERSION:
            raise RuntimeError(f"Database schema version {current} is newer than supported {SCHEMA_VERSION}.")

        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
                """)

        for version in range(current + 1, SCHEMA_VERSION + 1):
            if version == 1:
                self._migrate_to_v1()
            with self._conn:
                self._conn.execute(f"PRAGMA user_version = {version}")
                self._conn.execute(
                    "INSERT OR REPLACE INTO schema_migrations (version, applied_at) VALUES (?, ?)",
                    (version, datetime.now(UTC).isoformat()),
                )
            logger.debug("progress schema migrated to v%d", version)

    def _migrate_to_v1(self) -> None:
        """Create settings, word progress, session and streak tables."""
        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS word_progress (
                    word_id TEXT PRIMARY KEY,
                    total INTEGER NOT NULL,
                    correct INTEGER NOT NULL,
                    last_seen TEXT,
                    mastery_level TEXT NOT NULL
                )
                """)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS sessions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    date TEXT NOT NULL,
                    direction TEXT NOT NULL,
                    score INTEGER NOT NULL,
                    total_words INTEGER NOT NULL,
                    total_answered INTEGER NOT NULL,
                    total_correct INTEGER NOT NULL,
                    accuracy INTEGER NOT NULL,
                    best_streak INTEGER NOT NULL,
                    duration_seconds INTEGER NOT NULL,
                    wrong_words TEXT NOT NULL
                )
                """)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS streak (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    streak_days INTEGER NOT NULL,
                    last_session_date TEXT
                )
                """)
            self._conn.execute("INSERT OR IGNORE INTO streak (id, streak_days, last_session_date) VALUES (1, 0, NULL)")

    def _today_iso(self) -> str:
        today = self._today if self._today is not None else datetime.now(UTC).date()
        return today.isoformat()

    def get_settings(self) -> ReinsertSettings:
        """Return stored settings merged over defaults."""
        rows = self._conn.execute("SELECT key, value FROM settings").fetchall()
        stored: dict[str, Any] = {}
        for row in rows:
            key = str(row["key"])
            if key not in SETTING_KEYS:
                continue
            try:
                stored[key] = json.loads(str(row["value"]))
            except json.JSONDecodeError:
                logger.warning("ignoring unreadable setting %s", key)
        try:
            return replace(ReinsertSettings(), **stored)
        except (TypeError, ValueError):
            logger.warning("stored settings are invalid; using defaults")
            return ReinsertSettings()

    def update_settings(self, **patch: Any) -> ReinsertSettings:
        """Merge `patch` into stored settings, persist and return the result."""
        unknown = set(patch) - set(SETTING_KEYS)
        if unknown:
            raise KeyError(", ".join(sorted(unknown)))
        updated = replace(self.get_settings(), **patch)
        with self._conn:
            for key, value in asdict(updated).items():
                self._conn.execute(
                    "INSERT INTO settings (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (key, json.dumps(value)),
                )
        logger.info("settings updated: %s", updated)
        return updated

    def reset_settings(self) -> ReinsertSettings:
        """Drop stored settings and return defaults."""
        with self._conn:
            self._conn.execute("DELETE FROM settings")
        return ReinsertSettings()

    def get_word_progress(self, word_id: str) -> WordProgress | None:
        """Return lifetime results for a word if it was ever answered."""
        row = self._conn.execute(
            "SELECT word_id, total, correct, last_seen, mastery_level FROM word_progress WHERE word_id = ?",
            (word_id,),
        ).fetchone()
        if row is None:
            return None
        return _word_progress_from_row(row)

    def record_word_result(self, word_id: str, correct: bool) -> WordProgress:
        """Record one answer for a word and update its mastery level."""
        previous = self.get_word_progress(word_id)
        total = (previous.total if previous else 0) + 1
        correct_count = (previous.correct if previous else 0) + (1 if correct else 0)
        progress = WordProgress(
            word_id=word_id,
            total=total,
            correct=correct_count,
            last_seen=self._today_iso(),
            mastery_level=compute_mastery_level(total, correct_count),
        )
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO word_progress (word_id, total, correct, last_seen, mastery_level)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(word_id) DO UPDATE SET
                    total = excluded.total,
                    correct = excluded.correct,
                    last_seen = excluded.last_seen,
                    mastery_level = excluded.mastery_level
                """,
                (progress.word_id, progress.total, progress.correct, progress.last_seen, progress.mastery_level),
            )
        return progress

    def list_word_progress(self) -> list[WordProgress]:
        rows = self._conn.execute(
            "SELECT word_id, total, correct, last_seen, mastery_level FROM word_progress ORDER BY word_id"
        ).fetchall()
        return [_word_progress_from_row(row) for row in rows]

    def weak_word_ids(self, min_attempts: int = 2, max_accuracy: int = 60, limit: int = 20) -> list[str]:
        """Return ids of words answered often enough and below the accuracy bar, worst first."""
        weak = [
            item
            for item in self.list_word_progress()
            if item.total >= min_attempts and item.accuracy < max_accuracy
        ]
        weak.sort(key=lambda item: (item.accuracy, item.word_id))
        return [item.word_id for item in weak[:limit]]

    def wrong_history_ids(self) -> set[str]:
        """Return ids of words still at the `learning` mastery level."""
        rows = self._conn.execute(
            "SELECT word_id FROM word_progress WHERE mastery_level = ?",
            (MASTERY_LEARNING,),
        ).fetchall()
        return {str(row["word_id"]) for row in rows}

    def record_session(self, summary: SessionSummary, direction: str) -> SessionRecord:
        """Append a finished session, trim history and update the daily streak."""
        today = self._today_iso()
        with self._conn:
            cursor = self._conn.execute(
                """
                INSERT INTO sessions (
                    date,
                    direction,
                    score,
                    total_words,
                    total_answered,
                    total_correct,
                    accuracy,
                    best_streak,
                    duration_seconds,
                    wrong_words
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    today,
                    direction,
                    summary.score,
                    summary.total_words,
                    summary.total_answered,
                    summary.total_correct,
                    summary.accuracy,
                    summary.best_streak,
                    round(summary.elapsed_time_ms / 1000),
                    json.dumps(list(summary.wrong_words)),
                ),
            )
            self._conn.execute(
                """
                DELETE FROM sessions
                WHERE id NOT IN (SELECT id FROM sessions ORDER BY id DESC LIMIT ?)
                """,
                (SESSION_HISTORY_LIMIT,),
            )
            self._update_streak(today)
        row_id = cursor.lastrowid
        if row_id is None:
            raise RuntimeError("Could not record session.")
        return SessionRecord(
            id=int(row_id),
            date=today,
            direction=direction,
            score=summary.score,
            total_words=summary.total_words,
            total_answered=summary.total_answered,
            total_correct=summary.total_correct,
            accuracy=summary.accuracy,
            best_streak=summary.best_streak,
            duration_seconds=round(summary.elapsed_time_ms / 1000),
            wrong_words=tuple(summary.wrong_words),
        )

    def _update_streak(self, today: str) -> None:
        row = self._conn.execute("SELECT streak_days, last_session_date FROM streak WHERE id = 1").fetchone()
        streak_days = int(row["streak_days"])
        last = row["last_session_date"]
        yesterday = (date.fromisoformat(today) - timedelta(days=1)).isoformat()
        if last == yesterday:
            streak_days += 1
        elif last != today:
            streak_days = 1
        self._conn.execute(
            "UPDATE streak SET streak_days = ?, last_session_date = ? WHERE id = 1",
            (streak_days, today),
        )

    def list_sessions(self) -> list[SessionRecord]:
        """Return stored sessions, most recent first."""
        rows = self._conn.execute("SELECT * FROM sessions ORDER BY id DESC").fetchall()
        return [
            SessionRecord(
                id=int(row["id"]),
                date=str(row["date"]),
                direction=str(row["direction"]),
                score=int(row["score"]),
                total_words=int(row["total_words"]),
                total_answered=int(row["total_answered"]),
                total_correct=int(row["total_correct"]),
                accuracy=int(row["accuracy"]),
                best_streak=int(row["best_streak"]),
                duration_seconds=int(row["duration_seconds"]),
                wrong_words=tuple(json.loads(str(row["wrong_words"]))),
            )
            for row in rows
        ]

    def stats(self) -> ProgressStats:
        """Return streak, session and mastery aggregates."""
        streak = self._conn.execute("SELECT streak_days, last_session_date FROM streak WHERE id = 1").fetchone()
        words = self.list_word_progress()
        counts = {level: 0 for level in (MASTERY_LEARNING, MASTERY_KNOWN, MASTERY_MASTERED)}
        for item in words:
            counts[item.mastery_level] = counts.get(item.mastery_level, 0) + 1
        sessions = self.list_sessions()
        return ProgressStats(
            streak_days=int(streak["streak_days"]),
            last_session_date=streak["last_session_date"],
            session_count=len(sessions),
            words_seen=len(words),
            mastery_counts=counts,
            recent_sessions=tuple(sessions[:5]),
        )

    def export_progress(self, export_path: Path | str) -> Path:
        """Write settings, word results, sessions and streak to a JSON file."""
        stats = self.stats()
        payload = {
            "exported_at": datetime.now(UTC).isoformat(),
            "schema_version": SCHEMA_VERSION,
            "settings": asdict(self.get_settings()),
            "words": {item.word_id: asdict(item) for item in self.list_word_progress()},
            "sessions": [asdict(item) for item in self.list_sessions()],
            "streak_days": stats.streak_days,
            "last_session_date": stats.last_session_date,
        }
        path = Path(export_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        return path

    def reset_progress(self) -> None:
        """Delete word results, sessions and the streak; settings are kept."""
        with self._conn:
            self._conn.execute("DELETE FROM word_progress")
            self._conn.execute("DELETE FROM sessions")
            self._conn.execute("UPDATE streak SET streak_days = 0, last_session_date = NULL WHERE id = 1")
        logger.info("progress reset")

    def close(self) -> None:
        """Close db connection."""
        self._conn.close()


def _word_progress_from_row(row: sqlite3.Row) -> WordProgress:
    return WordProgress(
        word_id=str(row["word_id"]),
        total=int(row["total"]),
        correct=int(row["correct"]),
        last_seen=row["last_seen"],
        mastery_level=str(row["mastery_level"]),
    )
