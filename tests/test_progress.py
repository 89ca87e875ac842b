import json
import sqlite3
from datetime import date
from pathlib import Path

from vocabdrill.engine import SessionSummary
from vocabdrill.progress import (
    MASTERY_KNOWN,
    MASTERY_LEARNING,
    MASTERY_MASTERED,
    MASTERY_NEW,
    SCHEMA_VERSION,
    SESSION_HISTORY_LIMIT,
    ProgressStore,
    compute_mastery_level,
)
from vocabdrill.reinsertion import ReinsertSettings


def _summary(score: int = 50, wrong: tuple[str, ...] = ("en-0002",)) -> SessionSummary:
    return SessionSummary(
        score=score,
        total_words=5,
        total_answered=5,
        total_correct=5 - len(wrong),
        accuracy=round((5 - len(wrong)) / 5 * 100),
        best_streak=3,
        wrong_words=wrong,
        elapsed_time_ms=61_400,
    )


def test_schema_version_and_migration_history() -> None:
    store = ProgressStore(":memory:")
    version = store._conn.execute("PRAGMA user_version").fetchone()[0]
    assert version == SCHEMA_VERSION
    applied = store._conn.execute("SELECT version FROM schema_migrations").fetchall()
    assert [int(row[0]) for row in applied] == [1]


def test_newer_schema_is_rejected(tmp_path: Path) -> None:
    db_path = tmp_path / "future.db"
    conn = sqlite3.connect(db_path)
    conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION + 1}")
    conn.close()
    try:
        ProgressStore(db_path)
        raise AssertionError("Expected RuntimeError for newer schema.")
    except RuntimeError:
        pass


def test_settings_defaults_update_and_reset() -> None:
    store = ProgressStore(":memory:")
    assert store.get_settings() == ReinsertSettings()

    updated = store.update_settings(reinsert_gap=4, max_reinsertions=2)
    assert updated.reinsert_gap == 4
    assert updated.max_reinsertions == 2
    assert updated.reinsert_enabled is True
    assert store.get_settings() == updated

    store.update_settings(reinsert_enabled=False)
    assert store.get_settings().reinsert_enabled is False
    assert store.get_settings().reinsert_gap == 4

    assert store.reset_settings() == ReinsertSettings()
    assert store.get_settings() == ReinsertSettings()


def test_settings_reject_unknown_and_invalid_values() -> None:
    store = ProgressStore(":memory:")
    try:
        store.update_settings(colour="blue")
        raise AssertionError("Expected KeyError for unknown setting.")
    except KeyError:
        pass
    try:
        store.update_settings(reinsert_gap=0)
        raise AssertionError("Expected ValueError for gap below 1.")
    except ValueError:
        pass
    assert store.get_settings() == ReinsertSettings()


def test_corrupt_stored_settings_fall_back_to_defaults() -> None:
    store = ProgressStore(":memory:")
    with store._conn:
        store._conn.execute("INSERT INTO settings (key, value) VALUES ('reinsert_gap', '-3')")
    assert store.get_settings() == ReinsertSettings()


def test_compute_mastery_level() -> None:
    assert compute_mastery_level(0, 0) == MASTERY_NEW
    assert compute_mastery_level(2, 0) == MASTERY_LEARNING
    assert compute_mastery_level(3, 2) == MASTERY_KNOWN
    assert compute_mastery_level(4, 4) == MASTERY_KNOWN
    assert compute_mastery_level(6, 6) == MASTERY_MASTERED


def test_record_word_result_accumulates() -> None:
    store = ProgressStore(":memory:", today=date(2026, 3, 2))
    assert store.get_word_progress("en-0001") is None
    store.record_word_result("en-0001", False)
    progress = store.record_word_result("en-0001", True)
    assert (progress.total, progress.correct) == (2, 1)
    assert progress.accuracy == 50
    assert progress.last_seen == "2026-03-02"
    assert progress.mastery_level == MASTERY_LEARNING
    assert store.get_word_progress("en-0001") == progress


def test_weak_words_and_wrong_history() -> None:
    store = ProgressStore(":memory:")
    for correct in (False, False, True):
        store.record_word_result("weak-a", correct)
    for correct in (False, False):
        store.record_word_result("weak-b", correct)
    store.record_word_result("once", False)
    for _ in range(3):
        store.record_word_result("good", True)

    assert store.weak_word_ids() == ["weak-b", "weak-a"]
    assert store.weak_word_ids(limit=1) == ["weak-b"]
    assert store.wrong_history_ids() == {"weak-a", "weak-b", "once"}


def test_record_session_and_list_most_recent_first() -> None:
    store = ProgressStore(":memory:", today=date(2026, 3, 2))
    first = store.record_session(_summary(score=10), "en-sr")
    second = store.record_session(_summary(score=20, wrong=()), "sr-en")
    assert first.duration_seconds == 61
    sessions = store.list_sessions()
    assert [item.id for item in sessions] == [second.id, first.id]
    assert sessions[0].direction == "sr-en"
    assert sessions[0].wrong_words == ()
    assert sessions[1].wrong_words == ("en-0002",)


def test_session_history_is_trimmed() -> None:
    store = ProgressStore(":memory:")
    for score in range(SESSION_HISTORY_LIMIT + 5):
        store.record_session(_summary(score=score), "en-sr")
    sessions = store.list_sessions()
    assert len(sessions) == SESSION_HISTORY_LIMIT
    assert sessions[0].score == SESSION_HISTORY_LIMIT + 4
    assert sessions[-1].score == 5


def test_daily_streak(tmp_path: Path) -> None:
    db_path = tmp_path / "streak.db"

    def _record_on(day: date) -> int:
        store = ProgressStore(db_path, today=day)
        try:
            store.record_session(_summary(), "en-sr")
            return store.stats().streak_days
        finally:
            store.close()

    assert _record_on(date(2026, 3, 1)) == 1
    assert _record_on(date(2026, 3, 1)) == 1
    assert _record_on(date(2026, 3, 2)) == 2
    assert _record_on(date(2026, 3, 3)) == 3
    assert _record_on(date(2026, 3, 6)) == 1


def test_stats_aggregates() -> None:
    store = ProgressStore(":memory:", today=date(2026, 3, 2))
    stats = store.stats()
    assert stats.streak_days == 0
    assert stats.last_session_date is None
    assert stats.recent_sessions == ()

    store.record_word_result("a", False)
    store.record_word_result("b", True)
    for _ in range(7):
        store.record_session(_summary(), "en-sr")
    stats = store.stats()
    assert stats.words_seen == 2
    assert stats.mastery_counts[MASTERY_LEARNING] == 1
    assert stats.mastery_counts[MASTERY_KNOWN] == 1
    assert stats.mastery_counts[MASTERY_MASTERED] == 0
    assert stats.session_count == 7
    assert len(stats.recent_sessions) == 5
    assert stats.last_session_date == "2026-03-02"


def test_export_and_reset_progress(tmp_path: Path) -> None:
    store = ProgressStore(tmp_path / "data" / "progress.db", today=date(2026, 3, 2))
    store.update_settings(reinsert_gap=5)
    store.record_word_result("en-0001", True)
    store.record_session(_summary(), "en-sr")

    export_path = store.export_progress(tmp_path / "out" / "progress.json")
    payload = json.loads(export_path.read_text(encoding="utf-8"))
    assert payload["schema_version"] == SCHEMA_VERSION
    assert payload["settings"]["reinsert_gap"] == 5
    assert payload["words"]["en-0001"]["correct"] == 1
    assert payload["sessions"][0]["wrong_words"] == ["en-0002"]
    assert payload["streak_days"] == 1

    store.reset_progress()
    assert store.list_word_progress() == []
    assert store.list_sessions() == []
    assert store.stats().streak_days == 0
    assert store.get_settings().reinsert_gap == 5
    store.close()
