"""CLI entrypoint for the vocabulary typing drill."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable, Collection
from pathlib import Path

from . import events
from .config import config
from .content_loader import load_vocabulary, load_vocabulary_from_file
from .engine import NoPlayableEntries, SessionEngine, SessionSummary
from .logger import setup_logging
from .matching import MatchResult
from .models import Direction, VocabularyEntry
from .service import DrillService

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]
QUIT_COMMANDS = {":q", ":quit", ":exit"}
HINT_COMMANDS = {":hint", ":h"}
SKIP_COMMANDS = {":skip", ":s"}
YES_ANSWERS = {"y", "yes"}
NEAR_MISS_LENGTH_RATIO = 3

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vocabdrill", description="Trilingual vocabulary typing drill")
    parser.add_argument("command", nargs="?", default="play", choices=["play", "review", "stats", "settings"])
    parser.add_argument("--direction", default=config.DIRECTION, help="learn-hint pair such as en-sr or sr-en")
    parser.add_argument("--size", type=int, default=config.SESSION_SIZE, help="words per session")
    parser.add_argument("--vocab", type=Path, default=None, help="vocabulary JSON file (default: bundled)")
    parser.add_argument("--db", type=Path, default=None, help="progress database path")
    parser.add_argument("--verbose", action="store_true", help="log debug output to stderr")
    parser.add_argument("--reinsert", choices=["on", "off"], default=None, help="re-queue missed words")
    parser.add_argument("--gap", type=int, default=None, help="positions ahead to re-queue a missed word")
    parser.add_argument("--max-reinsertions", type=int, default=None, help="cap re-queues per word (0 = no cap)")
    parser.add_argument("--reset", action="store_true", help="restore default settings")
    parser.add_argument("--export", type=Path, default=None, help="stats: write progress to a JSON file")
    parser.add_argument("--reset-progress", action="store_true", help="stats: delete word results and history")
    return parser


def _service(vocab_path: Path | None, db_path: Path) -> DrillService:
    """Create app service with bundled or user-supplied vocabulary."""
    vocabulary = load_vocabulary_from_file(vocab_path) if vocab_path is not None else load_vocabulary()
    return DrillService(vocabulary, db_path=db_path)


def run(argv: list[str] | None = None, input_fn: InputFn = input, print_fn: PrintFn = print) -> int:
    """Run the CLI application."""
    args = _build_parser().parse_args(argv)
    db_path: Path = args.db if args.db is not None else config.db_path
    setup_logging(db_path.parent / config.LOG_DIR, verbose=args.verbose)

    try:
        direction = Direction.parse(args.direction)
        if args.size < 1:
            raise ValueError("--size must be at least 1.")
        service = _service(args.vocab, db_path)
    except (OSError, ValueError) as exc:
        logger.error("startup failed: %s", exc)
        print_fn(f"Error: {exc}")
        return 2

    try:
        if args.command == "play":
            return _play_flow(service, direction, args.size, input_fn, print_fn)
        if args.command == "review":
            return _review_flow(service, direction, args.size, input_fn, print_fn)
        if args.command == "stats":
            return _stats_flow(service, args, input_fn, print_fn)
        return _settings_flow(service, args, print_fn)
    finally:
        service.close()


def _play_flow(service: DrillService, direction: Direction, size: int, input_fn: InputFn, print_fn: PrintFn) -> int:
    """Run one drill round, then offer to review its mistakes."""
    engine = service.create_engine(direction, size, config.FUZZY_MAX_DISTANCE)
    try:
        summary = _run_drill(engine, input_fn, print_fn)
        while summary is not None and summary.wrong_words:
            choice = input_fn(f"Review {len(summary.wrong_words)} missed word(s)? (y/n): ").strip().lower()
            if choice not in YES_ANSWERS:
                break
            summary = _run_drill(engine, input_fn, print_fn, filter_ids=summary.wrong_words)
    except NoPlayableEntries as exc:
        print_fn(f"Nothing to practice: {exc}")
        return 1
    return 0


def _review_flow(service: DrillService, direction: Direction, size: int, input_fn: InputFn, print_fn: PrintFn) -> int:
    """Drill the learner's weakest words from earlier sessions."""
    review_ids = service.review_ids()
    if not review_ids:
        print_fn("No words need review. Great work!")
        return 0
    engine = service.create_engine(direction, size, config.FUZZY_MAX_DISTANCE)
    try:
        _run_drill(engine, input_fn, print_fn, filter_ids=review_ids)
    except NoPlayableEntries:
        print_fn(f"None of your weak words belong to direction {direction}.")
        return 1
    return 0


def _run_drill(
    engine: SessionEngine,
    input_fn: InputFn,
    print_fn: PrintFn,
    filter_ids: Collection[str] | None = None,
) -> SessionSummary | None:
    """Run a typing session until the queue is exhausted or the learner quits."""
    unsubscribe_loaded = engine.on(
        events.WORD_LOADED,
        lambda payload: print_fn(f"\n[{payload.index + 1}/{payload.total}] {payload.term}"),
    )
    unsubscribe_hint = engine.on(
        events.HINT_REVEALED,
        lambda payload: print_fn(f"Hint ({payload.language.upper()}): {payload.text}"),
    )
    try:
        title = "Review" if filter_ids is not None else "Drill"
        print_fn(f"\n=== {title} ({engine.direction}) ===")
        print_fn("Type the translation. :hint for a hint, :skip to give up, :q to stop.")
        current: VocabularyEntry | SessionSummary | None = engine.start_session(filter_ids)
        while isinstance(current, VocabularyEntry):
            if not _run_word(engine, input_fn, print_fn):
                summary = engine.end_session()
                print_fn("\nRound ended early.")
                _print_summary(summary, print_fn)
                return summary
            current = engine.next_word()
        summary = current if isinstance(current, SessionSummary) else engine.end_session()
        _print_summary(summary, print_fn)
        return summary
    finally:
        unsubscribe_loaded()
        unsubscribe_hint()


def _run_word(engine: SessionEngine, input_fn: InputFn, print_fn: PrintFn) -> bool:
    """Prompt until the current word is judged; return False when the learner quits."""
    warned = False
    while True:
        user_input = input_fn("> ").strip()
        lowered = user_input.lower()
        if lowered in QUIT_COMMANDS:
            return False
        if lowered in HINT_COMMANDS:
            if engine.get_hint() is None:
                print_fn("No more hints.")
            continue
        if lowered in SKIP_COMMANDS:
            result = engine.check_answer("")
            if result is not None:
                print_fn(f"Skipped. Answer: {result.expected}")
            return True
        if not user_input:
            print_fn("Type an answer first.")
            continue

        if not warned and _near_miss(engine, engine.preview_answer(user_input)):
            warned = True
            print_fn("Almost! Check the spelling and try again.")
            continue

        result = engine.check_answer(user_input)
        if result is None:
            return True
        if result.correct:
            score = engine.session.score if engine.session is not None else 0
            print_fn(f"Correct. Score: {score}")
        else:
            print_fn(f"Incorrect. Answer: {result.expected}")
            _print_answer_details(engine, print_fn)
        return True


def _near_miss(engine: SessionEngine, preview: MatchResult | None) -> bool:
    """Return whether a wrong answer is close enough to deserve a spelling retry.

    The allowed distance shrinks with the expected text, so a two-letter word
    is only "almost" right when a single letter differs.
    """
    if preview is None or preview.exact or not preview.close:
        return False
    expected = engine.expected_answer() or ""
    return preview.distance <= max(1, len(expected) // NEAR_MISS_LENGTH_RATIO)


def _print_answer_details(engine: SessionEngine, print_fn: PrintFn) -> None:
    """Show other translations and an example for the word just missed."""
    bundle = engine.get_answers()
    if bundle is None:
        return
    others = [f"{language}: {text}" for language, text in bundle.translations.items() if text]
    if others:
        print_fn("  " + " | ".join(others))
    for language, sentences in bundle.examples.items():
        if sentences:
            print_fn(f"  e.g. ({language}) {sentences[0]}")
            break
    if bundle.explanation:
        print_fn(f"  Note: {bundle.explanation}")


def _print_summary(summary: SessionSummary | None, print_fn: PrintFn) -> None:
    if summary is None:
        return
    seconds = summary.elapsed_time_ms // 1000
    print_fn("\n=== Summary ===")
    print_fn(f"Score: {summary.score}")
    print_fn(f"Correct: {summary.total_correct}/{summary.total_answered} ({summary.accuracy}%)")
    print_fn(f"Best streak: {summary.best_streak}")
    print_fn(f"Time: {seconds // 60}m {seconds % 60:02d}s")
    if summary.wrong_words:
        print_fn(f"Missed: {', '.join(summary.wrong_words)}")


def _stats_flow(service: DrillService, args: argparse.Namespace, input_fn: InputFn, print_fn: PrintFn) -> int:
    """Export or reset progress when asked, then print the stats screen."""
    if args.export is not None:
        try:
            path = service.progress.export_progress(args.export)
        except OSError as exc:
            print_fn(f"Error: {exc}")
            return 2
        print_fn(f"Progress exported to {path}")
    if args.reset_progress:
        choice = input_fn("Reset all progress? Settings are kept. (y/n): ").strip().lower()
        if choice in YES_ANSWERS:
            service.progress.reset_progress()
            print_fn("Progress reset.")
        else:
            print_fn("Reset cancelled.")
    _print_stats(service, print_fn)
    return 0


def _print_stats(service: DrillService, print_fn: PrintFn) -> None:
    """Print streak, mastery and recent session history."""
    stats = service.stats()
    print_fn("\n=== Progress ===")
    plural = "" if stats.streak_days == 1 else "s"
    print_fn(f"Streak: {stats.streak_days} day{plural}")
    if stats.last_session_date:
        print_fn(f"Last session: {stats.last_session_date}")
    print_fn(f"Words seen: {stats.words_seen}")
    for level, count in stats.mastery_counts.items():
        print_fn(f"- {level}: {count}")
    if not stats.recent_sessions:
        print_fn("No sessions yet.")
        return

    date_width = max(len("Date"), max(len(item.date) for item in stats.recent_sessions))
    header = f"{'Date':<{date_width}} {'Dir':<5} {'Score':>6} {'Acc':>4} Missed"
    print_fn("\nRecent sessions:")
    print_fn(header)
    print_fn("-" * len(header))
    for item in stats.recent_sessions:
        print_fn(
            f"{item.date:<{date_width}} "
            f"{item.direction:<5} "
            f"{item.score:>6} "
            f"{item.accuracy:>3}% "
            f"{len(item.wrong_words)}"
        )

    weak = service.review_ids()
    if weak:
        print_fn(f"\nWords to review: {', '.join(weak)}")


def _settings_flow(service: DrillService, args: argparse.Namespace, print_fn: PrintFn) -> int:
    """Show and optionally update re-insertion settings."""
    try:
        if args.reset:
            settings = service.progress.reset_settings()
        else:
            patch: dict[str, object] = {}
            if args.reinsert is not None:
                patch["reinsert_enabled"] = args.reinsert == "on"
            if args.gap is not None:
                patch["reinsert_gap"] = args.gap
            if args.max_reinsertions is not None:
                patch["max_reinsertions"] = args.max_reinsertions or None
            settings = service.progress.update_settings(**patch) if patch else service.progress.get_settings()
    except ValueError as exc:
        print_fn(f"Error: {exc}")
        return 2

    print_fn("\n=== Settings ===")
    print_fn(f"Re-insert missed words: {'on' if settings.reinsert_enabled else 'off'}")
    print_fn(f"Re-insert gap: {settings.reinsert_gap}")
    cap = "none" if settings.max_reinsertions is None else str(settings.max_reinsertions)
    print_fn(f"Max re-insertions per word: {cap}")
    return 0


def main_entry() -> None:
    """Console script entrypoint."""
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main_entry()
