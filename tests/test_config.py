import logging
from pathlib import Path
from typing import Any

from vocabdrill import config as config_module
from vocabdrill.config import Config
from vocabdrill.logger import setup_logging


def test_env_int_reads_and_validates(monkeypatch: Any) -> None:
    monkeypatch.delenv("VOCABDRILL_TEST_INT", raising=False)
    assert config_module._env_int("VOCABDRILL_TEST_INT", 7) == 7
    monkeypatch.setenv("VOCABDRILL_TEST_INT", " ")
    assert config_module._env_int("VOCABDRILL_TEST_INT", 7) == 7
    monkeypatch.setenv("VOCABDRILL_TEST_INT", "12")
    assert config_module._env_int("VOCABDRILL_TEST_INT", 7) == 12
    monkeypatch.setenv("VOCABDRILL_TEST_INT", "many")
    try:
        config_module._env_int("VOCABDRILL_TEST_INT", 7)
        raise AssertionError("Expected ValueError for non-integer value.")
    except ValueError:
        pass


def test_config_paths_follow_home_dir(monkeypatch: Any, tmp_path: Path) -> None:
    settings = Config()
    monkeypatch.setattr(settings, "HOME_DIR", tmp_path / "home")
    assert settings.db_path == tmp_path / "home" / "progress.db"
    assert settings.log_dir == tmp_path / "home" / "log"


def test_setup_logging_writes_to_rotating_file(tmp_path: Path) -> None:
    logger = setup_logging(tmp_path / "log")
    try:
        assert logger.name == "vocabdrill"
        assert logger.propagate is False
        assert len(logger.handlers) == 2
        logging.getLogger("vocabdrill.engine").info("session started: 3 words")
        for handler in logger.handlers:
            handler.flush()
        content = (tmp_path / "log" / "vocabdrill.log").read_text(encoding="utf-8")
        assert "INFO - vocabdrill.engine - session started: 3 words" in content

        again = setup_logging(tmp_path / "log", verbose=True)
        assert again is logger
        assert len(logger.handlers) == 2
        assert logger.level == logging.DEBUG
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
