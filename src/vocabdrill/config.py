"""Application defaults, overridable through environment variables."""

from __future__ import annotations

import os
from pathlib import Path


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {raw!r}.") from None


class Config:
    PROJECT_NAME: str = "vocabdrill"
    HOME_DIR: Path = Path(os.environ.get("VOCABDRILL_HOME", ".vocabdrill"))
    DB_FILE: str = "progress.db"
    LOG_DIR: str = "log"
    LOG_FILE: str = "vocabdrill.log"
    LOG_MAX_BYTES: int = 5_000_000
    LOG_BACKUP_COUNT: int = 3
    DIRECTION: str = os.environ.get("VOCABDRILL_DIRECTION", "en-sr")
    SESSION_SIZE: int = _env_int("VOCABDRILL_SESSION_SIZE", 20)
    FUZZY_MAX_DISTANCE: int = _env_int("VOCABDRILL_FUZZY_DISTANCE", 2)

    @property
    def db_path(self) -> Path:
        return self.HOME_DIR / self.DB_FILE

    @property
    def log_dir(self) -> Path:
        return self.HOME_DIR / self.LOG_DIR


config = Config()
