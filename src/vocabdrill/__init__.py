"""vocabdrill package."""

from __future__ import annotations

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

__all__ = ["__version__"]

PROJECT_NAME = "vocabdrill"


def _version_from_pyproject() -> str | None:
    """Return the version of a source checkout's pyproject.toml, if one is nearby."""
    for base in Path(__file__).resolve().parents:
        pyproject = base / "pyproject.toml"
        if not pyproject.is_file():
            continue
        with pyproject.open("rb") as handle:
            project = tomllib.load(handle).get("project", {})
        if project.get("name") == PROJECT_NAME and isinstance(project.get("version"), str):
            return str(project["version"])
    return None


_project_version = _version_from_pyproject()
if _project_version is not None:
    __version__ = _project_version
else:
    try:
        __version__ = version(PROJECT_NAME)
    except PackageNotFoundError:
        __version__ = "0+unknown"
