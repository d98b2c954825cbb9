"""
Project root and `.env` helpers.

The dataset path in `defaults.yaml` is relative (`data/geo.generated.json`), so
it is resolved against the directory that holds the project, not whatever
directory the CLI or uvicorn happens to be started from. A `.env` next to it
may carry local overrides such as `ZONEGEO_DATASET_PATH`.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

_ROOT_MARKERS = (".env", ".git", "pyproject.toml")


@lru_cache
def get_project_root() -> Path:
    """Nearest directory at or above the cwd holding a root marker; the cwd otherwise."""
    cwd = Path.cwd().resolve()
    for candidate in (cwd, *cwd.parents):
        if any((candidate / marker).exists() for marker in _ROOT_MARKERS):
            return candidate
    return cwd


@lru_cache
def load_dotenv_if_present() -> Path | None:
    """Load `<project root>/.env` once; variables already set in the process win."""
    env_path = get_project_root() / ".env"
    if not env_path.is_file():
        return None
    load_dotenv(dotenv_path=env_path, override=False)
    return env_path


def resolve_project_path(path: str | Path) -> Path:
    p = Path(path).expanduser()
    if p.is_absolute():
        return p
    return (get_project_root() / p).resolve()
