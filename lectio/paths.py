from __future__ import annotations

import os
from pathlib import Path

from .errors import StoragePathError

APP_DIR_NAME = "lectio-diei"


def _home() -> Path:
    try:
        return Path.home()
    except (RuntimeError, KeyError) as exc:
        raise StoragePathError(f"Could not determine home directory: {exc}") from exc


def data_dir() -> Path:
    explicit = os.getenv("LECTIO_DATA_DIR", "").strip()
    if explicit:
        return Path(explicit).expanduser()
    xdg = os.getenv("XDG_DATA_HOME", "").strip()
    if xdg:
        return Path(xdg) / APP_DIR_NAME
    return _home() / ".local" / "share" / APP_DIR_NAME


def state_dir() -> Path:
    xdg = os.getenv("XDG_STATE_HOME", "").strip()
    if xdg:
        return Path(xdg) / APP_DIR_NAME
    return _home() / ".local" / "state" / APP_DIR_NAME


def _ensure_parent(path: Path) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise StoragePathError(f"Failed to create directory {path.parent}: {exc}") from exc
    return path


def create_and_get_db_path() -> Path:
    """Path of the SQLite file; its directory is created if missing."""
    return _ensure_parent(data_dir() / "data.db")


def create_and_get_log_path() -> Path:
    return _ensure_parent(state_dir() / "debug.log")
