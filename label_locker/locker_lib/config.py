"""Configuration helpers for locating the label database."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_DB_NAME = "labels.sqlite"
DEFAULT_BUSY_TIMEOUT = 5.0
STATE_DIR_ENV = "LABEL_LOCKER_HOME"
USER_STATE_DIR = ".label_locker"


@dataclass(frozen=True)
class LockerConfig:
    repo_root: Path
    state_dir: Path
    db_path: Path
    busy_timeout: float = DEFAULT_BUSY_TIMEOUT


def detect_repo_root() -> Path:
    """Return the root of the label_locker package."""
    return Path(__file__).resolve().parents[1]


def is_source_checkout(repo_root: Path) -> bool:
    """True when the package runs from a checkout rather than an install."""
    return (repo_root.parent / "pyproject.toml").is_file()


def default_state_dir(repo_root: Path) -> Path:
    """Pick where the label database lives when ``--db`` is not given.

    ``LABEL_LOCKER_HOME`` wins; a source checkout keeps its state in ``var/``
    beside the package; an installed copy uses ``~/.label_locker``.
    """
    override = os.environ.get(STATE_DIR_ENV)
    if override:
        path = Path(override).expanduser()
    elif is_source_checkout(repo_root):
        path = repo_root.parent / "var"
    else:
        path = Path.home() / USER_STATE_DIR
    path.mkdir(parents=True, exist_ok=True)
    return path


def default_db_path(state_dir: Path) -> Path:
    return state_dir / DEFAULT_DB_NAME


def load_config(db_path: Optional[Path] = None, busy_timeout: Optional[float] = None) -> LockerConfig:
    repo_root = detect_repo_root()
    if db_path:
        resolved_db_path = Path(db_path).expanduser()
        state_dir = resolved_db_path.parent
    else:
        state_dir = default_state_dir(repo_root)
        resolved_db_path = default_db_path(state_dir)
    resolved_db_path.parent.mkdir(parents=True, exist_ok=True)
    timeout = DEFAULT_BUSY_TIMEOUT if busy_timeout is None else float(busy_timeout)
    if timeout < 0:
        raise ValueError(f"busy_timeout must be >= 0, got {timeout}")
    return LockerConfig(
        repo_root=repo_root,
        state_dir=state_dir,
        db_path=resolved_db_path,
        busy_timeout=timeout,
    )
