"""SQLite helpers for the label store."""
from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Iterable, Optional, Sequence

from .config import DEFAULT_BUSY_TIMEOUT

PRAGMAS: Sequence[tuple[str, str]] = (
    ("foreign_keys", "ON"),
    ("journal_mode", "WAL"),
    ("synchronous", "NORMAL"),
)

CREATE_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS labels (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        state TEXT NOT NULL CHECK (state IN ('available', 'reserved')),
        version BLOB NOT NULL,
        updated_at TEXT NOT NULL
    );
    """,
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_labels_name ON labels(name);",
]


def connect(
    db_path: Path,
    timeout: float = DEFAULT_BUSY_TIMEOUT,
    isolation_level: Optional[str] = "",
) -> sqlite3.Connection:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    # Callers that share a connection across threads serialize access themselves.
    conn = sqlite3.connect(db_path, timeout=timeout, isolation_level=isolation_level, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    _apply_pragmas(conn, timeout)
    return conn


def _apply_pragmas(conn: sqlite3.Connection, timeout: float) -> None:
    cursor = conn.cursor()
    for name, value in PRAGMAS:
        cursor.execute(f"PRAGMA {name} = {value};")
    cursor.execute(f"PRAGMA busy_timeout = {int(timeout * 1000)};")
    cursor.close()


def execute_script(conn: sqlite3.Connection, statements: Iterable[str]) -> None:
    cursor = conn.cursor()
    try:
        for statement in statements:
            cursor.execute(statement)
    finally:
        cursor.close()
    conn.commit()


def ensure_schema(conn: sqlite3.Connection) -> None:
    """Create the labels table and its unique name index if missing."""
    execute_script(conn, CREATE_STATEMENTS)
