"""SQLite-backed label store with compare-and-swap writes."""
from __future__ import annotations

import logging
import sqlite3
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .. import db as db_mod
from ..config import DEFAULT_BUSY_TIMEOUT
from ..errors import StorageError
from ..models import LabelRecord, LabelState
from .base_store import LabelStore

logger = logging.getLogger(__name__)

SELECT_ONE = "SELECT name, state, version FROM labels WHERE name = ?"
SELECT_ALL = "SELECT name, state, version FROM labels ORDER BY name"
INSERT_ONE = "INSERT INTO labels (name, state, version, updated_at) VALUES (?, ?, ?, ?)"
UPDATE_ONE = "UPDATE labels SET state = ?, version = ?, updated_at = ? WHERE name = ? AND version = ?"


class SQLiteLabelStore(LabelStore):
    """Persist labels in a SQLite database.

    The unique index on ``name`` rejects racing creates and the
    ``WHERE version = ?`` clause rejects racing updates, so several processes
    may share one database file. Within a process the connection is guarded
    by ``self.lock``.

    Each write is one statement followed by a commit. If the busy timeout
    expires the statement is rolled back and ``StorageError`` is raised; any
    other interruption also rolls back before propagating.
    """

    def __init__(self, db_path: Path, timeout: float = DEFAULT_BUSY_TIMEOUT) -> None:
        self.db_path = Path(db_path)
        self.lock = threading.Lock()
        try:
            self.conn = db_mod.connect(self.db_path, timeout=timeout, isolation_level="IMMEDIATE")
            db_mod.ensure_schema(self.conn)
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot open label database {self.db_path}: {exc}") from exc

    def close(self) -> None:
        with self.lock:
            self.conn.close()

    def find(self, name: str) -> Optional[LabelRecord]:
        with self.lock:
            try:
                cursor = self.conn.execute(SELECT_ONE, (name,))
                row = cursor.fetchone()
                cursor.close()
            except sqlite3.Error as exc:
                raise StorageError(f"Lookup of label {name!r} failed: {exc}") from exc
        if row is None:
            return None
        return _row_to_record(row)

    def add_or_update(self, record: LabelRecord, expected_version: Optional[bytes]) -> Optional[bytes]:
        version = uuid.uuid4().bytes
        now = datetime.now(timezone.utc).isoformat()
        with self.lock:
            try:
                if expected_version is None:
                    self.conn.execute(INSERT_ONE, (record.name, record.state.value, version, now))
                    changed = 1
                else:
                    cursor = self.conn.execute(
                        UPDATE_ONE,
                        (record.state.value, version, now, record.name, bytes(expected_version)),
                    )
                    changed = cursor.rowcount
                    cursor.close()
                self.conn.commit()
            except sqlite3.IntegrityError:
                self.conn.rollback()
                logger.debug("Create of label %s lost to a concurrent writer", record.name)
                return None
            except sqlite3.Error as exc:
                self._rollback_quietly()
                raise StorageError(f"Write of label {record.name!r} failed: {exc}") from exc
            except BaseException:
                # An interrupted write must not stay open for the next commit.
                self._rollback_quietly()
                raise
        if changed != 1:
            logger.debug("Version precondition failed for label %s", record.name)
            return None
        return version

    def all(self) -> List[LabelRecord]:
        with self.lock:
            try:
                rows = self.conn.execute(SELECT_ALL).fetchall()
            except sqlite3.Error as exc:
                raise StorageError(f"Listing labels failed: {exc}") from exc
        return [_row_to_record(row) for row in rows]

    def _rollback_quietly(self) -> None:
        try:
            self.conn.rollback()
        except sqlite3.Error:
            logger.exception("Rollback failed for %s", self.db_path)


def _row_to_record(row: sqlite3.Row) -> LabelRecord:
    return LabelRecord(name=row["name"], state=LabelState(row["state"]), version=bytes(row["version"]))
