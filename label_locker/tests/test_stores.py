"""Unit tests for the label record stores."""
from __future__ import annotations

import sqlite3
import tempfile
import threading
import unittest
from pathlib import Path

from label_locker.locker_lib.errors import StorageError
from label_locker.locker_lib.models import LabelRecord, LabelState
from label_locker.locker_lib.results import ErrorReason
from label_locker.locker_lib.service import LabelLockService
from label_locker.locker_lib.stores import InMemoryLabelStore, LabelStore, SQLiteLabelStore


class StoreContractMixin:
    """Checks every LabelStore implementation must pass."""

    store: LabelStore

    def test_find_missing_returns_none(self) -> None:
        self.assertIsNone(self.store.find("nothing"))

    def test_create_assigns_version(self) -> None:
        version = self.store.add_or_update(LabelRecord("a", LabelState.RESERVED), expected_version=None)
        self.assertIsInstance(version, bytes)
        record = self.store.find("a")
        self.assertEqual(record.state, LabelState.RESERVED)
        self.assertEqual(record.version, version)

    def test_create_when_present_conflicts(self) -> None:
        first = self.store.add_or_update(LabelRecord("a", LabelState.RESERVED), expected_version=None)
        second = self.store.add_or_update(LabelRecord("a", LabelState.AVAILABLE), expected_version=None)
        self.assertIsNone(second)
        record = self.store.find("a")
        self.assertEqual(record.state, LabelState.RESERVED)
        self.assertEqual(record.version, first)

    def test_update_with_current_version_changes_version(self) -> None:
        first = self.store.add_or_update(LabelRecord("a", LabelState.RESERVED), expected_version=None)
        second = self.store.add_or_update(LabelRecord("a", LabelState.AVAILABLE), expected_version=first)
        self.assertIsNotNone(second)
        self.assertNotEqual(first, second)
        record = self.store.find("a")
        self.assertEqual(record.state, LabelState.AVAILABLE)
        self.assertEqual(record.version, second)

    def test_update_with_stale_version_conflicts(self) -> None:
        first = self.store.add_or_update(LabelRecord("a", LabelState.RESERVED), expected_version=None)
        second = self.store.add_or_update(LabelRecord("a", LabelState.AVAILABLE), expected_version=first)
        stale = self.store.add_or_update(LabelRecord("a", LabelState.RESERVED), expected_version=first)
        self.assertIsNone(stale)
        record = self.store.find("a")
        self.assertEqual(record.state, LabelState.AVAILABLE)
        self.assertEqual(record.version, second)

    def test_update_missing_record_conflicts(self) -> None:
        result = self.store.add_or_update(LabelRecord("ghost", LabelState.RESERVED), expected_version=b"\x00" * 16)
        self.assertIsNone(result)
        self.assertIsNone(self.store.find("ghost"))

    def test_versions_differ_across_records(self) -> None:
        a = self.store.add_or_update(LabelRecord("a", LabelState.RESERVED), expected_version=None)
        b = self.store.add_or_update(LabelRecord("b", LabelState.RESERVED), expected_version=None)
        self.assertNotEqual(a, b)

    def test_all_sorted_by_name(self) -> None:
        for name in ("c", "a", "b"):
            self.store.add_or_update(LabelRecord(name, LabelState.RESERVED), expected_version=None)
        self.assertEqual([record.name for record in self.store.all()], ["a", "b", "c"])


class InMemoryLabelStoreTests(StoreContractMixin, unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryLabelStore()

    def test_find_waits_for_writer_lock(self) -> None:
        self.store.add_or_update(LabelRecord("a", LabelState.RESERVED), expected_version=None)
        found = []
        with self.store.lock:
            reader = threading.Thread(target=lambda: found.append(self.store.find("a")))
            reader.start()
            reader.join(timeout=0.2)
            self.assertTrue(reader.is_alive())
        reader.join(timeout=5)
        self.assertEqual(found[0].name, "a")


class InterruptOnCommit:
    """Connection wrapper whose first commit raises KeyboardInterrupt."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self.armed = True

    def commit(self) -> None:
        if self.armed:
            self.armed = False
            raise KeyboardInterrupt
        self._conn.commit()

    def __getattr__(self, name: str):
        return getattr(self._conn, name)


class SQLiteLabelStoreTests(StoreContractMixin, unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.db_path = Path(self.tmpdir.name) / "db" / "labels.sqlite"
        self.store = SQLiteLabelStore(self.db_path, timeout=1.0)

    def tearDown(self) -> None:
        self.store.close()
        self.tmpdir.cleanup()

    def test_creates_parent_directory_and_schema(self) -> None:
        self.assertTrue(self.db_path.exists())
        conn = sqlite3.connect(self.db_path)
        try:
            tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}
        finally:
            conn.close()
        self.assertIn("labels", tables)

    def test_records_persist_across_instances(self) -> None:
        version = self.store.add_or_update(LabelRecord("persist", LabelState.RESERVED), expected_version=None)
        other = SQLiteLabelStore(self.db_path, timeout=1.0)
        try:
            record = other.find("persist")
        finally:
            other.close()
        self.assertEqual(record.version, version)
        self.assertEqual(record.state, LabelState.RESERVED)

    def test_second_connection_sees_conflict(self) -> None:
        other = SQLiteLabelStore(self.db_path, timeout=1.0)
        try:
            first = self.store.add_or_update(LabelRecord("shared", LabelState.RESERVED), expected_version=None)
            raced = other.add_or_update(LabelRecord("shared", LabelState.RESERVED), expected_version=None)
            moved = other.add_or_update(LabelRecord("shared", LabelState.AVAILABLE), expected_version=first)
            stale = self.store.add_or_update(LabelRecord("shared", LabelState.AVAILABLE), expected_version=first)
        finally:
            other.close()
        self.assertIsNone(raced)
        self.assertIsNotNone(moved)
        self.assertIsNone(stale)

    def test_closed_connection_raises_storage_error(self) -> None:
        self.store.close()
        with self.assertRaises(StorageError):
            self.store.find("a")
        with self.assertRaises(StorageError):
            self.store.add_or_update(LabelRecord("a", LabelState.RESERVED), expected_version=None)
        with self.assertRaises(StorageError):
            self.store.all()

    def test_unopenable_path_raises_storage_error(self) -> None:
        # A directory where the database file should be cannot be opened.
        target = Path(self.tmpdir.name) / "is_a_dir.sqlite"
        target.mkdir()
        with self.assertRaises(StorageError):
            SQLiteLabelStore(target, timeout=0.1)

    def test_interrupted_commit_leaves_no_row(self) -> None:
        real_conn = self.store.conn
        self.store.conn = InterruptOnCommit(real_conn)
        try:
            with self.assertRaises(KeyboardInterrupt):
                self.store.add_or_update(LabelRecord("cancelled", LabelState.RESERVED), expected_version=None)
            self.store.add_or_update(LabelRecord("other", LabelState.RESERVED), expected_version=None)
        finally:
            self.store.conn = real_conn
        conn = sqlite3.connect(self.db_path)
        try:
            names = [row[0] for row in conn.execute("SELECT name FROM labels ORDER BY name")]
        finally:
            conn.close()
        self.assertEqual(names, ["other"])

    def test_busy_database_reports_storage_without_writing(self) -> None:
        impatient = SQLiteLabelStore(self.db_path, timeout=0.1)
        service = LabelLockService(impatient)
        blocker = sqlite3.connect(self.db_path, isolation_level=None, timeout=0.1)
        try:
            blocker.execute("BEGIN IMMEDIATE")
            outcome = service.reserve("blocked")
            blocker.execute("ROLLBACK")
            self.assertFalse(outcome.success)
            self.assertEqual(outcome.error_reason, ErrorReason.STORAGE)
            self.assertIsNone(self.store.find("blocked"))
            # The failed write left no open transaction behind.
            self.assertTrue(service.reserve("blocked").success)
        finally:
            blocker.close()
            impatient.close()


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
