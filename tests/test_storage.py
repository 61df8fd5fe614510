"""Tests for registration storage."""

import sqlite3
import threading

import numpy as np
import pytest

from conftest import unit_vector
from face_attendance.storage import InMemoryFaceStore, SQLiteFaceStore


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Each store implementation."""
    if request.param == "memory":
        s = InMemoryFaceStore()
    else:
        s = SQLiteFaceStore(tmp_path / "db" / "attendance.db")
    yield s
    s.close()


class TestFaceStore:
    """Contract tests shared by all store implementations."""

    def test_empty(self, store):
        assert store.list_registered() == []
        assert len(store) == 0
        assert store.get("missing") is None

    def test_write_and_list(self, store):
        assert store.write_registration("E1", "Ada", unit_vector(0))
        assert store.write_registration("E2", "Grace", unit_vector(1))

        records = store.list_registered()
        assert [r.identity for r in records] == ["E1", "E2"]
        assert records[0].name == "Ada"
        assert records[0].embedding.dtype == np.float32
        assert np.array_equal(records[1].embedding, unit_vector(1))
        assert "E1" in store

    def test_new_registration_is_checked_out(self, store):
        store.write_registration("E1", "Ada", unit_vector(0))
        assert store.get("E1").checked_in is False

    def test_update_attendance(self, store):
        store.write_registration("E1", "Ada", unit_vector(0))

        assert store.update_attendance_state("E1", True)
        assert store.get("E1").checked_in is True
        assert store.update_attendance_state("E1", False)
        assert store.get("E1").checked_in is False

    def test_update_unknown_identity(self, store):
        assert not store.update_attendance_state("nobody", True)

    def test_rewrite_replaces_embedding_and_keeps_state(self, store):
        store.write_registration("E1", "Ada", unit_vector(0))
        store.update_attendance_state("E1", True)
        store.write_registration("E1", "Ada L.", unit_vector(5))

        record = store.get("E1")
        assert len(store) == 1
        assert record.name == "Ada L."
        assert np.array_equal(record.embedding, unit_vector(5))
        assert record.checked_in is True

    def test_list_is_a_snapshot(self, store):
        store.write_registration("E1", "Ada", unit_vector(0))
        snapshot = store.list_registered()
        snapshot[0].embedding[:] = 0

        assert np.array_equal(store.get("E1").embedding, unit_vector(0))

    def test_toggle_attendance(self, store):
        store.write_registration("E1", "Ada", unit_vector(0))

        assert store.toggle_attendance("E1") is True
        assert store.get("E1").checked_in is True
        assert store.toggle_attendance("E1") is False
        assert store.get("E1").checked_in is False

    def test_toggle_unknown_identity(self, store):
        assert store.toggle_attendance("nobody") is None

    def test_concurrent_toggles_alternate(self, store):
        """Each toggle sees the previous one; no two callers both check in."""
        store.write_registration("E1", "Ada", unit_vector(0))
        results = []

        def toggle():
            results.append(store.toggle_attendance("E1"))

        threads = [threading.Thread(target=toggle) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 5
        assert results.count(False) == 5
        assert store.get("E1").checked_in is False


class TestSQLiteFaceStore:
    """Test cases specific to SQLite persistence."""

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "attendance.db"
        first = SQLiteFaceStore(path)
        first.write_registration("E1", "Ada", unit_vector(7))
        first.update_attendance_state("E1", True)
        first.close()

        second = SQLiteFaceStore(path)
        record = second.get("E1")
        second.close()

        assert record.name == "Ada"
        assert record.checked_in is True
        assert np.array_equal(record.embedding, unit_vector(7))

    def test_concurrent_writes(self, tmp_path):
        store = SQLiteFaceStore(tmp_path / "attendance.db")

        def register(i):
            store.write_registration(f"E{i}", f"Person {i}", unit_vector(i))

        threads = [threading.Thread(target=register, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store) == 8
        store.close()

    def test_close_closes_every_thread_connection(self, tmp_path):
        store = SQLiteFaceStore(tmp_path / "attendance.db")
        store.write_registration("E1", "Ada", unit_vector(0))

        threads = [threading.Thread(target=store.list_registered) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        connections = list(store._connections)
        assert len(connections) == 4

        store.close()
        for conn in connections:
            with pytest.raises(sqlite3.ProgrammingError):
                conn.execute("SELECT 1")

    def test_usable_after_close(self, tmp_path):
        store = SQLiteFaceStore(tmp_path / "attendance.db")
        store.write_registration("E1", "Ada", unit_vector(0))
        store.close()

        assert store.get("E1").name == "Ada"
        store.close()
