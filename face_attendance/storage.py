"""Registration storage.

The recognition core needs only a few operations from storage: list the
registered identities, write a new registration and set or flip attendance
state. ``FaceStore`` defines that contract; ``InMemoryFaceStore`` and
``SQLiteFaceStore`` implement it.
"""

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Generator, List, Optional, Sequence, Union

import numpy as np

from .types import RegisteredIdentity

logger = logging.getLogger(__name__)


class FaceStore(ABC):
    """Storage collaborator for registered identities."""

    @abstractmethod
    def list_registered(self) -> List[RegisteredIdentity]:
        """Return a snapshot of all registered identities."""
        pass

    @abstractmethod
    def write_registration(
        self,
        identity: str,
        name: str,
        embedding: Sequence[float],
    ) -> bool:
        """Store (or replace) the canonical embedding for an identity.

        Returns:
            True if the write succeeded
        """
        pass

    @abstractmethod
    def update_attendance_state(self, identity: str, checked_in: bool) -> bool:
        """Set the checked-in flag of an identity.

        Returns:
            True if the identity exists and was updated
        """
        pass

    @abstractmethod
    def toggle_attendance(self, identity: str) -> Optional[bool]:
        """Atomically flip the checked-in flag of an identity.

        Returns:
            The new checked-in state, or None if the identity is unknown or
            the update failed
        """
        pass

    def get(self, identity: str) -> Optional[RegisteredIdentity]:
        """Look up one identity."""
        for record in self.list_registered():
            if record.identity == identity:
                return record
        return None

    def close(self) -> None:
        """Release storage resources."""

    def __len__(self) -> int:
        return len(self.list_registered())

    def __contains__(self, identity: str) -> bool:
        return self.get(identity) is not None


class InMemoryFaceStore(FaceStore):
    """Thread-safe in-process store."""

    def __init__(self):
        self._records: Dict[str, RegisteredIdentity] = {}
        self._lock = threading.Lock()

    def list_registered(self) -> List[RegisteredIdentity]:
        with self._lock:
            return [
                RegisteredIdentity(r.identity, r.name, r.embedding.copy(), r.checked_in)
                for r in self._records.values()
            ]

    def write_registration(
        self,
        identity: str,
        name: str,
        embedding: Sequence[float],
    ) -> bool:
        with self._lock:
            previous = self._records.get(identity)
            self._records[identity] = RegisteredIdentity(
                identity=identity,
                name=name,
                embedding=np.array(embedding, dtype=np.float32),
                checked_in=previous.checked_in if previous else False,
            )
        logger.info(f"Registered {name} ({identity})")
        return True

    def update_attendance_state(self, identity: str, checked_in: bool) -> bool:
        with self._lock:
            record = self._records.get(identity)
            if record is None:
                return False
            record.checked_in = checked_in
        return True

    def toggle_attendance(self, identity: str) -> Optional[bool]:
        with self._lock:
            record = self._records.get(identity)
            if record is None:
                return None
            record.checked_in = not record.checked_in
            return record.checked_in

    def get(self, identity: str) -> Optional[RegisteredIdentity]:
        with self._lock:
            record = self._records.get(identity)
            if record is None:
                return None
            return RegisteredIdentity(
                record.identity, record.name, record.embedding.copy(), record.checked_in
            )


class SQLiteFaceStore(FaceStore):
    """SQLite-backed store with thread-local connections."""

    def __init__(self, db_path: Union[str, Path]):
        """Initialize the store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        # Thread-local storage for connections
        self._local = threading.local()
        self._lock = threading.RLock()
        self._connections: List[sqlite3.Connection] = []

        self._init_schema()

        logger.info(f"Initialized face store at {self.db_path}")

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        conn = getattr(self._local, "connection", None)
        with self._lock:
            if conn is None or conn not in self._connections:
                conn = sqlite3.connect(
                    str(self.db_path),
                    check_same_thread=False,
                )
                conn.row_factory = sqlite3.Row
                self._connections.append(conn)
                self._local.connection = conn
        return conn

    @contextmanager
    def _transaction(self) -> Generator[sqlite3.Cursor, None, None]:
        """Context manager for database transactions."""
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            yield cursor
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()

    def _init_schema(self):
        """Initialize database schema."""
        with self._transaction() as cursor:
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS identities (
                    identity TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    embedding BLOB NOT NULL,
                    embedding_size INTEGER NOT NULL,
                    checked_in INTEGER NOT NULL DEFAULT 0,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

    def list_registered(self) -> List[RegisteredIdentity]:
        with self._lock, self._transaction() as cursor:
            cursor.execute(
                "SELECT identity, name, embedding, checked_in FROM identities ORDER BY rowid"
            )
            rows = cursor.fetchall()
        return [self._row_to_identity(row) for row in rows]

    def get(self, identity: str) -> Optional[RegisteredIdentity]:
        with self._lock, self._transaction() as cursor:
            cursor.execute(
                "SELECT identity, name, embedding, checked_in FROM identities WHERE identity = ?",
                (identity,),
            )
            row = cursor.fetchone()
        return self._row_to_identity(row) if row else None

    def write_registration(
        self,
        identity: str,
        name: str,
        embedding: Sequence[float],
    ) -> bool:
        vector = np.asarray(embedding, dtype=np.float32).reshape(-1)
        try:
            with self._lock, self._transaction() as cursor:
                cursor.execute(
                    """
                    INSERT INTO identities (identity, name, embedding, embedding_size)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(identity) DO UPDATE SET
                        name = excluded.name,
                        embedding = excluded.embedding,
                        embedding_size = excluded.embedding_size,
                        updated_at = CURRENT_TIMESTAMP
                    """,
                    (identity, name, self._serialize_embedding(vector), int(vector.size)),
                )
        except sqlite3.Error as e:
            logger.error(f"Failed to register {identity}: {e}")
            return False

        logger.info(f"Registered {name} ({identity})")
        return True

    def update_attendance_state(self, identity: str, checked_in: bool) -> bool:
        try:
            with self._lock, self._transaction() as cursor:
                cursor.execute(
                    """
                    UPDATE identities
                    SET checked_in = ?, updated_at = CURRENT_TIMESTAMP
                    WHERE identity = ?
                    """,
                    (int(checked_in), identity),
                )
                updated = cursor.rowcount > 0
        except sqlite3.Error as e:
            logger.error(f"Failed to update attendance for {identity}: {e}")
            return False

        return updated

    def toggle_attendance(self, identity: str) -> Optional[bool]:
        try:
            with self._lock, self._transaction() as cursor:
                cursor.execute(
                    """
                    UPDATE identities
                    SET checked_in = 1 - checked_in, updated_at = CURRENT_TIMESTAMP
                    WHERE identity = ?
                    """,
                    (identity,),
                )
                if cursor.rowcount == 0:
                    return None
                cursor.execute(
                    "SELECT checked_in FROM identities WHERE identity = ?", (identity,)
                )
                row = cursor.fetchone()
        except sqlite3.Error as e:
            logger.error(f"Failed to toggle attendance for {identity}: {e}")
            return None

        return bool(row["checked_in"])

    # -------------------------------------------------------------------------
    # Helper Methods
    # -------------------------------------------------------------------------

    def _serialize_embedding(self, embedding: np.ndarray) -> bytes:
        """Serialize numpy embedding to bytes for storage."""
        return embedding.astype(np.float32).tobytes()

    def _deserialize_embedding(self, data: bytes) -> np.ndarray:
        """Deserialize bytes to numpy embedding."""
        return np.frombuffer(data, dtype=np.float32).copy()

    def _row_to_identity(self, row: sqlite3.Row) -> RegisteredIdentity:
        return RegisteredIdentity(
            identity=row["identity"],
            name=row["name"],
            embedding=self._deserialize_embedding(row["embedding"]),
            checked_in=bool(row["checked_in"]),
        )

    def close(self):
        """Close the connections opened by every thread."""
        with self._lock:
            for conn in self._connections:
                conn.close()
            self._connections.clear()
        self._local.connection = None
