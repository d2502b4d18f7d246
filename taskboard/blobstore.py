"""
Key-value blob storage backends.

A blob store maps a string key to a string blob:
    get(key) -> blob or None
    set(key, blob)

The task store keeps its whole board under a single key.
"""
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional


class PersistenceError(Exception):
    """Raised when the backing store cannot be read or written."""
    pass


def _connect(db_path: str) -> sqlite3.Connection:
    """Open a connection in WAL mode."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")
    return conn


class SqliteBlobStore:
    """SQLite-backed key-value table (one row per key)."""

    def __init__(self, db_path: str):
        self.db_path = str(db_path)
        try:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self._init_schema()
        except (sqlite3.Error, OSError) as e:
            raise PersistenceError(f"Cannot open {self.db_path}: {e}") from e

    def _init_schema(self):
        with _connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS blobs (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()

    def get(self, key: str) -> Optional[str]:
        try:
            with _connect(self.db_path) as conn:
                row = conn.execute(
                    "SELECT value FROM blobs WHERE key = ? LIMIT 1", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot read {key!r}: {e}") from e
        return row["value"] if row else None

    def set(self, key: str, blob: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        try:
            with _connect(self.db_path) as conn:
                conn.execute("""
                    INSERT INTO blobs (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
                """, (key, blob, now))
                conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot write {key!r}: {e}") from e

    def __repr__(self) -> str:
        return f"SqliteBlobStore({self.db_path!r})"


class MemoryBlobStore:
    """Dict-backed store; nothing survives the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, blob: str) -> None:
        self.data[key] = blob

    def __repr__(self) -> str:
        return f"MemoryBlobStore(keys={sorted(self.data)})"
