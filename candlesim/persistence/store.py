"""Snapshot persistence layer for restoring paper accounts across restarts."""

import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import orjson
import structlog

from ..errors import PersistenceError


class SnapshotStore:
    """SQLite-based snapshot store, one row per instrument."""

    def __init__(self, db_path: str = "snapshots.db"):
        self.db_path = Path(db_path)
        self.logger = structlog.get_logger("snapshot.store")
        self._lock = threading.Lock()

        self._init_database()

    def _init_database(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS snapshots (
                    instrument_key TEXT PRIMARY KEY,
                    snapshot_data TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()

    @contextmanager
    def _get_connection(self):
        """Get database connection with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path, timeout=30.0)
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            self.logger.error("Database error", error=str(e), db_path=str(self.db_path))
            raise PersistenceError(
                f"Database error: {e}",
                operation="sqlite",
                target=str(self.db_path)
            ) from e
        finally:
            if conn:
                conn.close()

    def save(self, instrument_key: str, snapshot: dict[str, Any]) -> None:
        """
        Store (or replace) the snapshot for an instrument.

        Raises:
            PersistenceError: If the write fails
        """
        with self._lock:
            with self._get_connection() as conn:
                now = datetime.now(timezone.utc).isoformat()
                conn.execute("""
                    INSERT OR REPLACE INTO snapshots (instrument_key, snapshot_data, updated_at)
                    VALUES (?, ?, ?)
                """, (instrument_key, orjson.dumps(snapshot).decode(), now))
                conn.commit()

        self.logger.debug(
            "Snapshot stored",
            instrument_key=instrument_key,
            trades=len(snapshot.get("trades") or [])
        )

    def load(self, instrument_key: str) -> Optional[dict[str, Any]]:
        """
        Load the stored snapshot for an instrument.

        Returns:
            Decoded snapshot, or None if nothing is stored or the stored text
            is not valid JSON
        """
        with self._get_connection() as conn:
            row = conn.execute("""
                SELECT snapshot_data FROM snapshots WHERE instrument_key = ?
            """, (instrument_key,)).fetchone()

        if row is None:
            return None

        try:
            return orjson.loads(row["snapshot_data"])  # type: ignore[no-any-return]
        except orjson.JSONDecodeError as e:
            self.logger.warning("Corrupt stored snapshot", instrument_key=instrument_key, error=str(e))
            return None

    def delete(self, instrument_key: str) -> bool:
        """Delete the stored snapshot. Returns True if a row was removed."""
        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.execute("""
                    DELETE FROM snapshots WHERE instrument_key = ?
                """, (instrument_key,))
                conn.commit()
                return cursor.rowcount > 0
