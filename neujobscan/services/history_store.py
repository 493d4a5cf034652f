from __future__ import annotations

import os
import sqlite3
import threading
from datetime import datetime, timezone
from functools import lru_cache
from typing import Protocol

from neujobscan.core.config import settings
from neujobscan.core.errors import PersistenceError
from neujobscan.schemas.scan import ATSResponse


class ScanHistoryStore(Protocol):
    def append(self, user_id: str, scan: ATSResponse) -> None:
        """Persist one scan for a user."""

    def list(self, user_id: str, limit: int | None = None) -> list[ATSResponse]:
        """Return the user's scans, most recent first."""

    def purge_older_than(self, cutoff: datetime) -> int:
        """Delete scans created before cutoff and return how many were removed."""


class SqliteScanHistoryStore(ScanHistoryStore):
    """One row per scan; appends for the same user never overwrite each other."""

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is not None:
            return self._conn

        directory = os.path.dirname(self.db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        conn = sqlite3.connect(self.db_path, check_same_thread=False, timeout=5, isolation_level=None)
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        conn.execute("PRAGMA busy_timeout=5000;")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS scan_history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                scan_id TEXT NOT NULL,
                created_at TEXT NOT NULL,
                payload_json TEXT NOT NULL
            );
            """
        )
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_scan_history_user_created
            ON scan_history (user_id, created_at);
            """
        )
        self._conn = conn
        return conn

    def append(self, user_id: str, scan: ATSResponse) -> None:
        created_at = scan.timestamp.astimezone(timezone.utc).isoformat()
        payload_json = scan.model_dump_json(by_alias=True)
        try:
            with self._lock:
                self._connection().execute(
                    """
                    INSERT INTO scan_history (user_id, scan_id, created_at, payload_json)
                    VALUES (?, ?, ?, ?)
                    """,
                    (user_id, scan.scan_id, created_at, payload_json),
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to save scan {scan.scan_id}: {exc}") from exc

    def list(self, user_id: str, limit: int | None = None) -> list[ATSResponse]:
        query = """
            SELECT payload_json FROM scan_history
            WHERE user_id = ?
            ORDER BY created_at DESC, id DESC
        """
        params: tuple = (user_id,)
        if limit is not None:
            query += " LIMIT ?"
            params = (user_id, max(0, int(limit)))
        try:
            with self._lock:
                rows = self._connection().execute(query, params).fetchall()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to load scan history: {exc}") from exc
        return [ATSResponse.model_validate_json(row[0]) for row in rows]

    def purge_older_than(self, cutoff: datetime) -> int:
        try:
            with self._lock:
                cursor = self._connection().execute(
                    "DELETE FROM scan_history WHERE created_at < ?",
                    (cutoff.astimezone(timezone.utc).isoformat(),),
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to purge scan history: {exc}") from exc
        return cursor.rowcount

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None


@lru_cache(maxsize=1)
def get_default_history_store() -> SqliteScanHistoryStore:
    return SqliteScanHistoryStore(settings.history_db_path)
