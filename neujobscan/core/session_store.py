from __future__ import annotations

import hashlib
import os
import secrets
import sqlite3
import threading
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Protocol

from neujobscan.core.config import settings
from neujobscan.core.errors import PersistenceError
from neujobscan.schemas.auth import Session


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def user_id_for_email(email: str) -> str:
    digest = hashlib.sha256(email.strip().lower().encode("utf-8")).hexdigest()[:16]
    return f"user_{digest}"


class SessionStore(Protocol):
    def create(self, email: str, name: str | None = None) -> Session:
        """Open a session and return it with a fresh bearer token."""

    def get(self, token: str) -> Session | None:
        """Return the live session for a token, or None when unknown or expired."""

    def destroy(self, token: str) -> bool:
        """Remove a session; returns whether one existed."""


class SqliteSessionStore(SessionStore):
    def __init__(self, db_path: str, ttl_hours: int = 24) -> None:
        self.db_path = db_path
        self.ttl = timedelta(hours=max(1, int(ttl_hours)))
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
        conn.execute("PRAGMA busy_timeout=5000;")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS sessions (
                token TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                email TEXT NOT NULL,
                name TEXT,
                created_at TEXT NOT NULL,
                expires_at TEXT NOT NULL
            );
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_sessions_expiry ON sessions (expires_at);")
        self._conn = conn
        return conn

    def _purge_expired(self, conn: sqlite3.Connection) -> None:
        conn.execute("DELETE FROM sessions WHERE expires_at <= ?", (_utc_now().isoformat(),))

    def create(self, email: str, name: str | None = None) -> Session:
        created_at = _utc_now()
        session = Session(
            token=secrets.token_urlsafe(32),
            user_id=user_id_for_email(email),
            email=email.strip().lower(),
            name=name,
            created_at=created_at,
            expires_at=created_at + self.ttl,
        )
        try:
            with self._lock:
                conn = self._connection()
                self._purge_expired(conn)
                conn.execute(
                    """
                    INSERT INTO sessions (token, user_id, email, name, created_at, expires_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        session.token,
                        session.user_id,
                        session.email,
                        session.name,
                        session.created_at.isoformat(),
                        session.expires_at.isoformat(),
                    ),
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to create session: {exc}") from exc
        return session

    def get(self, token: str) -> Session | None:
        try:
            with self._lock:
                conn = self._connection()
                self._purge_expired(conn)
                row = conn.execute(
                    "SELECT token, user_id, email, name, created_at, expires_at FROM sessions WHERE token = ?",
                    (token,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to load session: {exc}") from exc
        if not row:
            return None
        return Session(
            token=row[0],
            user_id=row[1],
            email=row[2],
            name=row[3],
            created_at=datetime.fromisoformat(row[4]),
            expires_at=datetime.fromisoformat(row[5]),
        )

    def destroy(self, token: str) -> bool:
        try:
            with self._lock:
                cursor = self._connection().execute("DELETE FROM sessions WHERE token = ?", (token,))
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to destroy session: {exc}") from exc
        return cursor.rowcount > 0


@lru_cache(maxsize=1)
def get_default_session_store() -> SqliteSessionStore:
    return SqliteSessionStore(settings.session_db_path, settings.session_ttl_hours)
