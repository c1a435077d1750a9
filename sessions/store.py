"""
sessions/store.py -- Server-side session state keyed by an opaque client token.

SessionStore is a small SQLite-backed key-value store: session id -> JSON
SessionState, with a TTL measured from the last write. By default it lives in
memory, so sessions are process-held and vanish on restart.

Session is the per-request object handlers receive. It owns the explicit
create / read / mutate / destroy contract so no route touches the store
directly.

Concurrency: two requests from the same client may race (a logout against a
protected read). Writes are last-write-wins with no locking; the worst case is
one stale authorization decision.

Usage:
    store = SessionStore()
    session = Session(store)            # anonymous, nothing stored yet
    session.login("alice")              # creates and persists a new session id
    again = Session.load(store, session.session_id)
    again.destroy()                     # record gone, object anonymous again
    store.purge_expired()               # call periodically to trim old entries
"""

from __future__ import annotations

import json
import logging
import secrets
import sqlite3
import time
from dataclasses import asdict

from auth.models import SessionState

logger = logging.getLogger("userdir.sessions")

_DEFAULT_TTL = 60 * 60 * 24  # 24 hours in seconds

_DDL = """
CREATE TABLE IF NOT EXISTS sessions (
    session_id  TEXT PRIMARY KEY,
    data        TEXT NOT NULL,
    updated_at  REAL NOT NULL
);
"""


class SessionStore:
    def __init__(self, db_path: str = ":memory:", ttl: int = _DEFAULT_TTL) -> None:
        self.ttl = ttl
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute(_DDL)
        self._conn.commit()

    def new_id(self) -> str:
        """Return a fresh, unguessable session id. Nothing is stored until save()."""
        return secrets.token_urlsafe(32)

    def get(self, session_id: str) -> SessionState | None:
        """Return the stored state for session_id if it exists and hasn't expired."""
        row = self._conn.execute(
            "SELECT data, updated_at FROM sessions WHERE session_id = ?",
            (session_id,),
        ).fetchone()
        if row is None:
            return None
        data, updated_at = row
        if time.time() - updated_at > self.ttl:
            self.destroy(session_id)
            return None
        return SessionState(**json.loads(data))

    def save(self, session_id: str, state: SessionState) -> None:
        """Store state for session_id, replacing any existing entry."""
        self._conn.execute(
            "INSERT OR REPLACE INTO sessions (session_id, data, updated_at) VALUES (?, ?, ?)",
            (session_id, json.dumps(asdict(state)), time.time()),
        )
        self._conn.commit()

    def destroy(self, session_id: str) -> None:
        self._conn.execute("DELETE FROM sessions WHERE session_id = ?", (session_id,))
        self._conn.commit()

    def purge_expired(self) -> int:
        """Delete all sessions older than TTL. Returns number of rows removed."""
        cutoff = time.time() - self.ttl
        cursor = self._conn.execute("DELETE FROM sessions WHERE updated_at < ?", (cutoff,))
        self._conn.commit()
        return cursor.rowcount

    def close(self) -> None:
        self._conn.close()


class Session:
    """One client's session, bound to the store it came from.

    An anonymous visitor has no session_id and nothing in the store. The
    record is created lazily by the first login() and removed by destroy().
    """

    def __init__(self, store: SessionStore, session_id: str | None = None, state: SessionState | None = None) -> None:
        self._store = store
        self.session_id = session_id
        self.state = state or SessionState()

    @classmethod
    def load(cls, store: SessionStore, session_id: str | None) -> "Session":
        """Read the session for session_id; unknown or expired ids read as anonymous."""
        if not session_id:
            return cls(store)
        state = store.get(session_id)
        if state is None:
            return cls(store)
        return cls(store, session_id, state)

    @property
    def is_logged_in(self) -> bool:
        return self.state.is_logged_in

    @property
    def username(self) -> str:
        return self.state.username

    def login(self, username: str) -> None:
        """Mark the session authenticated as username, creating it if needed."""
        if self.session_id is None:
            self.session_id = self._store.new_id()
        self.state = SessionState(is_logged_in=True, username=username)
        self._store.save(self.session_id, self.state)
        logger.info("Session started for %s", username)

    def destroy(self) -> None:
        """Remove the stored record entirely and revert to anonymous.

        The object is reset before the store call, so it reads as anonymous
        even when the store raises.
        """
        session_id = self.session_id
        self.session_id = None
        self.state = SessionState()
        if session_id is not None:
            self._store.destroy(session_id)
