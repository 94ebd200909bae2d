"""
In-memory login sessions.

Sessions are created at login and removed at logout or expiry. The store
is shared by all request handlers, so every access goes through a lock.
"""

from __future__ import annotations

import secrets
import threading
from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field


class SessionRecord(BaseModel):
    """One logged-in admin session."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: secrets.token_urlsafe(32))
    username: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    expires_at: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.expires_at <= (now or datetime.now(UTC))


class SessionStore:
    """Thread-safe map of session id to SessionRecord."""

    def __init__(self, ttl: timedelta = timedelta(days=7)):
        self.ttl = ttl
        self._sessions: dict[str, SessionRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def create(self, username: str) -> SessionRecord:
        """Start a session for ``username``."""
        session = SessionRecord(username=username, expires_at=datetime.now(UTC) + self.ttl)
        with self._lock:
            self._sessions[session.id] = session
        return session

    def get(self, session_id: str | None) -> SessionRecord | None:
        """Return a live session, dropping it if it has expired."""
        if not session_id:
            return None
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if session.is_expired():
                del self._sessions[session_id]
                return None
            return session

    def delete(self, session_id: str | None) -> bool:
        """End a session. Returns False if it did not exist."""
        if not session_id:
            return False
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def cleanup_expired(self) -> int:
        """Delete all expired sessions, returning how many were removed."""
        now = datetime.now(UTC)
        with self._lock:
            expired = [sid for sid, s in self._sessions.items() if s.is_expired(now)]
            for sid in expired:
                del self._sessions[sid]
        return len(expired)
