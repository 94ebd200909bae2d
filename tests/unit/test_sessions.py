"""Tests for the in-memory session store."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from adminforge.runtime.sessions import SessionRecord, SessionStore


class TestSessionRecord:
    def test_ids_are_unique(self) -> None:
        expires = datetime.now(UTC) + timedelta(hours=1)
        a = SessionRecord(username="root", expires_at=expires)
        b = SessionRecord(username="root", expires_at=expires)
        assert a.id != b.id

    def test_is_expired(self) -> None:
        now = datetime.now(UTC)
        session = SessionRecord(username="root", expires_at=now)
        assert session.is_expired(now)
        assert not session.is_expired(now - timedelta(seconds=1))


class TestSessionStore:
    def test_create_and_get(self) -> None:
        store = SessionStore()
        session = store.create("root")
        assert store.get(session.id) == session
        assert session.username == "root"
        assert len(store) == 1

    def test_unknown_and_empty_ids(self) -> None:
        store = SessionStore()
        assert store.get("nope") is None
        assert store.get(None) is None
        assert store.get("") is None

    def test_delete(self) -> None:
        store = SessionStore()
        session = store.create("root")
        assert store.delete(session.id) is True
        assert store.get(session.id) is None
        assert store.delete(session.id) is False
        assert store.delete(None) is False

    def test_expired_session_is_dropped(self) -> None:
        store = SessionStore(ttl=timedelta(seconds=-1))
        session = store.create("root")
        assert store.get(session.id) is None
        assert len(store) == 0

    def test_cleanup_expired(self) -> None:
        store = SessionStore(ttl=timedelta(seconds=-1))
        store.create("a")
        store.create("b")
        assert len(store) == 2
        assert store.cleanup_expired() == 2
        assert len(store) == 0

    def test_cleanup_keeps_live_sessions(self) -> None:
        store = SessionStore()
        session = store.create("root")
        assert store.cleanup_expired() == 0
        assert store.get(session.id) == session
