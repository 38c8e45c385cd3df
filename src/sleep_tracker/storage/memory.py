"""In-process session table."""

from __future__ import annotations

import threading
from dataclasses import replace

from .base import HistoryCallback, SessionFeed, Unsubscribe
from .models import Session


class MemorySessionStore:
    """Thread-safe, key-ordered session table kept in memory.

    Sessions are copied on the way in and out, so callers only change persisted
    state through ``insert`` and ``update``.
    """

    def __init__(self, sessions: list[Session] | None = None) -> None:
        self._lock = threading.RLock()
        self._rows: dict[int, Session] = {}
        self._next_id = 1
        self._feed = SessionFeed(self._snapshot)
        for session in sessions or []:
            self.insert(session)

    def _snapshot(self) -> list[Session]:
        return [replace(self._rows[key]) for key in sorted(self._rows, reverse=True)]

    def get(self, night_id: int) -> Session | None:
        with self._lock:
            row = self._rows.get(night_id)
            return replace(row) if row is not None else None

    def get_tonight(self) -> Session | None:
        with self._lock:
            if not self._rows:
                return None
            return replace(self._rows[max(self._rows)])

    def get_all(self) -> list[Session]:
        with self._lock:
            return self._snapshot()

    def insert(self, session: Session) -> int:
        with self._lock:
            night_id = self._next_id
            self._next_id += 1
            self._rows[night_id] = replace(session, night_id=night_id)
            self._feed.publish()
            return night_id

    def update(self, session: Session) -> None:
        with self._lock:
            if session.night_id not in self._rows:
                return
            self._rows[session.night_id] = replace(session)
            self._feed.publish()

    def clear(self) -> None:
        with self._lock:
            self._rows.clear()
            self._feed.publish()

    def subscribe(self, callback: HistoryCallback) -> Unsubscribe:
        with self._lock:
            unsubscribe = self._feed.subscribe(callback)

        def locked_unsubscribe() -> None:
            with self._lock:
                unsubscribe()

        return locked_unsubscribe

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._feed)


__all__ = ["MemorySessionStore"]
