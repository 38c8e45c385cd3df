"""Store protocol shared by the controllers and the concrete backends."""

from __future__ import annotations

import logging
from typing import Callable, Protocol

from .models import Session

logger = logging.getLogger(__name__)

HistoryCallback = Callable[[list[Session]], None]
Unsubscribe = Callable[[], None]


class SessionStore(Protocol):
    """Minimal persistence API the controllers depend on.

    Every method is blocking and may be called from any thread.
    """

    def get(self, night_id: int) -> Session | None:
        ...

    def get_tonight(self) -> Session | None:
        ...

    def get_all(self) -> list[Session]:
        ...

    def insert(self, session: Session) -> int:
        ...

    def update(self, session: Session) -> None:
        ...

    def clear(self) -> None:
        ...

    def subscribe(self, callback: HistoryCallback) -> Unsubscribe:
        ...


class SessionFeed:
    """Fans history snapshots out to subscribers.

    The owning store holds its own lock around ``subscribe`` and ``publish`` so
    subscribers see snapshots in mutation order. Callbacks run on the mutating
    thread and must only hand the snapshot off.
    """

    def __init__(self, snapshot: Callable[[], list[Session]]) -> None:
        self._snapshot = snapshot
        self._subscribers: list[HistoryCallback] = []

    def __len__(self) -> int:
        return len(self._subscribers)

    def subscribe(self, callback: HistoryCallback) -> Unsubscribe:
        self._subscribers.append(callback)
        callback(self._snapshot())

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self) -> None:
        if not self._subscribers:
            return
        sessions = self._snapshot()
        logger.debug("Publishing history", extra={"subscribers": len(self._subscribers), "sessions": len(sessions)})
        for callback in list(self._subscribers):
            callback(list(sessions))


__all__ = ["HistoryCallback", "SessionFeed", "SessionStore", "Unsubscribe"]
