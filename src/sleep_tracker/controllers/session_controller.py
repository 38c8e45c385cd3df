"""State holder for the main tracking screen."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Executor
from dataclasses import replace
from typing import Callable, Iterable

from ..formatting import format_sessions
from ..observable import Observable
from ..scope import TaskScope
from ..storage import Session, SessionStore, now_millis

logger = logging.getLogger(__name__)


class SessionController:
    """Mediates the open/close lifecycle of one session at a time.

    Every action launches a task in the controller's scope:

        1) the task leaves the loop for the worker pool (``TaskScope.run_io``)
        2) the blocking store call runs there
        3) the task resumes on the loop, re-checks the scope and only then
           updates the observable properties

    Actions return their task so callers can await completion or failure.
    Independent actions are not ordered against each other; the last write to
    ``current_session`` wins. Construct it from inside the running event loop.
    """

    def __init__(
        self,
        store: SessionStore,
        *,
        executor: Executor | None = None,
        clock: Callable[[], int] | None = None,
        formatter: Callable[[Iterable[Session]], list[str]] = format_sessions,
    ) -> None:
        self._store = store
        self._clock = clock or now_millis
        self._scope = TaskScope(executor=executor, name="session-controller")
        self._unsubscribe_history: Callable[[], None] | None = None

        self.current_session: Observable[Session | None] = Observable(None, name="current_session")
        self.sessions: Observable[list[Session]] = Observable([], name="sessions")
        self.history_view = self.sessions.map(formatter, name="history_view")
        self.navigate_to_quality: Observable[int | None] = Observable(None, name="navigate_to_quality")

        self.start_enabled = self.current_session.map(lambda night: night is None, name="start_enabled")
        self.stop_enabled = self.current_session.map(lambda night: night is not None, name="stop_enabled")
        self.clear_enabled = self.sessions.map(bool, name="clear_enabled")

        self._scope.launch(self._attach_history(), label="attach_history")
        self.ready = self.initialize()

    @property
    def scope(self) -> TaskScope:
        return self._scope

    def initialize(self) -> asyncio.Task[None]:
        """Load tonight's session, publishing it only while it is still open."""

        return self._scope.launch(self._initialize_tonight(), label="initialize")

    def on_start_tracking(self) -> asyncio.Task[None]:
        return self._scope.launch(self._start(), label="start_tracking")

    def on_stop_tracking(self) -> asyncio.Task[None]:
        return self._scope.launch(self._stop(), label="stop_tracking")

    def on_clear(self) -> asyncio.Task[None]:
        """Delete every stored session. Irreversible."""

        return self._scope.launch(self._clear(), label="clear")

    def done_navigating(self) -> None:
        self.navigate_to_quality.set(None)

    def teardown(self) -> None:
        """Cancel outstanding work and detach from the store's history feed."""

        self._scope.cancel()
        unsubscribe, self._unsubscribe_history = self._unsubscribe_history, None
        if unsubscribe is not None:
            unsubscribe()
        logger.debug("Session controller torn down")

    async def _initialize_tonight(self) -> None:
        self.current_session.set(await self._load_tonight())

    async def _start(self) -> None:
        night = Session(start_time_milli=self._clock())
        night_id = await self._scope.run_io(self._store.insert, night)
        logger.info("Started tracking", extra={"night_id": night_id})
        self.current_session.set(await self._load_tonight())

    async def _stop(self) -> None:
        night = self.current_session.value
        if night is None:
            logger.debug("Stop requested without an open session")
            return

        # A zero-length session would still read as open.
        end_time = max(self._clock(), night.start_time_milli + 1)
        closed = replace(night, end_time_milli=end_time)
        await self._scope.run_io(self._store.update, closed)
        logger.info(
            "Stopped tracking",
            extra={"night_id": closed.night_id, "duration_milli": closed.duration_milli},
        )
        self.current_session.set(None)
        self.navigate_to_quality.set(closed.night_id)

    async def _clear(self) -> None:
        await self._scope.run_io(self._store.clear)
        logger.info("Cleared session history")
        self.current_session.set(None)

    async def _load_tonight(self) -> Session | None:
        night = await self._scope.run_io(self._store.get_tonight)
        if night is not None and not night.is_open:
            logger.debug("Latest session already closed", extra={"night_id": night.night_id})
            return None
        return night

    async def _attach_history(self) -> None:
        await self._scope.run_io(self._subscribe_history)

    def _subscribe_history(self) -> None:
        # Runs on a worker thread. Whichever of this and teardown() sees the
        # other's write releases the subscription.
        self._unsubscribe_history = self._store.subscribe(self._on_history)
        if not self._scope.active:
            unsubscribe, self._unsubscribe_history = self._unsubscribe_history, None
            if unsubscribe is not None:
                unsubscribe()

    def _on_history(self, sessions: list[Session]) -> None:
        self._scope.post(self.sessions.set, sessions)


__all__ = ["SessionController"]
