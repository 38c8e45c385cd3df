"""State holder for the sleep quality screen."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Executor

from ..observable import Observable
from ..scope import TaskScope
from ..storage import SessionStore, SleepQuality

logger = logging.getLogger(__name__)

NO_SESSION = 0


class QualityRecorder:
    """Applies one rating to a fixed session, then signals navigation back."""

    def __init__(
        self,
        store: SessionStore,
        session_id: int = NO_SESSION,
        *,
        executor: Executor | None = None,
    ) -> None:
        self._store = store
        self._session_id = session_id
        self._scope = TaskScope(executor=executor, name=f"quality-recorder:{session_id}")
        self.navigate_to_tracker: Observable[bool | None] = Observable(None, name="navigate_to_tracker")

    @property
    def session_id(self) -> int:
        return self._session_id

    @property
    def scope(self) -> TaskScope:
        return self._scope

    def on_set_quality(self, rating: int) -> asyncio.Task[bool]:
        """Persist ``rating`` on the session; the task yields whether it was applied."""

        try:
            quality = SleepQuality(rating)
        except ValueError as exc:
            raise ValueError(
                f"Sleep quality must be between {int(min(SleepQuality))} and {int(max(SleepQuality))}, got {rating}"
            ) from exc
        return self._scope.launch(self._apply(quality), label="set_quality")

    def acknowledge_navigation(self) -> None:
        self.navigate_to_tracker.set(None)

    def teardown(self) -> None:
        self._scope.cancel()

    async def _apply(self, quality: SleepQuality) -> bool:
        applied = await self._scope.run_io(self._store_rating, int(quality))
        if not applied:
            logger.info("No session to rate", extra={"night_id": self._session_id})
            return False
        logger.info("Recorded sleep quality", extra={"night_id": self._session_id, "quality": quality.label})
        self.navigate_to_tracker.set(True)
        return True

    def _store_rating(self, rating: int) -> bool:
        night = self._store.get(self._session_id)
        if night is None:
            return False
        night.sleep_quality = rating
        self._store.update(night)
        return True


__all__ = ["NO_SESSION", "QualityRecorder"]
