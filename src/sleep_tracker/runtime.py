"""Runtime bootstrap: logging, store selection and controller wiring."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional

from . import __version__
from .config import SleepTrackerSettings, get_settings
from .controllers import NO_SESSION, QualityRecorder, SessionController
from .storage import ChromaSessionStore, MemorySessionStore, SessionStore

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Configure root logging for the sleep tracker."""

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


def create_store(settings: SleepTrackerSettings) -> SessionStore:
    """Build the store named by ``settings.storage_backend``.

    Raises ``ChromaUnavailableError`` when the chroma backend cannot be opened.
    """

    if settings.storage_backend == "chroma":
        store = ChromaSessionStore(
            settings.chroma_persist_path,
            collection_name=settings.chroma_collection,
        )
        store.ping()
        return store
    return MemorySessionStore()


class TrackerRuntime:
    """Owns the shared store and worker pool and hands out controllers.

    Controllers must be created from inside a running event loop.
    """

    def __init__(
        self,
        settings: Optional[SleepTrackerSettings] = None,
        store: SessionStore | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.store = store if store is not None else create_store(self.settings)
        self._executor = ThreadPoolExecutor(
            max_workers=self.settings.io_workers,
            thread_name_prefix="sleep-io",
        )
        self._controllers: list[Any] = []
        logger.info(
            "Sleep tracker runtime ready",
            extra={
                "version": __version__,
                "storage_backend": self.settings.storage_backend,
                "io_workers": self.settings.io_workers,
            },
        )

    def session_controller(self) -> SessionController:
        controller = SessionController(self.store, executor=self._executor)
        self._controllers.append(controller)
        return controller

    def quality_recorder(self, session_id: int = NO_SESSION) -> QualityRecorder:
        recorder = QualityRecorder(self.store, session_id, executor=self._executor)
        self._controllers.append(recorder)
        return recorder

    def close(self) -> None:
        """Tear down every controller handed out and stop the worker pool."""

        for controller in self._controllers:
            controller.teardown()
        self._controllers.clear()
        self._executor.shutdown(wait=True)


__all__ = ["TrackerRuntime", "configure_logging", "create_store"]
