"""Chroma-based persistence layer."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Iterable, Protocol

from .base import HistoryCallback, SessionFeed, Unsubscribe
from .models import Session, UNRATED

logger = logging.getLogger(__name__)

# Sessions are looked up by id only; the vector is a fixed placeholder so the
# collection never needs an embedding model.
_PLACEHOLDER_EMBEDDING = [0.0]


class ChromaUnavailableError(RuntimeError):
    """Raised when the Chroma client cannot be constructed."""


class CollectionProtocol(Protocol):
    """Protocol for the minimal Chroma collection API used by the session store."""

    def add(
        self,
        *,
        ids: Iterable[str],
        embeddings: Iterable[list[float]],
        metadatas: Iterable[dict[str, Any]],
    ) -> None:
        ...

    def get(
        self,
        *,
        ids: Iterable[str] | None = None,
        where: dict[str, Any] | None = None,
        limit: int | None = None,
    ) -> dict[str, list[Any]]:
        ...

    def update(
        self,
        *,
        ids: Iterable[str],
        metadatas: Iterable[dict[str, Any]],
    ) -> None:
        ...

    def delete(self, *, ids: Iterable[str]) -> None:
        ...


class ClientProtocol(Protocol):
    """Protocol for the minimal Chroma client API used by the session store."""

    def get_or_create_collection(self, name: str) -> CollectionProtocol:
        ...


def _to_metadata(session: Session) -> dict[str, Any]:
    return {
        "night_id": session.night_id,
        "start_time_milli": session.start_time_milli,
        "end_time_milli": session.end_time_milli,
        "sleep_quality": session.sleep_quality,
    }


def _from_metadata(metadata: dict[str, Any]) -> Session:
    return Session(
        night_id=int(metadata["night_id"]),
        start_time_milli=int(metadata["start_time_milli"]),
        end_time_milli=int(metadata["end_time_milli"]),
        sleep_quality=int(metadata.get("sleep_quality", UNRATED)),
    )


class ChromaSessionStore:
    """Manage persistence of sleep sessions via ChromaDB."""

    def __init__(
        self,
        path: Path,
        *,
        collection_name: str = "sleep_nights",
        client_factory: Callable[[], ClientProtocol] | None = None,
    ) -> None:
        self._path = Path(path)
        self._collection_name = collection_name
        self._client_factory = client_factory or self._default_client_factory
        self._client: ClientProtocol | None = None
        self._collection: CollectionProtocol | None = None
        self._next_id: int | None = None
        self._lock = threading.RLock()
        self._feed = SessionFeed(self._load_all)

    def _default_client_factory(self) -> ClientProtocol:
        try:
            import chromadb
        except ImportError as exc:  # pragma: no cover - depends on environment
            raise ChromaUnavailableError(
                "chromadb package is not installed; install sleep-tracker with persistence extras"
            ) from exc

        return chromadb.PersistentClient(path=str(self._path))

    def _ensure_collection(self) -> CollectionProtocol:
        if self._collection is None:
            client = self._client or self._client_factory()
            self._client = client
            self._collection = client.get_or_create_collection(self._collection_name)
            logger.debug(
                "Opened session collection",
                extra={"path": str(self._path), "collection": self._collection_name},
            )
        return self._collection

    def _convert_result(self, result: dict[str, list[Any]]) -> list[Session]:
        sessions = [_from_metadata(metadata) for metadata in result.get("metadatas", []) if metadata]
        sessions.sort(key=lambda session: session.night_id, reverse=True)
        return sessions

    def _load_all(self) -> list[Session]:
        return self._convert_result(self._ensure_collection().get())

    def _allocate_id(self) -> int:
        if self._next_id is None:
            existing = self._load_all()
            self._next_id = (existing[0].night_id if existing else 0) + 1
        night_id = self._next_id
        self._next_id += 1
        return night_id

    def ping(self) -> bool:
        """Verify that the underlying collection can be obtained."""

        with self._lock:
            self._ensure_collection()
        return True

    def get(self, night_id: int) -> Session | None:
        with self._lock:
            sessions = self._convert_result(self._ensure_collection().get(ids=[str(night_id)]))
        return sessions[0] if sessions else None

    def get_tonight(self) -> Session | None:
        with self._lock:
            sessions = self._load_all()
        return sessions[0] if sessions else None

    def get_all(self) -> list[Session]:
        with self._lock:
            return self._load_all()

    def insert(self, session: Session) -> int:
        with self._lock:
            collection = self._ensure_collection()
            night_id = self._allocate_id()
            record = Session(
                night_id=night_id,
                start_time_milli=session.start_time_milli,
                end_time_milli=session.end_time_milli,
                sleep_quality=session.sleep_quality,
            )
            collection.add(
                ids=[str(night_id)],
                embeddings=[list(_PLACEHOLDER_EMBEDDING)],
                metadatas=[_to_metadata(record)],
            )
            self._feed.publish()
            return night_id

    def update(self, session: Session) -> None:
        with self._lock:
            collection = self._ensure_collection()
            if not collection.get(ids=[str(session.night_id)]).get("ids"):
                return
            collection.update(ids=[str(session.night_id)], metadatas=[_to_metadata(session)])
            self._feed.publish()

    def clear(self) -> None:
        with self._lock:
            collection = self._ensure_collection()
            ids = collection.get().get("ids", [])
            if ids:
                collection.delete(ids=list(ids))
            self._feed.publish()

    def subscribe(self, callback: HistoryCallback) -> Unsubscribe:
        with self._lock:
            unsubscribe = self._feed.subscribe(callback)

        def locked_unsubscribe() -> None:
            with self._lock:
                unsubscribe()

        return locked_unsubscribe


__all__ = ["ChromaSessionStore", "ChromaUnavailableError"]
