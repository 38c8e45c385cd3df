"""Storage abstractions for the sleep tracker."""

from .base import SessionFeed, SessionStore
from .chroma import ChromaSessionStore, ChromaUnavailableError
from .memory import MemorySessionStore
from .models import Session, SleepQuality, UNRATED, now_millis

__all__ = [
    "ChromaSessionStore",
    "ChromaUnavailableError",
    "MemorySessionStore",
    "Session",
    "SessionFeed",
    "SessionStore",
    "SleepQuality",
    "UNRATED",
    "now_millis",
]
