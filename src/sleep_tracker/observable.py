"""Single-value observable cells for UI-facing state."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

Observer = Callable[[T], None]


class Observable(Generic[T]):
    """A value cell with last-write-wins semantics.

    Every ``set`` notifies observers, including repeated values, so one-shot
    signals re-fire. ``observe`` delivers the current value right away.
    Writes are only allowed from the thread that created the cell.
    """

    def __init__(self, value: T, *, name: str | None = None) -> None:
        self._value = value
        self._name = name or "observable"
        self._observers: list[Observer[T]] = []
        self._owner_thread = threading.get_ident()
        self._on_dispose: list[Callable[[], None]] = []

    @property
    def value(self) -> T:
        return self._value

    @property
    def name(self) -> str:
        return self._name

    def set(self, value: T) -> None:
        if threading.get_ident() != self._owner_thread:
            raise RuntimeError(f"{self._name} may only be set from its owning thread")
        self._value = value
        for observer in list(self._observers):
            observer(value)

    def observe(self, observer: Observer[T]) -> Callable[[], None]:
        """Register ``observer`` and return a callable that removes it."""

        self._observers.append(observer)
        observer(self._value)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def map(self, transform: Callable[[T], R], *, name: str | None = None) -> "Observable[R]":
        """Return a derived cell recomputed on every change of this one."""

        derived: Observable[R] = Observable(transform(self._value), name=name)

        def forward(value: T) -> None:
            derived.set(transform(value))

        self._observers.append(forward)

        def detach() -> None:
            if forward in self._observers:
                self._observers.remove(forward)

        derived._on_dispose.append(detach)
        return derived

    def dispose(self) -> None:
        """Drop all observers and detach from the source cell, if derived."""

        for detach in self._on_dispose:
            detach()
        self._on_dispose.clear()
        self._observers.clear()

    def __repr__(self) -> str:
        return f"Observable({self._name}={self._value!r})"


__all__ = ["Observable", "Observer"]
