"""Lifecycle-scoped task ownership and the worker-pool hop."""

from __future__ import annotations

import asyncio
import functools
import logging
from concurrent.futures import Executor
from typing import Any, Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ScopeClosedError(RuntimeError):
    """Raised when work is launched on a scope that has been cancelled."""


class TaskScope:
    """Owns every task a controller spawns and cancels them together.

    Must be created on the thread running the event loop; that loop is the
    interactive context all results are handed back to.
    """

    def __init__(self, *, executor: Executor | None = None, name: str = "scope") -> None:
        self._loop = asyncio.get_running_loop()
        self._executor = executor
        self._name = name
        self._tasks: set[asyncio.Task[Any]] = set()
        self._cancelled = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def active(self) -> bool:
        return not self._cancelled

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def ensure_active(self) -> None:
        if self._cancelled:
            raise asyncio.CancelledError(f"{self._name} was cancelled")

    def launch(self, coro: Awaitable[T], *, label: str | None = None) -> asyncio.Task[T]:
        """Schedule ``coro`` on the loop as a task owned by this scope."""

        if self._cancelled:
            if asyncio.iscoroutine(coro):
                coro.close()
            raise ScopeClosedError(f"{self._name} is closed; cannot launch {label or 'task'}")

        task = self._loop.create_task(coro, name=f"{self._name}:{label or 'task'}")
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.debug("Task cancelled", extra={"scope": self._name, "task": task.get_name()})
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Task failed",
                exc_info=exc,
                extra={"scope": self._name, "task": task.get_name()},
            )

    async def run_io(self, fn: Callable[..., T], *args: Any) -> T:
        """Run a blocking call on the worker pool and resume on the loop.

        The scope is checked again after the worker returns so a cancelled
        scope never gets to act on the result.
        """

        self.ensure_active()
        result = await self._loop.run_in_executor(self._executor, functools.partial(fn, *args))
        self.ensure_active()
        return result

    def post(self, fn: Callable[..., Any], *args: Any) -> None:
        """Hand ``fn(*args)`` to the loop from any thread; dropped once cancelled."""

        if self._cancelled or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._run_if_active, fn, args)

    def _run_if_active(self, fn: Callable[..., Any], args: tuple[Any, ...]) -> None:
        if not self._cancelled:
            fn(*args)

    def cancel(self) -> None:
        """Cancel all outstanding tasks. Calling it again has no effect."""

        if self._cancelled:
            return
        self._cancelled = True
        outstanding = list(self._tasks)
        for task in outstanding:
            task.cancel()
        logger.debug("Scope cancelled", extra={"scope": self._name, "tasks": len(outstanding)})

    async def join(self) -> None:
        """Wait until every task launched so far has finished."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


__all__ = ["ScopeClosedError", "TaskScope"]
