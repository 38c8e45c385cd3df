from __future__ import annotations

import asyncio
import threading

import pytest

from sleep_tracker.controllers import NO_SESSION, QualityRecorder
from sleep_tracker.storage import MemorySessionStore, Session, UNRATED


class BlockingGetStore(MemorySessionStore):
    def __init__(self, sessions: list[Session] | None = None) -> None:
        super().__init__(sessions)
        self.entered = threading.Event()
        self.release = threading.Event()

    def get(self, night_id: int) -> Session | None:
        self.entered.set()
        self.release.wait(timeout=5)
        return super().get(night_id)


def _closed_store() -> MemorySessionStore:
    return MemorySessionStore([Session(start_time_milli=1_000, end_time_milli=9_000)])


def test_set_quality_persists_and_signals_once() -> None:
    async def scenario():
        store = _closed_store()
        recorder = QualityRecorder(store, 1)
        transitions: list[bool | None] = []
        recorder.navigate_to_tracker.observe(transitions.append)

        applied = await recorder.on_set_quality(3)
        before_ack = recorder.navigate_to_tracker.value
        recorder.acknowledge_navigation()
        recorder.acknowledge_navigation()
        recorder.teardown()
        return store, applied, before_ack, transitions, recorder

    store, applied, before_ack, transitions, recorder = asyncio.run(scenario())
    assert applied is True
    assert store.get(1).sleep_quality == 3
    assert before_ack is True
    assert transitions.count(True) == 1
    assert recorder.navigate_to_tracker.value is None


def test_no_session_sentinel_never_signals() -> None:
    async def scenario():
        store = _closed_store()
        recorder = QualityRecorder(store)
        applied = await recorder.on_set_quality(5)
        recorder.teardown()
        return store, recorder, applied

    store, recorder, applied = asyncio.run(scenario())
    assert recorder.session_id == NO_SESSION
    assert applied is False
    assert recorder.navigate_to_tracker.value is None
    assert store.get(1).sleep_quality == UNRATED


def test_unknown_session_aborts_silently() -> None:
    async def scenario():
        recorder = QualityRecorder(_closed_store(), 99)
        applied = await recorder.on_set_quality(2)
        recorder.teardown()
        return recorder, applied

    recorder, applied = asyncio.run(scenario())
    assert applied is False
    assert recorder.navigate_to_tracker.value is None


def test_rating_outside_scale_is_rejected() -> None:
    async def scenario():
        recorder = QualityRecorder(_closed_store(), 1)
        with pytest.raises(ValueError, match="between 0 and 5"):
            recorder.on_set_quality(6)
        recorder.teardown()

    asyncio.run(scenario())


def test_teardown_before_completion_never_signals() -> None:
    async def scenario():
        store = BlockingGetStore([Session(start_time_milli=1_000, end_time_milli=9_000)])
        recorder = QualityRecorder(store, 1)
        task = recorder.on_set_quality(4)

        await asyncio.to_thread(store.entered.wait, 5)
        recorder.teardown()
        store.release.set()
        await asyncio.sleep(0.05)
        return task, recorder

    task, recorder = asyncio.run(scenario())
    assert task.cancelled()
    assert recorder.navigate_to_tracker.value is None
