from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from sleep_tracker.config import SleepTrackerSettings
from sleep_tracker.formatting import format_duration, format_session, format_sessions
from sleep_tracker.runtime import TrackerRuntime, configure_logging, create_store
from sleep_tracker.storage import ChromaSessionStore, ChromaUnavailableError, MemorySessionStore, Session


def test_settings_from_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SLEEP_TRACKER_LOG_LEVEL", " debug ")
    monkeypatch.setenv("SLEEP_TRACKER_STORAGE", "Chroma")
    monkeypatch.setenv("SLEEP_TRACKER_CHROMA_PATH", str(tmp_path / "chroma"))
    monkeypatch.setenv("SLEEP_TRACKER_IO_WORKERS", "2")

    settings = SleepTrackerSettings()

    assert settings.log_level == "DEBUG"
    assert settings.storage_backend == "chroma"
    assert settings.chroma_persist_path == tmp_path / "chroma"
    assert settings.io_workers == 2


@pytest.mark.parametrize(
    "name, value",
    [
        ("SLEEP_TRACKER_LOG_LEVEL", "chatty"),
        ("SLEEP_TRACKER_STORAGE", "sqlite"),
        ("SLEEP_TRACKER_IO_WORKERS", "0"),
    ],
)
def test_settings_reject_invalid_values(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        SleepTrackerSettings()


def test_create_store_defaults_to_memory() -> None:
    assert isinstance(create_store(SleepTrackerSettings()), MemorySessionStore)


def test_create_store_reports_missing_chroma(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SLEEP_TRACKER_STORAGE", "chroma")
    monkeypatch.setenv("SLEEP_TRACKER_CHROMA_PATH", str(tmp_path))

    def unavailable(self):
        raise ChromaUnavailableError("chromadb package is not installed")

    monkeypatch.setattr(ChromaSessionStore, "_default_client_factory", unavailable)

    with pytest.raises(ChromaUnavailableError):
        create_store(SleepTrackerSettings())


def test_runtime_wires_controllers_to_shared_store(caplog) -> None:
    caplog.set_level(logging.INFO, logger="sleep_tracker")
    store = MemorySessionStore()

    async def scenario():
        runtime = TrackerRuntime(SleepTrackerSettings(), store=store)
        try:
            controller = runtime.session_controller()
            await controller.on_start_tracking()
            await controller.on_stop_tracking()
            night_id = controller.navigate_to_quality.value

            recorder = runtime.quality_recorder(night_id)
            applied = await recorder.on_set_quality(4)
            return night_id, applied, controller
        finally:
            runtime.close()

    night_id, applied, controller = asyncio.run(scenario())
    assert applied is True
    assert store.get(night_id).sleep_quality == 4
    assert not controller.scope.active
    assert store.subscriber_count == 0
    assert any(record.getMessage() == "Recorded sleep quality" for record in caplog.records)


def test_configure_logging_accepts_level_names() -> None:
    configure_logging("WARNING")


def test_format_duration() -> None:
    assert format_duration(3_723_000) == "1:02:03"
    assert format_duration(-5) == "0:00:00"


def test_format_session_lines() -> None:
    closed = Session(night_id=1, start_time_milli=0, end_time_milli=1_800_000, sleep_quality=5)
    open_night = Session(night_id=2, start_time_milli=0)

    text = format_session(closed)
    assert text.splitlines()[0].startswith("Start: ")
    assert "Quality: Excellent" in text
    assert "Hours:Minutes:Seconds: 0:30:00" in text

    assert "End: still tracking" in format_session(open_night)
    assert "Quality: Unrated" in format_session(open_night)
    assert len(format_sessions([closed, open_night])) == 2
