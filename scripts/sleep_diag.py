"""Sleep tracker diagnostics CLI."""

from __future__ import annotations

import argparse
import asyncio
import json
from dataclasses import asdict

from sleep_tracker.config import SleepTrackerSettings
from sleep_tracker.formatting import format_sessions
from sleep_tracker.runtime import TrackerRuntime, configure_logging, create_store
from sleep_tracker.storage import ChromaUnavailableError, SessionStore, SleepQuality


def load_store(settings: SleepTrackerSettings) -> SessionStore:
    try:
        return create_store(settings)
    except ChromaUnavailableError as exc:
        print(f"Chroma unavailable: {exc}")
        raise SystemExit(1)


def cmd_list(args: argparse.Namespace) -> None:
    settings = SleepTrackerSettings()
    store = load_store(settings)
    sessions = store.get_all()
    if args.json:
        print(json.dumps([asdict(session) for session in sessions], indent=2))
    else:
        for block in format_sessions(sessions):
            print(block)
            print()


def cmd_metrics(args: argparse.Namespace) -> None:
    settings = SleepTrackerSettings()
    store = load_store(settings)
    sessions = store.get_all()

    quality_counts: dict[str, int] = {}
    rated: list[int] = []
    for session in sessions:
        label = SleepQuality.describe(session.sleep_quality)
        quality_counts[label] = quality_counts.get(label, 0) + 1
        if session.sleep_quality >= 0:
            rated.append(session.sleep_quality)

    closed = [session for session in sessions if not session.is_open]
    metrics = {
        "sessions_total": len(sessions),
        "open_sessions": len(sessions) - len(closed),
        "quality_counts": quality_counts,
        "average_quality": round(sum(rated) / len(rated), 2) if rated else None,
        "average_duration_milli": (
            sum(session.duration_milli for session in closed) // len(closed) if closed else None
        ),
    }

    print(json.dumps(metrics, indent=2))


async def _start(store: SessionStore, settings: SleepTrackerSettings) -> dict:
    runtime = TrackerRuntime(settings, store=store)
    try:
        controller = runtime.session_controller()
        await controller.ready
        await controller.on_start_tracking()
        session = controller.current_session.value
        return {"started": asdict(session) if session else None}
    finally:
        runtime.close()


async def _stop(store: SessionStore, settings: SleepTrackerSettings) -> dict:
    runtime = TrackerRuntime(settings, store=store)
    try:
        controller = runtime.session_controller()
        await controller.ready
        await controller.on_stop_tracking()
        night_id = controller.navigate_to_quality.value
        stopped = store.get(night_id) if night_id is not None else None
        return {"stopped": asdict(stopped) if stopped else None}
    finally:
        runtime.close()


async def _rate(store: SessionStore, settings: SleepTrackerSettings, night_id: int, quality: int) -> dict:
    runtime = TrackerRuntime(settings, store=store)
    try:
        recorder = runtime.quality_recorder(night_id)
        applied = await recorder.on_set_quality(quality)
        return {"night_id": night_id, "quality": quality, "applied": applied}
    finally:
        runtime.close()


async def _clear(store: SessionStore, settings: SleepTrackerSettings) -> dict:
    runtime = TrackerRuntime(settings, store=store)
    try:
        controller = runtime.session_controller()
        await controller.on_clear()
        return {"cleared": True}
    finally:
        runtime.close()


def cmd_start(args: argparse.Namespace) -> None:
    settings = SleepTrackerSettings()
    store = load_store(settings)
    print(json.dumps(asyncio.run(_start(store, settings)), indent=2))


def cmd_stop(args: argparse.Namespace) -> None:
    settings = SleepTrackerSettings()
    store = load_store(settings)
    print(json.dumps(asyncio.run(_stop(store, settings)), indent=2))


def cmd_rate(args: argparse.Namespace) -> None:
    settings = SleepTrackerSettings()
    store = load_store(settings)
    try:
        result = asyncio.run(_rate(store, settings, args.night_id, args.quality))
    except ValueError as exc:
        print(str(exc))
        raise SystemExit(2)
    print(json.dumps(result, indent=2))


def cmd_clear(args: argparse.Namespace) -> None:
    if not args.yes:
        print("Refusing to delete all sessions without --yes")
        raise SystemExit(1)
    settings = SleepTrackerSettings()
    store = load_store(settings)
    print(json.dumps(asyncio.run(_clear(store, settings)), indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sleep tracker diagnostics")
    sub = parser.add_subparsers(dest="cmd")

    p_list = sub.add_parser("list", help="List stored sessions, newest first")
    p_list.add_argument("--json", action="store_true", help="Output JSON")
    p_list.set_defaults(func=cmd_list)

    p_metrics = sub.add_parser("metrics", help="Show session and quality counts")
    p_metrics.set_defaults(func=cmd_metrics)

    p_start = sub.add_parser("start", help="Open a new session")
    p_start.set_defaults(func=cmd_start)

    p_stop = sub.add_parser("stop", help="Close tonight's open session")
    p_stop.set_defaults(func=cmd_stop)

    p_rate = sub.add_parser("rate", help="Record the quality of a session")
    p_rate.add_argument("night_id", type=int)
    p_rate.add_argument("quality", type=int, help="0 (very bad) to 5 (excellent)")
    p_rate.set_defaults(func=cmd_rate)

    p_clear = sub.add_parser("clear", help="Delete every stored session")
    p_clear.add_argument("--yes", action="store_true", help="Confirm deletion")
    p_clear.set_defaults(func=cmd_clear)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    configure_logging(SleepTrackerSettings().log_level)
    args.func(args)


if __name__ == "__main__":
    main()
