"""Render session history into display strings."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from .storage.models import Session, SleepQuality

_TIMESTAMP_FORMAT = "%A %b-%d-%Y Time: %H:%M"


def format_timestamp(milli: int) -> str:
    return datetime.fromtimestamp(milli / 1000).strftime(_TIMESTAMP_FORMAT)


def format_duration(milli: int) -> str:
    seconds = max(milli, 0) // 1000
    hours, remainder = divmod(seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours}:{minutes:02d}:{seconds:02d}"


def format_session(session: Session) -> str:
    lines = [
        f"Start: {format_timestamp(session.start_time_milli)}",
    ]
    if session.is_open:
        lines.append("End: still tracking")
    else:
        lines.append(f"End: {format_timestamp(session.end_time_milli)}")
    lines.append(f"Quality: {SleepQuality.describe(session.sleep_quality)}")
    lines.append(f"Hours:Minutes:Seconds: {format_duration(session.duration_milli)}")
    return "\n".join(lines)


def format_sessions(sessions: Iterable[Session]) -> list[str]:
    """One display block per session, in the order given."""

    return [format_session(session) for session in sessions]


__all__ = ["format_duration", "format_session", "format_sessions", "format_timestamp"]
