"""Data models for persisted sleep sessions."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import IntEnum

UNRATED = -1


def now_millis() -> int:
    """Wall-clock time in milliseconds since the epoch."""

    return time.time_ns() // 1_000_000


class SleepQuality(IntEnum):
    VERY_BAD = 0
    POOR = 1
    SO_SO = 2
    OK = 3
    PRETTY_GOOD = 4
    EXCELLENT = 5

    @property
    def label(self) -> str:
        return _QUALITY_LABELS[self]

    @classmethod
    def describe(cls, value: int) -> str:
        """Return the display label for a raw rating, including the unrated sentinel."""

        try:
            return cls(value).label
        except ValueError:
            return "Unrated" if value == UNRATED else f"Unknown ({value})"


_QUALITY_LABELS = {
    SleepQuality.VERY_BAD: "Very bad",
    SleepQuality.POOR: "Poor",
    SleepQuality.SO_SO: "So-so",
    SleepQuality.OK: "OK",
    SleepQuality.PRETTY_GOOD: "Pretty good",
    SleepQuality.EXCELLENT: "Excellent",
}


@dataclass(slots=True)
class Session:
    """One sleep-tracking interval.

    A session is open while its end time still equals its start time.
    """

    night_id: int = 0
    start_time_milli: int = field(default_factory=now_millis)
    end_time_milli: int = -1
    sleep_quality: int = UNRATED

    def __post_init__(self) -> None:
        if self.end_time_milli < 0:
            self.end_time_milli = self.start_time_milli

    @property
    def is_open(self) -> bool:
        return self.end_time_milli == self.start_time_milli

    @property
    def duration_milli(self) -> int:
        return self.end_time_milli - self.start_time_milli


__all__ = ["Session", "SleepQuality", "UNRATED", "now_millis"]
