"""Domain models for foreground usage events and reports."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


HourBucketMap = dict[str, dict[int, int]]


class EventKind(str, Enum):
    """Foreground transition reported by the platform."""

    RESUMED = "resumed"
    PAUSED = "paused"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str) -> "EventKind":
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.OTHER


@dataclass(slots=True, frozen=True)
class RawEvent:
    """A single transition event as read from the event source."""

    application_id: str
    timestamp: int
    kind: EventKind


@dataclass(slots=True, frozen=True)
class ClosedInterval:
    """Represents a contiguous block of foreground time for one application."""

    application_id: str
    start: int
    end: int

    @property
    def duration(self) -> int:
        return self.end - self.start


@dataclass(slots=True, frozen=True)
class QueryWindow:
    """Half-open time range ``[start, end)`` in epoch milliseconds."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(
                f"window start {self.start} is after window end {self.end}"
            )

    @property
    def duration(self) -> int:
        return self.end - self.start

    def contains(self, timestamp: int) -> bool:
        return self.start <= timestamp < self.end


@dataclass(slots=True, frozen=True)
class DailyTotal:
    application_id: str
    total_foreground_ms: int
    last_used: int = 0
    first_seen: int = 0
    last_seen: int = 0


@dataclass(slots=True, frozen=True)
class HourlyUsage:
    hour: int
    duration: int


@dataclass(slots=True)
class UsageReport:
    """Per-application daily total merged with its hourly breakdown."""

    application_id: str
    display_name: str
    total_foreground_ms: int
    last_used: int
    first_seen: int
    last_seen: int
    hourly_usage: list[HourlyUsage] = field(default_factory=list)
    hourly_total: int = 0

    @property
    def is_reconciled(self) -> bool:
        return self.hourly_total == self.total_foreground_ms

    def to_dict(self) -> dict[str, Any]:
        return {
            "application_id": self.application_id,
            "display_name": self.display_name,
            "total_foreground_ms": self.total_foreground_ms,
            "last_used": self.last_used,
            "first_seen": self.first_seen,
            "last_seen": self.last_seen,
            "hourly_usage": [
                {"hour": entry.hour, "duration": entry.duration}
                for entry in self.hourly_usage
            ],
            "hourly_total": self.hourly_total,
        }
