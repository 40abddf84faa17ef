"""Shared fixtures for hourly usage tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

from hourly_usage.civil_time import ZoneCalendar
from hourly_usage.models import QueryWindow

DAY = datetime(2025, 1, 15, tzinfo=timezone.utc)


def _at(hour: int, minute: int = 0, second: int = 0, *, days: int = 0) -> int:
    moment = DAY + timedelta(days=days, hours=hour, minutes=minute, seconds=second)
    return int(moment.timestamp()) * 1000


@pytest.fixture
def at() -> Callable[..., int]:
    """Epoch milliseconds for a UTC wall time on 2025-01-15."""
    return _at


@pytest.fixture
def utc_calendar() -> ZoneCalendar:
    return ZoneCalendar(timezone.utc)


@pytest.fixture
def day_window() -> QueryWindow:
    return QueryWindow(start=_at(0), end=_at(0, days=1))


@pytest.fixture
def sample_dump() -> dict[str, Any]:
    """A device dump for 2025-01-15 UTC with one mismatched and one idle app."""
    start, end = _at(0), _at(0, days=1)
    return {
        "events": [
            {"application_id": "com.example.chat", "timestamp": _at(9, 50), "kind": "resumed"},
            {"application_id": "com.example.ghost", "timestamp": _at(10), "kind": "paused"},
            {"application_id": "com.example.chat", "timestamp": _at(12, 10), "kind": "paused"},
            {"application_id": "com.example.mail", "timestamp": _at(14), "kind": "resumed"},
            {"application_id": "com.example.mail", "timestamp": _at(14, 20), "kind": "paused"},
            {"application_id": "com.example.mail", "timestamp": _at(14, 30), "kind": "resumed"},
            {"application_id": "com.example.mail", "timestamp": _at(14, 35), "kind": "screen_on"},
            {"application_id": "com.example.mail", "timestamp": _at(14, 40), "kind": "paused"},
        ],
        "daily_totals": [
            {
                "application_id": "com.example.chat",
                "window_start": start,
                "window_end": end,
                "total_foreground_ms": 8_400_000,
                "last_used": _at(12, 10),
                "first_seen": start,
                "last_seen": end,
            },
            {
                "application_id": "com.example.mail",
                "window_start": start,
                "window_end": end,
                "total_foreground_ms": 2_000_000,
                "last_used": _at(14, 40),
            },
            {
                "application_id": "com.example.idle",
                "window_start": start,
                "window_end": end,
                "total_foreground_ms": 0,
            },
            {
                "application_id": "com.example.maps",
                "window_start": start,
                "window_end": end,
                "total_foreground_ms": 60_000,
            },
        ],
        "labels": {"com.example.chat": "Chat"},
    }
