"""Civil (wall-clock) hour arithmetic on epoch-millisecond timestamps.

Hour buckets are defined by a calendar rather than by fixed 3,600,000 ms
chunks: on daylight-saving transition days a local day has 23 or 25 hours and
the hour-of-day sequence skips or repeats a value.  Everything that needs to
know "which hour is this" goes through a :class:`CivilCalendar` so the
apportioning code never assumes a particular zone.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional, Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ConfigurationError
from .models import QueryWindow

MS_PER_HOUR = 3_600_000


class CivilCalendar(Protocol):
    """Calendar capability injected into the apportioner.

    A calendar may also provide ``next_hour_start(timestamp)`` when civil
    hours do not start one elapsed hour apart; without it the apportioner
    uses ``add_hours(start_of_hour(timestamp), 1)``.
    """

    def hour_of_day(self, timestamp: int) -> int:
        ...

    def start_of_hour(self, timestamp: int) -> int:
        ...

    def add_hours(self, timestamp: int, hours: int) -> int:
        ...


class ZoneCalendar:
    """Civil calendar for an IANA zone, or the host's local zone when ``tz`` is None."""

    def __init__(self, tz: Optional[tzinfo] = None) -> None:
        self.tz = tz

    def __repr__(self) -> str:
        return f"ZoneCalendar({self.tz!r})"

    def to_datetime(self, timestamp: int) -> datetime:
        # Naive local datetimes carry ``fold`` for repeated hours, so
        # ``timestamp()`` round-trips either way.
        return datetime.fromtimestamp(timestamp // 1000, self.tz)

    def hour_of_day(self, timestamp: int) -> int:
        return self.to_datetime(timestamp).hour

    def start_of_hour(self, timestamp: int) -> int:
        hour_start = self.to_datetime(timestamp).replace(minute=0, second=0, microsecond=0)
        return int(hour_start.timestamp()) * 1000

    def add_hours(self, timestamp: int, hours: int) -> int:
        # Elapsed hours, not wall-clock hours.
        return timestamp + hours * MS_PER_HOUR

    def next_hour_start(self, timestamp: int) -> int:
        """Return the first civil hour boundary strictly after ``timestamp``.

        Zones that shift by half an hour (Australia/Lord_Howe) have civil hours
        of 30 or 90 minutes, so the boundary is the earlier of one elapsed hour
        after the hour start and the next wall-clock hour read back through
        the zone.
        """
        hour_start = self.to_datetime(timestamp).replace(minute=0, second=0, microsecond=0)
        elapsed = int(hour_start.timestamp()) * 1000 + MS_PER_HOUR
        wall = hour_start.replace(tzinfo=None, fold=0) + timedelta(hours=1)
        wall_clock = int(wall.replace(tzinfo=self.tz).timestamp()) * 1000
        candidates = [value for value in (elapsed, wall_clock) if value > timestamp]
        return min(candidates) if candidates else elapsed

    def today(self, now: Optional[datetime] = None) -> date:
        """Current civil date in this calendar's zone."""
        moment = now if now is not None else datetime.now(timezone.utc)
        return moment.astimezone(self.tz).date()

    def day_window(self, day: date) -> QueryWindow:
        """Return ``[local midnight, next local midnight)`` for ``day``."""
        start = datetime.combine(day, time.min, tzinfo=self.tz)
        end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=self.tz)
        return QueryWindow(
            start=int(start.timestamp()) * 1000,
            end=int(end.timestamp()) * 1000,
        )


def resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """Look up an IANA zone name; ``None`` or an empty name means host local time."""
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(f"Unknown time zone: {name!r}") from exc
