"""Split foreground sessions into hour-of-day duration buckets."""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional

from .civil_time import CivilCalendar
from .models import ClosedInterval, HourBucketMap, QueryWindow

logger = logging.getLogger(__name__)

HOURS_PER_DAY = 24


def apportion_interval(
    interval: ClosedInterval,
    window: QueryWindow,
    calendar: CivilCalendar,
) -> dict[int, int]:
    """Return the milliseconds ``interval`` spends in each civil hour of ``window``.

    The interval is clipped to the window first; the clipped part is then cut
    at every civil hour boundary.  The values always sum to the length of the
    clipped interval, and an interval outside the window contributes nothing.
    """
    actual_start = max(interval.start, window.start)
    actual_end = min(interval.end, window.end)
    if (
        actual_start >= actual_end
        or actual_start < window.start
        or actual_end > window.end
    ):
        return {}

    contributions: dict[int, int] = {}
    current = actual_start
    while current < actual_end:
        hour = calendar.hour_of_day(current)
        next_boundary = _next_hour_start(calendar, current)
        if next_boundary <= current:
            logger.debug(
                "Calendar boundary %d does not advance past %d; using elapsed hour",
                next_boundary,
                current,
            )
            next_boundary = calendar.add_hours(current, 1)

        segment_end = min(next_boundary, actual_end, window.end)
        duration = segment_end - current
        if duration > 0 and 0 <= hour < HOURS_PER_DAY:
            contributions[hour] = contributions.get(hour, 0) + duration
        current = segment_end

    return contributions


def _next_hour_start(calendar: CivilCalendar, timestamp: int) -> int:
    next_hour_start = getattr(calendar, "next_hour_start", None)
    if next_hour_start is not None:
        return next_hour_start(timestamp)
    return calendar.add_hours(calendar.start_of_hour(timestamp), 1)


def merge_contributions(
    buckets: HourBucketMap,
    application_id: str,
    contributions: Mapping[int, int],
) -> None:
    """Add per-hour contributions into ``buckets`` without overwriting."""
    if not contributions:
        return
    app_buckets = buckets.setdefault(application_id, {})
    for hour, duration in contributions.items():
        app_buckets[hour] = app_buckets.get(hour, 0) + duration


def build_hour_buckets(
    intervals: Iterable[ClosedInterval],
    window: QueryWindow,
    calendar: CivilCalendar,
    buckets: Optional[HourBucketMap] = None,
) -> HourBucketMap:
    """Apportion every interval and accumulate the results per application."""
    if buckets is None:
        buckets = {}
    count = 0
    for interval in intervals:
        merge_contributions(
            buckets,
            interval.application_id,
            apportion_interval(interval, window, calendar),
        )
        count += 1
    logger.debug("Apportioned %d sessions across %d applications.", count, len(buckets))
    return buckets
