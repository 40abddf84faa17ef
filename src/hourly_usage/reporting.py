"""Reconcile hourly buckets with daily totals and render them for the console."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .apportion import HOURS_PER_DAY, build_hour_buckets
from .civil_time import CivilCalendar
from .models import (
    DailyTotal,
    HourBucketMap,
    HourlyUsage,
    QueryWindow,
    RawEvent,
    UsageReport,
)
from .sessions import reconstruct_sessions
from .sources import NameResolver

logger = logging.getLogger(__name__)

_BAR_WIDTH = 30


def build_usage_report(
    daily_totals: Iterable[DailyTotal],
    buckets: HourBucketMap,
    resolver: Optional[NameResolver] = None,
) -> list[UsageReport]:
    """Combine each used application's daily total with its hourly breakdown.

    Applications whose daily total is zero are left out.  When an application
    has hourly data that does not add up to its daily total a warning is
    logged; the report itself is emitted unchanged.
    """
    reports: list[UsageReport] = []
    for total in daily_totals:
        if total.total_foreground_ms <= 0:
            continue
        hourly = buckets.get(total.application_id, {})
        hourly_total = sum(hourly.values())
        if hourly and hourly_total != total.total_foreground_ms:
            logger.warning(
                "Hourly sum mismatch for %s: hourly=%dms total=%dms",
                total.application_id,
                hourly_total,
                total.total_foreground_ms,
            )
        display_name = (
            resolver.resolve_name(total.application_id)
            if resolver is not None
            else total.application_id
        )
        reports.append(
            UsageReport(
                application_id=total.application_id,
                display_name=display_name,
                total_foreground_ms=total.total_foreground_ms,
                last_used=total.last_used,
                first_seen=total.first_seen,
                last_seen=total.last_seen,
                hourly_usage=[
                    HourlyUsage(hour=hour, duration=duration)
                    for hour, duration in sorted(hourly.items())
                ],
                hourly_total=hourly_total,
            )
        )
    return reports


def compute_usage_report(
    window_start: int,
    window_end: int,
    events: Iterable[RawEvent],
    daily_totals: Iterable[DailyTotal],
    calendar: CivilCalendar,
    resolver: Optional[NameResolver] = None,
    open_sessions: Optional[dict[str, int]] = None,
) -> list[UsageReport]:
    """Build the per-application hourly usage report for one query window."""
    window = QueryWindow(start=window_start, end=window_end)
    intervals = reconstruct_sessions(events, open_sessions)
    buckets = build_hour_buckets(intervals, window, calendar)
    return build_usage_report(daily_totals, buckets, resolver)


class ReportPrinter:
    """Render human-readable usage reports in the console."""

    def __init__(self, limit: Optional[int] = None) -> None:
        self.limit = limit

    def print_report(self, label: str, reports: list[UsageReport]) -> None:
        if not reports:
            print("No foreground usage recorded for the selected day.")
            return

        ordered = sorted(reports, key=lambda item: item.total_foreground_ms, reverse=True)
        if self.limit is not None:
            ordered = ordered[: self.limit]

        overall = sum(report.total_foreground_ms for report in reports)
        print(f"Usage for {label}")
        print("-" * 40)
        print(f"Foreground time: {format_duration(overall)}")

        for report in ordered:
            print()
            marker = "" if report.is_reconciled else "  (hourly sum differs)"
            print(f"{report.display_name} [{report.application_id}]")
            print(
                f"  total {format_duration(report.total_foreground_ms)}"
                f"  hourly {format_duration(report.hourly_total)}{marker}"
            )
            for line in render_hour_chart(report.hourly_usage):
                print(f"  {line}")


def render_hour_chart(hourly_usage: Iterable[HourlyUsage]) -> list[str]:
    """Return one bar line per hour that has usage, scaled to the busiest hour."""
    entries = [entry for entry in hourly_usage if entry.duration > 0]
    if not entries:
        return []
    peak = max(entry.duration for entry in entries)
    lines = []
    for entry in entries:
        if not 0 <= entry.hour < HOURS_PER_DAY:
            continue
        width = max(1, round(entry.duration / peak * _BAR_WIDTH))
        lines.append(f"{entry.hour:02d}h {'#' * width:<{_BAR_WIDTH}} {format_duration(entry.duration)}")
    return lines


def format_duration(milliseconds: int) -> str:
    total_seconds = int(round(milliseconds / 1000))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
