"""Permission-checked usage queries over pluggable data sources."""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from .civil_time import ZoneCalendar
from .errors import PermissionDeniedError, QueryError
from .models import QueryWindow, UsageReport
from .reporting import compute_usage_report
from .sources import DailyTotalSource, DatabaseUsageSource, EventSource, NameResolver, UsageAccess

logger = logging.getLogger(__name__)


class UsageQueryService:
    """Fetch raw usage data for a window and turn it into hourly reports."""

    def __init__(
        self,
        access: UsageAccess,
        events: EventSource,
        totals: DailyTotalSource,
        calendar: ZoneCalendar,
        resolver: Optional[NameResolver] = None,
    ) -> None:
        self.access = access
        self.events = events
        self.totals = totals
        self.calendar = calendar
        self.resolver = resolver

    @classmethod
    def for_database(
        cls,
        source: DatabaseUsageSource,
        calendar: ZoneCalendar,
        name_cache: Optional[dict[str, str]] = None,
    ) -> "UsageQueryService":
        return cls(
            access=source,
            events=source,
            totals=source,
            calendar=calendar,
            resolver=source.name_resolver(name_cache),
        )

    def query(self, window: QueryWindow) -> list[UsageReport]:
        if not self.access.has_usage_access():
            raise PermissionDeniedError("Usage data access has not been granted")

        open_sessions: dict[str, int] = {}
        try:
            events = self.events.fetch_events(window.start, window.end)
            totals = self.totals.fetch_daily_totals(window.start, window.end)
            reports = compute_usage_report(
                window.start,
                window.end,
                events,
                totals,
                self.calendar,
                self.resolver,
                open_sessions,
            )
        except Exception as exc:
            raise QueryError(f"Failed to query usage stats: {exc}") from exc
        logger.info(
            "Built %d usage reports from %d events (%d sessions left open).",
            len(reports),
            len(events),
            len(open_sessions),
        )
        return reports

    def query_day(self, day: date) -> list[UsageReport]:
        return self.query(self.calendar.day_window(day))
