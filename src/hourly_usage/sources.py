"""Collaborators that supply usage data to the report builder."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Optional, Protocol, Sequence

from .db import database_connection, fetch_daily_totals, fetch_events, fetch_label
from .models import DailyTotal, RawEvent

logger = logging.getLogger(__name__)


class UsageAccess(Protocol):
    def has_usage_access(self) -> bool:
        ...


class EventSource(Protocol):
    def fetch_events(self, window_start: int, window_end: int) -> Sequence[RawEvent]:
        ...


class DailyTotalSource(Protocol):
    def fetch_daily_totals(self, window_start: int, window_end: int) -> Sequence[DailyTotal]:
        ...


class NameResolver(Protocol):
    def resolve_name(self, application_id: str) -> str:
        ...


class CachingNameResolver:
    """Resolve display names through ``lookup`` at most once per application.

    ``lookup`` returns a label or ``None`` and may raise ``LookupError``; either
    way the application id itself becomes the display name.  The cache dict can
    be shared between queries by the caller.
    """

    def __init__(
        self,
        lookup: Callable[[str], Optional[str]],
        cache: Optional[dict[str, str]] = None,
    ) -> None:
        self._lookup = lookup
        self.cache: dict[str, str] = cache if cache is not None else {}

    def resolve_name(self, application_id: str) -> str:
        cached = self.cache.get(application_id)
        if cached is not None:
            return cached
        try:
            label = self._lookup(application_id)
        except LookupError:
            logger.debug("No display name for %s", application_id)
            label = None
        name = label.strip() if label and label.strip() else application_id
        self.cache[application_id] = name
        return name


class DatabaseUsageSource:
    """Reads events, daily totals and labels from the local SQLite store."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)

    def has_usage_access(self) -> bool:
        return self.db_path.is_file() and os.access(self.db_path, os.R_OK)

    def fetch_events(self, window_start: int, window_end: int) -> list[RawEvent]:
        with database_connection(self.db_path) as conn:
            return fetch_events(conn, window_start, window_end)

    def fetch_daily_totals(self, window_start: int, window_end: int) -> list[DailyTotal]:
        with database_connection(self.db_path) as conn:
            return fetch_daily_totals(conn, window_start, window_end)

    def lookup_label(self, application_id: str) -> Optional[str]:
        with database_connection(self.db_path) as conn:
            return fetch_label(conn, application_id)

    def name_resolver(self, cache: Optional[dict[str, str]] = None) -> CachingNameResolver:
        return CachingNameResolver(self.lookup_label, cache)
