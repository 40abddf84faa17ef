"""Validate and import usage dumps exported from a device."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .db import insert_daily_totals, insert_events, upsert_label
from .models import DailyTotal, EventKind, QueryWindow, RawEvent

logger = logging.getLogger(__name__)


class EventPayload(BaseModel):
    application_id: str = Field(min_length=1)
    timestamp: int
    kind: str

    model_config = ConfigDict(extra="forbid")

    def to_event(self) -> RawEvent:
        return RawEvent(
            application_id=self.application_id,
            timestamp=self.timestamp,
            kind=EventKind.parse(self.kind),
        )


class DailyTotalPayload(BaseModel):
    """Aggregate for one application over the day ``[window_start, window_end)``."""

    application_id: str = Field(min_length=1)
    window_start: int
    window_end: int
    total_foreground_ms: int = Field(ge=0)
    last_used: int = 0
    first_seen: int = 0
    last_seen: int = 0

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _check_window(self) -> "DailyTotalPayload":
        if self.window_end <= self.window_start:
            raise ValueError("window_end must be after window_start")
        return self

    def to_total(self) -> DailyTotal:
        return DailyTotal(
            application_id=self.application_id,
            total_foreground_ms=self.total_foreground_ms,
            last_used=self.last_used,
            first_seen=self.first_seen,
            last_seen=self.last_seen,
        )


class UsageDump(BaseModel):
    events: list[EventPayload] = Field(default_factory=list)
    daily_totals: list[DailyTotalPayload] = Field(default_factory=list)
    labels: dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class ImportSummary(BaseModel):
    events: int = 0
    daily_totals: int = 0
    labels: int = 0


def load_dump(path: Path) -> UsageDump:
    """Read and validate a JSON usage dump; raises ``pydantic.ValidationError``."""
    return UsageDump.model_validate_json(Path(path).read_text(encoding="utf-8"))


def import_dump(conn: sqlite3.Connection, dump: UsageDump) -> ImportSummary:
    """Write a validated dump to the store; events keep their order in the dump."""
    summary = ImportSummary()
    summary.events = insert_events(conn, (payload.to_event() for payload in dump.events))

    by_window: dict[tuple[int, int], list[DailyTotal]] = {}
    for payload in dump.daily_totals:
        key = (payload.window_start, payload.window_end)
        by_window.setdefault(key, []).append(payload.to_total())
    for (start, end), totals in by_window.items():
        summary.daily_totals += insert_daily_totals(
            conn, QueryWindow(start=start, end=end), totals
        )

    for application_id, label in dump.labels.items():
        if not label.strip():
            logger.debug("Skipping empty label for %s", application_id)
            continue
        upsert_label(conn, application_id, label)
        summary.labels += 1

    logger.info(
        "Imported %d events, %d daily totals, %d labels.",
        summary.events,
        summary.daily_totals,
        summary.labels,
    )
    return summary
