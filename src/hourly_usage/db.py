"""SQLite store for raw usage events, daily totals and application labels."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, Optional

from .models import DailyTotal, EventKind, QueryWindow, RawEvent


def open_database(path: Path, *, check_same_thread: bool = True) -> sqlite3.Connection:
    """Open (and initialize) the SQLite database."""
    conn = sqlite3.connect(
        path,
        isolation_level=None,
        check_same_thread=check_same_thread,
    )
    conn.row_factory = sqlite3.Row
    initialize_schema(conn)
    return conn


@contextmanager
def database_connection(
    path: Path, *, check_same_thread: bool = True
) -> Iterator[sqlite3.Connection]:
    conn = open_database(path, check_same_thread=check_same_thread)
    try:
        yield conn
    finally:
        conn.close()


def initialize_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS usage_events (
            id INTEGER PRIMARY KEY,
            application_id TEXT NOT NULL,
            timestamp INTEGER NOT NULL,
            kind TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_usage_events_timestamp
            ON usage_events(timestamp);

        CREATE TABLE IF NOT EXISTS daily_totals (
            id INTEGER PRIMARY KEY,
            window_start INTEGER NOT NULL,
            window_end INTEGER NOT NULL,
            application_id TEXT NOT NULL,
            total_foreground_ms INTEGER NOT NULL DEFAULT 0,
            last_used INTEGER NOT NULL DEFAULT 0,
            first_seen INTEGER NOT NULL DEFAULT 0,
            last_seen INTEGER NOT NULL DEFAULT 0,
            UNIQUE (window_start, application_id)
        );

        CREATE TABLE IF NOT EXISTS app_labels (
            application_id TEXT PRIMARY KEY,
            label TEXT NOT NULL
        );
        """
    )


def insert_events(conn: sqlite3.Connection, events: Iterable[RawEvent]) -> int:
    rows = [(event.application_id, event.timestamp, event.kind.value) for event in events]
    conn.executemany(
        "INSERT INTO usage_events (application_id, timestamp, kind) VALUES (?, ?, ?)",
        rows,
    )
    return len(rows)


def insert_daily_totals(
    conn: sqlite3.Connection, window: QueryWindow, totals: Iterable[DailyTotal]
) -> int:
    """Store daily totals for ``window``, replacing earlier values for the same app."""
    rows = [
        (
            window.start,
            window.end,
            total.application_id,
            total.total_foreground_ms,
            total.last_used,
            total.first_seen,
            total.last_seen,
        )
        for total in totals
    ]
    conn.executemany(
        """
        INSERT INTO daily_totals (
            window_start,
            window_end,
            application_id,
            total_foreground_ms,
            last_used,
            first_seen,
            last_seen
        ) VALUES (?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(window_start, application_id) DO UPDATE SET
            window_end = excluded.window_end,
            total_foreground_ms = excluded.total_foreground_ms,
            last_used = excluded.last_used,
            first_seen = excluded.first_seen,
            last_seen = excluded.last_seen
        """,
        rows,
    )
    return len(rows)


def upsert_label(conn: sqlite3.Connection, application_id: str, label: str) -> None:
    label = label.strip()
    if not label:
        raise ValueError("label must not be empty")
    conn.execute(
        """
        INSERT INTO app_labels (application_id, label) VALUES (?, ?)
        ON CONFLICT(application_id) DO UPDATE SET label = excluded.label
        """,
        (application_id, label),
    )


def fetch_events(conn: sqlite3.Connection, start: int, end: int) -> list[RawEvent]:
    """Fetch transition events with ``start <= timestamp < end`` in arrival order."""
    rows = conn.execute(
        """
        SELECT application_id, timestamp, kind
        FROM usage_events
        WHERE timestamp >= ? AND timestamp < ?
        ORDER BY timestamp, id;
        """,
        (start, end),
    )
    return [
        RawEvent(
            application_id=row["application_id"],
            timestamp=row["timestamp"],
            kind=EventKind.parse(row["kind"]),
        )
        for row in rows
    ]


def fetch_daily_totals(conn: sqlite3.Connection, start: int, end: int) -> list[DailyTotal]:
    """Fetch one daily total per application for windows overlapping ``[start, end)``.

    When several recorded windows overlap the range (totals stored in another
    zone's days, for example) the one covering most of the range wins; ties go
    to the earlier window.
    """
    rows = conn.execute(
        """
        SELECT window_start, window_end, application_id, total_foreground_ms,
               last_used, first_seen, last_seen
        FROM daily_totals
        WHERE window_start < ? AND window_end > ?
        ORDER BY window_start, id;
        """,
        (end, start),
    )
    best: dict[str, tuple[int, DailyTotal]] = {}
    for row in rows:
        overlap = min(row["window_end"], end) - max(row["window_start"], start)
        current = best.get(row["application_id"])
        if current is not None and current[0] >= overlap:
            continue
        best[row["application_id"]] = (
            overlap,
            DailyTotal(
                application_id=row["application_id"],
                total_foreground_ms=row["total_foreground_ms"],
                last_used=row["last_used"],
                first_seen=row["first_seen"],
                last_seen=row["last_seen"],
            ),
        )
    return [total for _, total in best.values()]


def fetch_label(conn: sqlite3.Connection, application_id: str) -> Optional[str]:
    row = conn.execute(
        "SELECT label FROM app_labels WHERE application_id = ?",
        (application_id,),
    ).fetchone()
    return row["label"] if row else None
