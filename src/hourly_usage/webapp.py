"""FastAPI application that exposes hourly usage reports over HTTP."""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from .config import ReportSettings
from .db import database_connection
from .errors import PermissionDeniedError, QueryError
from .ingest import UsageDump, import_dump
from .models import UsageReport
from .paths import resolve_db_path
from .service import UsageQueryService
from .sources import DatabaseUsageSource

logger = logging.getLogger(__name__)


def create_app(
    *,
    db_path: Optional[Path] = None,
    settings: Optional[ReportSettings] = None,
) -> FastAPI:
    """Instantiate the FastAPI application."""
    resolved_db_path = resolve_db_path(db_path)
    resolved_settings = settings or ReportSettings.from_options()
    calendar = resolved_settings.build_calendar()
    source = DatabaseUsageSource(resolved_db_path)
    name_cache: dict[str, str] = {}

    app = FastAPI(title="Hourly Usage", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.db_path = resolved_db_path
    app.state.settings = resolved_settings

    @app.on_event("startup")
    async def _startup() -> None:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )

    def _query_day(day: date) -> list[UsageReport]:
        service = UsageQueryService.for_database(source, calendar, name_cache)
        try:
            return service.query_day(day)
        except PermissionDeniedError as exc:
            raise HTTPException(status_code=403, detail=str(exc)) from exc
        except QueryError as exc:
            logger.exception("Usage query failed for %s", day)
            raise HTTPException(status_code=500, detail=str(exc)) from exc

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        return {
            "has_usage_access": source.has_usage_access(),
            "database_path": str(request.app.state.db_path),
            "time_zone": resolved_settings.time_zone_label,
        }

    @app.get("/api/usage")
    def usage(
        date: Optional[str] = Query(
            default=None,
            description="Target date in YYYY-MM-DD format.",
        ),
    ) -> Dict[str, Any]:
        target_day = _parse_date(date, calendar.today())
        reports = _query_day(target_day)
        return {
            "date": target_day.isoformat(),
            "time_zone": resolved_settings.time_zone_label,
            "apps": [report.to_dict() for report in reports],
        }

    @app.get("/api/usage/{application_id}")
    def usage_for_app(
        application_id: str,
        date: Optional[str] = Query(
            default=None,
            description="Target date in YYYY-MM-DD format.",
        ),
    ) -> Dict[str, Any]:
        target_day = _parse_date(date, calendar.today())
        for report in _query_day(target_day):
            if report.application_id == application_id:
                return {"date": target_day.isoformat(), **report.to_dict()}
        raise HTTPException(status_code=404, detail="No usage recorded for application")

    @app.post("/api/ingest")
    def ingest(payload: UsageDump, request: Request) -> Dict[str, Any]:
        with database_connection(request.app.state.db_path) as conn:
            summary = import_dump(conn, payload)
        name_cache.clear()
        return summary.model_dump()

    return app


def _parse_date(value: Optional[str], default: date) -> date:
    if not value:
        return default
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid date format") from exc
