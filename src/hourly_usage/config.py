"""Configuration models and helpers for usage reports."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from .civil_time import ZoneCalendar, resolve_timezone

TZ_ENV_VAR = "HOURLY_USAGE_TZ"


@dataclass(slots=True)
class ReportSettings:
    """Runtime configuration for building usage reports."""

    time_zone: Optional[str] = None
    top_apps: Optional[int] = None

    @classmethod
    def from_options(
        cls,
        time_zone: Optional[str] = None,
        top_apps: Optional[int] = None,
    ) -> "ReportSettings":
        zone = time_zone if time_zone else os.environ.get(TZ_ENV_VAR) or None
        return cls(time_zone=zone, top_apps=top_apps)

    def build_calendar(self) -> ZoneCalendar:
        return ZoneCalendar(resolve_timezone(self.time_zone))

    @property
    def time_zone_label(self) -> str:
        return self.time_zone or "local"
