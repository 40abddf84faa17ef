"""Location of the local usage database."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from platformdirs import user_data_path

DB_ENV_VAR = "HOURLY_USAGE_DB"
DB_FILENAME = "usage.sqlite3"


def default_db_path() -> Path:
    """Per-user data directory location, created on first use."""
    directory = user_data_path("HourlyUsage", appauthor=False, ensure_exists=True)
    return directory / DB_FILENAME


def resolve_db_path(explicit: Optional[Path] = None) -> Path:
    """Pick the database file: explicit ``--db`` value, then ``$HOURLY_USAGE_DB``, then the default.

    The default directory is only created when neither override is given.
    """
    if explicit:
        return Path(explicit).expanduser()
    override = os.environ.get(DB_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return default_db_path()
