"""Exceptions surfaced by the usage query layer."""

from __future__ import annotations


class HourlyUsageError(Exception):
    """Base class for errors raised by this package."""


class PermissionDeniedError(HourlyUsageError):
    """Usage data may not be read; the query is refused before any work."""


class QueryError(HourlyUsageError):
    """A collaborator failed while fetching usage data."""


class ConfigurationError(HourlyUsageError):
    """Invalid runtime configuration, such as an unknown time zone."""
