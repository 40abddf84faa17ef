"""Tests for reconciling hourly buckets with daily totals."""

from __future__ import annotations

import logging

from hourly_usage.models import DailyTotal, EventKind, HourlyUsage, RawEvent, UsageReport
from hourly_usage.reporting import (
    ReportPrinter,
    build_usage_report,
    compute_usage_report,
    format_duration,
    render_hour_chart,
)
from hourly_usage.sources import CachingNameResolver


class TestBuildUsageReport:
    def test_mismatch_is_reported_but_output_kept(self, caplog):
        buckets = {"a": {9: 1_500, 10: 2_500}}
        with caplog.at_level(logging.WARNING, logger="hourly_usage.reporting"):
            reports = build_usage_report([DailyTotal("a", 5_000)], buckets)

        assert len(reports) == 1
        assert reports[0].total_foreground_ms == 5_000
        assert reports[0].hourly_total == 4_000
        assert not reports[0].is_reconciled
        assert "Hourly sum mismatch for a" in caplog.text

    def test_matching_totals_do_not_warn(self, caplog):
        with caplog.at_level(logging.WARNING, logger="hourly_usage.reporting"):
            reports = build_usage_report([DailyTotal("a", 4_000)], {"a": {9: 4_000}})
        assert reports[0].is_reconciled
        assert caplog.records == []

    def test_zero_usage_apps_are_excluded(self):
        reports = build_usage_report(
            [DailyTotal("idle", 0), DailyTotal("busy", 10)],
            {"idle": {3: 500}, "busy": {4: 10}},
        )
        assert [report.application_id for report in reports] == ["busy"]

    def test_missing_bucket_entry_is_empty_without_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="hourly_usage.reporting"):
            reports = build_usage_report([DailyTotal("a", 7_000)], {})
        assert reports[0].hourly_usage == []
        assert reports[0].hourly_total == 0
        assert caplog.records == []

    def test_hours_are_ordered_and_fields_preserved(self):
        total = DailyTotal("a", 600, last_used=30, first_seen=10, last_seen=40)
        [report] = build_usage_report([total], {"a": {15: 100, 2: 200, 9: 300}})
        assert report.hourly_usage == [
            HourlyUsage(2, 200),
            HourlyUsage(9, 300),
            HourlyUsage(15, 100),
        ]
        assert (report.last_used, report.first_seen, report.last_seen) == (30, 10, 40)

    def test_display_name_uses_resolver(self):
        resolver = CachingNameResolver({"a": "Alpha"}.get)
        reports = build_usage_report([DailyTotal("a", 1), DailyTotal("b", 1)], {}, resolver)
        assert [report.display_name for report in reports] == ["Alpha", "b"]

    def test_display_name_defaults_to_id(self):
        [report] = build_usage_report([DailyTotal("com.example", 1)], {})
        assert report.display_name == "com.example"

    def test_to_dict(self):
        [report] = build_usage_report([DailyTotal("a", 50, 1, 2, 3)], {"a": {1: 50}})
        assert report.to_dict() == {
            "application_id": "a",
            "display_name": "a",
            "total_foreground_ms": 50,
            "last_used": 1,
            "first_seen": 2,
            "last_seen": 3,
            "hourly_usage": [{"hour": 1, "duration": 50}],
            "hourly_total": 50,
        }


class TestComputeUsageReport:
    def test_end_to_end(self, at, utc_calendar, day_window):
        events = [
            RawEvent("chat", at(9, 50), EventKind.RESUMED),
            RawEvent("chat", at(12, 10), EventKind.PAUSED),
            RawEvent("mail", at(14), EventKind.RESUMED),
            RawEvent("mail", at(14, 10), EventKind.PAUSED),
            RawEvent("mail", at(14, 30), EventKind.RESUMED),
            RawEvent("mail", at(14, 45), EventKind.PAUSED),
            RawEvent("late", at(23, 50), EventKind.RESUMED),
        ]
        totals = [DailyTotal("chat", 8_400_000), DailyTotal("mail", 1_500_000)]
        open_sessions: dict[str, int] = {}

        reports = compute_usage_report(
            day_window.start,
            day_window.end,
            events,
            totals,
            utc_calendar,
            open_sessions=open_sessions,
        )

        by_id = {report.application_id: report for report in reports}
        assert [(e.hour, e.duration) for e in by_id["chat"].hourly_usage] == [
            (9, 600_000),
            (10, 3_600_000),
            (11, 3_600_000),
            (12, 600_000),
        ]
        assert by_id["chat"].is_reconciled
        assert by_id["mail"].hourly_usage == [HourlyUsage(14, 1_500_000)]
        assert open_sessions == {"late": at(23, 50)}

    def test_session_spanning_midnight_is_clipped(self, at, utc_calendar, day_window):
        events = [
            RawEvent("a", at(23, 0, days=-1), EventKind.RESUMED),
            RawEvent("a", at(0, 30), EventKind.PAUSED),
        ]
        [report] = compute_usage_report(
            day_window.start, day_window.end, events, [DailyTotal("a", 1_800_000)], utc_calendar
        )
        assert report.hourly_usage == [HourlyUsage(0, 1_800_000)]
        assert report.is_reconciled


class TestConsoleOutput:
    def test_format_duration(self):
        assert format_duration(0) == "00:00:00"
        assert format_duration(3_723_000) == "01:02:03"
        assert format_duration(1_499) == "00:00:01"

    def test_render_hour_chart_scales_to_peak(self):
        lines = render_hour_chart([HourlyUsage(9, 1_800_000), HourlyUsage(10, 3_600_000)])
        assert lines[0].startswith("09h " + "#" * 15 + " ")
        assert lines[1].startswith("10h " + "#" * 30)
        assert lines[1].endswith("01:00:00")

    def test_render_hour_chart_empty(self):
        assert render_hour_chart([]) == []

    def test_print_report(self, capsys):
        report = UsageReport(
            application_id="com.example.chat",
            display_name="Chat",
            total_foreground_ms=7_200_000,
            last_used=0,
            first_seen=0,
            last_seen=0,
            hourly_usage=[HourlyUsage(9, 3_600_000)],
            hourly_total=3_600_000,
        )
        ReportPrinter().print_report("2025-01-15", [report])
        out = capsys.readouterr().out
        assert "Usage for 2025-01-15" in out
        assert "Chat [com.example.chat]" in out
        assert "total 02:00:00" in out
        assert "hourly sum differs" in out
        assert "09h" in out

    def test_print_report_respects_limit(self, capsys):
        reports = [
            UsageReport(app, app, total, 0, 0, 0)
            for app, total in [("small", 1_000), ("big", 9_000), ("mid", 5_000)]
        ]
        ReportPrinter(limit=2).print_report("today", reports)
        out = capsys.readouterr().out
        assert "big [big]" in out
        assert "mid [mid]" in out
        assert "small [small]" not in out

    def test_print_empty_report(self, capsys):
        ReportPrinter().print_report("today", [])
        assert "No foreground usage" in capsys.readouterr().out
