"""
Tests — Report query engine.

Covers:
    - Runs for a date: inclusive day boundaries, team filter, ordering
    - Date validation (format and calendar)
    - Empty results as zero-filled payloads
    - Dashboard window, grouping, recent activity, team summary
    - Period stats: period resolution, per-team breakdown, ordering
    - Coordinator isolation
"""

from datetime import datetime

import pytest

from runboard.core.actors import ROLE_CONTRIBUTOR
from runboard.core.exceptions import ValidationError
from runboard.services import report_engine


def _sec(name, result, *subs):
    return {"name": name, "result": result, "subsections": [{"name": n, "result": r} for n, r in subs]}


NOW = datetime(2026, 3, 10, 12, 0)


# ═════════════════════════════════════════════════════════════════════════════
# Runs for a date
# ═════════════════════════════════════════════════════════════════════════════


class TestRunsForDate:
    def test_day_boundaries_inclusive(self, coordinator, contributor, make_submission):
        make_submission(contributor, test_name="prev", timestamp="2026-03-09T23:59:59.999")
        make_submission(contributor, test_name="start", timestamp="2026-03-10T00:00:00")
        make_submission(contributor, test_name="almost", timestamp="2026-03-10T23:59:59.998")
        make_submission(contributor, test_name="end", timestamp="2026-03-10T23:59:59.999")
        make_submission(contributor, test_name="next", timestamp="2026-03-11T00:00:00")

        result = report_engine.get_runs_for_date(coordinator.id, "2026-03-10")
        assert [r["test_name"] for r in result["runs"]] == ["start", "almost", "end"]
        assert result["total_runs"] == 3
        assert result["team"] == "all"

    def test_each_run_has_chart_data_and_aggregate(self, coordinator, contributor, make_submission):
        make_submission(contributor, test_name="A", timestamp="2026-03-10T09:00:00",
                        sections=[_sec("S", "passed", ("s1", "failed"))])
        make_submission(contributor, test_name="B", timestamp="2026-03-10T10:00:00",
                        sections=[_sec("T", "skipped")])

        result = report_engine.get_runs_for_date(coordinator.id, "2026-03-10")
        first = result["runs"][0]
        assert first["chart_data"]["status_counts"] == {"passed": 1, "skipped": 0, "failed": 1, "errored": 0}
        assert first["chart_data"]["names_by_status"]["failed"] == ["A - S - s1"]
        assert result["aggregate_data"]["status_counts"] == {"passed": 1, "skipped": 1, "failed": 1, "errored": 0}

    def test_team_filter(self, coordinator, contributor, other_contributor, make_submission):
        make_submission(contributor, timestamp="2026-03-10T09:00:00")
        make_submission(other_contributor, timestamp="2026-03-10T09:30:00")

        result = report_engine.get_runs_for_date(coordinator.id, "2026-03-10", team="Search")
        assert result["team"] == "Search"
        assert [r["lead_id"] for r in result["runs"]] == [other_contributor.id]

    def test_empty_payload_is_zero_filled(self, coordinator):
        result = report_engine.get_runs_for_date(coordinator.id, "2026-03-10")
        assert result["runs"] == []
        assert result["total_runs"] == 0
        assert result["aggregate_data"]["status_counts"] == {"passed": 0, "skipped": 0, "failed": 0, "errored": 0}
        assert result["aggregate_data"]["names_by_status"] == {"passed": [], "skipped": [], "failed": [], "errored": []}

    @pytest.mark.parametrize("bad", [None, "", "10-03-2026", "2026-3-10", "2026-02-30", "2026-13-01"])
    def test_invalid_date(self, coordinator, bad):
        with pytest.raises(ValidationError) as exc:
            report_engine.get_runs_for_date(coordinator.id, bad)
        assert exc.value.details[0]["field"] == "date"

    def test_other_coordinator_sees_nothing(self, other_coordinator, contributor, make_submission):
        make_submission(contributor, timestamp="2026-03-10T09:00:00")
        assert report_engine.get_runs_for_date(other_coordinator.id, "2026-03-10")["total_runs"] == 0


# ═════════════════════════════════════════════════════════════════════════════
# Dashboard summary
# ═════════════════════════════════════════════════════════════════════════════


class TestDashboard:
    def test_window_and_grouping(self, coordinator, contributor, other_contributor, make_submission):
        make_submission(contributor, test_name="too old", timestamp="2026-03-02T23:59:59")
        make_submission(contributor, test_name="first day", timestamp="2026-03-03T00:00:00")
        make_submission(other_contributor, test_name="d9-late", timestamp="2026-03-09T18:00:00")
        make_submission(contributor, test_name="d9-early", timestamp="2026-03-09T08:00:00")
        make_submission(contributor, test_name="today", timestamp="2026-03-10T23:00:00")

        result = report_engine.get_dashboard_summary(coordinator.id, 7, now=NOW)

        assert result["summary"] == {
            "total_teams": 2,
            "total_team_leads": 2,
            "total_submissions": 4,
            "date_range": {"start": "2026-03-03", "end": "2026-03-10", "days": 7},
        }
        groups = result["submissions_by_date"]
        assert [g["date"] for g in groups] == ["2026-03-03", "2026-03-09", "2026-03-10"]
        assert [s["test_name"] for s in groups[1]["submissions"]] == ["d9-early", "d9-late"]
        assert groups[1]["count"] == 2
        assert [s["test_name"] for s in result["recent_activity"]] == ["today", "d9-late", "d9-early", "first day"]

    def test_recent_activity_capped(self, coordinator, contributor, make_submission):
        for hour in range(8):
            make_submission(contributor, test_name=f"r{hour}", timestamp=f"2026-03-10T0{hour}:00:00")
        result = report_engine.get_dashboard_summary(coordinator.id, now=NOW)
        assert [s["test_name"] for s in result["recent_activity"]] == ["r7", "r6", "r5", "r4", "r3"]

    def test_teams_summary(self, coordinator, contributor, other_contributor, make_user, make_submission):
        make_user(ROLE_CONTRIBUTOR, "Ana", "ana@acme.io", team="Payments", manager=coordinator)
        make_submission(contributor, timestamp="2026-03-10T09:00:00")
        make_submission(contributor, timestamp="2026-03-10T10:00:00")

        teams = {t["name"]: t for t in report_engine.get_dashboard_summary(coordinator.id, now=NOW)["teams"]}
        assert teams["Payments"]["leads_count"] == 2
        assert teams["Payments"]["submissions_count"] == 2
        assert teams["Search"]["submissions_count"] == 0

    def test_zero_day_window_is_today(self, coordinator, contributor, make_submission):
        make_submission(contributor, timestamp="2026-03-09T23:00:00")
        make_submission(contributor, timestamp="2026-03-10T01:00:00")
        result = report_engine.get_dashboard_summary(coordinator.id, 0, now=NOW)
        assert result["summary"]["total_submissions"] == 1
        assert result["summary"]["date_range"]["start"] == "2026-03-10"

    def test_empty(self, other_coordinator):
        result = report_engine.get_dashboard_summary(other_coordinator.id, now=NOW)
        assert result["summary"]["total_submissions"] == 0
        assert result["status_counts"] == {"passed": 0, "skipped": 0, "failed": 0, "errored": 0}
        assert result["submissions_by_date"] == []
        assert result["recent_activity"] == []
        assert result["teams"] == []

    @pytest.mark.parametrize("days", [-1, 366, "7", 2.5, True])
    def test_invalid_days(self, coordinator, days):
        with pytest.raises(ValidationError):
            report_engine.get_dashboard_summary(coordinator.id, days, now=NOW)


# ═════════════════════════════════════════════════════════════════════════════
# Period stats
# ═════════════════════════════════════════════════════════════════════════════


class TestPeriodStats:
    @pytest.mark.parametrize("token, expected", [
        ("week", "week"), ("MONTH", "month"), ("quarter", "quarter"),
        ("year", "year"), ("decade", "week"), (None, "week"), ("", "week"),
    ])
    def test_resolve_period(self, token, expected):
        assert report_engine.resolve_period(token) == expected

    @pytest.mark.parametrize("period, start", [
        ("week", "2026-03-03"),
        ("month", "2026-02-10"),
        ("quarter", "2025-12-10"),
        ("year", "2025-03-10"),
    ])
    def test_date_ranges(self, coordinator, period, start):
        result = report_engine.get_period_stats(coordinator.id, period, now=NOW)
        assert result["date_range"] == {"start": start, "end": "2026-03-10"}

    def test_month_end_clamped(self, coordinator):
        result = report_engine.get_period_stats(coordinator.id, "month", now=datetime(2026, 3, 31, 9, 0))
        assert result["date_range"]["start"] == "2026-02-28"

    def test_breakdown_by_team(self, coordinator, contributor, other_contributor, make_submission):
        make_submission(contributor, test_name="Pay A", timestamp="2026-03-09T09:00:00",
                        sections=[_sec("S1", "failed", ("a", "failed")), _sec("S2", "passed")])
        make_submission(contributor, test_name="Pay A", timestamp="2026-03-10T09:00:00",
                        sections=[_sec("S1", "failed")])
        make_submission(other_contributor, test_name="Search B", timestamp="2026-03-10T09:00:00",
                        sections=[_sec("S1", "errored")])

        result = report_engine.get_period_stats(coordinator.id, "week", now=NOW)

        assert result["period"] == "week"
        assert result["overall"] == {
            "total_submissions": 3,
            "total_occurrences": 5,
            "status_counts": {"passed": 1, "skipped": 0, "failed": 3, "errored": 1},
        }
        first, second = result["by_team"]
        assert first["team"] == "Payments"
        assert first["total_occurrences"] == 4
        assert first["submission_count"] == 2
        assert first["status_breakdown"]["failed"] == {"count": 3, "submissions": ["Pay A", "Pay A"]}
        assert first["status_breakdown"]["skipped"] == {"count": 0, "submissions": []}
        assert second["team"] == "Search"
        assert second["status_breakdown"]["errored"] == {"count": 1, "submissions": ["Search B"]}

    def test_same_named_runs_listed_per_submission(self, coordinator, contributor, make_submission):
        make_submission(contributor, test_name="Smoke", timestamp="2026-03-09T09:00:00",
                        sections=[_sec("S1", "failed")])
        make_submission(contributor, test_name="Smoke", timestamp="2026-03-10T09:00:00",
                        sections=[_sec("S1", "failed")])

        (payments,) = report_engine.get_period_stats(coordinator.id, "week", now=NOW)["by_team"]

        assert payments["submission_count"] == 2
        assert payments["status_breakdown"]["failed"] == {"count": 2, "submissions": ["Smoke", "Smoke"]}

    def test_run_listed_once_per_outcome(self, coordinator, contributor, make_submission):
        make_submission(contributor, test_name="Smoke", timestamp="2026-03-10T09:00:00",
                        sections=[_sec("S1", "failed", ("a", "failed"), ("b", "failed"))])

        (payments,) = report_engine.get_period_stats(coordinator.id, "week", now=NOW)["by_team"]

        assert payments["status_breakdown"]["failed"] == {"count": 3, "submissions": ["Smoke"]}

    def test_teams_tied_sorted_by_name(self, coordinator, contributor, other_contributor, make_submission):
        make_submission(other_contributor, timestamp="2026-03-10T08:00:00")
        make_submission(contributor, timestamp="2026-03-10T09:00:00")
        result = report_engine.get_period_stats(coordinator.id, now=NOW)
        assert [t["team"] for t in result["by_team"]] == ["Payments", "Search"]

    def test_outside_period_ignored(self, coordinator, contributor, make_submission):
        make_submission(contributor, timestamp="2026-03-02T23:59:59")
        result = report_engine.get_period_stats(coordinator.id, "week", now=NOW)
        assert result["overall"]["total_submissions"] == 0
        assert result["by_team"] == []
