"""
Report Query Engine — coordinator-facing run reports.

Reports:
  - get_runs_for_date       runs of one calendar day (+ optional team), with chart data
  - get_dashboard_summary   trailing N-day window: totals, per-day groups, recent runs, teams
  - get_period_stats        week/month/quarter/year breakdown by team and outcome

Windows:
    Every window is built from calendar dates in server-local time, with
    no timezone conversion: a day runs from 00:00:00.000 to 23:59:59.999.

Failure semantics:
    Malformed input raises ValidationError BEFORE any query runs. An empty
    scope or empty result yields a zero-filled payload, never an error.
    Database failures surface as RetrievalError and are not retried here.
"""

import calendar
import logging
from collections import OrderedDict
from datetime import date, datetime, time, timedelta

from sqlalchemy import select

from runboard.core.exceptions import ValidationError
from runboard.core.outcome import Outcome, zero_counts
from runboard.models.submission import Submission
from runboard.services.aggregation import build_chart_data, compute_status_counts, iter_results
from runboard.services.helpers.scoped_queries import fetch_all
from runboard.services.ownership import list_team_leads, list_teams
from runboard.services.validation import TEAM_MAX, parse_iso_date

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 7
MAX_WINDOW_DAYS = 365
RECENT_ACTIVITY_LIMIT = 5

DEFAULT_PERIOD = "week"
# period token → (unit, amount) of the trailing window
PERIODS = {
    "week": ("days", 7),
    "month": ("months", 1),
    "quarter": ("months", 3),
    "year": ("months", 12),
}

_END_OF_DAY = time(23, 59, 59, 999000)


# ── Window helpers ───────────────────────────────────────────────────────────


def _day_window(first_day: date, last_day: date) -> tuple[datetime, datetime]:
    """[first_day 00:00:00.000, last_day 23:59:59.999]."""
    return datetime.combine(first_day, time.min), datetime.combine(last_day, _END_OF_DAY)


def _shift_months(day: date, months: int) -> date:
    """Move ``day`` by a number of calendar months, clamping to the month end."""
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last))


def _period_start(today: date, period: str) -> date:
    unit, amount = PERIODS[period]
    if unit == "days":
        return today - timedelta(days=amount)
    return _shift_months(today, -amount)


def _fmt_range(start: datetime, end: datetime) -> dict:
    return {"start": start.date().isoformat(), "end": end.date().isoformat()}


def _coordinator_runs(coordinator_id: int, start: datetime, end: datetime, *, team=None, newest_first=False):
    stmt = select(Submission).where(
        Submission.manager_id == coordinator_id,
        Submission.timestamp >= start,
        Submission.timestamp <= end,
    )
    if team is not None:
        stmt = stmt.where(Submission.team == team)
    if newest_first:
        stmt = stmt.order_by(Submission.timestamp.desc(), Submission.id.desc())
    else:
        stmt = stmt.order_by(Submission.timestamp.asc(), Submission.id.asc())
    return fetch_all(stmt, operation="load coordinator runs")


def _validate_team(team):
    if team is None:
        return None
    if not isinstance(team, str):
        raise ValidationError.for_field("team", "Team name must be a string")
    team = team.strip()
    if not team:
        return None
    if len(team) > TEAM_MAX:
        raise ValidationError.for_field("team", f"Team name must be between 1 and {TEAM_MAX} characters")
    return team


# ═════════════════════════════════════════════════════════════════════════════
# Runs for a date
# ═════════════════════════════════════════════════════════════════════════════


def get_runs_for_date(coordinator_id: int, date_iso: str, team: str | None = None) -> dict:
    """Runs of one calendar day, oldest first, each with its own chart data.

    Returns:
        {"date", "team", "runs": [submission + "chart_data"], "total_runs",
         "aggregate_data": {"status_counts", "names_by_status"}}
    """
    day = parse_iso_date(date_iso)
    team = _validate_team(team)
    start, end = _day_window(day, day)

    runs = _coordinator_runs(coordinator_id, start, end, team=team)
    logger.debug(
        "runs for coordinator=%s date=%s team=%s → %d", coordinator_id, date_iso, team, len(runs),
    )

    return {
        "date": day.isoformat(),
        "team": team or "all",
        "runs": [
            {**run.to_dict(), "chart_data": build_chart_data([run])}
            for run in runs
        ],
        "total_runs": len(runs),
        "aggregate_data": build_chart_data(runs),
    }


# ═════════════════════════════════════════════════════════════════════════════
# Dashboard summary
# ═════════════════════════════════════════════════════════════════════════════


def get_dashboard_summary(
    coordinator_id: int,
    window_days: int = DEFAULT_WINDOW_DAYS,
    *,
    now: datetime | None = None,
    recent_limit: int = RECENT_ACTIVITY_LIMIT,
) -> dict:
    """Trailing-window overview for a coordinator.

    Window is ``[today - window_days, today]``, both ends clamped to whole
    days. Submissions are grouped by the date of their ``timestamp``.
    """
    if isinstance(window_days, bool) or not isinstance(window_days, int):
        raise ValidationError.for_field("days", "Days must be an integer")
    if not 0 <= window_days <= MAX_WINDOW_DAYS:
        raise ValidationError.for_field("days", f"Days must be between 0 and {MAX_WINDOW_DAYS}")

    today = (now or datetime.now()).date()
    start, end = _day_window(today - timedelta(days=window_days), today)

    newest_first = _coordinator_runs(coordinator_id, start, end, newest_first=True)
    teams = list_teams(coordinator_id)
    leads = list_team_leads(coordinator_id)

    by_date: dict[str, list[Submission]] = {}
    for sub in reversed(newest_first):
        by_date.setdefault(sub.timestamp.date().isoformat(), []).append(sub)

    return {
        "summary": {
            "total_teams": len(teams),
            "total_team_leads": len(leads),
            "total_submissions": len(newest_first),
            "date_range": {**_fmt_range(start, end), "days": window_days},
        },
        "status_counts": compute_status_counts(newest_first),
        "submissions_by_date": [
            {
                "date": day_key,
                "count": len(subs),
                "submissions": [s.to_dict() for s in subs],
            }
            for day_key, subs in sorted(by_date.items())
        ],
        "recent_activity": [s.to_dict() for s in newest_first[:recent_limit]],
        "teams": [
            {
                "name": team,
                "leads_count": sum(1 for lead in leads if lead.team == team),
                "submissions_count": sum(1 for s in newest_first if s.team == team),
                "leads": [lead.to_brief() for lead in leads if lead.team == team],
            }
            for team in teams
        ],
    }


# ═════════════════════════════════════════════════════════════════════════════
# Period statistics
# ═════════════════════════════════════════════════════════════════════════════


def resolve_period(period: str | None) -> str:
    """Known period token, or the default for anything unrecognised."""
    if isinstance(period, str) and period.strip().lower() in PERIODS:
        return period.strip().lower()
    return DEFAULT_PERIOD


def get_period_stats(coordinator_id: int, period: str | None = DEFAULT_PERIOD, *, now: datetime | None = None) -> dict:
    """Outcome breakdown per team over a trailing period.

    Groups every section/subsection occurrence by ``(team, outcome)``
    (count + one test name per contributing submission, first-seen order),
    then by team. Runs sharing a name are listed once each. Teams are
    sorted by occurrence total, descending; ties by name.
    """
    period = resolve_period(period)
    today = (now or datetime.now()).date()
    start, end = _day_window(_period_start(today, period), today)

    submissions = _coordinator_runs(coordinator_id, start, end)

    # (team, outcome) → {"count", "submissions"}
    grouped: "OrderedDict[tuple[str, str], dict]" = OrderedDict()
    contributed: set[tuple[str, str, int]] = set()
    submissions_per_team: dict[str, int] = {}
    for sub in submissions:
        submissions_per_team[sub.team] = submissions_per_team.get(sub.team, 0) + 1
        for outcome, _name in iter_results(sub):
            bucket = grouped.setdefault((sub.team, outcome.value), {"count": 0, "submissions": []})
            bucket["count"] += 1
            if (sub.team, outcome.value, sub.id) not in contributed:
                contributed.add((sub.team, outcome.value, sub.id))
                bucket["submissions"].append(sub.test_name)

    by_team: dict[str, dict] = {}
    for (team, label), bucket in grouped.items():
        entry = by_team.setdefault(team, {
            "team": team,
            "total_occurrences": 0,
            "submission_count": submissions_per_team.get(team, 0),
            "status_breakdown": {
                lbl: {"count": 0, "submissions": []} for lbl in Outcome.labels()
            },
        })
        entry["status_breakdown"][label] = bucket
        entry["total_occurrences"] += bucket["count"]

    ordered = sorted(by_team.values(), key=lambda e: (-e["total_occurrences"], e["team"]))

    overall_counts = zero_counts()
    for entry in ordered:
        for label, bucket in entry["status_breakdown"].items():
            overall_counts[label] += bucket["count"]

    return {
        "period": period,
        "date_range": _fmt_range(start, end),
        "overall": {
            "total_submissions": len(submissions),
            "total_occurrences": sum(overall_counts.values()),
            "status_counts": overall_counts,
        },
        "by_team": ordered,
    }
