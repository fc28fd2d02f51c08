"""
Coordinator Blueprint — read-only reports over runs reported to the caller.

Endpoints:
    GET /api/v1/coordinator/runs?date=YYYY-MM-DD&team=   — runs of one day
    GET /api/v1/coordinator/teams                        — teams and their leads
    GET /api/v1/coordinator/dashboard?days=N             — trailing-window summary
    GET /api/v1/coordinator/stats?period=week|month|quarter|year
"""

from flask import Blueprint, current_app, g, jsonify, request

from runboard.core.actors import ROLE_COORDINATOR
from runboard.middleware.role_required import require_role
from runboard.services import ownership, report_engine
from runboard.utils.helpers import int_arg

coordinator_bp = Blueprint("coordinator", __name__, url_prefix="/api/v1/coordinator")


@coordinator_bp.route("/runs", methods=["GET"])
@require_role(ROLE_COORDINATOR)
def runs_for_date():
    result = report_engine.get_runs_for_date(
        g.actor.id,
        request.args.get("date"),
        team=request.args.get("team"),
    )
    return jsonify(result), 200


@coordinator_bp.route("/teams", methods=["GET"])
@require_role(ROLE_COORDINATOR)
def teams():
    return jsonify(ownership.list_team_rosters(g.actor.id)), 200


@coordinator_bp.route("/dashboard", methods=["GET"])
@require_role(ROLE_COORDINATOR)
def dashboard():
    cfg = current_app.config
    days = int_arg("days", default=cfg.get("DASHBOARD_DEFAULT_DAYS", report_engine.DEFAULT_WINDOW_DAYS))
    result = report_engine.get_dashboard_summary(
        g.actor.id,
        days,
        recent_limit=cfg.get("RECENT_ACTIVITY_LIMIT", report_engine.RECENT_ACTIVITY_LIMIT),
    )
    return jsonify(result), 200


@coordinator_bp.route("/stats", methods=["GET"])
@require_role(ROLE_COORDINATOR)
def stats():
    return jsonify(report_engine.get_period_stats(g.actor.id, request.args.get("period"))), 200
