"""
Submission Blueprint — contributor CRUD on test runs.

Endpoints:
    POST   /api/v1/submissions                  — create (contributor)
    GET    /api/v1/submissions/mine             — own runs, paginated (contributor)
    GET    /api/v1/submissions/<id>             — one run (contributor or coordinator)
    PUT    /api/v1/submissions/<id>             — update own run (contributor)
    DELETE /api/v1/submissions/<id>             — delete own run (contributor)
"""

import logging

from flask import Blueprint, g, jsonify, request

from runboard.core.actors import ROLE_CONTRIBUTOR, ROLE_COORDINATOR
from runboard.middleware.role_required import require_role
from runboard.services import submission_service as svc
from runboard.utils.helpers import int_arg, json_body

logger = logging.getLogger(__name__)

submission_bp = Blueprint("submission", __name__, url_prefix="/api/v1/submissions")


@submission_bp.route("", methods=["POST"])
@require_role(ROLE_CONTRIBUTOR)
def create_submission():
    """Report a new run. Status is derived from the sections."""
    submission = svc.create_submission(g.actor, json_body())
    return jsonify({"message": "Submission created successfully", "submission": submission}), 201


@submission_bp.route("/mine", methods=["GET"])
@require_role(ROLE_CONTRIBUTOR)
def list_mine():
    result = svc.list_mine(
        g.actor,
        page=int_arg("page"),
        limit=int_arg("limit"),
        search=request.args.get("search") or None,
    )
    return jsonify(result), 200


@submission_bp.route("/<int:submission_id>", methods=["GET"])
@require_role(ROLE_CONTRIBUTOR, ROLE_COORDINATOR)
def get_submission(submission_id):
    return jsonify({"submission": svc.get_by_id(g.actor, submission_id)}), 200


@submission_bp.route("/<int:submission_id>", methods=["PUT"])
@require_role(ROLE_CONTRIBUTOR)
def update_submission(submission_id):
    submission = svc.update_submission(g.actor, submission_id, json_body())
    return jsonify({"message": "Submission updated successfully", "submission": submission}), 200


@submission_bp.route("/<int:submission_id>", methods=["DELETE"])
@require_role(ROLE_CONTRIBUTOR)
def delete_submission(submission_id):
    svc.delete_submission(g.actor, submission_id)
    return jsonify({"message": "Submission deleted successfully"}), 200
