"""
Auth Blueprint — the authenticated user's own profile.

Endpoints:
    GET /api/v1/auth/profile   — current user (+ coordinator for contributors)
    PUT /api/v1/auth/profile   — update name, email, and team (contributors)

Login and token issuance live with the identity provider.
"""

from flask import Blueprint, g, jsonify

from runboard.core.actors import ROLES
from runboard.middleware.role_required import require_role
from runboard.services import user_service
from runboard.utils.helpers import json_body

auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


@auth_bp.route("/profile", methods=["GET"])
@require_role(*ROLES)
def get_profile():
    return jsonify({"user": user_service.get_profile(g.actor)}), 200


@auth_bp.route("/profile", methods=["PUT"])
@require_role(*ROLES)
def update_profile():
    user = user_service.update_profile(g.actor, json_body())
    return jsonify({"message": "Profile updated successfully", "user": user}), 200
