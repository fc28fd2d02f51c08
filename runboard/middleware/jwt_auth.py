"""
JWT Auth Middleware — Parses JWT from Authorization header, sets g.actor.

Flow:
  1. No ``Authorization: Bearer`` header  →  g.actor = None (route decorators return 401)
  2. Token invalid / expired              →  g.actor = None, g.auth_error = reason
  3. Token valid, user exists             →  g.actor = Contributor | Coordinator

The user row is re-read on every request, so a contributor's current team
and coordinator are always those in the database, not those in the token.
"""

import logging

import jwt as pyjwt
from flask import g, request

from runboard.core.actors import actor_from_user
from runboard.services.jwt_service import decode_access_token, user_id_from_payload
from runboard.services.user_service import find_user_by_id

logger = logging.getLogger(__name__)

# Paths that skip JWT auth entirely
JWT_SKIP_PREFIXES = (
    "/api/v1/health",
)


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.actor = None
        g.auth_error = None

        path = request.path
        if not path.startswith("/api/v1/"):
            return
        for prefix in JWT_SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            g.auth_error = "No token provided"
            return

        token = auth_header[7:]  # Strip "Bearer "

        try:
            payload = decode_access_token(token)
            user_id = user_id_from_payload(payload)
        except pyjwt.ExpiredSignatureError:
            g.auth_error = "Token expired"
            return
        except pyjwt.InvalidTokenError as exc:
            logger.debug("Rejected bearer token on %s: %s", path, exc)
            g.auth_error = "Invalid token"
            return

        user = find_user_by_id(user_id)
        if user is None:
            g.auth_error = "User not found"
            return

        try:
            g.actor = actor_from_user(user)
        except ValueError:
            logger.warning("User id=%s has an unusable role %r", user.id, user.role)
            g.auth_error = "Invalid user role"
