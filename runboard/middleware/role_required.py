"""
Role Decorators — route protection by actor role.

Usage:
    @bp.route("/api/v1/submissions", methods=["POST"])
    @require_role(ROLE_CONTRIBUTOR)
    def create_submission():
        ...

    @bp.route("/api/v1/submissions/<int:submission_id>", methods=["GET"])
    @require_role(ROLE_CONTRIBUTOR, ROLE_COORDINATOR)
    def get_submission(submission_id):
        ...

No authenticated actor → 401. Wrong role → AuthorizationError (403 via the
app-wide handler).
"""

import functools
import logging

from flask import g

from runboard.core.exceptions import AuthorizationError
from runboard.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def require_role(*roles: str):
    """
    Decorator: require the JWT actor to hold one of ``roles``.

    Args:
        roles: Role names, e.g. "contributor", "coordinator"
    """
    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            actor = getattr(g, "actor", None)
            if actor is None:
                reason = getattr(g, "auth_error", None) or "Authentication required"
                return api_error(E.UNAUTHORIZED, reason)

            if actor.role not in roles:
                logger.warning(
                    "User %d denied: role '%s' not in %s on %s",
                    actor.id, actor.role, roles, f.__name__,
                )
                raise AuthorizationError(roles, actor.role)

            return f(*args, **kwargs)
        return decorated
    return decorator
