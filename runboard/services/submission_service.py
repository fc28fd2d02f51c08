"""
Submission Service — contributor writes and scoped reads of test runs.

Business rules:
    - Only contributors create, update or delete submissions, and only their own.
    - ``status`` is never taken from the caller. It is derived from the
      sections by ``Submission.replace_sections`` on every write.
    - ``manager_id`` is a snapshot of the contributor's coordinator at
      creation time; ``team`` defaults to the contributor's current team.
      Neither follows later changes to the user record.
    - Reads are owner-scoped (see ``ownership.resolve_scope``); a run outside
      the actor's scope is reported exactly like a missing run.
"""

import logging
import math

from sqlalchemy import func, select

from runboard.core.actors import ROLE_CONTRIBUTOR, Contributor
from runboard.core.exceptions import AuthorizationError, NotFoundError
from runboard.models import db
from runboard.models.auth import User
from runboard.models.submission import Submission
from runboard.services.helpers.scoped_queries import (
    commit_or_raise,
    fetch_all,
    fetch_scalar,
    get_scoped,
)
from runboard.services.ownership import resolve_scope
from runboard.services.validation import (
    parse_pagination,
    parse_submission_create,
    parse_submission_update,
)

logger = logging.getLogger(__name__)


def _require_contributor(actor) -> Contributor:
    if not isinstance(actor, Contributor):
        raise AuthorizationError((ROLE_CONTRIBUTOR,), getattr(actor, "role", None))
    return actor


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def create_submission(actor, data: dict) -> dict:
    """Persist a new run for the contributor and return it serialised.

    Raises:
        AuthorizationError: actor is not a contributor.
        ValidationError: payload is malformed (including an empty section list).
        NotFoundError: the contributor's user row no longer exists.
    """
    actor = _require_contributor(actor)
    if "status" in data:
        logger.debug("Ignoring client-supplied status=%r for lead=%s", data.get("status"), actor.id)
    parsed = parse_submission_create(data)

    lead = db.session.get(User, actor.id)
    if lead is None or lead.manager_id is None:
        raise NotFoundError(resource="User", resource_id=actor.id)

    submission = Submission(
        team=parsed.team or lead.team,
        lead_id=lead.id,
        manager_id=lead.manager_id,
        test_name=parsed.test_name,
    )
    if parsed.timestamp is not None:
        submission.timestamp = parsed.timestamp
    submission.replace_sections(parsed.sections)

    db.session.add(submission)
    commit_or_raise(operation="create submission")
    logger.info(
        "Submission created id=%s lead=%s team=%s status=%s",
        submission.id, lead.id, submission.team, submission.status.value,
    )
    return submission.to_dict()


def update_submission(actor, submission_id: int, data: dict) -> dict:
    """Apply a partial update to one of the contributor's own runs.

    Replacing ``sections`` recomputes the status. ``lead_id``,
    ``manager_id`` and ``status`` are not writable.
    """
    actor = _require_contributor(actor)
    updates = parse_submission_update(data)
    submission = get_scoped(Submission, submission_id, lead_id=actor.id)

    if "team" in updates:
        submission.team = updates["team"]
    if "test_name" in updates:
        submission.test_name = updates["test_name"]
    if "timestamp" in updates:
        submission.timestamp = updates["timestamp"]
    if "sections" in updates:
        submission.replace_sections(updates["sections"])

    commit_or_raise(operation="update submission")
    logger.info(
        "Submission updated id=%s fields=%s status=%s",
        submission.id, sorted(updates), submission.status.value,
    )
    return submission.to_dict()


def delete_submission(actor, submission_id: int) -> None:
    """Delete one of the contributor's own runs."""
    actor = _require_contributor(actor)
    submission = get_scoped(Submission, submission_id, lead_id=actor.id)
    db.session.delete(submission)
    commit_or_raise(operation="delete submission")
    logger.info("Submission deleted id=%s lead=%s", submission_id, actor.id)


def list_mine(actor, page=None, limit=None, search=None) -> dict:
    """Paginated list of the contributor's own runs, newest first.

    ``search`` is a case-insensitive substring match on the test name.
    """
    actor = _require_contributor(actor)
    page, limit, search = parse_pagination(page, limit, search)

    scope = resolve_scope(actor)
    base = scope.apply(select(Submission), Submission)
    count_stmt = scope.apply(select(func.count(Submission.id)), Submission)
    if search:
        pattern = f"%{_escape_like(search)}%"
        base = base.where(Submission.test_name.ilike(pattern, escape="\\"))
        count_stmt = count_stmt.where(Submission.test_name.ilike(pattern, escape="\\"))

    total = fetch_scalar(count_stmt, operation="count submissions")
    items = fetch_all(
        base.order_by(Submission.timestamp.desc(), Submission.id.desc())
        .offset((page - 1) * limit)
        .limit(limit),
        operation="list submissions",
    )

    total_pages = math.ceil(total / limit) if total else 0
    return {
        "submissions": [s.to_dict() for s in items],
        "pagination": {
            "current_page": page,
            "total_pages": total_pages,
            "total_count": total,
            "has_next_page": page < total_pages,
            "has_prev_page": page > 1,
            "limit": limit,
        },
    }


def get_by_id(actor, submission_id: int) -> dict:
    """One run, visible to its lead or to the coordinator it was reported to."""
    scope = resolve_scope(actor)
    submission = get_scoped(Submission, submission_id, **scope.as_kwargs())
    return submission.to_dict()
