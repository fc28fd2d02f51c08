"""
Owner-scoped query helpers.

Every get-by-id on a submission MUST go through ``get_scoped`` instead of
``db.session.get(Submission, pk)``. A direct ``get`` bypasses ownership:
a contributor could read another contributor's run, or a coordinator a run
reported to someone else.

Usage:
    # Contributor: only their own runs
    sub = get_scoped(Submission, submission_id, lead_id=actor.id)

    # Coordinator: runs reported to them
    sub = get_scoped(Submission, submission_id, manager_id=actor.id)

    # Reads that must surface persistence failures as RetrievalError
    rows = fetch_all(stmt, operation="list runs")

Scope field resolution:
    Each keyword argument maps directly to a column on the model. If the
    model lacks that column a ValueError is raised at call time, so the bug
    surfaces in tests rather than as an unscoped lookup in production.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from runboard.core.exceptions import NotFoundError, RetrievalError
from runboard.models import db

logger = logging.getLogger(__name__)


def get_scoped(
    model,
    pk: int,
    *,
    lead_id: int | None = None,
    manager_id: int | None = None,
):
    """Fetch a single entity by PK with a mandatory owner filter.

    Out-of-scope access is indistinguishable from a missing record: both
    raise NotFoundError → HTTP 404.

    Raises:
        ValueError: no scope given, or the scope column does not exist on the model.
        NotFoundError: entity missing OR owned by someone else.
        RetrievalError: the database call failed.
    """
    provided_scopes = {"lead_id": lead_id, "manager_id": manager_id}
    provided_scopes = {k: v for k, v in provided_scopes.items() if v is not None}

    if not provided_scopes:
        raise ValueError(
            f"{model.__name__} id={pk} requires at least one scope filter "
            "(lead_id or manager_id). Unscoped lookups are forbidden."
        )

    missing_fields = sorted(f for f in provided_scopes if not hasattr(model, f))
    if missing_fields:
        raise ValueError(
            f"{model.__name__} id={pk}: scope field(s) {missing_fields} "
            f"do not exist as columns on {model.__name__}. "
            "Refusing to perform an unscoped lookup."
        )

    stmt = select(model).where(model.id == pk)
    for field, value in provided_scopes.items():
        stmt = stmt.where(getattr(model, field) == value)

    try:
        result = db.session.execute(stmt).scalar_one_or_none()
    except SQLAlchemyError:
        logger.exception("get_scoped: %s id=%s lookup failed", model.__name__, pk)
        raise RetrievalError(f"load {model.__name__}") from None

    if result is None:
        logger.debug(
            "get_scoped: %s id=%s not found in scope %s",
            model.__name__,
            pk,
            provided_scopes,
        )
        raise NotFoundError(resource=model.__name__, resource_id=pk)

    return result


def fetch_all(stmt, *, operation: str) -> list:
    """Execute a SELECT returning ORM entities; wrap driver failures."""
    try:
        return list(db.session.execute(stmt).scalars().all())
    except SQLAlchemyError:
        logger.exception("Query failed while trying to %s", operation)
        raise RetrievalError(operation) from None


def fetch_scalar(stmt, *, operation: str):
    """Execute a SELECT returning one scalar (counts); wrap driver failures."""
    try:
        return db.session.execute(stmt).scalar_one()
    except SQLAlchemyError:
        logger.exception("Query failed while trying to %s", operation)
        raise RetrievalError(operation) from None


def commit_or_raise(*, operation: str) -> None:
    """Commit the session; roll back and raise RetrievalError on failure."""
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Commit failed while trying to %s", operation)
        raise RetrievalError(operation) from None
