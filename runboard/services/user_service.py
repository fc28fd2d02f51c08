"""
User Service — directory lookups, operator-side creation, self-service profile.

Tokens are issued elsewhere; this service only resolves the user a verified
token points at, and lets that user edit their own profile.
"""

import logging

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import select

from runboard.core.actors import ROLE_CONTRIBUTOR, ROLE_COORDINATOR, ROLES, Contributor
from runboard.core.exceptions import ConflictError, NotFoundError, ValidationError
from runboard.models import db
from runboard.models.auth import User
from runboard.services.helpers.scoped_queries import commit_or_raise
from runboard.services.validation import TEAM_MAX

logger = logging.getLogger(__name__)

NAME_MAX = 100
EMAIL_MAX = 200


def _normalize_email(email, field: str = "email") -> str:
    if not isinstance(email, str) or not email.strip():
        raise ValidationError.for_field(field, "Email is required")
    try:
        valid = validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError.for_field(field, f"Invalid email: {e}") from None
    normalized = valid.normalized.lower()
    if len(normalized) > EMAIL_MAX:
        raise ValidationError.for_field(field, f"Email must be at most {EMAIL_MAX} characters")
    return normalized


def _clean_text(value, field: str, label: str, max_len: int) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError.for_field(field, f"{label} is required")
    value = value.strip()
    if len(value) > max_len:
        raise ValidationError.for_field(field, f"{label} must be between 1 and {max_len} characters")
    return value


# ═══════════════════════════════════════════════════════════════
# Lookups
# ═══════════════════════════════════════════════════════════════
def find_user_by_id(user_id: int) -> User | None:
    return db.session.get(User, user_id)


def find_user_by_email(email: str) -> User | None:
    if not email:
        return None
    return db.session.execute(
        select(User).where(User.email == email.strip().lower())
    ).scalar_one_or_none()


# ═══════════════════════════════════════════════════════════════
# Operator path
# ═══════════════════════════════════════════════════════════════
def create_user(
    role: str,
    name: str,
    email: str,
    team: str = None,
    manager_email: str = None,
) -> User:
    """Create a contributor or coordinator.

    A contributor needs a team and the email of an existing coordinator.
    Coordinators take neither.
    """
    if role not in ROLES:
        raise ValidationError.for_field("role", f"Role must be one of: {', '.join(ROLES)}")
    name = _clean_text(name, "name", "Name", NAME_MAX)
    email = _normalize_email(email)

    if find_user_by_email(email) is not None:
        raise ConflictError(resource="User", field="email", value=email)

    manager_id = None
    if role == ROLE_CONTRIBUTOR:
        team = _clean_text(team, "team", "Team name", TEAM_MAX)
        manager = find_user_by_email(manager_email) if manager_email else None
        if manager is None or manager.role != ROLE_COORDINATOR:
            raise ValidationError.for_field("manager_email", "An existing coordinator email is required")
        manager_id = manager.id
    else:
        team = None

    user = User(role=role, name=name, email=email, team=team, manager_id=manager_id)
    db.session.add(user)
    commit_or_raise(operation="create user")
    logger.info("User created id=%s role=%s team=%s", user.id, role, team)
    return user


# ═══════════════════════════════════════════════════════════════
# Profile
# ═══════════════════════════════════════════════════════════════
def get_profile(actor) -> dict:
    user = find_user_by_id(actor.id)
    if user is None:
        raise NotFoundError(resource="User", resource_id=actor.id)
    return user.to_dict(include_manager=True)


def update_profile(actor, data: dict) -> dict:
    """Update ``name``, ``email`` and, for contributors only, ``team``.

    Renaming a team only changes the user row. Past submissions keep the
    label they were created with.
    """
    user = find_user_by_id(actor.id)
    if user is None:
        raise NotFoundError(resource="User", resource_id=actor.id)

    if "name" in data:
        user.name = _clean_text(data["name"], "name", "Name", NAME_MAX)
    if "email" in data:
        email = _normalize_email(data["email"])
        other = find_user_by_email(email)
        if other is not None and other.id != user.id:
            raise ConflictError(resource="User", field="email", value=email)
        user.email = email
    if "team" in data:
        if not isinstance(actor, Contributor):
            raise ValidationError.for_field("team", "Only contributors have a team")
        user.team = _clean_text(data["team"], "team", "Team name", TEAM_MAX)

    commit_or_raise(operation="update profile")
    logger.info("Profile updated user=%s fields=%s", user.id, sorted(data))
    return user.to_dict(include_manager=True)
