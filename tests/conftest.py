"""
Shared pytest fixtures for the Runboard test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB reset (autouse)
    - client: Flask test client (function-scoped)
    - coordinator / contributor / other_coordinator / other_contributor: users
    - make_user: factory for extra users
    - auth_headers: Bearer headers for a user, token minted with PyJWT
    - make_submission: create a run through the submission service
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from runboard import create_app
from runboard.core.actors import ROLE_CONTRIBUTOR, ROLE_COORDINATOR, actor_from_user
from runboard.models import db as _db
from runboard.models.auth import User
from runboard.services import submission_service


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _set_foreign_keys(False)
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables.

    The in-memory engine shares one connection, so FK enforcement is switched
    off around the drop (contributors RESTRICT-reference their coordinator)
    and back on for the next test.
    """
    with app.app_context():
        yield
        _db.session.rollback()
        _set_foreign_keys(False)
        _db.drop_all()
        _db.create_all()
        _set_foreign_keys(True)


def _set_foreign_keys(enabled):
    # PRAGMA foreign_keys is a no-op inside a transaction; run it on a fresh one
    with _db.engine.connect() as conn:
        conn.exec_driver_sql(f"PRAGMA foreign_keys={'ON' if enabled else 'OFF'}")
        conn.commit()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Users ────────────────────────────────────────────────────────────────


@pytest.fixture()
def make_user():
    """Insert a user row directly. Contributors need ``team`` and ``manager``."""

    def _make(role, name, email, team=None, manager=None):
        user = User(
            role=role,
            name=name,
            email=email,
            team=team if role == ROLE_CONTRIBUTOR else None,
            manager_id=manager.id if manager is not None else None,
        )
        _db.session.add(user)
        _db.session.commit()
        return user

    return _make


@pytest.fixture()
def coordinator(make_user):
    return make_user(ROLE_COORDINATOR, "Maya Manager", "maya@acme.io")


@pytest.fixture()
def other_coordinator(make_user):
    return make_user(ROLE_COORDINATOR, "Omar Other", "omar@acme.io")


@pytest.fixture()
def contributor(make_user, coordinator):
    return make_user(ROLE_CONTRIBUTOR, "Lena Lead", "lena@acme.io",
                     team="Payments", manager=coordinator)


@pytest.fixture()
def other_contributor(make_user, coordinator):
    return make_user(ROLE_CONTRIBUTOR, "Theo Tester", "theo@acme.io",
                     team="Search", manager=coordinator)


@pytest.fixture()
def actor_of():
    """Map a user row to its Contributor / Coordinator actor."""
    return actor_from_user


# ── Tokens ───────────────────────────────────────────────────────────────


def mint_token(app, user_id, *, expires_in=3600, **overrides):
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iss": app.config["JWT_ISSUER"],
        "aud": app.config["JWT_AUDIENCE"],
        "iat": now,
        "exp": now + timedelta(seconds=expires_in),
    }
    payload.update(overrides)
    payload = {k: v for k, v in payload.items() if v is not None}
    return jwt.encode(payload, app.config["JWT_SECRET_KEY"], algorithm=app.config["JWT_ALGORITHM"])


@pytest.fixture()
def auth_headers(app):
    def _headers(user, **token_kwargs):
        return {"Authorization": f"Bearer {mint_token(app, user.id, **token_kwargs)}"}

    return _headers


# ── Submissions ──────────────────────────────────────────────────────────


def _section(name, result, *subs):
    """Payload for one section; ``subs`` are ``(name, result)`` pairs."""
    return {
        "name": name,
        "result": result,
        "subsections": [{"name": n, "result": r} for n, r in subs],
    }


@pytest.fixture()
def make_submission():
    """Create a run for ``user`` through the service layer and return its dict."""

    def _make(user, test_name="Checkout smoke", sections=None, timestamp=None, **extra):
        payload = {
            "test_name": test_name,
            "sections": sections or [_section("Login", "passed")],
            **extra,
        }
        if timestamp is not None:
            payload["timestamp"] = timestamp.isoformat() if isinstance(timestamp, datetime) else timestamp
        return submission_service.create_submission(actor_from_user(user), payload)

    return _make
