"""
Runboard — role-based test-run reporting service.
Flask Application Factory.

Usage:
    from runboard import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event
from werkzeug.exceptions import HTTPException

from runboard.config import config
from runboard.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    RetrievalError,
    ValidationError,
)
from runboard.middleware.jwt_auth import init_jwt_middleware
from runboard.middleware.logging_config import configure_logging
from runboard.middleware.rate_limiter import init_rate_limits
from runboard.middleware.security_headers import init_security_headers
from runboard.middleware.timing import init_request_timing
from runboard.models import db
from runboard.utils.errors import E, api_error

logger = logging.getLogger(__name__)


# ── SQLite FK enforcement (global engine event) ─────────────────────────
@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit, applied per blueprint
    storage_uri=os.getenv("REDIS_URL") or "memory://",  # Redis in production, memory for dev
)


def _register_error_handlers(app):
    """Map service exceptions to the standard error body."""

    @app.errorhandler(ValidationError)
    def _validation(error: ValidationError):
        return api_error(E.VALIDATION_INVALID, str(error), details=error.details)

    @app.errorhandler(NotFoundError)
    def _not_found(error: NotFoundError):
        # resource_id stays in the logs only
        logger.debug("Not found: %s", error)
        return api_error(E.NOT_FOUND, f"{error.resource} not found")

    @app.errorhandler(AuthorizationError)
    def _forbidden(error: AuthorizationError):
        return api_error(
            E.FORBIDDEN, str(error),
            details={"required_roles": list(error.required_roles), "current_role": error.actual_role},
        )

    @app.errorhandler(ConflictError)
    def _conflict(error: ConflictError):
        return api_error(E.CONFLICT_DUPLICATE, f"{error.resource} with this {error.field} already exists")

    @app.errorhandler(RetrievalError)
    def _retrieval(error: RetrievalError):
        return api_error(E.DATABASE, str(error))

    @app.errorhandler(HTTPException)
    def _http(error: HTTPException):
        if request.path.startswith("/api/"):
            return {"error": error.description or error.name, "code": f"ERR_HTTP_{error.code}"}, error.code
        return error

    @app.errorhandler(Exception)
    def _unexpected(error: Exception):
        logger.exception("Unexpected error endpoint=%s", request.endpoint)
        return api_error(E.INTERNAL, "Internal server error")


def _register_cli(app):

    @app.cli.command("create-user")
    @click.option("--role", type=click.Choice(["contributor", "coordinator"]), required=True)
    @click.option("--name", required=True)
    @click.option("--email", required=True)
    @click.option("--team", default=None, help="Required for contributors")
    @click.option("--manager-email", default=None, help="Coordinator email, required for contributors")
    def create_user_cmd(role, name, email, team, manager_email):
        """Create a contributor or coordinator account."""
        from runboard.services.user_service import create_user

        try:
            user = create_user(role, name, email, team=team, manager_email=manager_email)
        except ValidationError as exc:
            messages = "; ".join(d["message"] for d in exc.details) or str(exc)
            raise click.ClickException(messages) from None
        except ConflictError as exc:
            raise click.ClickException(str(exc)) from None
        click.echo(f"Created {user.role} id={user.id} email={user.email}")


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    # Instantiated so ProductionConfig can refuse to start without its env vars
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Security headers ─────────────────────────────────────────────────
    init_security_headers(app)

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    # ── JWT auth middleware (sets g.actor) ───────────────────────────────
    init_jwt_middleware(app)

    # ── Request guards (Content-Type) ────────────────────────────────────
    @app.before_request
    def _guard_request():
        from flask import abort
        if request.method in ("POST", "PUT", "PATCH") and request.path.startswith("/api/"):
            ct = request.content_type or ""
            if request.data and "json" not in ct:
                abort(415, description="Content-Type must be application/json")

    # ── Import all models so Alembic can detect them ─────────────────────
    from runboard.models import auth as _auth_models              # noqa: F401
    from runboard.models import submission as _submission_models  # noqa: F401

    # ── Blueprints ───────────────────────────────────────────────────────
    from runboard.blueprints import register_blueprints
    register_blueprints(app)

    _register_error_handlers(app)
    _register_cli(app)

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    logger.debug("Application created with config=%s", config_name)
    return app
