"""
WebReview
Flask Application Factory.

Usage:
    from webreview import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask, abort, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from webreview.blueprints import register_blueprints
from webreview.config import config
from webreview.core.exceptions import ConflictError, WebReviewError
from webreview.middleware.diagnostics import run_startup_diagnostics
from webreview.middleware.jwt_auth import init_jwt_middleware
from webreview.middleware.logging_config import configure_logging
from webreview.middleware.rate_limiter import init_rate_limits
from webreview.middleware.security_headers import init_security_headers
from webreview.middleware.timing import init_request_timing
from webreview.models import db
from webreview.services.token_service import check_signing_secret
from webreview.utils.errors import E, api_error, code_for_status

logger = logging.getLogger(__name__)


# ── SQLite FK enforcement (global engine event) ─────────────────────────
@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement (ON DELETE CASCADE) for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit — apply per-blueprint
    storage_uri=os.getenv("REDIS_URL") or "memory://",
)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.

    Raises:
        RuntimeError: the token signing secret is missing or too short, or a
            production setting is absent.  The app refuses to start rather
            than issue forgeable tokens.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Fail closed on a bad signing secret ──────────────────────────────
    check_signing_secret(app.config.get("JWT_SECRET_KEY"))

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Middleware ───────────────────────────────────────────────────────
    init_security_headers(app)
    init_request_timing(app)
    init_jwt_middleware(app)

    # ── Request guards (input length + Content-Type) ─────────────────────
    @app.before_request
    def _guard_request():
        max_len = app.config.get("MAX_CONTENT_LENGTH")
        if max_len and request.content_length and request.content_length > max_len:
            abort(413, description="Request body too large")
        if request.method in ("POST", "PUT", "PATCH") and request.path.startswith("/api/"):
            if request.content_length and not request.is_json:
                abort(415, description="Content-Type must be application/json")
        return None

    # ── Import all models so Alembic can detect them ─────────────────────
    from webreview.models import auth as _auth_models        # noqa: F401
    from webreview.models import project as _project_models  # noqa: F401

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    with app.app_context():
        try:
            db.create_all()
        except SQLAlchemyError as e:
            app.logger.warning("db.create_all() failed: %s", e)

    # ── Blueprints ───────────────────────────────────────────────────────
    register_blueprints(app)

    # ── Error handlers ───────────────────────────────────────────────────
    _register_error_handlers(app)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("create-admin")
    @click.argument("email")
    @click.argument("name")
    @click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
    @click.option("--org", "organization_id", default=None,
                  help="Organization id (defaults to DEFAULT_ORGANIZATION_ID).")
    def create_admin_cmd(email, name, password, organization_id):
        """Create the first admin of an organization (registration is invite-only)."""
        from webreview.services.user_service import create_admin

        organization_id = organization_id or app.config["DEFAULT_ORGANIZATION_ID"]
        try:
            user = create_admin(
                email=email, name=name, password=password, organization_id=organization_id,
            )
        except WebReviewError as exc:
            raise click.ClickException(exc.message) from exc
        click.echo(f"Created admin {user.email} ({user.id}) in organization {organization_id}")

    # ── Startup diagnostics ──────────────────────────────────────────────
    run_startup_diagnostics(app)

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app


def _register_error_handlers(app):
    """Render every error as ``{"error", "code", "details"?}``."""

    @app.errorhandler(WebReviewError)
    def handle_domain_error(exc):
        db.session.rollback()
        code = E.CONFLICT_DUPLICATE if isinstance(exc, ConflictError) else code_for_status(exc.status_code)
        return api_error(code, exc.message, status=exc.status_code, details=exc.details or None)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc):
        messages = {
            404: "Not found",
            405: "Method not allowed",
            429: "Too many requests",
        }
        message = messages.get(exc.code) or exc.description or exc.name
        return api_error(code_for_status(exc.code), message, status=exc.code)

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc):
        db.session.rollback()
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return api_error(E.INTERNAL, "Internal server error", status=500)
