"""
Startup diagnostics — runs once when the Flask app starts.

Checks critical dependencies and logs a summary banner.
"""

import logging
import sys

from flask import Flask
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError

from webreview.models import db

logger = logging.getLogger(__name__)


def run_startup_diagnostics(app: Flask):
    """Run diagnostic checks during app startup."""
    if app.config.get("TESTING"):
        return

    issues: list[str] = []

    with app.app_context():
        py = f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"

        # ── Database connectivity ────────────────────────────────────
        db_status = "ok"
        db_uri = str(app.config.get("SQLALCHEMY_DATABASE_URI", ""))
        db_type = "PostgreSQL" if "postgresql" in db_uri else "SQLite" if "sqlite" in db_uri else "unknown"
        try:
            db.session.execute(db.text("SELECT 1"))
        except SQLAlchemyError as exc:
            db_status = "FAILED"
            issues.append(f"Database unreachable: {exc}")

        # ── Table count ──────────────────────────────────────────────
        try:
            table_count = str(len(sa_inspect(db.engine).get_table_names()))
            if table_count == "0":
                issues.append("No tables found — run 'flask db upgrade'")
        except SQLAlchemyError:
            table_count = "?"

        # ── Mail / rate limit storage ────────────────────────────────
        mail_mode = "SMTP" if app.config.get("MAIL_SERVER") else "log-only"
        limiter_storage = "redis" if app.config.get("REDIS_URL") else "memory"

        # ── Signing secret (validated earlier by create_app) ─────────
        secret_source = app.config.get("JWT_SECRET_SOURCE", "env")
        if secret_source == "generated":
            issues.append("JWT_SECRET_KEY not set — tokens will not survive a restart")

        banner = f"""
╔══════════════════════════════════════════════════════════════╗
║  WebReview — Startup Diagnostics                             ║
╠══════════════════════════════════════════════════════════════╣
║  Python      : {py:<46s}║
║  Environment : {app.config.get('ENV_NAME', 'development'):<46s}║
║  Debug       : {str(app.debug):<46s}║
║  Database    : {f'{db_type} ({db_status})':<46s}║
║  Tables      : {table_count:<46s}║
║  Mail        : {mail_mode:<46s}║
║  Rate limits : {limiter_storage:<46s}║
║  JWT secret  : {secret_source:<46s}║
╚══════════════════════════════════════════════════════════════╝"""
        logger.info(banner)

        if issues:
            logger.warning("Startup issues detected:")
            for issue in issues:
                logger.warning("  ⚠ %s", issue)
        else:
            logger.info("✅ All startup checks passed")
