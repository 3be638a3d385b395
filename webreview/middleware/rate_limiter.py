"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter.  The Limiter instance
is created in webreview/__init__.py with no default limits; this module
applies granular limits per route category.

Usage:
    from webreview.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

AUTH_LIMIT = "10/minute"
WRITE_LIMIT = "60/minute"
READ_LIMIT = "200/minute"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Auth endpoints:   10/minute  (login / register / invite-token guessing)
        - Users/invites:    60/minute
        - Projects, feedback, stats: 200/minute
        - Health check:     exempt

    Rate limiting is disabled in testing mode.
    """
    if app.config.get("TESTING") or not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled")
        return

    bp = app.blueprints.get("auth")
    if bp:
        limiter.limit(AUTH_LIMIT)(bp)

    bp = app.blueprints.get("users")
    if bp:
        limiter.limit(WRITE_LIMIT)(bp)

    for bp_name in ("projects", "feedback", "dashboard"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(READ_LIMIT)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured — auth: %s, users: %s, read: %s",
        AUTH_LIMIT, WRITE_LIMIT, READ_LIMIT,
    )
