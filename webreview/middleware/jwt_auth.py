"""
JWT Auth Middleware — parses the bearer token, sets g.jwt_*.

Runs before every /api/ request.  It never rejects a request itself: a
missing or invalid token just leaves g.jwt_claims as None, and the
require_auth decorator on the route decides.

    g.jwt_claims           verified claims dict, or None
    g.jwt_user_id          claims["sub"]
    g.jwt_organization_id  claims["organizationId"]
"""

import logging

from flask import g, request

from webreview.models import db
from webreview.models.auth import User
from webreview.services.token_service import extract_bearer_token, verify_token

logger = logging.getLogger(__name__)

# Paths that never carry a token
JWT_SKIP_PREFIXES = (
    "/api/auth/login",
    "/api/auth/register",
    "/api/auth/validate-invite",
    "/api/health",
)


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.jwt_claims = None
        g.jwt_user_id = None
        g.jwt_organization_id = None
        # g outlives a request when an outer app context is already pushed
        g.pop("current_user", None)

        path = request.path
        if not path.startswith("/api/"):
            return
        for prefix in JWT_SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        token = extract_bearer_token(request.headers)
        if not token:
            return

        claims = verify_token(token)
        if claims is None:
            return

        g.jwt_claims = claims
        g.jwt_user_id = claims.get("sub")
        g.jwt_organization_id = claims.get("organizationId")


def get_current_user() -> User | None:
    """
    The active User behind the request's token, or None.

    The user is re-read from the database, so deactivation and role changes
    apply to tokens issued before them.
    """
    if "current_user" in g:
        return g.current_user

    user = None
    user_id = getattr(g, "jwt_user_id", None)
    if user_id:
        user = db.session.get(User, user_id)
        if user is not None and (
            not user.is_active or user.organization_id != g.jwt_organization_id
        ):
            logger.info("Token for user %s no longer valid (inactive or moved)", user_id)
            user = None
    g.current_user = user
    return user
