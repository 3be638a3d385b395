"""
Auth Decorators — route protection on top of the JWT middleware.

Usage:
    @bp.route("/projects", methods=["GET"])
    @require_auth
    def list_projects():
        user = g.current_user
        ...

    @bp.route("/users", methods=["GET"])
    @require_role("developer", message="Only developers can view users")
    def list_users():
        ...

require_auth answers 401 when the token is missing, invalid, expired, or
belongs to a user who has since been deactivated.  require_role implies
require_auth and answers 403 when the role check fails (admin always
passes).  Finer-grained ownership rules live in services.policy.
"""

import functools
import logging

from flask import g

from webreview.middleware.jwt_auth import get_current_user
from webreview.services.policy import has_role
from webreview.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def require_auth(f):
    """Decorator: require an authenticated, active user (sets g.current_user)."""
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        if get_current_user() is None:
            return api_error(E.AUTH_REQUIRED, "Authentication required")
        return f(*args, **kwargs)
    return decorated


def require_role(*roles: str, message: str = "Insufficient permissions"):
    """
    Decorator: require the authenticated user to hold one of *roles*.

    Args:
        roles: Accepted role names; admin is implied.
        message: 403 error text shown to the caller.
    """
    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            user = get_current_user()
            if user is None:
                return api_error(E.AUTH_REQUIRED, "Authentication required")

            if not has_role(user, *roles):
                logger.warning(
                    "User %s (%s) denied: requires %s on %s",
                    user.id, user.role, roles, f.__name__,
                    extra={"event_type": "access_denied", "user_id": user.id},
                )
                return api_error(E.FORBIDDEN, message)

            return f(*args, **kwargs)
        return decorated
    return decorator


def require_token(f):
    """Decorator: require a verified token only; the route loads the user itself."""
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        if not getattr(g, "jwt_claims", None):
            return api_error(E.AUTH_REQUIRED, "Authentication required")
        return f(*args, **kwargs)
    return decorated
