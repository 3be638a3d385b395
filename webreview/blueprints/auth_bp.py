"""
Auth Blueprint — bearer-token authentication endpoints.

  POST /api/auth/login            — Email + password → {user, token}
  POST /api/auth/register         — Redeem invitation → {user, token}
  GET  /api/auth/me               — Current user profile
  POST /api/auth/refresh          — Fresh token for a still-active user
  POST /api/auth/validate-invite  — Look up an invitation for the signup page

Registration is invitation-only.  Tokens are stateless; logout is the
client discarding its token.
"""

from flask import Blueprint, g, jsonify

from webreview.middleware.permission_required import require_token
from webreview.models.base import isoformat
from webreview.services import invitation_service, user_service
from webreview.services.token_service import issue_token
from webreview.utils.errors import E, api_error
from webreview.utils.helpers import json_body

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


# ═══════════════════════════════════════════════════════════════
# POST /api/auth/login
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/login", methods=["POST"])
def login():
    """
    Authenticate with email + password.

    Body: { "email": "...", "password": "..." }
    """
    data = json_body()
    email = data.get("email")
    password = data.get("password")

    if not email or not password or not isinstance(email, str) or not isinstance(password, str):
        return api_error(E.VALIDATION_REQUIRED, "Email and password are required")

    user = user_service.authenticate_user(email, password)
    return jsonify({"user": user.to_dict(), "token": issue_token(user)}), 200


# ═══════════════════════════════════════════════════════════════
# POST /api/auth/register  (invite-only)
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/register", methods=["POST"])
def register():
    """
    Redeem an invitation and create the account.

    Body: { "token": "...", "name": "...", "password": "..." }
    """
    data = json_body()
    user = invitation_service.redeem_invitation(
        data.get("token"), data.get("name"), data.get("password"),
    )
    return jsonify({"user": user.to_dict(), "token": issue_token(user)}), 201


# ═══════════════════════════════════════════════════════════════
# GET /api/auth/me
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/me", methods=["GET"])
@require_token
def me():
    user = user_service.get_user_by_id(g.jwt_user_id)
    if not user or user.organization_id != g.jwt_organization_id:
        return api_error(E.NOT_FOUND, "User not found")
    if not user.is_active:
        return api_error(E.AUTH_REQUIRED, "Account is disabled")
    return jsonify({"user": user.to_dict()}), 200


# ═══════════════════════════════════════════════════════════════
# POST /api/auth/refresh
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/refresh", methods=["POST"])
@require_token
def refresh():
    """Re-issue a token with the user's current role and name."""
    user = user_service.get_user_by_id(g.jwt_user_id)
    if not user or not user.is_active or user.organization_id != g.jwt_organization_id:
        return api_error(E.AUTH_REQUIRED, "Invalid user")
    return jsonify({"user": user.to_dict(), "token": issue_token(user)}), 200


# ═══════════════════════════════════════════════════════════════
# POST /api/auth/validate-invite
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/validate-invite", methods=["POST"])
def validate_invite():
    """
    Read-only invitation lookup; calling it never consumes the token.

    Body: { "token": "..." }
    """
    invitation = invitation_service.validate_invitation(json_body().get("token"))
    return jsonify({
        "valid": True,
        "email": invitation.email,
        "role": invitation.role,
        "invitedBy": invitation.invited_by_name,
        "expiresAt": isoformat(invitation.expires_at),
    }), 200
