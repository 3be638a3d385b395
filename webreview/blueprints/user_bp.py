"""
User Blueprint — team listing, invitations and profile/role updates.

  POST  /api/users/invite        — invite a client (staff) or developer (admin)
  GET   /api/users               — all users of the organization (staff)
  GET   /api/users/clients       — active clients, for assignment pickers (staff)
  GET   /api/users/invitations   — pending invitations (staff)
  PATCH /api/users/<id>          — name (self/admin), role and isActive (admin)
"""

from flask import Blueprint, g, jsonify

from webreview.middleware.permission_required import require_auth, require_role
from webreview.models.auth import ROLE_DEVELOPER
from webreview.services import invitation_service, user_service
from webreview.utils.helpers import json_body

user_bp = Blueprint("users", __name__, url_prefix="/api/users")


@user_bp.route("/invite", methods=["POST"])
@require_role(ROLE_DEVELOPER, message="Only developers can invite users")
def invite():
    """
    Body: { "email", "role"?, "projectIds"? }

    The invitation is saved even when the email cannot be delivered;
    ``emailSent`` tells the caller whether to share the link another way.
    """
    data = json_body()
    invitation, email_sent = invitation_service.create_invitation(
        g.current_user,
        data.get("email"),
        role=data.get("role"),
        project_ids=data.get("projectIds"),
    )
    return jsonify({
        "invitation": {
            "id": invitation.id,
            "email": invitation.email,
            "role": invitation.role,
            "expiresAt": invitation.to_dict()["expiresAt"],
        },
        "emailSent": email_sent,
    }), 201


@user_bp.route("", methods=["GET"])
@require_role(ROLE_DEVELOPER, message="Only developers can view users")
def list_users():
    users = user_service.list_users(g.current_user.organization_id)
    return jsonify({"users": [u.to_dict() for u in users]}), 200


@user_bp.route("/clients", methods=["GET"])
@require_role(ROLE_DEVELOPER, message="Only developers can view clients")
def list_clients():
    clients = user_service.list_clients(g.current_user.organization_id)
    return jsonify({"clients": [c.to_dict() for c in clients]}), 200


@user_bp.route("/invitations", methods=["GET"])
@require_role(ROLE_DEVELOPER, message="Only developers can view invitations")
def list_invitations():
    invitations = invitation_service.list_pending_invitations(g.current_user.organization_id)
    return jsonify({"invitations": [i.to_dict() for i in invitations]}), 200


@user_bp.route("/<user_id>", methods=["PATCH"])
@require_auth
def update_user(user_id):
    """Body: { "name"?, "role"?, "isActive"? }"""
    user = user_service.update_user(g.current_user, user_id, json_body())
    return jsonify({"user": user.to_dict()}), 200
