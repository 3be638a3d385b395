"""
Authorization Policy — role hierarchy, visibility and field-level update rules.

Role hierarchy:
    admin      satisfies every role check
    developer  staff role: sees and edits everything in its organization
    client     sees only projects it is assigned to; may only approve them

Every endpoint routes its access decision through this module.  The
functions either return a decision (bool) or the exact set of updates an
actor may apply, raising AuthorizationError / ValidationError on violation.
Disallowed fields are rejected, never silently dropped.
"""

from __future__ import annotations

import logging

from webreview.core.exceptions import AuthorizationError, ValidationError
from webreview.models.auth import INVITABLE_ROLES, ROLE_ADMIN, ROLE_DEVELOPER, USER_ROLES
from webreview.models.project import STATUS_APPROVED

logger = logging.getLogger(__name__)


def has_role(user, *roles) -> bool:
    """True iff *user* is an admin or holds one of *roles*.

    Accepts roles as varargs or as a single list/tuple/set.
    """
    if user is None or not getattr(user, "role", None):
        return False
    if len(roles) == 1 and isinstance(roles[0], (list, tuple, set, frozenset)):
        roles = tuple(roles[0])
    if user.role == ROLE_ADMIN:
        return True
    return user.role in roles


def is_staff(user) -> bool:
    """Developers and admins."""
    return has_role(user, ROLE_DEVELOPER)


def is_admin(user) -> bool:
    return user is not None and user.role == ROLE_ADMIN


# ═══════════════════════════════════════════════════════════════
# Visibility
# ═══════════════════════════════════════════════════════════════
def can_view_project(user, project) -> bool:
    if user is None or project is None:
        return False
    if project.organization_id != user.organization_id:
        return False
    if is_staff(user):
        return True
    return project.is_assigned_client(user.id)


def require_project_access(user, project) -> None:
    if not can_view_project(user, project):
        logger.warning(
            "User %s denied access to project %s", user.id, project.id,
            extra={"event_type": "access_denied", "user_id": user.id},
        )
        raise AuthorizationError("Access denied to this project")


# ═══════════════════════════════════════════════════════════════
# Project updates
# ═══════════════════════════════════════════════════════════════
_REQUIRED_TEXT_FIELDS = ("name", "client", "url")
_OPTIONAL_TEXT_FIELDS = ("description", "thumbnail")


def check_project_update(user, project, body: dict) -> dict:
    """
    Return the updates *user* may apply to *project*, keyed by model attribute.

    Staff may change every editable field.  An assigned client may send
    exactly ``{"status": "approved"}``; anything else is a 403.  Value
    validation (URL format, status edges) is left to the project service.
    """
    if is_staff(user):
        updates = {}
        for field in _REQUIRED_TEXT_FIELDS:
            if body.get(field):
                updates[field] = body[field]
        for field in _OPTIONAL_TEXT_FIELDS:
            if body.get(field) is not None:
                updates[field] = body[field]
        if body.get("status"):
            updates["status"] = body["status"]
        if body.get("assignedClients") is not None:
            updates["assigned_clients"] = body["assignedClients"]
        if not updates:
            raise ValidationError("No valid updates provided")
        return updates

    if not project.is_assigned_client(user.id):
        raise AuthorizationError("Access denied to this project")

    rejected = sorted(key for key in body if key != "status")
    if rejected or body.get("status") != STATUS_APPROVED:
        logger.warning(
            "Client %s attempted disallowed update on project %s: %s",
            user.id, project.id, sorted(body),
            extra={"event_type": "access_denied", "user_id": user.id},
        )
        raise AuthorizationError(
            "Clients can only approve projects",
            details={"rejectedFields": rejected} if rejected else None,
        )
    return {"status": STATUS_APPROVED}


# ═══════════════════════════════════════════════════════════════
# Invitations
# ═══════════════════════════════════════════════════════════════
def can_invite_role(user, role: str) -> bool:
    """Staff may invite clients; only admins may invite developers; nobody invites admins."""
    if role not in INVITABLE_ROLES:
        return False
    if role == ROLE_DEVELOPER:
        return is_admin(user)
    return is_staff(user)


# ═══════════════════════════════════════════════════════════════
# User updates
# ═══════════════════════════════════════════════════════════════
def check_user_update(actor, target, body: dict) -> dict:
    """
    Return the updates *actor* may apply to *target*, keyed by model attribute.

    Name: self or admin.  Role and isActive: admin only, and an admin may
    not demote or deactivate themselves.
    """
    self_update = actor.id == target.id
    admin = is_admin(actor)

    if not self_update and not admin:
        raise AuthorizationError("You can only update your own profile")

    updates = {}

    if "name" in body:
        name = body["name"]
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Name must be a non-empty string")
        updates["name"] = name.strip()

    if "role" in body and body["role"] != target.role:
        if not admin:
            raise AuthorizationError("Only admins can change roles")
        if body["role"] not in USER_ROLES:
            raise ValidationError("Invalid role", details={"allowed": list(USER_ROLES)})
        if self_update:
            raise ValidationError("Admins cannot change their own role")
        updates["role"] = body["role"]

    if "isActive" in body:
        if not admin:
            raise AuthorizationError("Only admins can activate or deactivate users")
        if not isinstance(body["isActive"], bool):
            raise ValidationError("isActive must be a boolean")
        if self_update and body["isActive"] is False:
            raise ValidationError("Admins cannot deactivate their own account")
        updates["is_active"] = body["isActive"]

    if not updates:
        raise ValidationError("No valid updates provided")
    return updates
