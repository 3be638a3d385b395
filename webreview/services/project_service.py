"""Project service with organization scoping, client assignment and the status state machine.

Status edges (anything else is rejected):

    pending   → in-review, approved, archived
    in-review → approved, archived
    approved  → archived
    archived  → (terminal)

Setting a project to its current status is a no-op.  Concurrent updates are
last-writer-wins; there is no version column.
"""

from __future__ import annotations

import logging

from webreview.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from webreview.models import db
from webreview.models.auth import ROLE_CLIENT, User
from webreview.models.project import (
    PROJECT_STATUSES,
    STATUS_APPROVED,
    STATUS_ARCHIVED,
    STATUS_IN_REVIEW,
    STATUS_PENDING,
    Project,
)
from webreview.services import policy
from webreview.utils.helpers import normalize_url

logger = logging.getLogger(__name__)

_OPTIONAL_TEXT_FIELDS = ("description", "thumbnail")


STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    STATUS_PENDING: frozenset({STATUS_IN_REVIEW, STATUS_APPROVED, STATUS_ARCHIVED}),
    STATUS_IN_REVIEW: frozenset({STATUS_APPROVED, STATUS_ARCHIVED}),
    STATUS_APPROVED: frozenset({STATUS_ARCHIVED}),
    STATUS_ARCHIVED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    return current == target or target in STATUS_TRANSITIONS.get(current, frozenset())


def check_transition(current: str, target: str) -> None:
    if target not in PROJECT_STATUSES:
        raise ValidationError("Invalid status", details={"allowed": list(PROJECT_STATUSES)})
    if not can_transition(current, target):
        raise ValidationError(
            "Invalid status transition",
            details={"from": current, "to": target},
        )


# ═══════════════════════════════════════════════════════════════
# Reads
# ═══════════════════════════════════════════════════════════════
def get_project(organization_id: str, project_id: str) -> Project:
    """Fetch a project of *organization_id*; other organizations' projects are 404."""
    project = db.session.get(Project, project_id) if project_id else None
    if not project or project.organization_id != organization_id:
        raise NotFoundError(resource="Project", resource_id=project_id, organization_id=organization_id)
    return project


def get_project_for_user(user, project_id: str) -> Project:
    """404 when missing, 403 when the user may not see it."""
    project = get_project(user.organization_id, project_id)
    policy.require_project_access(user, project)
    return project


def list_projects_for_user(user) -> list[Project]:
    """Staff see the whole organization; clients only their assigned projects."""
    projects = (
        Project.query_for_organization(user.organization_id)
        .order_by(Project.updated_at.desc())
        .all()
    )
    if policy.is_staff(user):
        return projects
    return [p for p in projects if p.is_assigned_client(user.id)]


def visible_project_ids(user) -> list[str]:
    return [p.id for p in list_projects_for_user(user)]


# ═══════════════════════════════════════════════════════════════
# Client assignment
# ═══════════════════════════════════════════════════════════════
def _check_client_ids(organization_id: str, client_ids) -> list[str]:
    if not isinstance(client_ids, list) or not all(isinstance(c, str) for c in client_ids):
        raise ValidationError("clientIds array is required")

    client_ids = list(dict.fromkeys(client_ids))
    if not client_ids:
        return []

    clients = User.query.filter(
        User.organization_id == organization_id,
        User.id.in_(client_ids),
        User.role == ROLE_CLIENT,
        User.is_active.is_(True),
    ).all()
    known = {c.id for c in clients}
    invalid = [cid for cid in client_ids if cid not in known]
    if invalid:
        raise ValidationError("Invalid client ids", details={"clientIds": invalid})
    return client_ids


def _sync_user_assignments(project: Project, previous: list[str], current: list[str]) -> None:
    """Mirror project.assigned_clients onto each user's assigned_projects."""
    added = set(current) - set(previous)
    removed = set(previous) - set(current)
    if not added and not removed:
        return
    users = User.query.filter(User.id.in_(added | removed)).all()
    for user in users:
        assigned = list(user.assigned_projects or [])
        if user.id in added and project.id not in assigned:
            user.assigned_projects = [*assigned, project.id]
        elif user.id in removed and project.id in assigned:
            user.assigned_projects = [pid for pid in assigned if pid != project.id]


def _set_assigned_clients(project: Project, client_ids: list[str]) -> None:
    previous = list(project.assigned_clients or [])
    project.assigned_clients = client_ids
    _sync_user_assignments(project, previous, client_ids)


def assign_clients(user, project_id: str, client_ids) -> Project:
    """Replace the project's client list."""
    if not policy.is_staff(user):
        raise AuthorizationError("Only developers can assign clients")
    if not isinstance(client_ids, list):
        raise ValidationError("clientIds array is required")
    project = get_project(user.organization_id, project_id)
    client_ids = _check_client_ids(user.organization_id, client_ids)

    _set_assigned_clients(project, client_ids)
    db.session.commit()
    logger.info("Project %s clients set to %s by %s", project.id, client_ids, user.id)
    return project


# ═══════════════════════════════════════════════════════════════
# Writes
# ═══════════════════════════════════════════════════════════════
def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def _check_optional_text(values: dict) -> None:
    for field in _OPTIONAL_TEXT_FIELDS:
        if values.get(field) is not None and not isinstance(values[field], str):
            raise ValidationError(f"{field} must be a string")


def create_project(user, data: dict) -> Project:
    if not policy.is_staff(user):
        raise AuthorizationError("Only developers can create projects")

    name, client, url = _text(data.get("name")), _text(data.get("client")), _text(data.get("url"))
    if not name or not client or not url:
        raise ValidationError("Name, client, and URL are required")
    url = normalize_url(url)
    _check_optional_text(data)

    client_ids = _check_client_ids(user.organization_id, data.get("assignedClients") or [])

    project = Project(
        name=name,
        client=client,
        url=url,
        description=data.get("description") or "",
        thumbnail=data.get("thumbnail") or "",
        status=STATUS_PENDING,
        organization_id=user.organization_id,
        created_by=user.id,
        assigned_clients=[],
        assigned_developers=[user.id],
    )
    db.session.add(project)
    db.session.flush()
    _set_assigned_clients(project, client_ids)
    db.session.commit()

    logger.info("Project %s created by %s", project.id, user.id)
    return project


def update_project(user, project_id: str, body: dict) -> Project:
    """Apply the policy-approved subset of *body*.  Disallowed fields fail the whole request."""
    project = get_project(user.organization_id, project_id)
    policy.require_project_access(user, project)
    updates = policy.check_project_update(user, project, body)

    if "url" in updates:
        updates["url"] = normalize_url(updates["url"])
    for field in ("name", "client"):
        if field in updates:
            if not isinstance(updates[field], str) or not updates[field].strip():
                raise ValidationError(f"{field} must be a non-empty string")
            updates[field] = updates[field].strip()
    _check_optional_text(updates)
    if "status" in updates:
        check_transition(project.status, updates["status"])

    client_ids = None
    if "assigned_clients" in updates:
        client_ids = _check_client_ids(user.organization_id, updates.pop("assigned_clients"))

    previous_status = project.status
    for attr, value in updates.items():
        setattr(project, attr, value)
    if client_ids is not None:
        _set_assigned_clients(project, client_ids)
    db.session.commit()

    if project.status != previous_status:
        logger.info(
            "Project %s status %s → %s by %s (%s)",
            project.id, previous_status, project.status, user.id, user.role,
        )
    return project


def delete_project(user, project_id: str) -> None:
    """Delete a project and its feedback; users' assignment lists are cleaned up."""
    if not policy.is_staff(user):
        raise AuthorizationError("Only developers can delete projects")
    project = get_project(user.organization_id, project_id)

    _sync_user_assignments(project, list(project.assigned_clients or []), [])
    # feedback rows go with it via ON DELETE CASCADE
    db.session.delete(project)
    db.session.commit()
    logger.info("Project %s deleted by %s", project_id, user.id)


def mark_in_review(project: Project) -> bool:
    """pending → in-review; returns True when the status changed.  Caller commits."""
    if project.status == STATUS_PENDING:
        project.status = STATUS_IN_REVIEW
        return True
    return False


def mark_approved(project: Project) -> bool:
    """pending/in-review → approved; returns True when the status changed.  Caller commits."""
    if project.status in (STATUS_PENDING, STATUS_IN_REVIEW):
        project.status = STATUS_APPROVED
        return True
    return False
