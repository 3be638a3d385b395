"""
Feedback Service — listing, creation (with project status side effects) and
status updates.

Creating feedback on a pending project moves it to in-review; an approval
from an assigned client moves a pending or in-review project straight to
approved.  Both happen in the same commit as the feedback row.
"""

import logging

from webreview.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from webreview.models import db
from webreview.models.auth import ROLE_CLIENT, User
from webreview.models.base import utcnow
from webreview.models.project import (
    FEEDBACK_OPEN,
    FEEDBACK_PRIORITIES,
    FEEDBACK_RESOLVED,
    FEEDBACK_STATUSES,
    FEEDBACK_TYPES,
    Feedback,
    Project,
)
from webreview.services import policy, project_service
from webreview.services.email_service import EmailService

logger = logging.getLogger(__name__)

FEEDBACK_APPROVAL = "approval"


def list_feedback_for_user(user) -> list[Feedback]:
    """All feedback on the projects *user* can see, newest first."""
    project_ids = project_service.visible_project_ids(user)
    if not project_ids:
        return []
    return (
        Feedback.query
        .filter(Feedback.project_id.in_(project_ids))
        .order_by(Feedback.created_at.desc())
        .all()
    )


def list_project_feedback(user, project_id: str) -> list[Feedback]:
    project = project_service.get_project_for_user(user, project_id)
    return project.feedback.order_by(Feedback.created_at.desc()).all()


def create_feedback(user, project_id: str, data: dict) -> Feedback:
    project = project_service.get_project_for_user(user, project_id)

    text = data.get("text")
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("Feedback text is required")

    fb_type = data.get("type") or "general"
    if fb_type not in FEEDBACK_TYPES:
        raise ValidationError("Invalid feedback type", details={"allowed": list(FEEDBACK_TYPES)})

    priority = data.get("priority") or "medium"
    if priority not in FEEDBACK_PRIORITIES:
        raise ValidationError("Invalid priority", details={"allowed": list(FEEDBACK_PRIORITIES)})

    now = utcnow()
    approval = fb_type == FEEDBACK_APPROVAL
    feedback = Feedback(
        project_id=project.id,
        type=fb_type,
        priority=priority,
        text=text.strip(),
        status=FEEDBACK_RESOLVED if approval else FEEDBACK_OPEN,
        author_id=user.id,
        author_name=user.name,
        author_role=user.role,
        created_at=now,
        resolved_at=now if approval else None,
        resolved_by=user.id if approval else None,
    )
    db.session.add(feedback)

    previous_status = project.status
    project_service.mark_in_review(project)
    if approval and user.role == ROLE_CLIENT:
        project_service.mark_approved(project)
    # a new comment counts as project activity
    project.updated_at = now
    db.session.commit()

    if project.status != previous_status:
        logger.info(
            "Project %s status %s → %s via feedback %s",
            project.id, previous_status, project.status, feedback.id,
        )

    if user.role == ROLE_CLIENT:
        notify_developers(feedback, project)
    return feedback


def notify_developers(feedback: Feedback, project: Project) -> int:
    """Email the project's assigned developers.  Best-effort; returns sends that succeeded."""
    developer_ids = list(project.assigned_developers or [])
    if not developer_ids:
        return 0
    recipients = [
        u.email for u in User.query.filter(
            User.id.in_(developer_ids), User.is_active.is_(True),
        ).all()
        if u.email
    ]
    if not recipients:
        return 0
    sent = EmailService.send_feedback_notification(feedback, project, recipients)
    if sent < len(recipients):
        logger.warning(
            "Feedback %s notification reached %d of %d developers",
            feedback.id, sent, len(recipients),
        )
    return sent


def update_feedback_status(user, feedback_id: str, data: dict) -> Feedback:
    """Staff-only status change.  Leaving ``resolved`` clears the resolution stamp."""
    if not policy.is_staff(user):
        raise AuthorizationError("Only developers can update feedback status")

    project_id = data.get("projectId")
    if not project_id:
        raise ValidationError("projectId is required")
    status = data.get("status")
    if not status:
        raise ValidationError("No valid updates provided")
    if status not in FEEDBACK_STATUSES:
        raise ValidationError("Invalid status", details={"allowed": list(FEEDBACK_STATUSES)})

    project = project_service.get_project(user.organization_id, project_id)
    feedback = db.session.get(Feedback, feedback_id) if feedback_id else None
    if not feedback or feedback.project_id != project.id:
        raise NotFoundError(resource="Feedback", resource_id=feedback_id, organization_id=user.organization_id)

    if feedback.status != status:
        feedback.status = status
        if status == FEEDBACK_RESOLVED:
            feedback.resolved_at = utcnow()
            feedback.resolved_by = user.id
        else:
            feedback.resolved_at = None
            feedback.resolved_by = None
    db.session.commit()
    return feedback
