"""
Dashboard Stats Service

Counts over what the caller can see:
  - projects (total, awaiting review, approved)
  - feedback on those projects (total, open)
  - staff only: active clients and pending invitations of the organization
"""

from sqlalchemy import func

from webreview.models import db
from webreview.models.auth import ROLE_CLIENT, User
from webreview.models.project import (
    FEEDBACK_OPEN,
    STATUS_APPROVED,
    STATUS_IN_REVIEW,
    STATUS_PENDING,
    Feedback,
)
from webreview.services import invitation_service, policy, project_service


def get_stats(user) -> dict:
    projects = project_service.list_projects_for_user(user)
    project_ids = [p.id for p in projects]

    total_feedback = open_feedback = 0
    if project_ids:
        rows = (
            db.session.query(Feedback.status, func.count(Feedback.id))
            .filter(Feedback.project_id.in_(project_ids))
            .group_by(Feedback.status)
            .all()
        )
        by_status = {status: count for status, count in rows}
        total_feedback = sum(by_status.values())
        open_feedback = by_status.get(FEEDBACK_OPEN, 0)

    stats = {
        "totalProjects": len(projects),
        "pendingReviews": sum(1 for p in projects if p.status in (STATUS_PENDING, STATUS_IN_REVIEW)),
        "approved": sum(1 for p in projects if p.status == STATUS_APPROVED),
        "totalFeedback": total_feedback,
        "openFeedback": open_feedback,
    }

    if policy.is_staff(user):
        stats["totalClients"] = (
            User.query_for_organization(user.organization_id)
            .filter_by(role=ROLE_CLIENT, is_active=True)
            .count()
        )
        stats["pendingInvitations"] = invitation_service.count_pending_invitations(user.organization_id)

    return stats
