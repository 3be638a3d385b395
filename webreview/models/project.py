"""Project and Feedback models — the review targets and the comments on them."""

from webreview.models import db
from webreview.models.base import OrganizationModel, isoformat, new_id, utcnow


STATUS_PENDING = "pending"
STATUS_IN_REVIEW = "in-review"
STATUS_APPROVED = "approved"
STATUS_ARCHIVED = "archived"

PROJECT_STATUSES = (STATUS_PENDING, STATUS_IN_REVIEW, STATUS_APPROVED, STATUS_ARCHIVED)

FEEDBACK_TYPES = ("general", "bug", "change", "approval")
FEEDBACK_PRIORITIES = ("low", "medium", "high")

FEEDBACK_OPEN = "open"
FEEDBACK_IN_PROGRESS = "in-progress"
FEEDBACK_RESOLVED = "resolved"
FEEDBACK_STATUSES = (FEEDBACK_OPEN, FEEDBACK_IN_PROGRESS, FEEDBACK_RESOLVED)


class Project(OrganizationModel):
    """A client website shared for review."""

    __tablename__ = "projects"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(200), nullable=False)
    client = db.Column(db.String(200), nullable=False)
    url = db.Column(db.String(2048), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    thumbnail = db.Column(db.String(2048), nullable=False, default="")
    status = db.Column(db.String(20), nullable=False, default=STATUS_PENDING)
    created_by = db.Column(db.String(36), nullable=False)
    # User id lists; always reassign (never mutate in place) so the ORM sees the change
    assigned_clients = db.Column(db.JSON, nullable=False, default=list)
    assigned_developers = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    feedback = db.relationship(
        "Feedback", back_populates="project", lazy="dynamic",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    def is_assigned_client(self, user_id):
        return user_id in (self.assigned_clients or [])

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "client": self.client,
            "url": self.url,
            "description": self.description or "",
            "thumbnail": self.thumbnail or "",
            "status": self.status,
            "organizationId": self.organization_id,
            "createdBy": self.created_by,
            "assignedClients": list(self.assigned_clients or []),
            "assignedDevelopers": list(self.assigned_developers or []),
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }

    def __repr__(self):
        return f"<Project {self.name} status={self.status}>"


class Feedback(db.Model):
    """A review comment on a project."""

    __tablename__ = "feedback"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    project_id = db.Column(
        db.String(36),
        db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type = db.Column(db.String(20), nullable=False, default="general")
    priority = db.Column(db.String(20), nullable=False, default="medium")
    text = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=FEEDBACK_OPEN)
    author_id = db.Column(db.String(36), nullable=False)
    author_name = db.Column(db.String(200))
    author_role = db.Column(db.String(20))
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    resolved_at = db.Column(db.DateTime(timezone=True))
    resolved_by = db.Column(db.String(36))

    project = db.relationship("Project", back_populates="feedback")

    def to_dict(self):
        return {
            "id": self.id,
            "projectId": self.project_id,
            "type": self.type,
            "priority": self.priority,
            "text": self.text,
            "status": self.status,
            "authorId": self.author_id,
            "authorName": self.author_name,
            "authorRole": self.author_role,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
            "resolvedAt": isoformat(self.resolved_at),
            "resolvedBy": self.resolved_by,
        }

    def __repr__(self):
        return f"<Feedback {self.type} on {self.project_id} status={self.status}>"
