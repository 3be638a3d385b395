"""
OrganizationModel — Abstract base class for organization-scoped models.

Users, projects and invitations all belong to exactly one organization.
Inheriting from OrganizationModel adds:
  - organization_id column with index
  - query_for_organization(organization_id) classmethod

Also hosts the small timestamp/id helpers shared by every model.
"""

import uuid
from datetime import datetime, timezone

from webreview.models import db


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on read)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def isoformat(value: datetime | None) -> str | None:
    value = as_utc(value)
    return value.isoformat() if value else None


def new_id() -> str:
    return str(uuid.uuid4())


class OrganizationModel(db.Model):
    """Abstract base for organization-scoped tables."""
    __abstract__ = True

    organization_id = db.Column(db.String(100), nullable=False, index=True)

    @classmethod
    def query_for_organization(cls, organization_id):
        """Return a query filtered by organization_id."""
        return cls.query.filter_by(organization_id=organization_id)
