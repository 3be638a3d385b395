"""
Auth Models — users and invitations.

Users are created only by redeeming an invitation (or by the create-admin
CLI bootstrap).  Invitations are single-use: once redeemed, is_used stays
true forever.  Expiry is never stored as a state; it is computed from
expires_at on every read.
"""

from webreview.models import db
from webreview.models.base import OrganizationModel, as_utc, isoformat, new_id, utcnow


ROLE_ADMIN = "admin"
ROLE_DEVELOPER = "developer"
ROLE_CLIENT = "client"

USER_ROLES = (ROLE_ADMIN, ROLE_DEVELOPER, ROLE_CLIENT)
INVITABLE_ROLES = (ROLE_CLIENT, ROLE_DEVELOPER)


# ═══════════════════════════════════════════════════════════════
# 1. USERS
# ═══════════════════════════════════════════════════════════════
class User(OrganizationModel):
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    email = db.Column(db.String(254), nullable=False)  # always lowercased
    name = db.Column(db.String(200), nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=ROLE_CLIENT)
    assigned_projects = db.Column(db.JSON, nullable=False, default=list)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_login = db.Column(db.DateTime(timezone=True))
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Login has no organization selector, so email is unique across the table
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_users_email"),
        db.Index("ix_users_org_role", "organization_id", "role"),
    )

    def to_dict(self):
        # password_hash is deliberately absent
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "organizationId": self.organization_id,
            "assignedProjects": list(self.assigned_projects or []),
            "isActive": bool(self.is_active),
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
            "lastLogin": isoformat(self.last_login),
        }

    def __repr__(self):
        return f"<User {self.email} role={self.role}>"


# ═══════════════════════════════════════════════════════════════
# 2. INVITATIONS
# ═══════════════════════════════════════════════════════════════
class Invitation(OrganizationModel):
    __tablename__ = "invitations"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    email = db.Column(db.String(254), nullable=False, index=True)
    token = db.Column(db.String(128), nullable=False, unique=True)
    role = db.Column(db.String(20), nullable=False, default=ROLE_CLIENT)
    project_ids = db.Column(db.JSON, nullable=False, default=list)
    invited_by = db.Column(db.String(36), nullable=False)
    invited_by_name = db.Column(db.String(200))
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    accepted_at = db.Column(db.DateTime(timezone=True))
    is_used = db.Column(db.Boolean, nullable=False, default=False)

    def is_expired(self, now=None):
        now = now or utcnow()
        return as_utc(now) > as_utc(self.expires_at)

    def to_dict(self):
        # token is only ever delivered by email
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "projectIds": list(self.project_ids or []),
            "invitedBy": self.invited_by,
            "invitedByName": self.invited_by_name,
            "organizationId": self.organization_id,
            "expiresAt": isoformat(self.expires_at),
            "createdAt": isoformat(self.created_at),
            "acceptedAt": isoformat(self.accepted_at),
            "isUsed": bool(self.is_used),
        }

    def __repr__(self):
        return f"<Invitation {self.email} role={self.role} used={self.is_used}>"
