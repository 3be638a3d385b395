"""
Invitation Service — create, validate, redeem-once, expire.

Lifecycle:
    active ──redeem──▶ redeemed   (is_used=True, accepted_at set; terminal)
    active ──time────▶ expired    (computed from expires_at on every read)

There is no sweep job; expiry is evaluated lazily by is_expired().

Redemption creates the user, consumes the invitation and back-fills the
referenced projects' assigned_clients in a single transaction.  The
invitation is consumed with a conditional UPDATE (``WHERE is_used = false``)
so two concurrent redemptions of the same token cannot both succeed.
"""

import logging
from datetime import timedelta

from email_validator import EmailNotValidError, validate_email
from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from webreview.core.exceptions import AuthorizationError, ConflictError, ValidationError
from webreview.models import db
from webreview.models.auth import INVITABLE_ROLES, ROLE_CLIENT, ROLE_DEVELOPER, Invitation
from webreview.models.base import utcnow
from webreview.models.project import Project
from webreview.services import policy, user_service
from webreview.services.email_service import EmailService
from webreview.services.token_service import generate_invite_token

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_DAYS = 7


def _expiry_days() -> int:
    return int(current_app.config.get("INVITE_EXPIRY_DAYS", DEFAULT_EXPIRY_DAYS))


def is_expired(invitation: Invitation, now=None) -> bool:
    """True once the current time is past expires_at."""
    return invitation.is_expired(now)


def get_by_token(token) -> Invitation | None:
    if not token or not isinstance(token, str):
        return None
    return Invitation.query.filter_by(token=token).first()


def get_active_invitation(email: str) -> Invitation | None:
    """The unused, unexpired invitation for *email*, if any."""
    now = utcnow()
    return (
        Invitation.query
        .filter_by(email=email, is_used=False)
        .filter(Invitation.expires_at > now)
        .first()
    )


# ═══════════════════════════════════════════════════════════════
# Create
# ═══════════════════════════════════════════════════════════════
def _normalize_invite_email(email) -> str:
    if not email or not isinstance(email, str) or not email.strip():
        raise ValidationError("Email is required")
    try:
        # reserved names such as .test are accepted only under the test config
        valid = validate_email(
            email.strip(), check_deliverability=False, test_environment=current_app.testing,
        )
    except EmailNotValidError as exc:
        raise ValidationError("Invalid email format", details={"email": str(exc)}) from exc
    return valid.normalized.lower()


def _check_project_ids(organization_id: str, project_ids) -> list[str]:
    if project_ids is None:
        return []
    if not isinstance(project_ids, list) or not all(isinstance(p, str) for p in project_ids):
        raise ValidationError("projectIds must be an array of project ids")

    # dedupe, keep order
    project_ids = list(dict.fromkeys(project_ids))
    if not project_ids:
        return []

    found = {
        pid for (pid,) in db.session.query(Project.id)
        .filter(Project.organization_id == organization_id, Project.id.in_(project_ids))
    }
    missing = [pid for pid in project_ids if pid not in found]
    if missing:
        raise ValidationError("Invalid project ids", details={"projectIds": missing})
    return project_ids


def create_invitation(inviter, email, role=None, project_ids=None) -> tuple[Invitation, bool]:
    """
    Invite *email* into the inviter's organization.

    Returns ``(invitation, email_sent)``.  The invitation is committed before
    the email goes out, so a delivery failure only flips ``email_sent``.
    """
    role = role or ROLE_CLIENT
    if role not in INVITABLE_ROLES:
        raise ValidationError("Invalid role", details={"allowed": list(INVITABLE_ROLES)})
    if not policy.can_invite_role(inviter, role):
        if role == ROLE_DEVELOPER:
            raise AuthorizationError("Only admins can invite developers")
        raise AuthorizationError("Insufficient permissions")

    email = _normalize_invite_email(email)

    if user_service.get_user_by_email(email):
        raise ConflictError("A user with this email already exists", resource="User", field="email")
    if get_active_invitation(email):
        raise ConflictError(
            "An active invitation already exists for this email",
            resource="Invitation", field="email",
        )

    project_ids = _check_project_ids(inviter.organization_id, project_ids)

    now = utcnow()
    invitation = Invitation(
        email=email,
        token=generate_invite_token(),
        role=role,
        project_ids=project_ids,
        invited_by=inviter.id,
        invited_by_name=inviter.name,
        organization_id=inviter.organization_id,
        created_at=now,
        expires_at=now + timedelta(days=_expiry_days()),
        is_used=False,
    )
    db.session.add(invitation)
    db.session.commit()

    logger.info(
        "Invitation %s created for %s role=%s by %s",
        invitation.id, email, role, inviter.id,
        extra={"event_type": "invitation_created", "user_id": inviter.id},
    )

    email_sent = EmailService.send_invitation(invitation)
    if not email_sent:
        logger.warning("Invitation %s saved but email delivery failed", invitation.id)
    return invitation, email_sent


# ═══════════════════════════════════════════════════════════════
# Validate (read-only)
# ═══════════════════════════════════════════════════════════════
def validate_invitation(token) -> Invitation:
    """Return the invitation behind *token* without touching its state."""
    if not token:
        raise ValidationError("Token is required")
    invitation = get_by_token(token)
    if not invitation or invitation.is_used:
        raise ValidationError("Invalid invitation token")
    if invitation.is_expired():
        raise ValidationError("Invitation has expired")
    return invitation


# ═══════════════════════════════════════════════════════════════
# Redeem (single-shot)
# ═══════════════════════════════════════════════════════════════
def redeem_invitation(token, name, password):
    """
    Consume *token* and create the invited account.

    Returns the new User.  Raises ValidationError / ConflictError (400) for
    a missing, used or expired token, a weak password, or an email that
    already has an account; nothing is written in those cases.
    """
    if not token or not isinstance(name, str) or not name.strip() or not password:
        raise ValidationError("Token, name, and password are required")
    user_service.validate_password(password)

    invitation = get_by_token(token)
    if not invitation or invitation.is_used:
        raise ValidationError("Invalid or expired invitation token")
    if invitation.is_expired():
        raise ValidationError("Invitation has expired")
    if user_service.get_user_by_email(invitation.email):
        raise ConflictError("An account with this email already exists", resource="User", field="email")

    now = utcnow()
    try:
        user = user_service.build_user(
            email=invitation.email,
            name=name,
            password=password,
            role=invitation.role,
            organization_id=invitation.organization_id,
            assigned_projects=invitation.project_ids,
        )
        db.session.flush()

        consumed = db.session.execute(
            update(Invitation)
            .where(Invitation.id == invitation.id, Invitation.is_used.is_(False))
            .values(is_used=True, accepted_at=now)
        )
        if consumed.rowcount != 1:
            db.session.rollback()
            raise ValidationError("Invalid or expired invitation token")

        if invitation.project_ids:
            projects = Project.query.filter(
                Project.organization_id == invitation.organization_id,
                Project.id.in_(invitation.project_ids),
            ).all()
            for project in projects:
                if user.id not in (project.assigned_clients or []):
                    project.assigned_clients = [*(project.assigned_clients or []), user.id]

        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Redemption of invitation %s lost a race: %s", invitation.id, exc.orig)
        raise ConflictError("An account with this email already exists", resource="User", field="email") from exc

    logger.info(
        "Invitation %s redeemed by new user %s", invitation.id, user.id,
        extra={"event_type": "invitation_redeemed", "user_id": user.id},
    )
    return user


# ═══════════════════════════════════════════════════════════════
# Listing
# ═══════════════════════════════════════════════════════════════
def list_pending_invitations(organization_id: str) -> list[Invitation]:
    """Unused and unexpired invitations of the organization, newest first."""
    now = utcnow()
    return (
        Invitation.query_for_organization(organization_id)
        .filter(Invitation.is_used.is_(False), Invitation.expires_at > now)
        .order_by(Invitation.created_at.desc())
        .all()
    )


def count_pending_invitations(organization_id: str) -> int:
    now = utcnow()
    return (
        Invitation.query_for_organization(organization_id)
        .filter(Invitation.is_used.is_(False), Invitation.expires_at > now)
        .count()
    )
