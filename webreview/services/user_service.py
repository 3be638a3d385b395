"""
User Service — lookups, login, listing and profile/role updates.

Accounts are never deleted; deactivation (is_active=False) is the only way
to revoke access.
"""

import logging

from webreview.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from webreview.models import db
from webreview.models.auth import ROLE_ADMIN, ROLE_CLIENT, USER_ROLES, User
from webreview.models.base import utcnow
from webreview.services import policy
from webreview.utils.crypto import hash_password, verify_against_placeholder, verify_password
from webreview.utils.helpers import commit_or_raise

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def normalize_email(email) -> str:
    return email.strip().lower() if isinstance(email, str) else ""


# ═══════════════════════════════════════════════════════════════
# Lookups
# ═══════════════════════════════════════════════════════════════
def get_user_by_email(email: str) -> User | None:
    """Find a user by email (case-insensitive)."""
    email = normalize_email(email)
    if not email:
        return None
    return User.query.filter_by(email=email).first()


def get_user_by_id(user_id: str) -> User | None:
    if not user_id:
        return None
    return db.session.get(User, user_id)


def get_org_user(organization_id: str, user_id: str) -> User:
    """Fetch a user within *organization_id*; other organizations' users are 404."""
    user = get_user_by_id(user_id)
    if not user or user.organization_id != organization_id:
        raise NotFoundError(resource="User", resource_id=user_id, organization_id=organization_id)
    return user


# ═══════════════════════════════════════════════════════════════
# Creation
# ═══════════════════════════════════════════════════════════════
def validate_password(password) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


def build_user(*, email, name, password, role, organization_id, assigned_projects=None) -> User:
    """Construct (but do not commit) a User.  Callers own the transaction."""
    if role not in USER_ROLES:
        raise ValidationError("Invalid role", details={"allowed": list(USER_ROLES)})
    validate_password(password)
    user = User(
        email=normalize_email(email),
        name=name.strip(),
        password_hash=hash_password(password),
        role=role,
        organization_id=organization_id,
        assigned_projects=list(assigned_projects or []),
        is_active=True,
    )
    db.session.add(user)
    return user


def create_user(*, email, name, password, role, organization_id) -> User:
    """Create and commit a user directly.  Used by the create-admin bootstrap."""
    if get_user_by_email(email):
        raise ConflictError("A user with this email already exists", resource="User", field="email")
    user = build_user(
        email=email, name=name, password=password,
        role=role, organization_id=organization_id,
    )
    commit_or_raise("A user with this email already exists")
    logger.info("User created: %s role=%s org=%s", user.email, role, organization_id)
    return user


def create_admin(*, email, name, password, organization_id) -> User:
    return create_user(
        email=email, name=name, password=password,
        role=ROLE_ADMIN, organization_id=organization_id,
    )


# ═══════════════════════════════════════════════════════════════
# Login
# ═══════════════════════════════════════════════════════════════
def authenticate_user(email, password) -> User:
    """
    Check credentials and stamp last_login.

    Unknown email and wrong password give the same 401 message; a correct
    password on a deactivated account is a 403.
    """
    user = get_user_by_email(email)
    if user is None:
        verify_against_placeholder(password)
    if not user or not verify_password(password, user.password_hash):
        logger.warning(
            "Failed login for %s", normalize_email(email),
            extra={"event_type": "login_failed"},
        )
        raise AuthenticationError("Invalid email or password")

    if not user.is_active:
        logger.warning(
            "Login attempt on disabled account %s", user.id,
            extra={"event_type": "login_disabled", "user_id": user.id},
        )
        raise AuthorizationError("Account is disabled")

    user.last_login = utcnow()
    db.session.commit()
    logger.info(
        "User %s logged in", user.id,
        extra={"event_type": "login", "user_id": user.id},
    )
    return user


# ═══════════════════════════════════════════════════════════════
# Listing
# ═══════════════════════════════════════════════════════════════
def list_users(organization_id: str) -> list[User]:
    return (
        User.query_for_organization(organization_id)
        .order_by(User.created_at.desc())
        .all()
    )


def list_clients(organization_id: str, active_only: bool = True) -> list[User]:
    q = User.query_for_organization(organization_id).filter_by(role=ROLE_CLIENT)
    if active_only:
        q = q.filter_by(is_active=True)
    return q.order_by(User.name).all()


# ═══════════════════════════════════════════════════════════════
# Updates
# ═══════════════════════════════════════════════════════════════
def update_user(actor: User, user_id: str, body: dict) -> User:
    """Apply a name/role/isActive update after the policy check.  Last writer wins."""
    target = get_org_user(actor.organization_id, user_id)
    updates = policy.check_user_update(actor, target, body)

    for attr, value in updates.items():
        setattr(target, attr, value)
    db.session.commit()

    if "role" in updates or "is_active" in updates:
        logger.info(
            "User %s updated by %s: %s", target.id, actor.id, sorted(updates),
            extra={"event_type": "user_updated", "user_id": actor.id},
        )
    return target
