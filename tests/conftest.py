"""
Shared pytest fixtures for the WebReview test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - make_user / make_project / make_invitation: factories writing straight to the DB
    - admin, developer, client_user, other_client, outsider: users of each role
    - auth_headers: bearer headers for a user
"""

from datetime import timedelta

import pytest

from webreview import create_app
from webreview.models import db as _db
from webreview.models.auth import Invitation, User
from webreview.models.base import utcnow
from webreview.models.project import Project
from webreview.services.token_service import generate_invite_token, issue_token
from webreview.utils.crypto import hash_password

ORG = "org-acme"
OTHER_ORG = "org-globex"
PASSWORD = "correct-horse-battery"


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Factories ────────────────────────────────────────────────────────────


@pytest.fixture()
def make_user():
    """Create a committed user; password is PASSWORD unless given."""
    def _make(email, role="client", *, name=None, organization_id=ORG,
              password=PASSWORD, is_active=True, assigned_projects=None):
        user = User(
            email=email.lower(),
            name=name or email.split("@")[0].title(),
            password_hash=hash_password(password),
            role=role,
            organization_id=organization_id,
            assigned_projects=list(assigned_projects or []),
            is_active=is_active,
        )
        _db.session.add(user)
        _db.session.commit()
        return user
    return _make


@pytest.fixture()
def make_project():
    """Create a committed project owned by *creator*."""
    def _make(creator, *, name="Acme Site", client="Acme Corp", url="https://acme.com",
              status="pending", assigned_clients=None, organization_id=None):
        project = Project(
            name=name,
            client=client,
            url=url,
            status=status,
            organization_id=organization_id or creator.organization_id,
            created_by=creator.id,
            assigned_clients=list(assigned_clients or []),
            assigned_developers=[creator.id],
        )
        _db.session.add(project)
        _db.session.commit()
        return project
    return _make


@pytest.fixture()
def make_invitation():
    """Create a committed invitation; ``expires_in`` may be negative."""
    def _make(inviter, email, *, role="client", project_ids=None,
              expires_in=timedelta(days=7), is_used=False):
        now = utcnow()
        invitation = Invitation(
            email=email.lower(),
            token=generate_invite_token(),
            role=role,
            project_ids=list(project_ids or []),
            invited_by=inviter.id,
            invited_by_name=inviter.name,
            organization_id=inviter.organization_id,
            created_at=now,
            expires_at=now + expires_in,
            is_used=is_used,
        )
        _db.session.add(invitation)
        _db.session.commit()
        return invitation
    return _make


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def admin(make_user):
    return make_user("admin@acme.test", "admin", name="Ada Admin")


@pytest.fixture()
def developer(make_user):
    return make_user("dev@acme.test", "developer", name="Dana Dev")


@pytest.fixture()
def client_user(make_user):
    return make_user("client@acme.test", "client", name="Carl Client")


@pytest.fixture()
def other_client(make_user):
    return make_user("other@acme.test", "client", name="Olga Other")


@pytest.fixture()
def outsider(make_user):
    """An admin of a different organization."""
    return make_user("admin@globex.test", "admin", name="Gus Globex", organization_id=OTHER_ORG)


@pytest.fixture()
def auth_headers():
    """Bearer headers for *user*."""
    def _headers(user):
        return {"Authorization": f"Bearer {issue_token(user)}"}
    return _headers
