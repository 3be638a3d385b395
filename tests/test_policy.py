"""
Authorization policy tests — role hierarchy, project visibility and
field-level update rules.  Pure functions; no HTTP.
"""

from types import SimpleNamespace

import pytest

from webreview.core.exceptions import AuthorizationError, ValidationError
from webreview.models.project import Project
from webreview.services import policy


def _user(role, user_id="u1", organization_id="org-acme"):
    return SimpleNamespace(id=user_id, role=role, organization_id=organization_id)


def _project(assigned_clients=(), organization_id="org-acme", status="pending"):
    return Project(
        id="p1",
        name="Acme Site",
        client="Acme Corp",
        url="https://acme.com",
        status=status,
        organization_id=organization_id,
        created_by="dev",
        assigned_clients=list(assigned_clients),
        assigned_developers=["dev"],
    )


# ═══════════════════════════════════════════════════════════════
# Roles
# ═══════════════════════════════════════════════════════════════

class TestHasRole:
    def test_admin_satisfies_everything(self):
        admin = _user("admin")
        assert policy.has_role(admin, "developer")
        assert policy.has_role(admin, "client")
        assert policy.has_role(admin, ["developer"])

    def test_developer(self):
        dev = _user("developer")
        assert policy.has_role(dev, "developer")
        assert policy.has_role(dev, ("client", "developer"))
        assert not policy.has_role(dev, "admin")

    def test_client(self):
        client = _user("client")
        assert policy.has_role(client, "client")
        assert not policy.has_role(client, "developer")
        assert not policy.has_role(client, "admin")

    def test_missing_user(self):
        assert not policy.has_role(None, "client")
        assert not policy.has_role(_user(None), "client")

    def test_staff(self):
        assert policy.is_staff(_user("admin"))
        assert policy.is_staff(_user("developer"))
        assert not policy.is_staff(_user("client"))


# ═══════════════════════════════════════════════════════════════
# Visibility
# ═══════════════════════════════════════════════════════════════

class TestCanViewProject:
    def test_staff_sees_org_projects(self):
        assert policy.can_view_project(_user("developer"), _project())
        assert policy.can_view_project(_user("admin"), _project())

    def test_assigned_client(self):
        assert policy.can_view_project(_user("client", "c1"), _project(["c1"]))

    def test_unassigned_client(self):
        assert not policy.can_view_project(_user("client", "c2"), _project(["c1"]))

    def test_other_organization(self):
        assert not policy.can_view_project(_user("admin", organization_id="org-globex"), _project())
        assert not policy.can_view_project(
            _user("client", "c1", organization_id="org-globex"), _project(["c1"]),
        )

    def test_require_access_raises(self):
        with pytest.raises(AuthorizationError, match="Access denied to this project"):
            policy.require_project_access(_user("client", "c2"), _project(["c1"]))


# ═══════════════════════════════════════════════════════════════
# Project updates
# ═══════════════════════════════════════════════════════════════

class TestCheckProjectUpdate:
    def test_staff_fields_mapped(self):
        updates = policy.check_project_update(_user("developer"), _project(), {
            "name": "New", "url": "new.com", "description": "", "status": "archived",
            "assignedClients": ["c1"],
        })
        assert updates == {
            "name": "New", "url": "new.com", "description": "", "status": "archived",
            "assigned_clients": ["c1"],
        }

    def test_staff_empty_body(self):
        with pytest.raises(ValidationError, match="No valid updates provided"):
            policy.check_project_update(_user("developer"), _project(), {})

    def test_staff_unknown_fields_only(self):
        with pytest.raises(ValidationError, match="No valid updates provided"):
            policy.check_project_update(_user("admin"), _project(), {"createdBy": "me"})

    def test_client_approve(self):
        updates = policy.check_project_update(_user("client", "c1"), _project(["c1"]), {"status": "approved"})
        assert updates == {"status": "approved"}

    def test_client_other_status(self):
        with pytest.raises(AuthorizationError, match="Clients can only approve projects"):
            policy.check_project_update(_user("client", "c1"), _project(["c1"]), {"status": "archived"})

    def test_client_extra_fields_rejected_whole(self):
        with pytest.raises(AuthorizationError) as exc_info:
            policy.check_project_update(
                _user("client", "c1"), _project(["c1"]),
                {"status": "approved", "name": "Hacked", "url": "evil.com"},
            )
        assert exc_info.value.details == {"rejectedFields": ["name", "url"]}

    def test_client_unassigned(self):
        with pytest.raises(AuthorizationError, match="Access denied"):
            policy.check_project_update(_user("client", "c2"), _project(["c1"]), {"status": "approved"})


# ═══════════════════════════════════════════════════════════════
# Invitations
# ═══════════════════════════════════════════════════════════════

class TestCanInviteRole:
    @pytest.mark.parametrize("inviter, role, allowed", [
        ("admin", "client", True),
        ("admin", "developer", True),
        ("admin", "admin", False),
        ("developer", "client", True),
        ("developer", "developer", False),
        ("developer", "admin", False),
        ("client", "client", False),
        ("client", "developer", False),
    ])
    def test_matrix(self, inviter, role, allowed):
        assert policy.can_invite_role(_user(inviter), role) is allowed


# ═══════════════════════════════════════════════════════════════
# User updates
# ═══════════════════════════════════════════════════════════════

class TestCheckUserUpdate:
    def test_self_name(self):
        me = _user("client", "c1")
        assert policy.check_user_update(me, me, {"name": "  Carla  "}) == {"name": "Carla"}

    def test_non_admin_other_user(self):
        with pytest.raises(AuthorizationError, match="your own profile"):
            policy.check_user_update(_user("developer", "d1"), _user("client", "c1"), {"name": "X"})

    def test_non_admin_cannot_change_own_role(self):
        me = _user("developer", "d1")
        with pytest.raises(AuthorizationError, match="Only admins can change roles"):
            policy.check_user_update(me, me, {"role": "admin"})

    def test_same_role_is_ignored(self):
        me = _user("developer", "d1")
        assert policy.check_user_update(me, me, {"role": "developer", "name": "D"}) == {"name": "D"}

    def test_non_admin_cannot_deactivate(self):
        me = _user("client", "c1")
        with pytest.raises(AuthorizationError):
            policy.check_user_update(me, me, {"isActive": False})

    def test_admin_changes_role_and_active(self):
        updates = policy.check_user_update(
            _user("admin", "a1"), _user("client", "c1"), {"role": "developer", "isActive": False},
        )
        assert updates == {"role": "developer", "is_active": False}

    def test_admin_invalid_role(self):
        with pytest.raises(ValidationError, match="Invalid role"):
            policy.check_user_update(_user("admin", "a1"), _user("client", "c1"), {"role": "owner"})

    def test_admin_cannot_demote_self(self):
        me = _user("admin", "a1")
        with pytest.raises(ValidationError, match="cannot change their own role"):
            policy.check_user_update(me, me, {"role": "client"})

    def test_admin_cannot_deactivate_self(self):
        me = _user("admin", "a1")
        with pytest.raises(ValidationError, match="cannot deactivate their own account"):
            policy.check_user_update(me, me, {"isActive": False})

    def test_is_active_must_be_bool(self):
        with pytest.raises(ValidationError, match="isActive must be a boolean"):
            policy.check_user_update(_user("admin", "a1"), _user("client", "c1"), {"isActive": "no"})

    def test_blank_name(self):
        me = _user("client", "c1")
        with pytest.raises(ValidationError, match="non-empty"):
            policy.check_user_update(me, me, {"name": "   "})

    def test_nothing_to_update(self):
        me = _user("client", "c1")
        with pytest.raises(ValidationError, match="No valid updates provided"):
            policy.check_user_update(me, me, {"email": "new@x.com"})
