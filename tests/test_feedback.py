"""
Feedback API tests — creation side effects on project status, visibility,
status updates and developer notification.
"""

from unittest.mock import patch

import pytest

from webreview.models import db
from webreview.models.project import Feedback, Project
from webreview.services.email_service import EmailService


@pytest.fixture()
def review_project(developer, client_user, make_project):
    """A pending project owned by *developer* with *client_user* assigned."""
    project = make_project(developer, assigned_clients=[client_user.id])
    client_user.assigned_projects = [project.id]
    db.session.commit()
    return project


def _post(client, headers, project_id, **body):
    return client.post(f"/api/projects/{project_id}/feedback", json=body, headers=headers)


# ═══════════════════════════════════════════════════════════════
# Create
# ═══════════════════════════════════════════════════════════════

class TestCreateFeedback:
    def test_first_feedback_moves_to_review(self, client, client_user, review_project, auth_headers):
        res = _post(client, auth_headers(client_user), review_project.id, text="Logo is blurry")
        assert res.status_code == 201
        fb = res.get_json()["feedback"]
        assert fb["type"] == "general"
        assert fb["priority"] == "medium"
        assert fb["status"] == "open"
        assert fb["authorId"] == client_user.id
        assert fb["authorName"] == client_user.name
        assert fb["authorRole"] == "client"
        assert fb["resolvedAt"] is None

        assert db.session.get(Project, review_project.id).status == "in-review"

    @pytest.mark.parametrize("author, fb_type", [
        ("developer", "general"),
        ("developer", "bug"),
        ("developer", "change"),
        ("developer", "approval"),
        ("client_user", "bug"),
        ("client_user", "change"),
    ])
    def test_any_feedback_moves_pending_to_review(self, request, client, review_project,
                                                  auth_headers, author, fb_type):
        user = request.getfixturevalue(author)
        res = _post(client, auth_headers(user), review_project.id, text="Checked", type=fb_type)
        assert res.status_code == 201
        assert db.session.get(Project, review_project.id).status == "in-review"

    def test_feedback_bumps_project_activity(self, client, client_user, review_project, auth_headers):
        before = review_project.updated_at
        _post(client, auth_headers(client_user), review_project.id, text="Nice")
        db.session.refresh(review_project)
        assert review_project.updated_at > before

    def test_client_approval(self, client, client_user, review_project, auth_headers):
        res = _post(client, auth_headers(client_user), review_project.id,
                    text="Ship it", type="approval", priority="low")
        assert res.status_code == 201
        fb = res.get_json()["feedback"]
        assert fb["status"] == "resolved"
        assert fb["resolvedBy"] == client_user.id
        assert fb["resolvedAt"] is not None
        assert db.session.get(Project, review_project.id).status == "approved"

    def test_staff_approval_does_not_approve_project(self, client, developer, review_project, auth_headers):
        res = _post(client, auth_headers(developer), review_project.id, text="Looks done", type="approval")
        assert res.status_code == 201
        assert res.get_json()["feedback"]["status"] == "resolved"
        assert db.session.get(Project, review_project.id).status == "in-review"

    def test_approved_project_stays_approved(self, client, developer, client_user, make_project, auth_headers):
        project = make_project(developer, status="approved", assigned_clients=[client_user.id])
        _post(client, auth_headers(client_user), project.id, text="One more thing", type="change")
        assert db.session.get(Project, project.id).status == "approved"

    def test_archived_project_accepts_feedback(self, client, developer, make_project, auth_headers):
        project = make_project(developer, status="archived")
        res = _post(client, auth_headers(developer), project.id, text="Post-mortem note")
        assert res.status_code == 201
        assert db.session.get(Project, project.id).status == "archived"

    @pytest.mark.parametrize("body, message", [
        ({}, "Feedback text is required"),
        ({"text": "   "}, "Feedback text is required"),
        ({"text": "x", "type": "rant"}, "Invalid feedback type"),
        ({"text": "x", "priority": "urgent"}, "Invalid priority"),
    ])
    def test_validation(self, client, client_user, review_project, auth_headers, body, message):
        res = _post(client, auth_headers(client_user), review_project.id, **body)
        assert res.status_code == 400
        assert res.get_json()["error"] == message
        assert Feedback.query.count() == 0
        assert db.session.get(Project, review_project.id).status == "pending"

    def test_unassigned_client_forbidden(self, client, other_client, review_project, auth_headers):
        res = _post(client, auth_headers(other_client), review_project.id, text="Hi")
        assert res.status_code == 403

    def test_missing_project(self, client, developer, auth_headers):
        res = _post(client, auth_headers(developer), "nope", text="Hi")
        assert res.status_code == 404


# ═══════════════════════════════════════════════════════════════
# Notification
# ═══════════════════════════════════════════════════════════════

class TestDeveloperNotification:
    def test_client_feedback_emails_assigned_developers(self, client, developer, client_user,
                                                         review_project, auth_headers):
        with patch.object(EmailService, "send_feedback_notification", return_value=1) as notify:
            _post(client, auth_headers(client_user), review_project.id, text="Typo on /about", type="bug")
        notify.assert_called_once()
        feedback, project, recipients = notify.call_args.args
        assert feedback.text == "Typo on /about"
        assert project.id == review_project.id
        assert recipients == [developer.email]

    def test_staff_feedback_does_not_notify(self, client, developer, review_project, auth_headers):
        with patch.object(EmailService, "send_feedback_notification") as notify:
            _post(client, auth_headers(developer), review_project.id, text="Internal note")
        notify.assert_not_called()

    def test_inactive_developer_skipped(self, client, developer, client_user, review_project, auth_headers):
        developer.is_active = False
        db.session.commit()
        with patch.object(EmailService, "send_feedback_notification") as notify:
            res = _post(client, auth_headers(client_user), review_project.id, text="Hello?")
        assert res.status_code == 201
        notify.assert_not_called()

    def test_smtp_failure_does_not_fail_request(self, client, app, client_user, review_project,
                                                auth_headers, monkeypatch):
        monkeypatch.setitem(app.config, "MAIL_SERVER", "smtp.invalid")
        with patch.object(EmailService, "_send_smtp", side_effect=OSError("unreachable")):
            res = _post(client, auth_headers(client_user), review_project.id, text="Still saved")
        assert res.status_code == 201
        assert Feedback.query.count() == 1

    def test_email_escapes_feedback_text(self, app, client_user, review_project, monkeypatch):
        monkeypatch.setitem(app.config, "MAIL_SERVER", "smtp.example.com")
        fb = Feedback(project_id=review_project.id, text="<script>alert(1)</script>",
                      type="bug", priority="high", author_name=client_user.name)
        with patch.object(EmailService, "_send_smtp") as send:
            sent = EmailService.send_feedback_notification(fb, review_project, ["dev@acme.test"])
        assert sent == 1
        kwargs = send.call_args.kwargs
        assert "<script>" not in kwargs["html_body"]
        assert "&lt;script&gt;" in kwargs["html_body"]
        assert f"#project={review_project.id}" in kwargs["text_body"]
        assert kwargs["subject"] == "New bug feedback on Acme Site"


# ═══════════════════════════════════════════════════════════════
# Listing
# ═══════════════════════════════════════════════════════════════

class TestListFeedback:
    def test_scenario_unassigned_client_cannot_read(self, client, developer, client_user,
                                                    make_project, auth_headers):
        p1 = make_project(developer, name="P1", assigned_clients=[client_user.id])
        p2 = make_project(developer, name="P2")
        _post(client, auth_headers(developer), p2.id, text="Internal")

        assert client.get(f"/api/projects/{p1.id}/feedback",
                          headers=auth_headers(client_user)).status_code == 200
        res = client.get(f"/api/projects/{p2.id}/feedback", headers=auth_headers(client_user))
        assert res.status_code == 403

    def test_project_feedback_newest_first(self, client, developer, review_project, auth_headers):
        _post(client, auth_headers(developer), review_project.id, text="first")
        _post(client, auth_headers(developer), review_project.id, text="second")
        res = client.get(f"/api/projects/{review_project.id}/feedback", headers=auth_headers(developer))
        assert [f["text"] for f in res.get_json()["feedback"]] == ["second", "first"]

    def test_all_feedback_scoped_to_visible_projects(self, client, developer, client_user,
                                                     review_project, make_project, auth_headers):
        hidden = make_project(developer, name="Hidden")
        _post(client, auth_headers(developer), review_project.id, text="visible")
        _post(client, auth_headers(developer), hidden.id, text="hidden")

        res = client.get("/api/feedback", headers=auth_headers(client_user))
        assert [f["text"] for f in res.get_json()["feedback"]] == ["visible"]

        res = client.get("/api/feedback", headers=auth_headers(developer))
        assert len(res.get_json()["feedback"]) == 2

    def test_client_without_projects_sees_nothing(self, client, other_client, review_project, auth_headers):
        res = client.get("/api/feedback", headers=auth_headers(other_client))
        assert res.get_json()["feedback"] == []

    def test_other_org_project_is_404(self, client, developer, outsider, make_project, auth_headers):
        foreign = make_project(outsider)
        res = client.get(f"/api/projects/{foreign.id}/feedback", headers=auth_headers(developer))
        assert res.status_code == 404


# ═══════════════════════════════════════════════════════════════
# Status updates
# ═══════════════════════════════════════════════════════════════

class TestUpdateFeedbackStatus:
    @pytest.fixture()
    def feedback(self, client, client_user, review_project, auth_headers):
        res = _post(client, auth_headers(client_user), review_project.id, text="Fix footer")
        return res.get_json()["feedback"]

    def _patch(self, client, headers, feedback_id, **body):
        return client.patch(f"/api/feedback/{feedback_id}", json=body, headers=headers)

    def test_resolve_sets_stamp(self, client, developer, review_project, feedback, auth_headers):
        res = self._patch(client, auth_headers(developer), feedback["id"],
                          status="resolved", projectId=review_project.id)
        assert res.status_code == 200
        data = res.get_json()["feedback"]
        assert data["status"] == "resolved"
        assert data["resolvedBy"] == developer.id
        assert data["resolvedAt"] is not None

    def test_reopen_clears_stamp(self, client, developer, review_project, feedback, auth_headers):
        headers = auth_headers(developer)
        self._patch(client, headers, feedback["id"], status="resolved", projectId=review_project.id)
        res = self._patch(client, headers, feedback["id"], status="in-progress", projectId=review_project.id)
        data = res.get_json()["feedback"]
        assert data["status"] == "in-progress"
        assert data["resolvedAt"] is None
        assert data["resolvedBy"] is None

    def test_client_forbidden(self, client, client_user, review_project, feedback, auth_headers):
        res = self._patch(client, auth_headers(client_user), feedback["id"],
                          status="resolved", projectId=review_project.id)
        assert res.status_code == 403
        assert res.get_json()["error"] == "Only developers can update feedback status"

    def test_project_id_required(self, client, developer, feedback, auth_headers):
        res = self._patch(client, auth_headers(developer), feedback["id"], status="resolved")
        assert res.status_code == 400
        assert res.get_json()["error"] == "projectId is required"

    def test_status_required(self, client, developer, review_project, feedback, auth_headers):
        res = self._patch(client, auth_headers(developer), feedback["id"], projectId=review_project.id)
        assert res.status_code == 400
        assert res.get_json()["error"] == "No valid updates provided"

    def test_invalid_status(self, client, developer, review_project, feedback, auth_headers):
        res = self._patch(client, auth_headers(developer), feedback["id"],
                          status="wontfix", projectId=review_project.id)
        assert res.status_code == 400
        assert res.get_json()["error"] == "Invalid status"

    def test_mismatched_project_is_404(self, client, developer, feedback, make_project, auth_headers):
        other = make_project(developer, name="Other")
        res = self._patch(client, auth_headers(developer), feedback["id"],
                          status="resolved", projectId=other.id)
        assert res.status_code == 404
        assert res.get_json()["error"] == "Feedback not found"

    def test_other_org_cannot_touch(self, client, outsider, review_project, feedback, auth_headers):
        res = self._patch(client, auth_headers(outsider), feedback["id"],
                          status="resolved", projectId=review_project.id)
        assert res.status_code == 404
