"""
Feedback Blueprint.

  GET   /api/feedback                      — feedback on every visible project
  GET   /api/projects/<id>/feedback        — feedback on one project
  POST  /api/projects/<id>/feedback        — add feedback (anyone who can see the project)
  PATCH /api/feedback/<id>                 — change status (developer/admin)
"""

from flask import Blueprint, g, jsonify

from webreview.middleware.permission_required import require_auth, require_role
from webreview.models.auth import ROLE_DEVELOPER
from webreview.services import feedback_service
from webreview.utils.helpers import json_body

feedback_bp = Blueprint("feedback", __name__, url_prefix="/api")


@feedback_bp.route("/feedback", methods=["GET"])
@require_auth
def list_feedback():
    items = feedback_service.list_feedback_for_user(g.current_user)
    return jsonify({"feedback": [f.to_dict() for f in items]}), 200


@feedback_bp.route("/projects/<project_id>/feedback", methods=["GET"])
@require_auth
def list_project_feedback(project_id):
    items = feedback_service.list_project_feedback(g.current_user, project_id)
    return jsonify({"feedback": [f.to_dict() for f in items]}), 200


@feedback_bp.route("/projects/<project_id>/feedback", methods=["POST"])
@require_auth
def create_feedback(project_id):
    """
    Body: { "text", "type"?, "priority"? }

    type defaults to general, priority to medium.  Approval feedback is
    stored already resolved.
    """
    feedback = feedback_service.create_feedback(g.current_user, project_id, json_body())
    return jsonify({"feedback": feedback.to_dict()}), 201


@feedback_bp.route("/feedback/<feedback_id>", methods=["PATCH"])
@require_role(ROLE_DEVELOPER, message="Only developers can update feedback status")
def update_feedback(feedback_id):
    """Body: { "status", "projectId" }"""
    feedback = feedback_service.update_feedback_status(g.current_user, feedback_id, json_body())
    return jsonify({"feedback": feedback.to_dict()}), 200
