"""
Project Blueprint — project CRUD and client assignment.

  GET    /api/projects                — visible projects, most recently updated first
  GET    /api/projects/<id>           — one project (403 for an unassigned client)
  POST   /api/projects                — create (developer/admin)
  PATCH  /api/projects/<id>           — update (staff: any field; client: approve only)
  DELETE /api/projects/<id>           — delete with its feedback (developer/admin)
  POST   /api/projects/<id>/assign    — replace the client list (developer/admin)
"""

from flask import Blueprint, g, jsonify

from webreview.middleware.permission_required import require_auth, require_role
from webreview.models.auth import ROLE_DEVELOPER
from webreview.services import project_service
from webreview.utils.helpers import json_body

project_bp = Blueprint("projects", __name__, url_prefix="/api/projects")


@project_bp.route("", methods=["GET"])
@require_auth
def list_projects():
    projects = project_service.list_projects_for_user(g.current_user)
    return jsonify({"projects": [p.to_dict() for p in projects]}), 200


@project_bp.route("/<project_id>", methods=["GET"])
@require_auth
def get_project(project_id):
    project = project_service.get_project_for_user(g.current_user, project_id)
    return jsonify({"project": project.to_dict()}), 200


@project_bp.route("", methods=["POST"])
@require_role(ROLE_DEVELOPER, message="Only developers can create projects")
def create_project():
    """
    Body: { "name", "client", "url", "description"?, "thumbnail"?, "assignedClients"? }

    A URL without a scheme is stored with ``https://`` prefixed.
    """
    project = project_service.create_project(g.current_user, json_body())
    return jsonify({"project": project.to_dict()}), 201


@project_bp.route("/<project_id>", methods=["PATCH"])
@require_auth
def update_project(project_id):
    project = project_service.update_project(g.current_user, project_id, json_body())
    return jsonify({"project": project.to_dict()}), 200


@project_bp.route("/<project_id>", methods=["DELETE"])
@require_role(ROLE_DEVELOPER, message="Only developers can delete projects")
def delete_project(project_id):
    project_service.delete_project(g.current_user, project_id)
    return jsonify({"message": "Project deleted successfully"}), 200


@project_bp.route("/<project_id>/assign", methods=["POST"])
@require_role(ROLE_DEVELOPER, message="Only developers can assign clients")
def assign_clients(project_id):
    """Body: { "clientIds": [...] } — ids of active client users of the organization."""
    project = project_service.assign_clients(
        g.current_user, project_id, json_body().get("clientIds"),
    )
    return jsonify({"project": project.to_dict()}), 200
