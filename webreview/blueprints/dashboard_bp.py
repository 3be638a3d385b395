"""
Dashboard Blueprint

  GET /api/stats — counters for the caller's dashboard
"""

from flask import Blueprint, g, jsonify

from webreview.middleware.permission_required import require_auth
from webreview.services import dashboard_service as svc

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api")


@dashboard_bp.route("/stats", methods=["GET"])
@require_auth
def stats():
    """Project/feedback counts; staff also get client and invitation counts."""
    return jsonify({"stats": svc.get_stats(g.current_user)}), 200
