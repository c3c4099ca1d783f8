"""
Dashboard blueprint — SLA statistics.

Endpoints:
    GET /api/v1/submissions/stats
"""

from flask import Blueprint

from legal_desk.services.stats_service import compute_stats
from legal_desk.utils.errors import api_ok

dashboard_bp = Blueprint("dashboard_bp", __name__, url_prefix="/api/v1")


@dashboard_bp.route("/submissions/stats", methods=["GET"])
def submission_stats():
    return api_ok(compute_stats())
