# Overview: Flask API route for the dashboard summary.

from flask import Blueprint, jsonify

from ..decorators import require_auth, require_permission
from ..engine import get_engine
from ..permissions import Capability

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/summary")
@require_auth
@require_permission(Capability.VIEW_DASHBOARD)
def summary_route():
    # AggregationTimeout renders as 504 via the app error handler
    return jsonify(get_engine().dashboard.compute_summary())
