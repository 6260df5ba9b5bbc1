# backend/opsengine/routes/system.py
"""
System health endpoint.

Reports record-store connectivity and broadcast hub state for
deployment debugging.
"""

import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from ..engine import get_engine
from ..extensions import db
from ..models import InventoryItem, Role
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        role_count = db.session.query(Role).count()
        item_count = db.session.query(InventoryItem).count()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"roles": role_count, "items": item_count},
        }
    except SQLAlchemyError:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/api/health")
def health():
    database = check_database_health()
    hub = get_engine().hub
    healthy = database["status"] == "healthy"
    body = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": to_utc_z(utcnow()),
        "checks": {
            "database": database,
            "broadcast": {
                "status": "running" if hub.running else "stopped",
                "subscribers": hub.subscriber_count(),
            },
        },
    }
    return jsonify(body), 200 if healthy else 503
