# Overview: Flask API routes for the notification feed.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..engine import get_engine
from ..permissions import Capability

notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notifications_bp.get("")
@require_auth
@require_permission(Capability.VIEW_NOTIFICATIONS)
def list_route():
    center = get_engine().notifications
    limit = request.args.get("limit", type=int)
    return jsonify({
        "notifications": [n.to_dict() for n in center.list_recent(limit)],
        "unread": center.unread_count(),
    })


@notifications_bp.post("/<int:notification_id>/read")
@require_auth
@require_permission(Capability.VIEW_NOTIFICATIONS)
def mark_read_route(notification_id: int):
    notification = get_engine().notifications.mark_read(notification_id)
    return jsonify({"notification": notification.to_dict()})


@notifications_bp.post("/read-all")
@require_auth
@require_permission(Capability.VIEW_NOTIFICATIONS)
def mark_all_read_route():
    updated = get_engine().notifications.mark_all_read()
    return jsonify({"updated": updated})
