# Overview: Flask API routes for attendance records and self-service clocking.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..engine import get_engine
from ..permissions import Capability
from ..services import attendance_service

attendance_bp = Blueprint("attendance", __name__, url_prefix="/api/attendance")


@attendance_bp.get("")
@require_auth
@require_permission(Capability.VIEW_ATTENDANCE)
def snapshot_route():
    return jsonify(attendance_service.attendance_snapshot(g.principal))


@attendance_bp.post("")
@require_auth
def record_route():
    data = request.get_json(silent=True) or {}
    record = get_engine().attendance.record(
        data.get("employee_id"),
        data.get("status"),
        principal=g.principal,
        note=data.get("note"),
    )
    return jsonify({"record": record.to_dict()}), 201


@attendance_bp.post("/clock")
@require_auth
def clock_route():
    data = request.get_json(silent=True) or {}
    record = get_engine().attendance.clock(data.get("action"), principal=g.principal)
    return jsonify({"record": record.to_dict()}), 201


@attendance_bp.get("/me")
@require_auth
def my_status_route():
    return jsonify(attendance_service.my_status(g.principal))
