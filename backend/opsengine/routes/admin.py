# Overview: Flask API routes for role and employee administration.

"""
Admin Routes

SECURITY:
- Listing roles and employees requires MANAGE_ROLES.
- Role edits and employee provisioning are authorized inside the
  services (MANAGE_ROLES); full-access roles are immutable.
"""

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..engine import get_engine
from ..permissions import Capability, catalog
from ..services import auth_service, permission_service
from ..validation import coerce_int

admin_bp = Blueprint("admin", __name__, url_prefix="/api")


@admin_bp.get("/roles")
@require_auth
@require_permission(Capability.MANAGE_ROLES)
def list_roles_route():
    roles = permission_service.list_roles()
    return jsonify({
        "roles": [role.to_dict() for role in roles],
        "catalog": catalog(),
    })


@admin_bp.put("/roles/<int:role_id>/permissions")
@require_auth
def update_role_permissions_route(role_id: int):
    data = request.get_json(silent=True) or {}
    role = permission_service.update_role_permissions(
        role_id,
        data.get("permissions"),
        principal=g.principal,
        notifications=get_engine().notifications,
    )
    return jsonify({"role": role.to_dict()})


@admin_bp.get("/employees")
@require_auth
@require_permission(Capability.MANAGE_ROLES)
def list_employees_route():
    return jsonify({"employees": [e.to_dict() for e in auth_service.list_employees()]})


@admin_bp.post("/employees")
@require_auth
def create_employee_route():
    data = request.get_json(silent=True) or {}
    role_id = data.get("role_id")
    employee = auth_service.create_employee(
        principal=g.principal,
        notifications=get_engine().notifications,
        name=data.get("name"),
        email=data.get("email"),
        role_id=coerce_int(role_id, "role_id") if role_id is not None else None,
        designation=data.get("designation"),
        department=data.get("department"),
        employee_id=data.get("id"),
    )
    return jsonify({"employee": employee.to_dict()}), 201


@admin_bp.patch("/employees/<employee_id>/status")
@require_auth
def set_employee_status_route(employee_id: str):
    data = request.get_json(silent=True) or {}
    employee = auth_service.set_employee_status(employee_id, data.get("status"), principal=g.principal)
    return jsonify({"employee": employee.to_dict()})
