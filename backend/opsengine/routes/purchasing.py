# Overview: Flask API routes for purchase requests and their two-stage review.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth
from ..engine import get_engine
from ..errors import AuthorizationFailure
from ..services import purchase_service

purchasing_bp = Blueprint("purchasing", __name__, url_prefix="/api/purchase-requests")


@purchasing_bp.get("")
@require_auth
def list_route():
    """Own requests for requesters; everything for reviewers."""
    return jsonify(purchase_service.purchase_snapshot(g.principal))


@purchasing_bp.get("/<int:request_id>")
@require_auth
def get_route(request_id: int):
    req = purchase_service.get_request(request_id)
    if req.requested_by_id != g.principal.id and not purchase_service.can_review_any(g.principal):
        raise AuthorizationFailure("You can only view your own purchase requests.")
    return jsonify({"request": req.to_dict()})


@purchasing_bp.post("")
@require_auth
def submit_route():
    data = request.get_json(silent=True) or {}
    req = get_engine().workflow.submit(
        principal=g.principal,
        items=data.get("items"),
        reason=data.get("reason"),
        needed_by=data.get("needed_by"),
    )
    return jsonify({"request": req.to_dict()}), 201


@purchasing_bp.post("/<int:request_id>/review")
@require_auth
def review_route(request_id: int):
    data = request.get_json(silent=True) or {}
    req = get_engine().workflow.review(
        request_id,
        principal=g.principal,
        decision=data.get("decision"),
        note=data.get("note"),
        expected_status=data.get("expected_status"),
    )
    return jsonify({"request": req.to_dict()})
