# Overview: Flask API routes for inventory; parses input and returns JSON responses.

"""
Inventory Routes

SECURITY:
- Reads require VIEW_INVENTORY.
- Scans (UPDATE_INVENTORY), item creation (MANAGE_INVENTORY) and
  threshold changes (CONFIGURE_THRESHOLDS) are authorized by the ledger.
"""

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..engine import get_engine
from ..permissions import Capability
from ..services import inventory_service

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
@require_auth
@require_permission(Capability.VIEW_INVENTORY)
def snapshot_route():
    return jsonify(inventory_service.inventory_snapshot())


@inventory_bp.get("/items")
@require_auth
@require_permission(Capability.VIEW_INVENTORY)
def list_items_route():
    items = inventory_service.list_items(request.args.get("q"))
    return jsonify({"items": [item.to_dict() for item in items]})


@inventory_bp.post("/items")
@require_auth
def create_item_route():
    data = request.get_json(silent=True) or {}
    item = get_engine().ledger.create_item(data, principal=g.principal)
    return jsonify({"item": item.to_dict()}), 201


@inventory_bp.get("/lookup")
@require_auth
@require_permission(Capability.VIEW_INVENTORY)
def lookup_route():
    item = inventory_service.find_item(request.args.get("q", ""))
    return jsonify({"item": item.to_dict()})


@inventory_bp.post("/scan")
@require_auth
def scan_route():
    """
    Apply one IN/OUT movement.

    Body: {barcode, action: IN|OUT, quantity, reason?}
    "barcode" may also be (part of) an item name.
    """
    data = request.get_json(silent=True) or {}
    result = get_engine().ledger.apply(
        data.get("barcode"),
        data.get("action"),
        data.get("quantity"),
        principal=g.principal,
        reason=data.get("reason"),
    )
    return jsonify({
        "item": result.item.to_dict(),
        "transaction": result.transaction.to_dict(),
        "snapshot": inventory_service.inventory_snapshot(),
    }), 201


@inventory_bp.put("/items/<int:item_id>/threshold")
@require_auth
def threshold_route(item_id: int):
    data = request.get_json(silent=True) or {}
    item = get_engine().ledger.set_threshold(item_id, data.get("threshold"), principal=g.principal)
    return jsonify({"item": item.to_dict()})


@inventory_bp.get("/items/<int:item_id>/reconcile")
@require_auth
@require_permission(Capability.VIEW_INVENTORY)
def reconcile_route(item_id: int):
    return jsonify(inventory_service.reconcile(item_id))


@inventory_bp.get("/transactions")
@require_auth
@require_permission(Capability.VIEW_INVENTORY)
def transactions_route():
    item_id = request.args.get("item_id", type=int)
    limit = min(request.args.get("limit", default=100, type=int) or 100, 500)
    txs = inventory_service.list_transactions(item_id=item_id, limit=limit)
    return jsonify({"transactions": [tx.to_dict() for tx in txs]})
