# Overview: Inventory Ledger; the only writer of item stock and the append-only transaction log.

"""
Inventory Invariants (authoritative)

- stock >= 0 at all times. An OUT that would drive stock negative is
  rejected with InsufficientStock and writes nothing.
- Each successful apply writes the new stock AND one InventoryTransaction
  in the same DB transaction; either both land or neither does.
- Conservation: stock == opening_stock + sum(IN) - sum(OUT) for every item.
- Transactions are append-only (see models/immutability.py).
- stock <= threshold marks an item low-stock.

Concurrency:
- apply() is a read-modify-write on one item row. It locks the row where
  the database supports FOR UPDATE, and InventoryItem.version_id makes a
  concurrent writer's UPDATE fail with StaleDataError otherwise. The
  loser is retried from scratch: it re-reads stock and re-checks the
  non-negativity rule, so two racing OUTs can never both succeed.

Side effects after commit, best effort:
- low-stock notification when the new stock is at or below threshold
- broadcast of inventory and dashboard snapshots
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from decimal import Decimal

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..errors import InsufficientStock, InvalidRequest, ItemNotFound, OperationsError
from ..extensions import db
from ..models import InventoryItem, InventoryTransaction
from ..permissions import Capability
from ..time_utils import utcnow
from ..validation import (
    INVENTORY_ITEM_POLICY,
    QUANTITY_LIMIT,
    enforce_rules_inventory_item,
    format_quantity,
    normalize_ledger_action,
    parse_non_negative_quantity,
    parse_positive_quantity,
    quantity_to_json,
    validate_payload,
)
from .broadcast_service import SnapshotPublisher, Topic
from .concurrency import lock_for_update, run_with_retry
from .permission_service import PrincipalContext, require_capability

logger = logging.getLogger(__name__)

DEFAULT_REASONS = {
    "IN": "Stock replenishment",
    "OUT": "Inventory consumption",
}

RECENT_TRANSACTIONS_LIMIT = 20


@dataclass
class LedgerResult:
    item: InventoryItem
    transaction: InventoryTransaction

    def to_dict(self) -> dict:
        return {"item": self.item.to_dict(), "transaction": self.transaction.to_dict()}


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def find_item(query: str, *, lock: bool = False) -> InventoryItem:
    """
    Exact barcode match first, then case-insensitive name match
    (exact name before substring, ties broken by name).
    """
    if not isinstance(query, str) or not query.strip():
        raise InvalidRequest("barcode is required")
    needle = query.strip()

    q = db.session.query(InventoryItem).filter(InventoryItem.barcode == needle)
    if lock:
        q = lock_for_update(q)
    item = q.first()
    if item is not None:
        return item

    q = db.session.query(InventoryItem).filter(
        InventoryItem.name.ilike(f"%{_escape_like(needle)}%", escape="\\")
    )
    if lock:
        q = lock_for_update(q)
    candidates = q.order_by(InventoryItem.name, InventoryItem.id).all()
    if not candidates:
        raise ItemNotFound(f"No inventory item matches '{needle}'")
    for candidate in candidates:
        if candidate.name.lower() == needle.lower():
            return candidate
    return candidates[0]


def get_item(item_id: int) -> InventoryItem:
    item = db.session.get(InventoryItem, item_id)
    if item is None:
        raise ItemNotFound(f"Inventory item {item_id} not found")
    return item


def list_items(search: str | None = None) -> list[InventoryItem]:
    q = db.session.query(InventoryItem)
    if search and search.strip():
        pattern = f"%{_escape_like(search.strip())}%"
        q = q.filter(or_(
            InventoryItem.name.ilike(pattern, escape="\\"),
            InventoryItem.barcode.ilike(pattern, escape="\\"),
            InventoryItem.category.ilike(pattern, escape="\\"),
        ))
    return q.order_by(InventoryItem.name, InventoryItem.id).all()


def list_low_stock() -> list[InventoryItem]:
    return (
        db.session.query(InventoryItem)
        .filter(InventoryItem.stock <= InventoryItem.threshold)
        .order_by(InventoryItem.stock, InventoryItem.name)
        .all()
    )


def list_transactions(*, item_id: int | None = None, limit: int = 100) -> list[InventoryTransaction]:
    q = db.session.query(InventoryTransaction)
    if item_id is not None:
        q = q.filter(InventoryTransaction.item_id == item_id)
    return (
        q.order_by(InventoryTransaction.occurred_at.desc(), InventoryTransaction.id.desc())
        .limit(limit)
        .all()
    )


def inventory_snapshot() -> dict:
    return {
        "items": [item.to_dict() for item in list_items()],
        "low_stock": [item.to_dict() for item in list_low_stock()],
        "transactions": [tx.to_dict() for tx in list_transactions(limit=RECENT_TRANSACTIONS_LIMIT)],
    }


def reconcile(item_id: int) -> dict:
    """Check the conservation invariant for one item against its transactions."""
    item = get_item(item_id)
    totals = {"IN": Decimal(0), "OUT": Decimal(0)}
    rows = (
        db.session.query(InventoryTransaction.action, InventoryTransaction.quantity)
        .filter(InventoryTransaction.item_id == item.id)
        .all()
    )
    # SQLite hands back SUM over NUMERIC as a float
    for action, quantity in rows:
        totals[action] += quantity
    expected = item.opening_stock + totals["IN"] - totals["OUT"]
    return {
        "item_id": item.id,
        "barcode": item.barcode,
        "opening_stock": quantity_to_json(item.opening_stock),
        "inbound": quantity_to_json(totals["IN"]),
        "outbound": quantity_to_json(totals["OUT"]),
        "expected_stock": quantity_to_json(expected),
        "actual_stock": quantity_to_json(item.stock),
        "balanced": expected == item.stock,
    }


class InventoryLedger:
    """Applies stock movements and threshold changes, then fans out."""

    def __init__(self, publisher: SnapshotPublisher, notifications):
        self.publisher = publisher
        self.notifications = notifications

    def create_item(self, payload: dict, *, principal: PrincipalContext) -> InventoryItem:
        require_capability(principal, Capability.MANAGE_INVENTORY)

        patch = validate_payload(
            model=InventoryItem,
            payload=payload,
            policy=INVENTORY_ITEM_POLICY,
            partial=False,
        )
        enforce_rules_inventory_item(patch)

        opening = patch.pop("opening_stock", None) or 0
        item = InventoryItem(
            name=patch["name"],
            barcode=patch["barcode"],
            category=patch.get("category"),
            unit=patch.get("unit") or "pcs",
            threshold=patch.get("threshold") or 0,
            opening_stock=opening,
            stock=opening,
        )
        db.session.add(item)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise InvalidRequest(f"Barcode {patch['barcode']} is already in use")

        logger.info("Created inventory item %s (%s) by %s", item.id, item.barcode, principal.id)
        self.publisher.push(Topic.INVENTORY, Topic.DASHBOARD)
        return item

    def apply(
        self,
        query: str,
        action: str,
        quantity,
        *,
        principal: PrincipalContext,
        reason: str | None = None,
    ) -> LedgerResult:
        require_capability(principal, Capability.UPDATE_INVENTORY)

        if not isinstance(query, str) or not query.strip():
            raise InvalidRequest("barcode is required")
        action = normalize_ledger_action(action)
        qty = parse_positive_quantity(quantity)
        reason = (reason or "").strip() or DEFAULT_REASONS[action]
        if len(reason) > 255:
            raise InvalidRequest("reason exceeds max length 255")

        def _op() -> LedgerResult:
            item = find_item(query, lock=True)
            new_stock = item.stock + qty if action == "IN" else item.stock - qty
            if new_stock < 0:
                raise InsufficientStock(
                    f"Insufficient stock for OUT operation: {item.name} has "
                    f"{format_quantity(item.stock)} {item.unit}, requested {format_quantity(qty)}."
                )
            if new_stock >= QUANTITY_LIMIT:
                raise InvalidRequest(f"Stock for {item.name} would exceed the storable range")

            item.stock = new_stock
            tx = InventoryTransaction(
                item_id=item.id,
                item_name=item.name,
                barcode=item.barcode,
                action=action,
                quantity=qty,
                actor=principal.name,
                actor_id=principal.id,
                reason=reason,
                occurred_at=utcnow(),
            )
            db.session.add(tx)
            db.session.commit()
            return LedgerResult(item=item, transaction=tx)

        try:
            result = run_with_retry(_op)
        except OperationsError:
            # Release the row lock taken while checking
            db.session.rollback()
            raise
        item = result.item

        logger.info(
            "Ledger %s %s x%s by %s -> stock %s",
            action, item.barcode, format_quantity(qty), principal.id, format_quantity(item.stock),
        )

        if item.is_low_stock:
            self.notifications.notify_safely(
                "Low stock alert",
                f"{item.name} is below its threshold ({format_quantity(item.stock)} {item.unit}).",
                "warning",
                {"item_id": item.id},
            )

        self.publisher.push(Topic.INVENTORY, Topic.DASHBOARD)
        return result

    def set_threshold(self, item_id: int, value, *, principal: PrincipalContext) -> InventoryItem:
        require_capability(principal, Capability.CONFIGURE_THRESHOLDS)
        threshold = parse_non_negative_quantity(value, "threshold")

        def _op() -> InventoryItem:
            item = lock_for_update(
                db.session.query(InventoryItem).filter(InventoryItem.id == item_id)
            ).first()
            if item is None:
                raise ItemNotFound(f"Inventory item {item_id} not found")
            item.threshold = threshold
            db.session.commit()
            return item

        item = run_with_retry(_op)
        logger.info("Threshold for %s set to %s by %s", item.barcode, format_quantity(threshold), principal.id)

        self.notifications.notify_safely(
            "Inventory threshold updated",
            f"{item.name} threshold updated to {format_quantity(item.threshold)} {item.unit}.",
            "info",
            {"item_id": item.id},
        )
        self.publisher.push(Topic.INVENTORY, Topic.DASHBOARD)
        return item
