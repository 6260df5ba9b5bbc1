from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ..validation import quantity_to_json


class InventoryItem(db.Model):
    """
    Stock-keeping item.

    Amounts are exact decimals. stock is only ever written by the
    inventory ledger; opening_stock is fixed at creation so the ledger
    can always be reconciled:

        stock == opening_stock + sum(IN) - sum(OUT)
    """
    __tablename__ = "inventory_items"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_inventory_items_stock_non_negative"),
        db.CheckConstraint("threshold >= 0", name="ck_inventory_items_threshold_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    barcode = db.Column(db.String(64), nullable=False, unique=True, index=True)
    category = db.Column(db.String(64), nullable=True)
    unit = db.Column(db.String(16), nullable=False, default="pcs")

    opening_stock = db.Column(db.Numeric(15, 3), nullable=False, default=0)
    stock = db.Column(db.Numeric(15, 3), nullable=False, default=0)
    threshold = db.Column(db.Numeric(15, 3), nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.threshold

    def __repr__(self) -> str:
        return f"<InventoryItem {self.barcode} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "barcode": self.barcode,
            "category": self.category,
            "unit": self.unit,
            "stock": quantity_to_json(self.stock),
            "threshold": quantity_to_json(self.threshold),
            "is_low_stock": self.is_low_stock,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class InventoryTransaction(db.Model):
    """
    Append-only ledger row. Never updated, never deleted
    (enforced in models/immutability.py).
    """
    __tablename__ = "inventory_transactions"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_inventory_transactions_quantity_positive"),
        db.Index("ix_inventory_tx_item_occurred", "item_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey("inventory_items.id"), nullable=False, index=True)

    # Denormalized so the log reads without joins
    item_name = db.Column(db.String(255), nullable=False)
    barcode = db.Column(db.String(64), nullable=False)

    action = db.Column(db.String(8), nullable=False)  # IN, OUT
    quantity = db.Column(db.Numeric(15, 3), nullable=False)
    actor = db.Column(db.String(120), nullable=False)
    actor_id = db.Column(db.String(64), nullable=True)
    reason = db.Column(db.String(255), nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    item = db.relationship("InventoryItem", backref=db.backref("transactions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "barcode": self.barcode,
            "action": self.action,
            "quantity": quantity_to_json(self.quantity),
            "actor": self.actor,
            "actor_id": self.actor_id,
            "reason": self.reason,
            "occurred_at": to_utc_z(self.occurred_at),
        }
