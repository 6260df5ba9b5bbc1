from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class PurchaseRequest(db.Model):
    """
    Purchase request moving through supervisor then executive review.

    STATUS: pending-supervisor -> pending-executive -> approved
            (either pending state) -> rejected

    Each review stage has its own approval slot (decision, decider,
    timestamp, note). Decisions start as "pending".
    """
    __tablename__ = "purchase_requests"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(16), nullable=False, unique=True, index=True)

    requested_by_id = db.Column(db.String(64), db.ForeignKey("employees.id"), nullable=True, index=True)
    requested_by_name = db.Column(db.String(120), nullable=False)

    reason = db.Column(db.Text, nullable=False)
    needed_by = db.Column(db.Date, nullable=True)

    status = db.Column(db.String(32), nullable=False, default="pending-supervisor", index=True)

    supervisor_decision = db.Column(db.String(16), nullable=False, default="pending")
    supervisor_by = db.Column(db.String(120), nullable=True)
    supervisor_at = db.Column(db.DateTime(timezone=True), nullable=True)
    supervisor_note = db.Column(db.Text, nullable=True)

    executive_decision = db.Column(db.String(16), nullable=False, default="pending")
    executive_by = db.Column(db.String(120), nullable=True)
    executive_at = db.Column(db.DateTime(timezone=True), nullable=True)
    executive_note = db.Column(db.Text, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    lines = db.relationship(
        "PurchaseRequestLine",
        backref="request",
        lazy=True,
        order_by="PurchaseRequestLine.id",
        cascade="all, delete-orphan",
    )
    history = db.relationship(
        "PurchaseRequestEvent",
        backref="request",
        lazy=True,
        order_by="PurchaseRequestEvent.id",
    )

    __mapper_args__ = {"version_id_col": version_id}

    def _slot(self, stage: str) -> dict:
        return {
            "status": getattr(self, f"{stage}_decision"),
            "by": getattr(self, f"{stage}_by"),
            "at": to_utc_z(getattr(self, f"{stage}_at")),
            "note": getattr(self, f"{stage}_note"),
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "requested_by_id": self.requested_by_id,
            "requested_by": self.requested_by_name,
            "items": [line.to_dict() for line in self.lines],
            "reason": self.reason,
            "needed_by": self.needed_by.isoformat() if self.needed_by else None,
            "status": self.status,
            "approvals": {
                "supervisor": self._slot("supervisor"),
                "executive": self._slot("executive"),
            },
            "history": [event.to_dict() for event in self.history],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class PurchaseRequestLine(db.Model):
    __tablename__ = "purchase_request_lines"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_purchase_request_lines_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    request_id = db.Column(db.Integer, db.ForeignKey("purchase_requests.id"), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey("inventory_items.id"), nullable=True)
    name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit = db.Column(db.String(16), nullable=False, default="pcs")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
        }


class PurchaseRequestEvent(db.Model):
    """One history entry per transition. Append-only."""
    __tablename__ = "purchase_request_history"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    request_id = db.Column(db.Integer, db.ForeignKey("purchase_requests.id"), nullable=False, index=True)
    action = db.Column(db.String(32), nullable=False)  # created, supervisor-review, executive-review
    actor = db.Column(db.String(120), nullable=False)
    message = db.Column(db.Text, nullable=False)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "action": self.action,
            "actor": self.actor,
            "message": self.message,
            "timestamp": to_utc_z(self.occurred_at),
        }
