from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Notification(db.Model):
    """
    Operator-facing event produced by ledger, workflow, attendance
    and role changes. Only the read flag ever changes after creation.
    """
    __tablename__ = "notifications"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    severity = db.Column(db.String(16), nullable=False, default="info")  # info, success, warning, error
    is_read = db.Column(db.Boolean, nullable=False, default=False, index=True)
    meta = db.Column(db.JSON, nullable=False, default=dict)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "message": self.message,
            "severity": self.severity,
            "read": self.is_read,
            "meta": self.meta or {},
            "created_at": to_utc_z(self.created_at),
        }
