from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class AttendanceRecord(db.Model):
    """
    Attendance mark for one employee.

    kind distinguishes manager-entered marks from self-service clock
    events. Clock-out rows are bookkeeping and are excluded from the
    present/absent/late summary.

    clock_day is set only on clock rows; the unique constraint allows one
    clock-in and one clock-out per employee per UTC day. Manual marks
    leave it NULL and are unconstrained.
    """
    __tablename__ = "attendance_records"
    __table_args__ = (
        db.Index("ix_attendance_employee_recorded", "employee_id", "recorded_at"),
        db.UniqueConstraint("employee_id", "kind", "clock_day", name="uq_attendance_clock_once_per_day"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.String(64), db.ForeignKey("employees.id"), nullable=False, index=True)
    employee_name = db.Column(db.String(120), nullable=False)

    status = db.Column(db.String(16), nullable=False)  # Present, Absent, Late
    kind = db.Column(db.String(16), nullable=False, default="manual")  # manual, clock-in, clock-out
    note = db.Column(db.Text, nullable=True)

    recorded_by = db.Column(db.String(120), nullable=True)
    recorded_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    clock_day = db.Column(db.Date, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "status": self.status,
            "kind": self.kind,
            "note": self.note,
            "recorded_by": self.recorded_by,
            "timestamp": to_utc_z(self.recorded_at),
        }
