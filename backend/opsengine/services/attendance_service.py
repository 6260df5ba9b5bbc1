# Overview: Attendance book; manager-recorded marks, self-service clock in/out and snapshots.

"""
Attendance

Managers record Present/Absent/Late for any employee. Employees clock
themselves in and out once per UTC day; a clock-in at or after the
configured hour is Late.

Summary counts cover today's records and exclude clock-out rows.
Attendance percentage is (present + late) / (present + absent + late),
as a rounded integer percent, 0 when nothing has been recorded.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from ..errors import InvalidRequest
from ..extensions import db
from ..models import AttendanceRecord
from ..permissions import Capability
from ..time_utils import day_bounds, utcnow, utctoday
from ..validation import normalize_attendance_status
from .auth_service import get_employee
from .broadcast_service import SnapshotPublisher, Topic
from .permission_service import PrincipalContext, require_capability

logger = logging.getLogger(__name__)

RECENT_LIMIT = 50
LATEST_LIMIT = 6

CLOCK_IN = "clock-in"
CLOCK_OUT = "clock-out"
CLOCK_ACTIONS = {"in": CLOCK_IN, "out": CLOCK_OUT}


def summarize(records) -> dict:
    counts = {"present": 0, "absent": 0, "late": 0}
    for record in records:
        if record.kind == CLOCK_OUT:
            continue
        key = (record.status or "").lower()
        if key in counts:
            counts[key] += 1
    total = sum(counts.values())
    attended = counts["present"] + counts["late"]
    counts["attendance_percentage"] = round(attended * 100 / total) if total else 0
    return counts


def todays_records(employee_id: str | None = None) -> list[AttendanceRecord]:
    start, end = day_bounds(utctoday())
    q = db.session.query(AttendanceRecord).filter(
        AttendanceRecord.recorded_at >= start,
        AttendanceRecord.recorded_at < end,
    )
    if employee_id is not None:
        q = q.filter(AttendanceRecord.employee_id == employee_id)
    return q.order_by(AttendanceRecord.recorded_at, AttendanceRecord.id).all()


def attendance_snapshot(principal: PrincipalContext | None = None) -> dict:
    """
    Recent records plus today's summary. Employees without
    MANAGE_ATTENDANCE only see their own rows.
    """
    owner = None
    if principal is not None and not principal.can(Capability.MANAGE_ATTENDANCE):
        owner = principal.id

    q = db.session.query(AttendanceRecord)
    if owner is not None:
        q = q.filter(AttendanceRecord.employee_id == owner)
    records = q.order_by(AttendanceRecord.recorded_at.desc(), AttendanceRecord.id.desc()).limit(RECENT_LIMIT).all()

    return {
        "records": [r.to_dict() for r in records],
        "summary": summarize(todays_records(owner)),
        "latest": [r.to_dict() for r in records[:LATEST_LIMIT]],
    }


def my_status(principal: PrincipalContext) -> dict:
    records = todays_records(principal.id)
    clock_in = next((r for r in records if r.kind == CLOCK_IN), None)
    clock_out = next((r for r in records if r.kind == CLOCK_OUT), None)
    return {
        "clocked_in": clock_in is not None,
        "clocked_out": clock_out is not None,
        "clock_in_time": clock_in.to_dict()["timestamp"] if clock_in else None,
        "clock_out_time": clock_out.to_dict()["timestamp"] if clock_out else None,
        "status": clock_in.status if clock_in else None,
    }


class AttendanceBook:
    def __init__(self, publisher: SnapshotPublisher, notifications, *, late_after_hour: int = 9):
        self.publisher = publisher
        self.notifications = notifications
        self.late_after_hour = late_after_hour

    def record(self, employee_id: str, status: str, *, principal: PrincipalContext, note: str | None = None) -> AttendanceRecord:
        require_capability(principal, Capability.MANAGE_ATTENDANCE)
        status = normalize_attendance_status(status)
        employee = get_employee(employee_id)

        record = AttendanceRecord(
            employee_id=employee.id,
            employee_name=employee.name,
            status=status,
            kind="manual",
            note=(note or "").strip() or None,
            recorded_by=principal.name,
            recorded_at=utcnow(),
        )
        db.session.add(record)
        db.session.commit()

        logger.info("Attendance %s for %s recorded by %s", status, employee.id, principal.id)
        self.notifications.notify_safely(
            "Attendance updated",
            f"{employee.name} marked {status} by {principal.name}.",
            "info",
            {"employee_id": employee.id},
        )
        self.publisher.push(Topic.ATTENDANCE, Topic.DASHBOARD)
        return record

    def clock(self, action: str, *, principal: PrincipalContext) -> AttendanceRecord:
        kind = CLOCK_ACTIONS.get((action or "").strip().lower()) if isinstance(action, str) else None
        if kind is None:
            raise InvalidRequest("action must be one of: in, out")

        today = todays_records(principal.id)
        clock_in = next((r for r in today if r.kind == CLOCK_IN), None)
        clock_out = next((r for r in today if r.kind == CLOCK_OUT), None)

        now = utcnow()
        if kind == CLOCK_IN:
            if clock_in is not None:
                raise InvalidRequest("You have already clocked in today.")
            status = "Late" if now.hour >= self.late_after_hour else "Present"
        else:
            if clock_in is None:
                raise InvalidRequest("You must clock in before clocking out.")
            if clock_out is not None:
                raise InvalidRequest("You have already clocked out today.")
            status = clock_in.status

        record = AttendanceRecord(
            employee_id=principal.id,
            employee_name=principal.name,
            status=status,
            kind=kind,
            note="Clock In" if kind == CLOCK_IN else "Clock Out",
            recorded_by=principal.name,
            recorded_at=now,
            clock_day=now.date(),
        )
        db.session.add(record)
        try:
            db.session.commit()
        except IntegrityError:
            # A concurrent clock event for the same day landed first
            db.session.rollback()
            done = "in" if kind == CLOCK_IN else "out"
            raise InvalidRequest(f"You have already clocked {done} today.")

        logger.info("%s %s (%s)", principal.id, kind, status)
        self.publisher.push(Topic.ATTENDANCE, Topic.DASHBOARD)
        return record
