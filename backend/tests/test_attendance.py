"""
Attendance tests: manager-recorded marks, self-service clocking, summaries.
"""

from types import SimpleNamespace

import pytest

from opsengine.errors import AuthorizationFailure, EmployeeNotFound, InvalidRequest
from opsengine.extensions import db
from opsengine.models import AttendanceRecord
from opsengine.services import attendance_service
from opsengine.services.attendance_service import summarize


def _rec(status, kind="manual"):
    return SimpleNamespace(status=status, kind=kind)


class TestSummarize:

    def test_empty(self):
        assert summarize([]) == {"present": 0, "absent": 0, "late": 0, "attendance_percentage": 0}

    def test_late_counts_as_attended(self):
        summary = summarize([_rec("Present"), _rec("Late"), _rec("Absent")])
        assert summary["attendance_percentage"] == 67

    def test_clock_out_rows_ignored(self):
        summary = summarize([_rec("Present", "clock-in"), _rec("Present", "clock-out")])
        assert summary["present"] == 1
        assert summary["attendance_percentage"] == 100


class TestRecord:

    def test_manager_records(self, engine, supervisor, staff, recorder):
        record = engine.attendance.record(staff.id, "late", principal=supervisor, note="Traffic")
        assert record.status == "Late"
        assert record.employee_name == "Alice"
        assert record.recorded_by == "Sam"
        topics = recorder.topics()
        assert "attendance:update" in topics
        assert "dashboard:update" in topics

    def test_staff_cannot_record(self, engine, staff):
        with pytest.raises(AuthorizationFailure):
            engine.attendance.record(staff.id, "present", principal=staff)

    def test_unknown_employee(self, engine, supervisor):
        with pytest.raises(EmployeeNotFound):
            engine.attendance.record("ghost", "present", principal=supervisor)

    def test_invalid_status(self, engine, supervisor, staff):
        with pytest.raises(InvalidRequest):
            engine.attendance.record(staff.id, "sick", principal=supervisor)


class TestClock:

    @pytest.fixture(autouse=True)
    def restore_late_hour(self, engine):
        original = engine.attendance.late_after_hour
        yield
        engine.attendance.late_after_hour = original

    def test_clock_in_then_out(self, engine, staff):
        engine.attendance.late_after_hour = 24
        record = engine.attendance.clock("in", principal=staff)
        assert record.status == "Present"
        assert record.kind == "clock-in"

        out = engine.attendance.clock("out", principal=staff)
        assert out.kind == "clock-out"
        assert out.status == "Present"

        status = attendance_service.my_status(staff)
        assert status["clocked_in"] is True
        assert status["clocked_out"] is True

    def test_late_clock_in(self, engine, staff):
        engine.attendance.late_after_hour = 0
        assert engine.attendance.clock("in", principal=staff).status == "Late"

    def test_double_clock_in(self, engine, staff):
        engine.attendance.clock("in", principal=staff)
        with pytest.raises(InvalidRequest, match="already clocked in"):
            engine.attendance.clock("in", principal=staff)

    def test_duplicate_clock_in_blocked_by_constraint(self, engine, staff, monkeypatch):
        engine.attendance.clock("in", principal=staff)
        # Simulate a racer that read before the first clock-in landed
        monkeypatch.setattr(attendance_service, "todays_records", lambda employee_id=None: [])

        with pytest.raises(InvalidRequest, match="already clocked in"):
            engine.attendance.clock("in", principal=staff)

        rows = db.session.query(AttendanceRecord).filter_by(employee_id=staff.id, kind="clock-in").count()
        assert rows == 1

    def test_manual_marks_not_limited(self, engine, supervisor, staff):
        engine.attendance.record(staff.id, "present", principal=supervisor)
        engine.attendance.record(staff.id, "late", principal=supervisor)
        assert db.session.query(AttendanceRecord).filter_by(employee_id=staff.id).count() == 2

    def test_clock_out_requires_clock_in(self, engine, staff):
        with pytest.raises(InvalidRequest, match="must clock in"):
            engine.attendance.clock("out", principal=staff)

    def test_double_clock_out(self, engine, staff):
        engine.attendance.clock("in", principal=staff)
        engine.attendance.clock("out", principal=staff)
        with pytest.raises(InvalidRequest, match="already clocked out"):
            engine.attendance.clock("out", principal=staff)

    def test_bad_action(self, engine, staff):
        with pytest.raises(InvalidRequest):
            engine.attendance.clock("lunch", principal=staff)


class TestSnapshot:

    def test_staff_sees_own_rows(self, engine, supervisor, staff, make_principal):
        other = make_principal("Staff", "staff-2", "Bob")
        engine.attendance.record(staff.id, "present", principal=supervisor)
        engine.attendance.record(other.id, "absent", principal=supervisor)

        own = attendance_service.attendance_snapshot(staff)
        assert [r["employee_id"] for r in own["records"]] == ["staff-1"]
        assert own["summary"]["attendance_percentage"] == 100

        everyone = attendance_service.attendance_snapshot(supervisor)
        assert len(everyone["records"]) == 2
        assert everyone["summary"]["attendance_percentage"] == 50
