"""
Dashboard Aggregator tests.
"""

import threading
import time
from datetime import timedelta

import pytest

from opsengine.errors import AggregationTimeout
from opsengine.extensions import db
from opsengine.models import InventoryTransaction
from opsengine.services import dashboard_service
from opsengine.time_utils import utcnow, utctoday


def _backdated_tx(item, action, quantity, days_ago):
    db.session.add(InventoryTransaction(
        item_id=item.id,
        item_name=item.name,
        barcode=item.barcode,
        action=action,
        quantity=quantity,
        actor="Seeder",
        occurred_at=utcnow() - timedelta(days=days_ago),
    ))
    db.session.commit()


class TestSummary:

    def test_empty_store(self, engine, db_session):
        summary = engine.dashboard.compute_summary()
        assert summary["totals"] == {
            "inventory_count": 0,
            "distinct_items": 0,
            "low_stock": 0,
            "pending_requests": 0,
        }
        assert summary["attendance_percentage"] == 0
        assert summary["attendance_summary"] == {"present": 0, "absent": 0, "late": 0}
        assert len(summary["movement_trend"]) == 7
        assert summary["notifications_unread"] == 0
        assert summary["generated_at"].endswith("Z")

    def test_totals(self, engine, staff, make_item):
        make_item(name="Cement", barcode="CEM-001", stock=10, threshold=3)
        make_item(name="Sand", barcode="SND-001", stock=2, threshold=5)
        engine.workflow.submit(principal=staff, items=[{"name": "Sand", "quantity": 10}])
        engine.ledger.apply("CEM-001", "OUT", 4, principal=staff)

        summary = engine.dashboard.compute_summary()

        assert summary["totals"]["inventory_count"] == 8
        assert summary["totals"]["distinct_items"] == 2
        assert summary["totals"]["low_stock"] == 1
        assert summary["totals"]["pending_requests"] == 1
        assert [i["barcode"] for i in summary["low_stock"]] == ["SND-001"]
        assert [p["code"] for p in summary["pending_requests"]] == ["PR-0001"]
        assert summary["stock_distribution"] == [{"name": "Cement", "value": 6}, {"name": "Sand", "value": 2}]
        assert len(summary["recent_transactions"]) == 1
        assert summary["notifications_unread"] == 1

    def test_movement_trend_window(self, engine, staff, make_item):
        item = make_item(stock=100, threshold=0)
        engine.ledger.apply("CEM-001", "IN", 5, principal=staff)
        engine.ledger.apply("CEM-001", "OUT", 2, principal=staff)
        _backdated_tx(item, "OUT", 7, days_ago=2)
        _backdated_tx(item, "IN", 50, days_ago=10)

        trend = dashboard_service.movement_trend(7)

        assert [t["date"] for t in trend][-1] == utctoday().isoformat()
        assert [t["date"] for t in trend][0] == (utctoday() - timedelta(days=6)).isoformat()
        assert trend[-1]["inbound"] == 5
        assert trend[-1]["outbound"] == 2
        assert trend[-3]["outbound"] == 7
        assert sum(t["inbound"] for t in trend) == 5

    def test_attendance_percentage(self, engine, supervisor, make_principal):
        team = [make_principal("Staff", f"s{i}", f"Worker {i}") for i in range(4)]
        for principal, status in zip(team, ["present", "late", "absent", "present"]):
            engine.attendance.record(principal.id, status, principal=supervisor)

        summary = engine.dashboard.compute_summary()
        assert summary["attendance_summary"] == {"present": 2, "absent": 1, "late": 1}
        assert summary["attendance_percentage"] == 75


class TestTimeout:

    def test_slow_aggregation_times_out(self, engine, db_session, monkeypatch):
        def slow_summary(**kwargs):
            time.sleep(0.5)
            return {}

        monkeypatch.setattr(dashboard_service, "compute_summary", slow_summary)
        with pytest.raises(AggregationTimeout):
            engine.dashboard.compute_summary(timeout=0.05)

    def test_stalled_workers_fail_fast(self, app, db_session, monkeypatch):
        release = threading.Event()
        calls = []

        def stuck_summary(**kwargs):
            calls.append(1)
            release.wait(timeout=5)
            return {"ok": True}

        monkeypatch.setattr(dashboard_service, "compute_summary", stuck_summary)
        aggregator = dashboard_service.DashboardAggregator(app, timeout=0.2, max_workers=1)
        try:
            with pytest.raises(AggregationTimeout):
                aggregator.compute_summary()
            assert aggregator.stalled_count() == 1

            with pytest.raises(AggregationTimeout, match="still running"):
                aggregator.compute_summary()
            assert len(calls) == 1

            release.set()
            deadline = time.monotonic() + 5
            while aggregator.stalled_count() and time.monotonic() < deadline:
                time.sleep(0.01)
            assert aggregator.stalled_count() == 0
            assert aggregator.compute_summary(timeout=1) == {"ok": True}
        finally:
            release.set()
            aggregator.shutdown()


class TestConfiguration:

    @pytest.mark.parametrize("trend_days", [0, -3])
    def test_trend_window_must_be_positive(self, app, trend_days):
        with pytest.raises(ValueError, match="trend_days"):
            dashboard_service.DashboardAggregator(app, trend_days=trend_days)

    def test_pool_must_have_a_worker(self, app):
        with pytest.raises(ValueError, match="max_workers"):
            dashboard_service.DashboardAggregator(app, max_workers=0)

    def test_decimal_stock_totals(self, engine, staff, make_item):
        make_item(name="Cement", barcode="CEM-001", stock=10, threshold=0)
        engine.ledger.apply("CEM-001", "OUT", 2.25, principal=staff)

        summary = engine.dashboard.compute_summary()

        assert summary["totals"]["inventory_count"] == 7.75
        assert summary["stock_distribution"] == [{"name": "Cement", "value": 7.75}]
        assert summary["movement_trend"][-1]["outbound"] == 2.25
