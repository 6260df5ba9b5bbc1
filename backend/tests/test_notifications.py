"""
Notification Center tests.
"""

import pytest
from sqlalchemy.exc import OperationalError

from opsengine.errors import InvalidRequest, NotificationNotFound
from opsengine.extensions import db
from opsengine.models import Notification


class TestCreate:

    def test_create_and_broadcast(self, engine, db_session, recorder):
        n = engine.notifications.create("Stock arrived", "20 bags of cement", "success", {"item_id": 1})

        assert n.id is not None
        assert n.is_read is False
        assert n.to_dict()["read"] is False
        assert n.to_dict()["meta"] == {"item_id": 1}

        messages = recorder.drain()
        assert [m["type"] for m in messages] == ["notifications:update"]
        assert messages[0]["payload"][0]["title"] == "Stock arrived"

    @pytest.mark.parametrize(
        "title,message,severity",
        [("", "body", "info"), ("Title", "  ", "info"), ("Title", "body", "critical")],
    )
    def test_validation(self, engine, db_session, title, message, severity):
        with pytest.raises(InvalidRequest):
            engine.notifications.create(title, message, severity)

    def test_notify_safely_swallows_store_failure(self, engine, db_session, monkeypatch):
        def broken_commit():
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db.session, "commit", broken_commit)
        assert engine.notifications.notify_safely("Title", "body") is None
        monkeypatch.undo()

        assert db.session.query(Notification).count() == 0

    def test_notify_safely_swallows_invalid_input(self, engine, db_session):
        assert engine.notifications.notify_safely("", "body") is None


class TestReadState:

    def test_mark_read_is_idempotent(self, engine, db_session):
        n = engine.notifications.create("A", "a")
        engine.notifications.mark_read(n.id)
        engine.notifications.mark_read(n.id)
        assert db.session.get(Notification, n.id).is_read is True
        assert engine.notifications.unread_count() == 0

    def test_mark_read_missing(self, engine, db_session):
        with pytest.raises(NotificationNotFound):
            engine.notifications.mark_read(12345)

    def test_mark_all_read_twice(self, engine, db_session, recorder):
        for i in range(3):
            engine.notifications.create(f"N{i}", "body")
        recorder.drain()

        assert engine.notifications.mark_all_read() == 3
        assert engine.notifications.mark_all_read() == 0
        assert engine.notifications.unread_count() == 0
        assert recorder.topics() == ["notifications:update", "notifications:update"]

    def test_list_recent_newest_first_and_capped(self, engine, db_session):
        for i in range(5):
            engine.notifications.create(f"N{i}", "body")
        titles = [n.title for n in engine.notifications.list_recent(limit=3)]
        assert titles == ["N4", "N3", "N2"]
        assert len(engine.notifications.list_recent(limit=10_000)) == 5
