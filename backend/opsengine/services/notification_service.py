# Overview: Notification Center; records operator-facing events and re-broadcasts the feed.

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from ..errors import InvalidRequest, NotificationNotFound
from ..extensions import db
from ..models import Notification
from ..time_utils import utcnow
from .broadcast_service import SnapshotPublisher, Topic

logger = logging.getLogger(__name__)

SEVERITIES = ("info", "success", "warning", "error")


class NotificationCenter:
    """
    Owns Notification creation and read state.

    Every create/mark call commits and then pushes the notification list
    so subscribers see it immediately.
    """

    def __init__(self, publisher: SnapshotPublisher, *, page_size: int = 50):
        self.publisher = publisher
        self.page_size = page_size

    def create(self, title: str, message: str, severity: str = "info", meta: dict | None = None) -> Notification:
        title = (title or "").strip()
        message = (message or "").strip()
        if not title:
            raise InvalidRequest("title is required")
        if not message:
            raise InvalidRequest("message is required")
        severity = (severity or "info").lower()
        if severity not in SEVERITIES:
            raise InvalidRequest(f"severity must be one of: {', '.join(SEVERITIES)}")
        if meta is not None and not isinstance(meta, dict):
            raise InvalidRequest("meta must be an object")

        notification = Notification(
            title=title,
            message=message,
            severity=severity,
            meta=dict(meta or {}),
            is_read=False,
            created_at=utcnow(),
        )
        db.session.add(notification)
        db.session.commit()

        self.publisher.push(Topic.NOTIFICATIONS)
        return notification

    def notify_safely(self, title: str, message: str, severity: str = "info", meta: dict | None = None) -> Notification | None:
        """create() for side effects of another mutation: failures are logged, not raised."""
        try:
            return self.create(title, message, severity, meta)
        except (SQLAlchemyError, InvalidRequest):
            db.session.rollback()
            logger.exception("Failed to record notification %r", title)
            return None

    def mark_read(self, notification_id: int) -> Notification:
        notification = db.session.get(Notification, notification_id)
        if notification is None:
            raise NotificationNotFound(f"Notification {notification_id} not found")
        if not notification.is_read:
            notification.is_read = True
            db.session.commit()
        self.publisher.push(Topic.NOTIFICATIONS)
        return notification

    def mark_all_read(self) -> int:
        """Returns how many notifications flipped to read."""
        updated = (
            db.session.query(Notification)
            .filter(Notification.is_read.is_(False))
            .update({Notification.is_read: True}, synchronize_session=False)
        )
        db.session.commit()
        self.publisher.push(Topic.NOTIFICATIONS)
        return updated

    def list_recent(self, limit: int | None = None) -> list[Notification]:
        limit = self.page_size if limit is None else max(1, min(int(limit), self.page_size))
        return (
            db.session.query(Notification)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
            .all()
        )

    def unread_count(self) -> int:
        return db.session.query(Notification).filter(Notification.is_read.is_(False)).count()

    def snapshot(self) -> list[dict]:
        return [n.to_dict() for n in self.list_recent()]
