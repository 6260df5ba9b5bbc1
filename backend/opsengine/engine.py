# Overview: Composition of the operations engine components for one Flask app.

"""
One Engine per app, stored at app.extensions["opsengine"]. The hub and
the dashboard worker pool are owned here and started/stopped with it;
nothing is process-global.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from flask import current_app

from .extensions import ENGINE_KEY
from .services import attendance_service, inventory_service, purchase_service
from .services.attendance_service import AttendanceBook
from .services.auth_service import IdentityProvider, SignedTokenIdentityProvider
from .services.broadcast_service import BroadcastHub, SnapshotPublisher, Topic
from .services.dashboard_service import DashboardAggregator
from .services.inventory_service import InventoryLedger
from .services.notification_service import NotificationCenter
from .services.purchase_service import ApprovalWorkflow

logger = logging.getLogger(__name__)


@dataclass
class Engine:
    hub: BroadcastHub
    publisher: SnapshotPublisher
    identity: IdentityProvider
    notifications: NotificationCenter
    ledger: InventoryLedger
    workflow: ApprovalWorkflow
    attendance: AttendanceBook
    dashboard: DashboardAggregator
    default_role_name: str

    def start(self) -> None:
        self.hub.start()

    def stop(self) -> None:
        self.hub.stop()
        self.dashboard.shutdown()


def build_engine(app, *, identity: IdentityProvider | None = None) -> Engine:
    config = app.config
    hub = BroadcastHub()
    publisher = SnapshotPublisher(hub)

    notifications = NotificationCenter(publisher, page_size=config["NOTIFICATION_PAGE_SIZE"])
    dashboard = DashboardAggregator(
        app,
        timeout=config["DASHBOARD_TIMEOUT_SECONDS"],
        trend_days=config["DASHBOARD_TREND_DAYS"],
        max_workers=config["DASHBOARD_WORKERS"],
    )

    publisher.register(Topic.NOTIFICATIONS, notifications.snapshot)
    publisher.register(Topic.INVENTORY, inventory_service.inventory_snapshot)
    publisher.register(Topic.PURCHASE, purchase_service.purchase_snapshot)
    publisher.register(Topic.ATTENDANCE, attendance_service.attendance_snapshot)
    publisher.register(Topic.DASHBOARD, dashboard.compute_summary)

    engine = Engine(
        hub=hub,
        publisher=publisher,
        identity=identity or SignedTokenIdentityProvider(
            config["SECRET_KEY"],
            max_age=config["TOKEN_MAX_AGE_SECONDS"],
        ),
        notifications=notifications,
        ledger=InventoryLedger(publisher, notifications),
        workflow=ApprovalWorkflow(publisher, notifications),
        attendance=AttendanceBook(publisher, notifications, late_after_hour=config["LATE_AFTER_HOUR"]),
        dashboard=dashboard,
        default_role_name=config["DEFAULT_ROLE_NAME"],
    )
    app.extensions[ENGINE_KEY] = engine
    return engine


def get_engine() -> Engine:
    return current_app.extensions[ENGINE_KEY]
