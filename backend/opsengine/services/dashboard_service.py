# Overview: Dashboard Aggregator; derived summary statistics recomputed on demand.

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from decimal import Decimal

from sqlalchemy import func

from ..errors import AggregationTimeout
from ..extensions import db
from ..models import InventoryItem, InventoryTransaction, Notification, PurchaseRequest
from ..time_utils import day_bounds, to_utc_z, trailing_days, utcnow
from ..validation import quantity_to_json
from .attendance_service import summarize, todays_records
from .inventory_service import list_low_stock, list_transactions
from .purchase_service import PENDING_STATUSES, list_pending

logger = logging.getLogger(__name__)

RECENT_TRANSACTIONS_LIMIT = 10


def movement_trend(days: int) -> list[dict]:
    """Inbound/outbound sums per UTC day for the trailing window, oldest first."""
    window = trailing_days(days)
    start, _ = day_bounds(window[0])
    buckets = {day: {"inbound": Decimal(0), "outbound": Decimal(0)} for day in window}

    rows = (
        db.session.query(InventoryTransaction.action, InventoryTransaction.quantity, InventoryTransaction.occurred_at)
        .filter(InventoryTransaction.occurred_at >= start)
        .all()
    )
    for action, quantity, occurred_at in rows:
        bucket = buckets.get(occurred_at.date())
        if bucket is None:
            continue
        bucket["inbound" if action == "IN" else "outbound"] += quantity

    return [
        {
            "date": day.isoformat(),
            "label": day.strftime("%a"),
            "inbound": quantity_to_json(buckets[day]["inbound"]),
            "outbound": quantity_to_json(buckets[day]["outbound"]),
        }
        for day in window
    ]


def compute_summary(*, trend_days: int = 7) -> dict:
    total_stock, distinct_items = db.session.query(
        func.coalesce(func.sum(InventoryItem.stock), 0),
        func.count(InventoryItem.id),
    ).one()
    low_stock = list_low_stock()
    pending_count = (
        db.session.query(func.count(PurchaseRequest.id))
        .filter(PurchaseRequest.status.in_(PENDING_STATUSES))
        .scalar()
    )
    unread = (
        db.session.query(func.count(Notification.id))
        .filter(Notification.is_read.is_(False))
        .scalar()
    )
    attendance = summarize(todays_records())
    distribution = (
        db.session.query(InventoryItem.name, InventoryItem.stock)
        .order_by(InventoryItem.stock.desc(), InventoryItem.name)
        .all()
    )

    return {
        "totals": {
            "inventory_count": quantity_to_json(total_stock or 0),
            "distinct_items": int(distinct_items or 0),
            "low_stock": len(low_stock),
            "pending_requests": int(pending_count or 0),
        },
        "attendance_summary": {
            "present": attendance["present"],
            "absent": attendance["absent"],
            "late": attendance["late"],
        },
        "attendance_percentage": attendance["attendance_percentage"],
        "movement_trend": movement_trend(trend_days),
        "stock_distribution": [{"name": name, "value": quantity_to_json(stock)} for name, stock in distribution],
        "low_stock": [item.to_dict() for item in low_stock],
        "recent_transactions": [tx.to_dict() for tx in list_transactions(limit=RECENT_TRANSACTIONS_LIMIT)],
        "pending_requests": [r.to_dict() for r in list_pending()],
        "notifications_unread": int(unread or 0),
        "generated_at": to_utc_z(utcnow()),
    }


class DashboardAggregator:
    """
    Runs compute_summary on a worker thread so a slow record store turns
    into AggregationTimeout instead of a hung request.

    A worker that overruns its budget cannot be interrupted. It is kept
    in a stalled set until it finishes; while every worker is stalled,
    new summaries fail at once instead of queueing behind them.
    """

    def __init__(self, app, *, timeout: float = 5.0, trend_days: int = 7, max_workers: int = 2):
        if trend_days < 1:
            raise ValueError(f"trend_days must be at least 1, got {trend_days}")
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.app = app
        self.timeout = timeout
        self.trend_days = trend_days
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="dashboard")
        self._stalled: set[Future] = set()
        self._lock = threading.Lock()

    def _run(self) -> dict:
        with self.app.app_context():
            return compute_summary(trend_days=self.trend_days)

    def _release(self, future: Future) -> None:
        with self._lock:
            self._stalled.discard(future)
        logger.info("Stalled dashboard aggregation finished")

    def stalled_count(self) -> int:
        with self._lock:
            return len(self._stalled)

    def compute_summary(self, timeout: float | None = None) -> dict:
        budget = self.timeout if timeout is None else timeout
        with self._lock:
            saturated = len(self._stalled) >= self.max_workers
        if saturated:
            logger.warning("Dashboard aggregation refused: all %d workers are stalled", self.max_workers)
            raise AggregationTimeout("Dashboard summary is unavailable while earlier aggregations are still running.")

        future = self._executor.submit(self._run)
        try:
            return future.result(timeout=budget)
        except FutureTimeoutError:
            if not future.cancel():
                with self._lock:
                    self._stalled.add(future)
                    stalled = len(self._stalled)
                future.add_done_callback(self._release)
                logger.warning(
                    "Dashboard aggregation exceeded %.1fs; worker still running (%d/%d stalled)",
                    budget, stalled, self.max_workers,
                )
            else:
                logger.warning("Dashboard aggregation exceeded %.1fs while queued", budget)
            raise AggregationTimeout(f"Dashboard summary did not complete within {budget:g} seconds.")

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
