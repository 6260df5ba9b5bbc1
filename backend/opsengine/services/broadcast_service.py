# Overview: Process-local fan-out of typed state snapshots to live subscribers.

"""
Broadcast Hub

The hub owns no domain data, only the set of connected subscribers.
publish() serializes a message once and hands the same string to every
subscriber that is currently open. Delivery is best effort:

- subscribers that are closed are skipped
- a subscriber whose buffer is full misses that one message
- nothing is queued for subscribers that connect later; they pull the
  current state on (re)connect

Membership changes and publishes may happen concurrently. publish()
copies the subscriber set under the lock and iterates the copy, so the
lock is never held while delivering.

SnapshotPublisher sits on top: mutating components call push(*topics)
after they commit and the publisher builds each topic's payload and
publishes it.
"""

from __future__ import annotations

import json
import logging
import queue
import threading
from typing import Callable, Iterator

from sqlalchemy.exc import SQLAlchemyError

from ..errors import OperationsError
from ..extensions import db

logger = logging.getLogger(__name__)


class Topic:
    DASHBOARD = "dashboard:update"
    INVENTORY = "inventory:update"
    ATTENDANCE = "attendance:update"
    PURCHASE = "purchase:update"
    NOTIFICATIONS = "notifications:update"

    ALL = (DASHBOARD, INVENTORY, ATTENDANCE, PURCHASE, NOTIFICATIONS)


class UnknownTopicError(ValueError):
    """Raised when publishing to a topic outside the fixed set."""


def encode_message(topic: str, payload) -> str:
    return json.dumps({"type": topic, "payload": payload}, default=str, separators=(",", ":"))


class Subscriber:
    """Transport-side endpoint. Subclasses decide how a message is delivered."""

    @property
    def is_open(self) -> bool:
        raise NotImplementedError

    def send(self, message: str) -> bool:
        """Deliver one encoded message. Returns False if it was dropped."""
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError


class QueueSubscriber(Subscriber):
    """
    Bounded mailbox drained by a streaming response.

    send() never blocks; when the mailbox is full the message is dropped
    for this subscriber only.
    """

    _CLOSE = object()

    def __init__(self, maxsize: int = 100, *, label: str | None = None):
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._open = True
        self.label = label

    @property
    def is_open(self) -> bool:
        return self._open

    def send(self, message: str) -> bool:
        if not self._open:
            return False
        try:
            self._queue.put_nowait(message)
        except queue.Full:
            return False
        return True

    def close(self) -> None:
        if not self._open:
            return
        self._open = False
        try:
            self._queue.put_nowait(self._CLOSE)
        except queue.Full:
            # Reader will notice is_open on its next heartbeat
            pass

    def get(self, timeout: float | None = None) -> str | None:
        """Next message, or None on timeout or close."""
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        if item is self._CLOSE:
            return None
        return item

    def iter_messages(self, heartbeat: float) -> Iterator[str | None]:
        """Yield messages until closed; yields None every idle heartbeat."""
        while self._open:
            yield self.get(timeout=heartbeat)


class BroadcastHub:
    """Fan-out mailbox keyed by topic. Start before publishing; stop closes everyone."""

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: set[Subscriber] = set()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        with self._lock:
            self._running = True
        logger.info("Broadcast hub started")

    def stop(self) -> None:
        with self._lock:
            self._running = False
            subscribers = list(self._subscribers)
            self._subscribers.clear()
        for subscriber in subscribers:
            subscriber.close()
        logger.info("Broadcast hub stopped; closed %d subscriber(s)", len(subscribers))

    def subscribe(self, subscriber: Subscriber) -> Subscriber:
        with self._lock:
            self._subscribers.add(subscriber)
        return subscriber

    def unsubscribe(self, subscriber: Subscriber) -> None:
        with self._lock:
            self._subscribers.discard(subscriber)

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, topic: str, payload) -> int:
        """Deliver to every open subscriber. Returns the number delivered."""
        if topic not in Topic.ALL:
            raise UnknownTopicError(f"Unknown broadcast topic: {topic}")

        with self._lock:
            if not self._running:
                return 0
            targets = list(self._subscribers)

        message = encode_message(topic, payload)
        delivered = 0
        for subscriber in targets:
            if not subscriber.is_open:
                continue
            try:
                ok = subscriber.send(message)
            except OSError:
                # Transport went away mid-send
                ok = False
            if ok:
                delivered += 1
            else:
                logger.debug("Dropped %s for subscriber %r", topic, subscriber)
        return delivered


SnapshotBuilder = Callable[[], object]


class SnapshotPublisher:
    """
    Uniform post-mutation fan-out.

    Components call push(Topic.INVENTORY, Topic.DASHBOARD) after commit.
    A builder that fails is logged and skipped; the mutation has already
    succeeded and other topics still go out.
    """

    def __init__(self, hub: BroadcastHub):
        self.hub = hub
        self._builders: dict[str, SnapshotBuilder] = {}

    def register(self, topic: str, builder: SnapshotBuilder) -> None:
        if topic not in Topic.ALL:
            raise UnknownTopicError(f"Unknown broadcast topic: {topic}")
        self._builders[topic] = builder

    def build(self, topic: str):
        builder = self._builders.get(topic)
        if builder is None:
            raise UnknownTopicError(f"No snapshot builder registered for {topic}")
        return builder()

    def push(self, *topics: str) -> None:
        if not self.hub.running:
            return
        for topic in topics:
            try:
                payload = self.build(topic)
            except (SQLAlchemyError, OperationsError):
                db.session.rollback()
                logger.exception("Failed to build %s snapshot; skipping broadcast", topic)
                continue
            self.hub.publish(topic, payload)
