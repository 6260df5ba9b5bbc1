# Overview: Server-Sent Events endpoint feeding broadcast hub messages to a browser.

"""
Each connection becomes a QueueSubscriber on the hub. The generator
drains it and writes SSE frames; idle periods send a comment line so
proxies keep the connection open and dead clients are noticed.

Clients re-fetch current state over the REST routes after (re)connecting;
nothing missed while disconnected is replayed.
"""

import logging

from flask import Blueprint, Response, current_app, g, stream_with_context

from ..decorators import require_stream_auth
from ..engine import get_engine
from ..services.broadcast_service import QueueSubscriber

logger = logging.getLogger(__name__)

stream_bp = Blueprint("stream", __name__, url_prefix="/api")


def format_sse(message: str) -> str:
    """The hub message already carries its topic in "type"."""
    return f"data: {message}\n\n"


@stream_bp.get("/stream")
@require_stream_auth
def stream_route():
    hub = get_engine().hub
    heartbeat = current_app.config["STREAM_HEARTBEAT_SECONDS"]
    subscriber = QueueSubscriber(
        maxsize=current_app.config["BROADCAST_QUEUE_SIZE"],
        label=g.principal.id,
    )
    hub.subscribe(subscriber)
    logger.info("Stream opened for %s (%d subscribers)", g.principal.id, hub.subscriber_count())

    def generate():
        try:
            yield ": connected\n\n"
            for message in subscriber.iter_messages(heartbeat):
                if message is None:
                    yield ": keep-alive\n\n"
                else:
                    yield format_sse(message)
        finally:
            hub.unsubscribe(subscriber)
            subscriber.close()
            logger.info("Stream closed for %s", subscriber.label)

    return Response(
        stream_with_context(generate()),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
