# Overview: Error taxonomy for the operations engine and its HTTP rendering.

"""
Every failure the engine reports to a caller is one of the classes below.
Each carries the HTTP status it maps to and a short ``kind`` string so that
routes, the CLI and tests can all match on the same thing.

Best-effort side effects (notifications, broadcast delivery) never raise
these to the caller; they are logged instead.
"""

from __future__ import annotations

import logging

from flask import jsonify
from sqlalchemy.exc import OperationalError

logger = logging.getLogger(__name__)


class OperationsError(Exception):
    """Base class for failures reported verbatim to the caller."""
    status_code = 500
    kind = "error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.__class__.__doc__ or self.kind)
        self.message = message or (self.__class__.__doc__ or self.kind).strip()

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message}


class AuthenticationFailure(OperationsError):
    """Missing, invalid or expired credential."""
    status_code = 401
    kind = "authentication_failure"


class AuthorizationFailure(OperationsError):
    """Principal lacks the required capability."""
    status_code = 403
    kind = "authorization_failure"

    def __init__(self, message: str | None = None, *, capability: str | None = None):
        super().__init__(message)
        self.capability = capability

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.capability:
            body["required_permission"] = self.capability
        return body


class NotFound(OperationsError):
    """Referenced record does not exist."""
    status_code = 404
    kind = "not_found"


class ItemNotFound(NotFound):
    """Inventory item not found."""


class RequestNotFound(NotFound):
    """Purchase request not found."""


class EmployeeNotFound(NotFound):
    """Employee not found."""


class RoleNotFound(NotFound):
    """Role not found."""


class NotificationNotFound(NotFound):
    """Notification not found."""


class InvalidRequest(OperationsError, ValueError):
    """Malformed input."""
    status_code = 400
    kind = "invalid_request"


# Historical name used by the payload validators
ValidationError = InvalidRequest


class InsufficientStock(OperationsError):
    """Stock would go negative."""
    status_code = 409
    kind = "insufficient_stock"


class InvalidStateTransition(OperationsError):
    """Workflow transition not allowed from the current state."""
    status_code = 409
    kind = "invalid_state_transition"


class ConcurrentModification(OperationsError):
    """Record changed underneath the operation; re-read and retry."""
    status_code = 409
    kind = "conflict"


class AggregationTimeout(OperationsError):
    """Dashboard aggregation exceeded its time budget."""
    status_code = 504
    kind = "aggregation_timeout"


class DownstreamUnavailable(OperationsError):
    """Record store or identity provider unavailable."""
    status_code = 503
    kind = "downstream_unavailable"


def register_error_handlers(app) -> None:
    @app.errorhandler(OperationsError)
    def handle_operations_error(exc: OperationsError):
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(OperationalError)
    def handle_store_unavailable(exc: OperationalError):
        logger.exception("Record store unavailable")
        err = DownstreamUnavailable("Record store is unavailable. Try again.")
        return jsonify(err.to_dict()), err.status_code
