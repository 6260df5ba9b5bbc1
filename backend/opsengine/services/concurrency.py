# Overview: Per-entity serialization helpers for ledger and workflow mutations.

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import ConcurrentModification
from ..extensions import db

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def lock_for_update(query):
    """
    Apply row-level locking for read-modify-write.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; there the version_id
    check on flush is what serializes writers.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.05, retry_on=RETRYABLE_ERRORS):
    """
    Execute a read-modify-write unit with retry on concurrency failures.

    func must re-read everything it depends on; after a rollback the
    session's identity map is expired, so each attempt sees fresh rows.
    """
    for attempt in range(attempts):
        try:
            return func()
        except retry_on as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            logger.debug("Retrying after %s (attempt %d/%d)", type(exc).__name__, attempt + 1, attempts)
            time.sleep(backoff_base * (2 ** attempt))


def commit_or_conflict(message: str) -> None:
    """Commit once; a lost optimistic-lock race becomes ConcurrentModification."""
    try:
        db.session.commit()
    except StaleDataError:
        db.session.rollback()
        raise ConcurrentModification(message)
