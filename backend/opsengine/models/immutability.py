"""
ORM guards for append-only tables.

Inventory transactions and purchase-request history rows are written
once. Any UPDATE or DELETE issued through the ORM is refused before SQL
reaches the database.
"""

from __future__ import annotations

from sqlalchemy import event

from .inventory import InventoryTransaction
from .purchasing import PurchaseRequestEvent


class ImmutableRecordError(RuntimeError):
    """Raised when code tries to modify an append-only row."""


def _refuse_update(mapper, connection, target):
    raise ImmutableRecordError(
        f"{target.__class__.__name__} {target.id} is append-only and cannot be modified"
    )


def _refuse_delete(mapper, connection, target):
    raise ImmutableRecordError(
        f"{target.__class__.__name__} {target.id} is append-only and cannot be deleted"
    )


_registered = False


def register_immutability_listeners() -> None:
    global _registered
    if _registered:
        return
    for model in (InventoryTransaction, PurchaseRequestEvent):
        event.listen(model, "before_update", _refuse_update)
        event.listen(model, "before_delete", _refuse_delete)
    _registered = True
