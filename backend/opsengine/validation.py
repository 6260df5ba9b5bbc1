from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .time_utils import parse_iso_date


# Stock, thresholds and ledger quantities are stored as NUMERIC(15, 3).
QUANTITY_SCALE = 3
QUANTITY_STEP = Decimal(1).scaleb(-QUANTITY_SCALE)
QUANTITY_LIMIT = Decimal(10) ** 12

LEDGER_ACTIONS = ("IN", "OUT")
REVIEW_DECISIONS = ("approve", "reject")
ATTENDANCE_STATUSES = ("present", "absent", "late")


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


INVENTORY_ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"name", "barcode", "category", "unit", "opening_stock", "threshold"},
    required_on_create={"name", "barcode"},
)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(value: Any, field: str) -> int:
    """Strict integer: rejects bools, floats, decimals and scientific notation."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValidationError(f"{field} must be an integer, not a decimal")
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    raise ValidationError(f"{field} must be an integer")


def coerce_quantity(value: Any, field: str) -> Decimal:
    """
    Exact decimal amount with at most QUANTITY_SCALE places.

    Floats go through repr() so 2.5 becomes Decimal("2.5"), not the
    binary expansion. Rejects bools, NaN, infinities and anything the
    column cannot hold.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, int):
        number = Decimal(value)
    elif isinstance(value, (float, str)):
        text = repr(value) if isinstance(value, float) else value.strip()
        try:
            number = Decimal(text)
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number")
    else:
        raise ValidationError(f"{field} must be a number")

    if not number.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if abs(number) >= QUANTITY_LIMIT:
        raise ValidationError(f"{field} is out of range")
    if number != number.quantize(QUANTITY_STEP):
        raise ValidationError(f"{field} allows at most {QUANTITY_SCALE} decimal places")
    return number.quantize(QUANTITY_STEP)


def quantity_to_json(value: Any) -> int | float | None:
    """Decimal column value -> JSON number (integral amounts stay ints)."""
    if value is None:
        return None
    number = Decimal(value)
    if number == number.to_integral_value():
        return int(number)
    return float(number)


def format_quantity(value: Any) -> str:
    return str(quantity_to_json(value))


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(value, col.key)

    if isinstance(coltype, Numeric):
        return coerce_quantity(value, col.key)

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_inventory_item(patch: dict) -> None:
    for field in ("opening_stock", "threshold"):
        if field in patch and patch[field] is not None:
            parse_non_negative_quantity(patch[field], field)


def parse_positive_quantity(value: Any, field: str = "quantity") -> Decimal:
    if value is None:
        raise ValidationError(f"{field} is required")
    qty = coerce_quantity(value, field)
    if qty <= 0:
        raise ValidationError(f"{field} must be greater than zero")
    return qty


def parse_non_negative_quantity(value: Any, field: str) -> Decimal:
    if value is None:
        raise ValidationError(f"{field} is required")
    number = coerce_quantity(value, field)
    if number < 0:
        raise ValidationError(f"{field} must be zero or greater")
    return number


def parse_positive_int(value: Any, field: str) -> int:
    if value is None:
        raise ValidationError(f"{field} is required")
    number = coerce_int(value, field)
    if number <= 0:
        raise ValidationError(f"{field} must be greater than zero")
    return number


def parse_date_field(value: Any, field: str) -> date | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be an ISO-8601 date")
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 date")


def normalize_choice(value: Any, field: str, choices: tuple[str, ...], *, upper: bool = False) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    normalized = value.strip().upper() if upper else value.strip().lower()
    if normalized not in choices:
        raise ValidationError(f"{field} must be one of: {', '.join(choices)}")
    return normalized


def normalize_ledger_action(value: Any) -> str:
    return normalize_choice(value, "action", LEDGER_ACTIONS, upper=True)


def normalize_review_decision(value: Any) -> str:
    return normalize_choice(value, "decision", REVIEW_DECISIONS)


def normalize_attendance_status(value: Any) -> str:
    """present/absent/late -> Present/Absent/Late"""
    return normalize_choice(value, "status", ATTENDANCE_STATUSES).capitalize()


def normalize_purchase_lines(items: Any) -> list[dict]:
    """
    Each line: {name, quantity, unit?, item_id?}. Returns cleaned dicts.
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("At least one item is required.")

    lines = []
    for index, raw in enumerate(items, start=1):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")
        name = str(raw.get("name") or "").strip()
        if not name:
            raise ValidationError(f"items[{index}].name is required")
        if len(name) > 255:
            raise ValidationError(f"items[{index}].name exceeds max length 255")
        quantity = parse_positive_int(raw.get("quantity"), f"items[{index}].quantity")
        unit = str(raw.get("unit") or "pcs").strip() or "pcs"
        if len(unit) > 16:
            raise ValidationError(f"items[{index}].unit exceeds max length 16")
        item_id = raw.get("item_id", raw.get("itemId"))
        if item_id is not None:
            item_id = coerce_int(item_id, f"items[{index}].item_id")
        lines.append({"name": name, "quantity": quantity, "unit": unit, "item_id": item_id})
    return lines
