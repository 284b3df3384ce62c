from __future__ import annotations
from datetime import date, datetime
from stockroom.time_utils import parse_iso_date

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Date, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Maximum price: R$9.999.999,99 (999,999,999 cents)
MAX_PRICE_CENTS = 999_999_999

# Largest stock quantity / threshold a single product may hold
MAX_QUANTITY = 10_000_000


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., deleting a supplier with orders)."""


class NotFoundError(LookupError):
    """404-level missing entity."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(value: Any, field: str) -> int:
    """Strict integer coercion: rejects bools, floats, decimals and scientific notation."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
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
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def coerce_date(value: Any, field: str) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return parse_iso_date(value)
        except ValueError:
            raise ValidationError(f"{field} must be an ISO-8601 date (YYYY-MM-DD)")
    raise ValidationError(f"{field} must be a date")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(value, col.key)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be a boolean")

    if isinstance(coltype, DateTime):
        raise ValidationError(f"{col.key} is read-only")

    if isinstance(coltype, Date):
        return coerce_date(value, col.key)

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

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
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

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        # Empty strings on nullable columns clear the value (form inputs send "")
        if isinstance(raw, str) and raw.strip() == "" and col.nullable:
            raw = None

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


def _check_cents(patch: dict, field: str) -> None:
    if field in patch and patch[field] is not None:
        value = patch[field]
        if value < 0:
            raise ValidationError(f"{field} must be >= 0")
        if value > MAX_PRICE_CENTS:
            raise ValidationError(f"{field} cannot exceed {MAX_PRICE_CENTS}")


def _check_quantity(patch: dict, field: str) -> None:
    if field in patch and patch[field] is not None:
        value = patch[field]
        if value < 0:
            raise ValidationError(f"{field} must be >= 0")
        if value > MAX_QUANTITY:
            raise ValidationError(f"{field} cannot exceed {MAX_QUANTITY}")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    _check_cents(patch, "unit_price_cents")
    _check_quantity(patch, "quantity_in_stock")
    _check_quantity(patch, "threshold")


def enforce_rules_supplier(patch: dict) -> None:
    lead = patch.get("delivery_lead_time_days")
    if lead is not None and lead < 0:
        raise ValidationError("delivery_lead_time_days must be >= 0")

    email = patch.get("email")
    if email is not None and "@" not in email:
        raise ValidationError("email must be a valid email address")


def parse_line_quantity(raw: Any, field: str = "quantity") -> int:
    """Quantity on an invoice / purchase-order line: integer > 0."""
    if raw is None:
        raise ValidationError(f"{field} is required")
    qty = coerce_int(raw, field)
    if qty <= 0:
        raise ValidationError(f"{field} must be > 0")
    if qty > MAX_QUANTITY:
        raise ValidationError(f"{field} cannot exceed {MAX_QUANTITY}")
    return qty


def parse_cents(raw: Any, field: str, *, default: int | None = None) -> int:
    """Money amount in integer cents, >= 0."""
    if raw is None:
        if default is None:
            raise ValidationError(f"{field} is required")
        return default
    cents = coerce_int(raw, field)
    _check_cents({field: cents}, field)
    return cents
