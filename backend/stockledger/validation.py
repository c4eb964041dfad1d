from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .models import CAPACITY_UNITS, CONDITION_STATUSES, DEFAULT_CAPACITY_UNIT


# Maximum price and capacity: 99,999,999.99 (fits NUMERIC(10, 2))
MAX_PRICE = Decimal("99999999.99")
MAX_CAPACITY = Decimal("99999999.99")

# Largest value an INTEGER column holds on every supported backend
MAX_QUANTITY = 2**31 - 1


class ValidationError(ValueError):
    """400-level input problem."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST; a present-but-empty value
      ("", 0, null) counts as missing
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _is_blank(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return value == 0
    return False


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        # String input - must be plain digits (with optional leading minus)
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            # Reject scientific notation (e.g., "1e15", "1E10")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            # Reject decimal points (e.g., "12.5")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        # Reject floats explicitly
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        # Other types
        raise ValidationError(f"{col.key} must be an integer")

    # Decimals (prices, capacity)
    if isinstance(coltype, Numeric):
        if isinstance(value, bool):
            raise ValidationError(f"{col.key} must be a number")
        if isinstance(value, float) and not math.isfinite(value):
            raise ValidationError(f"{col.key} must be a finite number")
        if isinstance(value, (int, float, Decimal)):
            dec = Decimal(str(value))
        elif isinstance(value, str):
            try:
                dec = Decimal(value.strip())
            except InvalidOperation:
                raise ValidationError(f"{col.key} must be a number")
        else:
            raise ValidationError(f"{col.key} must be a number")
        if not dec.is_finite():
            raise ValidationError(f"{col.key} must be a finite number")
        return dec

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in {"false", "0", "no", "off"}:
            return False
        # fallback: truthiness
        return bool(value)

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
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
        missing = sorted(f for f in required if _is_blank(payload.get(f)))
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

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank strings: NULL for nullable columns, rejected otherwise
        if isinstance(col.type, (String, Text)) and isinstance(val, str) and val == "":
            if not col.nullable:
                raise ValidationError(f"{k} cannot be blank")
            val = None

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _require_positive_int(patch: dict, field: str, label: str) -> None:
    value = patch.get(field)
    if value is None or value <= 0:
        raise ValidationError(f"{label} must be a positive integer")
    if value > MAX_QUANTITY:
        raise ValidationError(f"{label} cannot exceed {MAX_QUANTITY:,}")


def _require_positive_price(patch: dict, field: str, label: str) -> None:
    value = patch.get(field)
    if value is None or value <= 0:
        raise ValidationError(f"{label} must be a positive number")
    if value > MAX_PRICE:
        raise ValidationError(f"{label} cannot exceed {MAX_PRICE:,}")


def _check_condition_status(patch: dict) -> None:
    status = patch.get("condition_status")
    if status is not None and status not in CONDITION_STATUSES:
        raise ValidationError(
            f"condition_status must be one of: {', '.join(CONDITION_STATUSES)}"
        )


def normalize_capacity_unit(value: Any) -> str:
    """Unknown or missing units fall back to the default instead of failing."""
    return value if value in CAPACITY_UNITS else DEFAULT_CAPACITY_UNIT


def enforce_rules_inbound(patch: dict) -> None:
    """
    Business rules for a delivery that may create or merge a catalog row.
    """
    capacity = patch.get("capacity")
    if capacity is None or capacity <= 0:
        raise ValidationError("Capacity must be a positive number")
    if capacity > MAX_CAPACITY:
        raise ValidationError(f"Capacity cannot exceed {MAX_CAPACITY:,}")
    _require_positive_int(patch, "quantity", "Quantity")
    _require_positive_price(patch, "unit_price", "Unit price")
    _check_condition_status(patch)

    for speed in ("read_speed", "write_speed"):
        value = patch.get(speed)
        if value is not None and not 0 <= value <= MAX_QUANTITY:
            raise ValidationError(f"{speed} must be between 0 and {MAX_QUANTITY:,}")


def enforce_rules_stock_movement(patch: dict) -> None:
    """Rules shared by add-quantity and outbound requests."""
    product_id = patch.get("product_id")
    if product_id is None or not 0 < product_id <= MAX_QUANTITY:
        raise ValidationError("Product ID and valid quantity are required")
    if patch.get("quantity") is None or patch["quantity"] <= 0:
        raise ValidationError("Product ID and valid quantity are required")
    _require_positive_int(patch, "quantity", "Quantity")
    if patch.get("unit_price") is not None:
        _require_positive_price(patch, "unit_price", "Unit price")


def enforce_rules_product_edit(patch: dict) -> None:
    if "unit_price" in patch:
        _require_positive_price(patch, "unit_price", "Unit price")
    _check_condition_status(patch)


def drop_blank(payload: dict, *fields: str) -> dict:
    """Copy of payload without the named optional fields when they are empty."""
    return {k: v for k, v in payload.items() if not (k in fields and _is_blank(v))}


def split_inbound_payload(payload: dict) -> tuple[dict, dict]:
    """
    Separate an inbound request into catalog fields and ledger fields.

    capacity_unit is normalized here, before column validation, so that an
    unknown unit never reaches the length/null checks.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    product_fields = {k: v for k, v in payload.items() if k != "notes"}
    product_fields["capacity_unit"] = normalize_capacity_unit(product_fields.get("capacity_unit"))
    # Absent status/active flags take their defaults in the service
    for key in ("condition_status", "is_active"):
        if product_fields.get(key) in (None, ""):
            product_fields.pop(key, None)
    ledger_fields = {"notes": payload["notes"]} if "notes" in payload else {}
    return product_fields, ledger_fields
