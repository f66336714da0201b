from __future__ import annotations
import math
from datetime import datetime
from .time_utils import parse_iso_datetime

from dataclasses import dataclass, field
from typing import Any, Callable

from sqlalchemy import Boolean, Integer, String, Text, DateTime, JSON
from sqlalchemy.orm import DeclarativeMeta


# Upper bound for a single size quantity; keeps totals inside a 32-bit column
MAX_SIZE_QUANTITY = 1_000_000


class ValidationError(ValueError):
    """400-level input problem."""

    def __init__(self, message: str, details: list[dict] | None = None):
        super().__init__(message)
        self.details = details or []


class ConflictError(ValueError):
    """Duplicate unique key (email, order number) or a repeated terminal action."""


class NotFoundError(LookupError):
    """404-level: a valid id with no matching record (for this caller)."""


class PermissionDeniedError(Exception):
    """403-level: authenticated, but the caller's role or identity may not do this."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: payload key -> model attribute (security boundary)
    - required_on_create: payload keys required for POST
    - allow_blank_fields: non-nullable text fields that may still be ""
    - coercers: payload key -> callable for JSON columns (lists, size breakdowns)
    """
    writable_fields: dict[str, str]
    required_on_create: frozenset[str] = frozenset()
    allow_blank_fields: frozenset[str] = frozenset()
    coercers: dict[str, Callable[[str, Any], Any]] = field(default_factory=dict)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(key: str, col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        return coerce_int(key, value)

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{key} must be a boolean")

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{key} must be an ISO-8601 date or datetime")
            if dt is None:
                raise ValidationError(f"{key} must be an ISO-8601 date or datetime")
            return dt
        raise ValidationError(f"{key} must be an ISO-8601 date or datetime")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list, bool)):
            raise ValidationError(f"{key} must be a string")
        return str(value).strip()

    if isinstance(coltype, JSON):
        raise ValidationError(f"{key} has no validator configured")

    # Default: leave as-is
    return value


def coerce_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    # Whole-number floats from JSON clients (3.0) are accepted, others are not
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def string_list(key: str, value: Any) -> list[str]:
    if not isinstance(value, list):
        raise ValidationError(f"{key} must be a list of strings")
    out = []
    for item in value:
        if not isinstance(item, str):
            raise ValidationError(f"{key} must be a list of strings")
        out.append(item.strip())
    return out


def number_list(key: str, value: Any) -> list[float | int]:
    if not isinstance(value, list):
        raise ValidationError(f"{key} must be a list of numbers")
    out: list[float | int] = []
    for item in value:
        if isinstance(item, bool):
            raise ValidationError(f"{key} must be a list of numbers")
        if isinstance(item, int):
            out.append(item)
            continue
        if isinstance(item, float):
            if not math.isfinite(item):
                raise ValidationError(f"{key} must contain finite numbers")
            out.append(item)
            continue
        if isinstance(item, str):
            stripped = item.strip()
            # Blank price cells are stored as 0
            if not stripped:
                out.append(0)
                continue
            try:
                number = float(stripped)
            except ValueError:
                raise ValidationError(f"{key} must be a list of numbers")
            # "nan" and "inf" parse but cannot be rendered as JSON
            if not math.isfinite(number):
                raise ValidationError(f"{key} must contain finite numbers")
            out.append(number)
            continue
        raise ValidationError(f"{key} must be a list of numbers")
    return out


def size_breakdown(key: str, value: Any) -> list[dict]:
    """
    Validate an ordered size/quantity breakdown.

    Each entry is {"size": <non-blank label>, "quantity": <int >= 0>}; order is kept.
    """
    if not isinstance(value, list):
        raise ValidationError(f"{key} must be a list of {{size, quantity}} entries")

    out = []
    errors = []
    for idx, entry in enumerate(value):
        if not isinstance(entry, dict):
            errors.append({"field": f"{key}[{idx}]", "message": "must be an object"})
            continue
        label = entry.get("size")
        if not isinstance(label, str) or not label.strip():
            errors.append({"field": f"{key}[{idx}].size", "message": "size label is required"})
            continue
        raw_qty = entry.get("quantity", 0)
        try:
            qty = coerce_int(f"{key}[{idx}].quantity", 0 if raw_qty in (None, "") else raw_qty)
        except ValidationError as e:
            errors.append({"field": f"{key}[{idx}].quantity", "message": str(e)})
            continue
        if qty < 0 or qty > MAX_SIZE_QUANTITY:
            errors.append({
                "field": f"{key}[{idx}].quantity",
                "message": f"quantity must be between 0 and {MAX_SIZE_QUANTITY}",
            })
            continue
        out.append({"size": label.strip(), "quantity": qty})

    if errors:
        raise ValidationError("Invalid size breakdown", details=errors)
    return out


def one_of(choices: tuple[str, ...]) -> Callable[[str, Any], str]:
    def _check(key: str, value: Any) -> str:
        if value not in choices:
            raise ValidationError(f"{key} must be one of: {', '.join(choices)}")
        return value
    return _check


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
    Returns a cleaned patch dict keyed by model attribute.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
                details=[{"field": f, "message": "is required"} for f in missing],
            )

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if policy.writable_fields[k] not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        attr = policy.writable_fields[k]
        col = cols[attr]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[attr] = None
            continue

        coercer = policy.coercers.get(k)
        val = coercer(k, raw) if coercer else _coerce_value(k, col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable and k not in policy.allow_blank_fields:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[attr] = val

    return patch
