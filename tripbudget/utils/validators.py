"""Request validators."""
import re

from bson import ObjectId, errors

CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


class ValidationError(ValueError):
    """Client supplied a malformed payload."""


def json_object(data):
    """Request body must be a JSON object; a missing body counts as empty."""
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("request body must be a JSON object")
    return data


def require_keys(payload, *keys):
    if payload is not None and not isinstance(payload, dict):
        raise ValidationError("payload must be an object")
    missing = [k for k in keys if k not in (payload or {})]
    if missing:
        raise ValidationError(f"missing keys: {missing}")
    return True


def positive_amount(value, field="amount"):
    """Parse a strictly positive number; bools and non-finite values are rejected."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if amount != amount or amount in (float("inf"), float("-inf")):
        raise ValidationError(f"{field} must be a finite number")
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than 0")
    return amount


def currency_code(value, default="USD"):
    if value in (None, ""):
        return default
    code = str(value).strip().upper()
    if not CURRENCY_RE.match(code):
        raise ValidationError(f"invalid currency code: {value}")
    return code


def safe_object_id(value):
    # ObjectId(None) would mint a fresh id
    if value is None:
        return None
    try:
        return ObjectId(value)
    except (errors.InvalidId, TypeError):
        return None
