"""Request payload helpers."""
from flask import request

from settleup.core.errors import MissingFieldError, ValidationError


def get_payload():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def require_keys(payload, *keys):
    missing = [k for k in keys if payload.get(k) in (None, "")]
    if missing:
        raise MissingFieldError(missing)
    return True


def as_id_list(value, field):
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"{field} must be a list of ids", field=field)
    return [str(v) for v in value]


def as_amount_map(value, field):
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValidationError(f"{field} must be an object of id -> amount", field=field)
    return {str(k): v for k, v in value.items()}


def as_text(value, field):
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field=field)
    return value.strip()
