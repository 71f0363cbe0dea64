# app/services/myjkkn/normalizer.py
"""
MyJKKN response normalizer
Flattens nested relation objects into display strings so every record
handed to the UI is a flat row of primitives.
"""
import json
import logging
from typing import Any, Dict

from app.services.errors import UnknownShapeError

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"

# (required keys, field to display), checked in order
RELATION_SHAPES = [
    (("id", "name"), "name"),
    (("id", "department_name"), "department_name"),
    (("id", "institution_name"), "institution_name"),
    (("id", "program_name"), "program_name"),
    (("id", "designation_name"), "designation_name"),
]

FALLBACK_FIELDS = ("name", "title", "label", "description", "code", "value")

PAGINATION_KEYS = ("page", "total", "totalPages")

# list fields that hold whole records rather than relation objects
ROW_KEYS = ("data",)


def is_pagination_metadata(value: Any) -> bool:
    return isinstance(value, dict) and all(k in value for k in PAGINATION_KEYS)


def _status_text(value: Dict[str, Any]) -> str:
    if "status" in value:
        return str(value["status"] or "Unknown")
    if "is_active" in value:
        return "Active" if value["is_active"] else "Inactive"
    if "active" in value:
        return "Active" if value["active"] else "Inactive"
    if "state" in value:
        return str(value["state"] or "Unknown")
    if "value" in value:
        return str(value["value"] or "Unknown")
    return json.dumps(value, default=str)


def _collapse(key: str, value: Dict[str, Any], strict: bool) -> Any:
    """Collapse one nested object found under `key` into a display value."""
    if key == "status":
        return _status_text(value)
    if key == "employee_id":
        return str(value.get("employee_id") or value.get("id") or NOT_AVAILABLE)
    if key == "date_of_joining":
        return str(value.get("date_of_joining") or value.get("date") or NOT_AVAILABLE)

    for required, field in RELATION_SHAPES:
        if all(k in value for k in required):
            return str(value.get(field) or value.get("id") or NOT_AVAILABLE)

    if "first_name" in value and "last_name" in value:
        full_name = f"{value.get('first_name') or ''} {value.get('last_name') or ''}".strip()
        return full_name or NOT_AVAILABLE
    if "name" in value:
        return str(value["name"] or NOT_AVAILABLE)
    if "title" in value:
        return str(value["title"] or NOT_AVAILABLE)

    for field in FALLBACK_FIELDS:
        if value.get(field):
            return str(value[field])

    if strict:
        raise UnknownShapeError(key, value.keys())

    logger.warning(f"MyJKKN field '{key}' has an unrecognized shape {sorted(value.keys())}, using {NOT_AVAILABLE}")
    return NOT_AVAILABLE


def _collapse_list(key: str, items: list, strict: bool) -> list:
    collapsed = []
    for item in items:
        if isinstance(item, dict):
            collapsed.append(_collapse(key, item, strict))
        elif isinstance(item, list):
            collapsed.append(_collapse_list(key, item, strict))
        else:
            collapsed.append(item)
    return collapsed


def _derive_fields(record: Dict[str, Any]) -> Dict[str, Any]:
    if "is_active" in record and "status" not in record:
        record["status"] = "Active" if record["is_active"] else "Inactive"

    if "staff_id" in record and "employee_id" not in record:
        record["employee_id"] = record["staff_id"]

    if "first_name" in record and "last_name" in record and "name" not in record:
        first_name = str(record["first_name"] or "").strip()
        last_name = str(record["last_name"] or "").strip()
        record["name"] = f"{first_name} {last_name}".strip()

    return record


def normalize(value: Any, strict: bool = False) -> Any:
    """
    Recursively flatten a MyJKKN JSON value.

    Args:
        value: parsed JSON (dict / list / primitive)
        strict: raise UnknownShapeError instead of degrading unknown
            relation objects to "N/A"

    Returns:
        The same structure where every record field is a primitive, except
        `metadata` objects, which are returned untouched.
    """
    if value is None or isinstance(value, (str, int, float, bool)):
        return value

    if isinstance(value, list):
        return [normalize(item, strict=strict) for item in value]

    if not isinstance(value, dict):
        return value

    if is_pagination_metadata(value):
        return value

    record = {}
    for key, field_value in value.items():
        if field_value is None:
            record[key] = None
        elif key == "metadata" and isinstance(field_value, dict):
            record[key] = field_value
        elif isinstance(field_value, dict):
            record[key] = _collapse(key, field_value, strict)
        elif isinstance(field_value, list) and key in ROW_KEYS:
            record[key] = normalize(field_value, strict=strict)
        elif isinstance(field_value, list):
            record[key] = _collapse_list(key, field_value, strict)
        else:
            record[key] = field_value

    return _derive_fields(record)
