# app/services/catalog.py
"""
Service catalog: categories and the services students/staff can request.
"""
import logging
import re
from typing import Any, Dict, List, Optional

from supabase import Client

from app.services.errors import ConflictError, NotFoundError, ValidationError
from app.services.supabase_client import first_row

logger = logging.getLogger(__name__)

APPLICABLE_TO = ("student", "staff", "both")
PAYMENT_METHODS = ("prepaid", "postpaid", "free")
SERVICE_STATUSES = ("active", "inactive")

CATEGORY_CODE_PATTERN = re.compile(r"^[A-Z0-9_]+$")
SEQUENCE_PATTERN = re.compile(r"^SNO(\d+)$")

CATEGORIES = "service_categories"
SERVICES = "services"
SERVICE_SELECT = "*, service_categories(*)"


def _require(values: Dict[str, Any], fields: List[str]) -> None:
    for field in fields:
        value = values.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"{field.replace('_', ' ')} is required")


def _is_unique_violation(error: Exception) -> bool:
    message = str(error)
    return "23505" in message or "duplicate key" in message.lower()


def _next_sequence(values: List[Optional[str]]) -> str:
    """SNO<n+1> for the highest SNO<n> among values, numerically."""
    numbers = [int(m.group(1)) for m in (SEQUENCE_PATTERN.match(v or "") for v in values) if m]
    return f"SNO{max(numbers) + 1 if numbers else 1}"


# ===============================
# categories
# ===============================
def create_service_category(supabase: Client, category: Dict[str, Any]) -> Dict[str, Any]:
    _require(category, ["name", "code"])
    code = category["code"].strip().upper()
    if not CATEGORY_CODE_PATTERN.match(code):
        raise ValidationError("Code must contain only uppercase letters, numbers, and underscores")

    existing = supabase.table(CATEGORIES).select("id").eq("code", code).execute()
    if existing.data:
        raise ConflictError("A category with this code already exists", details={"code": code})

    try:
        result = supabase.table(CATEGORIES).insert({**category, "code": code}).execute()
    except Exception as e:
        if _is_unique_violation(e):
            raise ConflictError("A category with this code already exists", details={"code": code})
        raise

    row = first_row(result)
    if row is None:
        raise ValidationError("Failed to create service category")
    logger.info(f"Created service category {code}")
    return row


def get_service_categories(supabase: Client) -> List[Dict[str, Any]]:
    return supabase.table(CATEGORIES).select("*").order("name").execute().data or []


def get_service_category_by_id(supabase: Client, category_id: str) -> Dict[str, Any]:
    row = first_row(supabase.table(CATEGORIES).select("*").eq("id", category_id).limit(1).execute())
    if row is None:
        raise NotFoundError(f"Service category {category_id} not found")
    return row


def update_service_category(supabase: Client, category_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    changes = {k: v for k, v in changes.items() if k in ("name", "description")}
    if "name" in changes:
        _require(changes, ["name"])

    result = supabase.table(CATEGORIES).update(changes).eq("id", category_id).execute()
    row = first_row(result)
    if row is None:
        raise NotFoundError(f"Service category {category_id} not found")
    return row


def _services_in_category(supabase: Client, category_id: str) -> int:
    result = supabase.table(SERVICES).select("id", count="exact").eq("category_id", category_id).execute()
    return result.count if result.count is not None else len(result.data or [])


def delete_service_category(supabase: Client, category_id: str) -> None:
    if _services_in_category(supabase, category_id):
        raise ConflictError("Cannot delete category as it is in use by one or more services")
    supabase.table(CATEGORIES).delete().eq("id", category_id).execute()
    logger.info(f"Deleted service category {category_id}")


def reassign_services_category(supabase: Client, from_category_id: str, to_category_id: Optional[str]) -> int:
    count = _services_in_category(supabase, from_category_id)
    if not count:
        return 0
    supabase.table(SERVICES).update({"category_id": to_category_id}).eq("category_id", from_category_id).execute()
    logger.info(f"Moved {count} services from category {from_category_id} to {to_category_id}")
    return count


def delete_service_category_with_reassign(
    supabase: Client, category_id: str, reassign_to: Optional[str]
) -> int:
    if reassign_to == category_id:
        raise ValidationError("Cannot reassign services to the category being deleted")
    moved = reassign_services_category(supabase, category_id, reassign_to)
    supabase.table(CATEGORIES).delete().eq("id", category_id).execute()
    return moved


def cleanup_orphaned_categories(supabase: Client) -> int:
    """Delete categories that no service refers to. Returns how many were removed."""
    categories = supabase.table(CATEGORIES).select("id").execute().data or []
    used = {
        row.get("category_id")
        for row in (supabase.table(SERVICES).select("category_id").execute().data or [])
    }
    orphaned = [c["id"] for c in categories if c["id"] not in used]
    if orphaned:
        supabase.table(CATEGORIES).delete().in_("id", orphaned).execute()
        logger.info(f"Removed {len(orphaned)} orphaned service categories")
    return len(orphaned)


def get_next_category_code(supabase: Client) -> str:
    rows = supabase.table(CATEGORIES).select("code").execute().data or []
    return _next_sequence([row.get("code") for row in rows])


# ===============================
# services
# ===============================
def _validate_enums(service: Dict[str, Any]) -> None:
    for field, allowed in (
        ("applicable_to", APPLICABLE_TO),
        ("payment_method", PAYMENT_METHODS),
        ("status", SERVICE_STATUSES),
    ):
        if field in service and service[field] not in allowed:
            raise ValidationError(f"{field} must be one of {', '.join(allowed)}")


def create_service(supabase: Client, service: Dict[str, Any]) -> Dict[str, Any]:
    _require(service, ["name", "request_no", "category_id", "applicable_to", "payment_method", "status"])
    _validate_enums(service)

    existing = supabase.table(SERVICES).select("id").eq("request_no", service["request_no"]).execute()
    if existing.data:
        raise ConflictError("Service request number already exists", details={"request_no": service["request_no"]})

    try:
        result = supabase.table(SERVICES).insert({**service, "service_limit": service.get("service_limit") or 1}).execute()
    except Exception as e:
        if _is_unique_violation(e):
            raise ConflictError("Service request number already exists", details={"request_no": service["request_no"]})
        raise

    row = first_row(result)
    if row is None:
        raise ValidationError("Failed to create service")
    logger.info(f"Created service {service['request_no']}")
    return get_service_by_id(supabase, row["id"])


def get_services(supabase: Client) -> List[Dict[str, Any]]:
    return supabase.table(SERVICES).select(SERVICE_SELECT).order("name").execute().data or []


def get_service_by_id(supabase: Client, service_id: str) -> Dict[str, Any]:
    row = first_row(supabase.table(SERVICES).select(SERVICE_SELECT).eq("id", service_id).limit(1).execute())
    if row is None:
        raise NotFoundError(f"Service {service_id} not found")
    return row


def update_service(supabase: Client, service_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    for field in ("name", "request_no"):
        if field in changes:
            _require(changes, [field])
    _validate_enums(changes)

    if changes.get("request_no"):
        existing = (
            supabase.table(SERVICES)
            .select("id")
            .eq("request_no", changes["request_no"])
            .neq("id", service_id)
            .execute()
        )
        if existing.data:
            raise ConflictError("Service request number already exists")

    result = supabase.table(SERVICES).update(changes).eq("id", service_id).execute()
    if not result.data:
        raise NotFoundError(f"Service {service_id} not found")
    return get_service_by_id(supabase, service_id)


def delete_service(supabase: Client, service_id: str) -> None:
    result = supabase.table(SERVICES).delete().eq("id", service_id).execute()
    if not result.data:
        raise NotFoundError(f"Service {service_id} not found")
    logger.info(f"Deleted service {service_id}")


def get_next_service_request_no(supabase: Client) -> str:
    rows = supabase.table(SERVICES).select("request_no").execute().data or []
    return _next_sequence([row.get("request_no") for row in rows])
