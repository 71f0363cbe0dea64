# app/services/approval_levels.py
"""
Approval chain configuration
Each service has an ordered list of (level, staff_id) approvers in
service_approval_levels.
"""
import logging
from typing import Any, Dict, List, Optional

from supabase import Client

from app.services.errors import ValidationError
from app.services.supabase_client import first_row

logger = logging.getLogger(__name__)

TABLE = "service_approval_levels"


def get_service_approval_levels(supabase: Client, service_id: str) -> List[Dict[str, Any]]:
    result = (
        supabase.table(TABLE)
        .select("*, profiles:staff_id(full_name)")
        .eq("service_id", service_id)
        .order("level")
        .execute()
    )
    return [
        {
            "id": row.get("id"),
            "level": row["level"],
            "staff_id": row["staff_id"],
            "staff_name": (row.get("profiles") or {}).get("full_name") or "Unknown Staff",
        }
        for row in (result.data or [])
    ]


def save_service_approval_levels(
    supabase: Client, service_id: str, levels: List[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    """
    Replace the approval chain of a service.
    Levels must be 1..n without gaps, each with a staff_id.
    """
    numbers = sorted(int(level["level"]) for level in levels)
    if numbers != list(range(1, len(numbers) + 1)):
        raise ValidationError("Approval levels must be numbered 1..n without gaps", {"levels": numbers})
    if any(not level.get("staff_id") for level in levels):
        raise ValidationError("Every approval level needs a staff member")

    supabase.table(TABLE).delete().eq("service_id", service_id).execute()
    if not levels:
        return []

    rows = [
        {"service_id": service_id, "level": int(level["level"]), "staff_id": level["staff_id"]}
        for level in levels
    ]
    result = supabase.table(TABLE).insert(rows).execute()
    logger.info(f"Saved {len(rows)} approval levels for service {service_id}")
    return result.data or []


def get_approver_for_level(supabase: Client, service_id: str, level: int) -> Optional[Dict[str, Any]]:
    result = (
        supabase.table(TABLE)
        .select("*, profiles:staff_id(full_name, email)")
        .eq("service_id", service_id)
        .eq("level", level)
        .limit(1)
        .execute()
    )
    return first_row(result)


def get_max_approval_level(supabase: Client, service_id: str) -> int:
    """0 when the service has no approval levels; 1 for an empty service id."""
    if not service_id:
        logger.warning("get_max_approval_level called without a service id")
        return 1

    result = (
        supabase.table(TABLE)
        .select("level")
        .eq("service_id", service_id)
        .order("level", desc=True)
        .limit(1)
        .execute()
    )
    row = first_row(result)
    return int(row["level"]) if row else 0


def is_user_approver_for_request(supabase: Client, user_id: str, request_id: str) -> bool:
    request = first_row(
        supabase.table("service_requests")
        .select("service_id, level")
        .eq("id", request_id)
        .limit(1)
        .execute()
    )
    if request is None:
        return False

    result = (
        supabase.table(TABLE)
        .select("id")
        .eq("service_id", request["service_id"])
        .eq("level", request.get("level") or 1)
        .eq("staff_id", user_id)
        .execute()
    )
    return bool(result.data)
