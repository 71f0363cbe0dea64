# app/services/service_requests.py
"""
Service-request workflow

pending --approve--> pending (level + 1) ... --approve at last level--> approved
pending --reject--> rejected
pending|approved --cancel--> cancelled
pending|approved --complete--> completed

Every write is conditional on the status and level that were read, so two
approvers acting on the same request cannot both succeed.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set

from supabase import Client

from app.services.approval_levels import get_max_approval_level
from app.services.errors import ConflictError, NotFoundError, ValidationError
from app.services.notifications import NotificationService
from app.services.supabase_client import first_row

logger = logging.getLogger(__name__)

TABLE = "service_requests"
VIEW = "service_requests_view"

STATUSES = ("pending", "approved", "rejected", "cancelled", "completed")
STAFF_ROLES = ("staff", "admin")

TRANSITIONS = {
    "pending": {"approved", "rejected", "cancelled", "completed"},
    "approved": {"completed", "cancelled"},
    "rejected": set(),
    "cancelled": set(),
    "completed": set(),
}

UNKNOWN_SERVICE = "Unknown Service"
UNKNOWN_USER = "Unknown User"


# ===============================
# rules
# ===============================
def allowed_actions(request: Dict[str, Any], actor_role: Optional[str], actor_id: Optional[str]) -> Set[str]:
    """Actions the actor may take on the request right now."""
    actions: Set[str] = set()
    if not actor_role:
        return actions

    status = request.get("status")
    is_staff = actor_role in STAFF_ROLES

    if is_staff and status == "pending":
        actions.update({"approve", "reject"})
    if is_staff and status == "approved":
        actions.add("complete")
    if status == "pending" and actor_id and request.get("requester_id") == actor_id:
        actions.add("cancel")
    if actor_role == "admin" and status in ("pending", "approved"):
        actions.add("cancel")
    return actions


def assert_transition(current: str, target: str) -> None:
    if target not in TRANSITIONS.get(current, set()):
        raise ConflictError(
            f"Cannot move a {current} request to {target}",
            details={"current": current, "target": target},
        )


# ===============================
# reads
# ===============================
def _to_request(row: Dict[str, Any], service_names: Dict[str, str], requester_names: Dict[str, str]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "service_id": row["service_id"],
        "service_name": row.get("service_name") or service_names.get(row["service_id"]) or UNKNOWN_SERVICE,
        "requester_id": row["requester_id"],
        "requester_name": row.get("requester_name") or requester_names.get(row["requester_id"]) or UNKNOWN_USER,
        "status": row["status"],
        "level": row.get("level") or 1,
        "max_approval_level": row.get("max_approval_level") or 1,
        "created_at": row.get("created_at"),
        "updated_at": row.get("updated_at"),
    }


def _name_map(supabase: Client, table: str, column: str, ids: Iterable[str]) -> Dict[str, str]:
    ids = sorted(set(ids))
    if not ids:
        return {}
    try:
        result = supabase.table(table).select(f"id, {column}").in_("id", ids).execute()
    except Exception as e:
        logger.warning(f"Could not load {table} names: {e}")
        return {}
    return {row["id"]: row.get(column) for row in (result.data or []) if row.get(column)}


def _decorate(supabase: Client, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    service_names = _name_map(supabase, "services", "name", (r["service_id"] for r in rows))
    requester_names = _name_map(supabase, "profiles", "full_name", (r["requester_id"] for r in rows))
    return [_to_request(row, service_names, requester_names) for row in rows]


def get_service_requests(supabase: Client) -> List[Dict[str, Any]]:
    try:
        result = supabase.table(VIEW).select("*").order("created_at", desc=True).execute()
        return [_to_request(row, {}, {}) for row in (result.data or [])]
    except Exception as e:
        logger.warning(f"{VIEW} query failed, falling back to table lookups: {e}")

    result = supabase.table(TABLE).select("*").order("created_at", desc=True).execute()
    return _decorate(supabase, result.data or [])


def get_service_requests_by_status(supabase: Client, statuses: List[str]) -> List[Dict[str, Any]]:
    unknown = set(statuses) - set(STATUSES)
    if unknown:
        raise ValidationError(f"Unknown status: {', '.join(sorted(unknown))}")

    result = (
        supabase.table(TABLE)
        .select("*")
        .in_("status", statuses)
        .order("created_at", desc=True)
        .execute()
    )
    return _decorate(supabase, result.data or [])


def _is_admin(supabase: Client, user_id: str) -> bool:
    profile = first_row(supabase.table("profiles").select("role").eq("id", user_id).limit(1).execute())
    return bool(profile) and profile.get("role") == "admin"


def get_service_requests_by_approver(supabase: Client, staff_id: str) -> List[Dict[str, Any]]:
    """
    Pending requests whose current (service, level) is assigned to the staff
    member. Admins without assignments see every pending request.
    """
    pending = supabase.table(TABLE).select("*").eq("status", "pending").execute().data or []
    if not pending:
        return []

    assigned = set()
    try:
        levels = (
            supabase.table("service_approval_levels")
            .select("service_id, level")
            .eq("staff_id", staff_id)
            .execute()
        )
        assigned = {(row["service_id"], row["level"]) for row in (levels.data or [])}
    except Exception as e:
        logger.warning(f"Could not load approval levels for {staff_id}: {e}")

    if assigned:
        mine = [r for r in pending if (r["service_id"], r.get("level") or 1) in assigned]
    elif _is_admin(supabase, staff_id):
        mine = pending
    else:
        mine = []

    return _decorate(supabase, mine)


def _fetch_row(supabase: Client, request_id: str) -> Dict[str, Any]:
    row = first_row(supabase.table(TABLE).select("*").eq("id", request_id).limit(1).execute())
    if row is None:
        raise NotFoundError(f"Service request {request_id} not found")
    return row


def get_service_request_by_id(supabase: Client, request_id: str) -> Dict[str, Any]:
    row = first_row(
        supabase.table(TABLE)
        .select("*, services(name), profiles:requester_id(full_name)")
        .eq("id", request_id)
        .limit(1)
        .execute()
    )
    if row is None:
        raise NotFoundError(f"Service request {request_id} not found")

    service_names = {row["service_id"]: (row.get("services") or {}).get("name")}
    requester_names = {row["requester_id"]: (row.get("profiles") or {}).get("full_name")}
    return _to_request(row, service_names, requester_names)


# ===============================
# writes
# ===============================
def create_service_request(
    supabase: Client,
    service_id: str,
    requester_id: str,
    notifier: Optional[NotificationService] = None,
) -> Dict[str, Any]:
    if not service_id:
        raise ValidationError("Invalid service_id: must be a non-empty string")
    if not requester_id:
        raise ValidationError("Invalid requester_id: must be a non-empty string")

    try:
        max_level = max(get_max_approval_level(supabase, service_id), 1)
    except Exception as e:
        logger.warning(f"Failed to get max approval level for {service_id}, using 1: {e}")
        max_level = 1

    now = datetime.now().isoformat()
    result = supabase.table(TABLE).insert({
        "service_id": service_id,
        "requester_id": requester_id,
        "status": "pending",
        "level": 1,
        "max_approval_level": max_level,
        "created_at": now,
        "updated_at": now,
    }).execute()

    row = first_row(result)
    if row is None:
        raise ValidationError("Failed to create service request")

    logger.info(f"Service request {row['id']} created for service {service_id}")
    request = get_service_request_by_id(supabase, row["id"])
    if notifier is not None:
        notifier.notify_service_request_event(request, "created")
    return request


def _guarded_update(supabase: Client, row: Dict[str, Any], changes: Dict[str, Any]) -> None:
    query = (
        supabase.table(TABLE)
        .update({**changes, "updated_at": datetime.now().isoformat()})
        .eq("id", row["id"])
        .eq("status", row["status"])
    )
    if row.get("level") is None:
        query = query.is_("level", "null")
    else:
        query = query.eq("level", row["level"])

    result = query.execute()
    if not result.data:
        raise ConflictError(
            f"Service request {row['id']} was changed by someone else",
            details={"status": row["status"], "level": row.get("level")},
        )


def _approve_step(supabase: Client, row: Dict[str, Any]) -> None:
    level = row.get("level") or 1
    max_level = row.get("max_approval_level") or 1
    if level < max_level:
        _guarded_update(supabase, row, {"level": level + 1})
    else:
        _guarded_update(supabase, row, {"status": "approved"})


def approve_service_request(
    supabase: Client,
    request_id: str,
    notifier: Optional[NotificationService] = None,
) -> Dict[str, Any]:
    row = _fetch_row(supabase, request_id)
    if row["status"] != "pending":
        raise ConflictError(f"Cannot approve a {row['status']} request")

    _approve_step(supabase, row)

    request = get_service_request_by_id(supabase, request_id)
    logger.info(f"Service request {request_id} approved at level {row.get('level') or 1}, now {request['status']}")
    if notifier is not None and request["status"] == "approved":
        notifier.notify_service_request_event(request, "approved")
    return request


def _transition(
    supabase: Client,
    request_id: str,
    target: str,
    notifier: Optional[NotificationService],
) -> Dict[str, Any]:
    row = _fetch_row(supabase, request_id)
    assert_transition(row["status"], target)
    _guarded_update(supabase, row, {"status": target})

    request = get_service_request_by_id(supabase, request_id)
    logger.info(f"Service request {request_id} {row['status']} -> {target}")
    if notifier is not None:
        notifier.notify_service_request_event(request, target)
    return request


def reject_service_request(supabase: Client, request_id: str, notifier: Optional[NotificationService] = None):
    return _transition(supabase, request_id, "rejected", notifier)


def cancel_service_request(supabase: Client, request_id: str, notifier: Optional[NotificationService] = None):
    return _transition(supabase, request_id, "cancelled", notifier)


def complete_service_request(supabase: Client, request_id: str, notifier: Optional[NotificationService] = None):
    return _transition(supabase, request_id, "completed", notifier)
