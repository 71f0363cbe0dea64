# app/services/user_management.py
"""
Portal user profiles (the `profiles` table) and their roles.
"""
import logging
import secrets
from datetime import datetime
from typing import Any, Dict, List, Optional

from supabase import Client

from app.services.errors import NotFoundError, PortalError, ValidationError
from app.services.rbac import ROLES
from app.services.supabase_client import first_row

logger = logging.getLogger(__name__)

TABLE = "profiles"
USER_STATUSES = ("active", "inactive")


def to_profile(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "email": row.get("email") or "",
        "full_name": row.get("full_name"),
        "avatar_url": row.get("avatar_url"),
        "role": row.get("role") or "student",
        "status": row.get("status") or "active",
        "created_at": row.get("created_at"),
        "updated_at": row.get("updated_at"),
        "last_sign_in_at": row.get("last_sign_in_at"),
    }


def _check_role(role: Optional[str]) -> None:
    if role is not None and role not in ROLES:
        raise ValidationError(f"role must be one of {', '.join(ROLES)}")


def _check_status(status: Optional[str]) -> None:
    if status is not None and status not in USER_STATUSES:
        raise ValidationError(f"status must be one of {', '.join(USER_STATUSES)}")


def get_all_users(supabase: Client) -> List[Dict[str, Any]]:
    result = supabase.table(TABLE).select("*").order("created_at", desc=True).execute()
    return [to_profile(row) for row in (result.data or [])]


def get_user_by_id(supabase: Client, user_id: str) -> Dict[str, Any]:
    row = first_row(supabase.table(TABLE).select("*").eq("id", user_id).limit(1).execute())
    if row is None:
        raise NotFoundError(f"User {user_id} not found")
    return to_profile(row)


def create_user(
    supabase: Client,
    admin: Optional[Client],
    email: str,
    full_name: str,
    role: str,
    status: str = "active",
    password: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create the Supabase Auth account, then fill in its profile row.
    The auth account is removed again when the profile update fails.
    """
    _check_role(role)
    _check_status(status)
    if not email or not full_name:
        raise ValidationError("email and full name are required")
    if admin is None:
        raise PortalError("Creating users requires SUPABASE_SERVICE_ROLE_KEY", code="NOT_CONFIGURED")

    response = admin.auth.admin.create_user({
        "email": email,
        "password": password or secrets.token_urlsafe(16),
        "email_confirm": True,
        "user_metadata": {"full_name": full_name, "role": role},
    })
    user = response.user
    if user is None:
        raise PortalError(f"Failed to create user {email}")

    try:
        result = supabase.table(TABLE).update({
            "full_name": full_name,
            "role": role,
            "status": status,
            "updated_at": datetime.now().isoformat(),
        }).eq("id", user.id).execute()
    except Exception:
        logger.error(f"Profile update failed for new user {email}, removing auth account", exc_info=True)
        admin.auth.admin.delete_user(user.id)
        raise

    logger.info(f"Created user {email} with role {role}")
    row = first_row(result) or {"id": user.id, "full_name": full_name, "role": role, "status": status}
    return to_profile({**row, "email": user.email or email})


def update_user(supabase: Client, user_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    changes = {k: v for k, v in changes.items() if k in ("full_name", "role", "status") and v is not None}
    _check_role(changes.get("role"))
    _check_status(changes.get("status"))

    result = (
        supabase.table(TABLE)
        .update({**changes, "updated_at": datetime.now().isoformat()})
        .eq("id", user_id)
        .execute()
    )
    row = first_row(result)
    if row is None:
        raise NotFoundError(f"User {user_id} not found")
    return to_profile(row)


def delete_user(supabase: Client, user_id: str) -> None:
    """Users are deactivated, never removed."""
    update_user(supabase, user_id, {"status": "inactive"})
    logger.info(f"Deactivated user {user_id}")


def toggle_user_status(supabase: Client, user_id: str) -> str:
    user = get_user_by_id(supabase, user_id)
    new_status = "inactive" if user["status"] == "active" else "active"
    return update_user(supabase, user_id, {"status": new_status})["status"]


def update_user_role(supabase: Client, user_id: str, role: str) -> Dict[str, Any]:
    if role is None:
        raise ValidationError("role is required")
    return update_user(supabase, user_id, {"role": role})


def get_user_stats(supabase: Client) -> Dict[str, int]:
    users = get_all_users(supabase)
    return {
        "total": len(users),
        "active": sum(1 for u in users if u["status"] == "active"),
        "inactive": sum(1 for u in users if u["status"] == "inactive"),
        "admin": sum(1 for u in users if u["role"] == "admin"),
        "staff": sum(1 for u in users if u["role"] == "staff"),
        "student": sum(1 for u in users if u["role"] == "student"),
    }


def search_users(supabase: Client, query: str) -> List[Dict[str, Any]]:
    users = get_all_users(supabase)
    needle = (query or "").strip().lower()
    if not needle:
        return users
    return [
        u for u in users
        if needle in u["email"].lower() or needle in (u["full_name"] or "").lower()
    ]
