# app/api/v1/users.py
"""
User management (admins) and the caller's own profile and navigation.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from supabase import Client

from app.api.deps import Actor, get_current_actor, get_notification_service, require_admin
from app.schemas.user import RoleUpdate, UserCreate, UserProfile, UserStats, UserUpdate
from app.services import rbac, user_management
from app.services.errors import as_http_error
from app.services.notifications import NotificationService
from app.services.supabase_client import get_service_supabase, get_supabase

router = APIRouter(prefix="/users", tags=["Users"])
logger = logging.getLogger(__name__)


def _notify(notifier: NotificationService, user_id: str, title: str, message: str, type: str = "info"):
    try:
        notifier.create_notification(user_id, type=type, title=title, message=message, action_url="/profile")
    except Exception as e:
        logger.warning(f"Could not notify user {user_id}: {e}")


# ===============================
# the caller
# ===============================
@router.get("/me", response_model=UserProfile)
def get_me(supabase: Client = Depends(get_supabase), actor: Actor = Depends(get_current_actor)):
    try:
        return user_management.get_user_by_id(supabase, actor.id)
    except Exception as e:
        raise as_http_error("Fetching profile", e)


@router.get("/me/navigation")
def get_my_navigation(
    path: Optional[str] = Query(None, description="Current page, to compute a redirect"),
    actor: Actor = Depends(get_current_actor),
):
    return {
        "role": actor.role,
        "items": rbac.get_accessible_nav_items(actor.role),
        "default_route": rbac.get_default_route(actor.role),
        "redirect": rbac.get_redirect_path(actor.role, path) if path else None,
    }


# ===============================
# administration
# ===============================
@router.get("/", response_model=List[UserProfile])
def list_users(
    search: Optional[str] = None,
    supabase: Client = Depends(get_supabase),
    actor: Actor = Depends(require_admin),
):
    try:
        if search:
            return user_management.search_users(supabase, search)
        return user_management.get_all_users(supabase)
    except Exception as e:
        raise as_http_error("Listing users", e)


@router.get("/stats", response_model=UserStats)
def user_stats(supabase: Client = Depends(get_supabase), actor: Actor = Depends(require_admin)):
    try:
        return user_management.get_user_stats(supabase)
    except Exception as e:
        raise as_http_error("Computing user stats", e)


@router.get("/{user_id}", response_model=UserProfile)
def get_user(user_id: str, supabase: Client = Depends(get_supabase), actor: Actor = Depends(require_admin)):
    try:
        return user_management.get_user_by_id(supabase, user_id)
    except Exception as e:
        raise as_http_error("Fetching user", e)


@router.post("/", response_model=UserProfile, status_code=201)
def create_user(
    body: UserCreate,
    supabase: Client = Depends(get_supabase),
    notifier: NotificationService = Depends(get_notification_service),
    actor: Actor = Depends(require_admin),
):
    try:
        user = user_management.create_user(
            supabase,
            get_service_supabase(),
            email=body.email,
            full_name=body.full_name,
            role=body.role,
            status=body.status,
            password=body.password,
        )
    except Exception as e:
        raise as_http_error("Creating user", e)

    _notify(
        notifier, user["id"],
        "Welcome to JKKN Service Management",
        "Your account has been created. You can now submit service requests and track their progress.",
    )
    return user


@router.put("/{user_id}", response_model=UserProfile)
def update_user(
    user_id: str,
    body: UserUpdate,
    supabase: Client = Depends(get_supabase),
    actor: Actor = Depends(require_admin),
):
    try:
        return user_management.update_user(supabase, user_id, body.model_dump(exclude_unset=True))
    except Exception as e:
        raise as_http_error("Updating user", e)


@router.delete("/{user_id}")
def delete_user(user_id: str, supabase: Client = Depends(get_supabase), actor: Actor = Depends(require_admin)):
    """Deactivates the account; profiles are kept."""
    if user_id == actor.id:
        raise HTTPException(status_code=400, detail="You cannot deactivate your own account")
    try:
        user_management.delete_user(supabase, user_id)
        return {"success": True}
    except Exception as e:
        raise as_http_error("Deactivating user", e)


@router.post("/{user_id}/toggle-status")
def toggle_status(
    user_id: str,
    supabase: Client = Depends(get_supabase),
    notifier: NotificationService = Depends(get_notification_service),
    actor: Actor = Depends(require_admin),
):
    try:
        new_status = user_management.toggle_user_status(supabase, user_id)
    except Exception as e:
        raise as_http_error("Toggling user status", e)

    _notify(
        notifier, user_id,
        "Account Status Updated",
        f"Your account has been {new_status}",
        type="success" if new_status == "active" else "warning",
    )
    return {"status": new_status}


@router.put("/{user_id}/role", response_model=UserProfile)
def update_role(
    user_id: str,
    body: RoleUpdate,
    supabase: Client = Depends(get_supabase),
    notifier: NotificationService = Depends(get_notification_service),
    actor: Actor = Depends(require_admin),
):
    try:
        user = user_management.update_user_role(supabase, user_id, body.role)
    except Exception as e:
        raise as_http_error("Updating user role", e)

    _notify(notifier, user_id, "Role Updated", f"Your role has been updated to {body.role}")
    return user
