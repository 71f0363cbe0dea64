# app/api/deps.py
"""
Shared FastAPI dependencies: the MyJKKN singletons and the signed-in actor.
"""
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from supabase import Client

from app.config import settings
from app.services.myjkkn.client import MyJkknClient
from app.services.myjkkn.config_store import ConfigStore, EnvOverrides
from app.services.myjkkn.resources import MyJkknApi
from app.services.myjkkn.verification import UserVerificationService
from app.services.notifications import NotificationService, TimedCache
from app.services.supabase_client import first_row, get_supabase

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


# ===============================
# MyJKKN
# ===============================
@lru_cache()
def get_config_store() -> ConfigStore:
    return ConfigStore(settings.MYJKKN_CONFIG_PATH, EnvOverrides.from_settings())


@lru_cache()
def get_myjkkn_client() -> MyJkknClient:
    return MyJkknClient(
        get_config_store(),
        proxy_url=settings.MYJKKN_PROXY_URL,
        timeout=settings.MYJKKN_TIMEOUT,
    )


def get_myjkkn_api(client: MyJkknClient = Depends(get_myjkkn_client)) -> MyJkknApi:
    # pick up a config file saved by another worker process
    client.config_store.reload_if_changed()
    return MyJkknApi(client)


@lru_cache()
def get_upstream_http() -> httpx.Client:
    """HTTP client the proxy route uses to reach the MyJKKN host."""
    return httpx.Client(timeout=settings.MYJKKN_TIMEOUT)


@lru_cache()
def get_verification_service() -> UserVerificationService:
    return UserVerificationService(MyJkknApi(get_myjkkn_client()), ttl=settings.VERIFICATION_CACHE_TTL)


# ===============================
# notifications
# ===============================
@lru_cache()
def get_notification_cache() -> TimedCache:
    return TimedCache(ttl=settings.NOTIFICATION_CACHE_TTL)


def get_notification_service(
    supabase: Client = Depends(get_supabase),
    cache: TimedCache = Depends(get_notification_cache),
) -> NotificationService:
    return NotificationService(supabase, cache)


# ===============================
# actor
# ===============================
@dataclass
class Actor:
    id: str
    email: Optional[str]
    role: str
    status: str = "active"


def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    supabase: Client = Depends(get_supabase),
) -> Actor:
    """Resolve the Supabase session token to the caller's profile."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")

    try:
        response = supabase.auth.get_user(credentials.credentials)
    except Exception as e:
        logger.warning(f"Rejected session token: {e}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired session")

    user = getattr(response, "user", None)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired session")

    profile = first_row(supabase.table("profiles").select("role, status").eq("id", user.id).limit(1).execute())
    if profile is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User profile not found")

    actor = Actor(
        id=user.id,
        email=getattr(user, "email", None),
        role=profile.get("role") or "student",
        status=profile.get("status") or "active",
    )
    if actor.status != "active":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")
    return actor


def require_roles(*roles: str):
    def dependency(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized")
        return actor

    return dependency


require_admin = require_roles("admin")
require_staff = require_roles("staff", "admin")
