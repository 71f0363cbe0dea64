# app/services/supabase_client.py
from functools import lru_cache
from typing import Optional

from supabase import Client, create_client

from app.config import settings


@lru_cache()
def get_supabase() -> Client:
    """Anon-key client shared by all request handlers."""
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)


@lru_cache()
def _service_client() -> Client:
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)


def get_service_supabase() -> Optional[Client]:
    """
    Service-role client for the admin audit dashboard.
    Returns None when SUPABASE_SERVICE_ROLE_KEY is not configured.
    """
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        return None
    return _service_client()


def is_missing_relation(error: Exception) -> bool:
    """True when PostgREST reports that a table, view or function does not exist."""
    message = str(error).lower()
    return (
        "does not exist" in message
        or "could not find" in message
        or "pgrst205" in message
        or "42p01" in message
    )


def first_row(result) -> Optional[dict]:
    if result is None or not result.data:
        return None
    return result.data[0]
