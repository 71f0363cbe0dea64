# app/api/v1/analytics.py

from fastapi import APIRouter, Depends, HTTPException
from collections import Counter
import logging

from supabase import Client

from app.api.deps import Actor, require_admin
from app.services.service_requests import STATUSES
from app.services.supabase_client import get_supabase
from app.services.user_management import get_user_stats

router = APIRouter(prefix="/analytics", tags=["Analytics"])
logger = logging.getLogger(__name__)


@router.get("/summary")
def analytics_summary(supabase: Client = Depends(get_supabase), actor: Actor = Depends(require_admin)):
    """
    Dashboard counters: requests per status, users per role/status and
    the number of active services.
    """
    try:
        requests = supabase.table("service_requests").select("status").execute().data or []
        by_status = Counter(row.get("status") for row in requests)

        services = supabase.table("services").select("id, status").execute().data or []

        return {
            "service_requests": {
                "total": len(requests),
                "by_status": {status: by_status.get(status, 0) for status in STATUSES},
            },
            "users": get_user_stats(supabase),
            "services": {
                "total": len(services),
                "active": sum(1 for s in services if s.get("status") == "active"),
            },
        }
    except Exception as e:
        logger.error(f"Building analytics summary failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to build analytics summary: {str(e)}")
