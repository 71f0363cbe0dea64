# app/api/v1/service_requests.py
"""
Service requests: listing, submission and the approval workflow.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from supabase import Client

from app.api.deps import Actor, get_current_actor, get_notification_service, require_staff
from app.schemas.service_request import ServiceRequest, ServiceRequestCreate
from app.services import service_requests as workflow
from app.services.approval_levels import is_user_approver_for_request
from app.services.errors import PortalError, to_http_exception
from app.services.notifications import NotificationService
from app.services.supabase_client import get_supabase

router = APIRouter(prefix="/service-requests", tags=["Service Requests"])
logger = logging.getLogger(__name__)


def with_actions(request: Dict[str, Any], actor: Actor) -> Dict[str, Any]:
    actions = workflow.allowed_actions(request, actor.role, actor.id)
    return {**request, "allowed_actions": sorted(actions)}


# ===============================
# reads
# ===============================
@router.get("/", response_model=List[ServiceRequest])
def list_service_requests(
    status: Optional[List[str]] = Query(None, description="Filter by one or more statuses"),
    supabase: Client = Depends(get_supabase),
    actor: Actor = Depends(get_current_actor),
):
    """Staff and admins see every request; students see their own."""
    try:
        if status:
            requests = workflow.get_service_requests_by_status(supabase, status)
        else:
            requests = workflow.get_service_requests(supabase)

        if actor.role not in workflow.STAFF_ROLES:
            requests = [r for r in requests if r["requester_id"] == actor.id]
        return [with_actions(r, actor) for r in requests]
    except HTTPException:
        raise
    except PortalError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Listing service requests failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error fetching service requests: {str(e)}")


@router.get("/to-approve", response_model=List[ServiceRequest])
def list_requests_to_approve(
    supabase: Client = Depends(get_supabase),
    actor: Actor = Depends(require_staff),
):
    try:
        requests = workflow.get_service_requests_by_approver(supabase, actor.id)
        return [with_actions(r, actor) for r in requests]
    except Exception as e:
        logger.error(f"Listing requests for approver {actor.id} failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error fetching requests to approve: {str(e)}")


@router.get("/{request_id}", response_model=ServiceRequest)
def get_service_request(
    request_id: str,
    supabase: Client = Depends(get_supabase),
    actor: Actor = Depends(get_current_actor),
):
    try:
        request = workflow.get_service_request_by_id(supabase, request_id)
        if actor.role not in workflow.STAFF_ROLES and request["requester_id"] != actor.id:
            raise HTTPException(status_code=404, detail=f"Service request {request_id} not found")
        return with_actions(request, actor)
    except HTTPException:
        raise
    except PortalError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Fetching service request {request_id} failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error fetching service request: {str(e)}")


@router.get("/{request_id}/can-approve")
def can_approve(
    request_id: str,
    supabase: Client = Depends(get_supabase),
    actor: Actor = Depends(require_staff),
):
    """Whether the caller is the assigned approver for the request's current level."""
    try:
        return {"can_approve": is_user_approver_for_request(supabase, actor.id, request_id)}
    except Exception as e:
        logger.error(f"Approver check for {request_id} failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error checking approver: {str(e)}")


# ===============================
# writes
# ===============================
@router.post("/", response_model=ServiceRequest, status_code=201)
def create_service_request(
    body: ServiceRequestCreate,
    supabase: Client = Depends(get_supabase),
    notifier: NotificationService = Depends(get_notification_service),
    actor: Actor = Depends(get_current_actor),
):
    try:
        request = workflow.create_service_request(supabase, body.service_id, actor.id, notifier)
        return with_actions(request, actor)
    except HTTPException:
        raise
    except PortalError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Creating service request failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error creating service request: {str(e)}")


ACTIONS = {
    "approve": workflow.approve_service_request,
    "reject": workflow.reject_service_request,
    "cancel": workflow.cancel_service_request,
    "complete": workflow.complete_service_request,
}


@router.post("/{request_id}/{action}", response_model=ServiceRequest)
def act_on_service_request(
    request_id: str,
    action: str,
    supabase: Client = Depends(get_supabase),
    notifier: NotificationService = Depends(get_notification_service),
    actor: Actor = Depends(get_current_actor),
):
    """approve | reject | cancel | complete"""
    if action not in ACTIONS:
        raise HTTPException(status_code=404, detail=f"Unknown action: {action}")

    try:
        current = workflow.get_service_request_by_id(supabase, request_id)
        if action not in workflow.allowed_actions(current, actor.role, actor.id):
            raise HTTPException(
                status_code=403,
                detail=f"You cannot {action} a {current['status']} request",
            )

        updated = ACTIONS[action](supabase, request_id, notifier)
        logger.info(f"{actor.id} performed {action} on service request {request_id}")
        return with_actions(updated, actor)
    except HTTPException:
        raise
    except PortalError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"{action} on service request {request_id} failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to {action} service request: {str(e)}")
