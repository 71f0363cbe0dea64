# app/api/v1/notifications.py
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import Actor, get_current_actor, get_notification_service
from app.schemas.notification import Notification, NotificationCreate
from app.services.errors import as_http_error
from app.services.notifications import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])
logger = logging.getLogger(__name__)


@router.get("/", response_model=List[Notification])
def list_notifications(
    service: NotificationService = Depends(get_notification_service),
    actor: Actor = Depends(get_current_actor),
):
    try:
        return service.get_notifications(actor.id)
    except Exception as e:
        raise as_http_error("Fetching notifications", e)


@router.get("/unread-count")
def unread_count(
    service: NotificationService = Depends(get_notification_service),
    actor: Actor = Depends(get_current_actor),
):
    try:
        return {"count": service.get_unread_count(actor.id)}
    except Exception as e:
        raise as_http_error("Counting unread notifications", e)


@router.post("/", status_code=201)
def create_notification(
    body: NotificationCreate,
    service: NotificationService = Depends(get_notification_service),
    actor: Actor = Depends(get_current_actor),
):
    """
    Users may notify themselves. Sending to another user or to a whole
    role is reserved for admins.
    """
    targets_someone_else = body.role is not None or (body.user_id and body.user_id != actor.id)
    if targets_someone_else and actor.role != "admin":
        raise HTTPException(status_code=403, detail="Only admins can notify other users")

    fields = dict(
        type=body.type,
        title=body.title,
        message=body.message,
        action_url=body.action_url,
        metadata=body.metadata,
    )
    try:
        if body.role:
            sent = service.send_notification_to_role(body.role, **fields)
            logger.info(f"{actor.id} sent '{body.title}' to {len(sent)} {body.role} users")
            return {"sent": len(sent), "notifications": sent}
        return service.create_notification(body.user_id or actor.id, **fields)
    except Exception as e:
        raise as_http_error("Creating notification", e)


@router.post("/read-all")
def mark_all_as_read(
    service: NotificationService = Depends(get_notification_service),
    actor: Actor = Depends(get_current_actor),
):
    try:
        return {"updated": service.mark_all_as_read(actor.id)}
    except Exception as e:
        raise as_http_error("Marking notifications as read", e)


@router.post("/{notification_id}/read")
def mark_as_read(
    notification_id: str,
    service: NotificationService = Depends(get_notification_service),
    actor: Actor = Depends(get_current_actor),
):
    try:
        service.mark_as_read(actor.id, notification_id)
        return {"success": True}
    except Exception as e:
        raise as_http_error("Marking notification as read", e)


@router.delete("/{notification_id}")
def delete_notification(
    notification_id: str,
    service: NotificationService = Depends(get_notification_service),
    actor: Actor = Depends(get_current_actor),
):
    try:
        service.delete_notification(actor.id, notification_id)
        return {"success": True}
    except Exception as e:
        raise as_http_error("Deleting notification", e)


@router.delete("/")
def clear_all_notifications(
    service: NotificationService = Depends(get_notification_service),
    actor: Actor = Depends(get_current_actor),
):
    try:
        return {"deleted": service.clear_all_notifications(actor.id)}
    except Exception as e:
        raise as_http_error("Clearing notifications", e)
