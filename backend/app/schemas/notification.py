# app/schemas/notification.py
from pydantic import BaseModel
from typing import Any, Dict, Literal, Optional

NotificationType = Literal["info", "success", "warning", "error", "user_action"]


class Notification(BaseModel):
    id: str
    type: NotificationType = "info"
    title: str
    message: str
    timestamp: Optional[str] = None
    read: bool = False
    action_url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    user_id: Optional[str] = None


class NotificationCreate(BaseModel):
    type: NotificationType = "info"
    title: str
    message: str
    action_url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    user_id: Optional[str] = None  # defaults to the caller
    role: Optional[Literal["admin", "staff", "student"]] = None  # fan out to every user with this role
