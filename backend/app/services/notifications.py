# app/services/notifications.py
"""
In-app notifications
Reads are cached per user for a short TTL; every write for a user drops
that user's cached entries.
"""
import logging
import threading
import time
from typing import Any, Callable, Dict, Hashable, List, Optional

from supabase import Client

from app.services.errors import NotFoundError, ValidationError
from app.services.supabase_client import first_row, is_missing_relation

logger = logging.getLogger(__name__)

TABLE = "notifications"
NOTIFICATION_TYPES = ("info", "success", "warning", "error", "user_action")

SERVICE_REQUEST_EVENTS = {
    "created": ("info", "New Service Request", "{service} request #{request_id} has been submitted"),
    "approved": ("success", "Request Approved", "Your {service} request #{request_id} has been approved"),
    "rejected": ("error", "Request Rejected", "Your {service} request #{request_id} has been rejected"),
    "cancelled": ("warning", "Request Cancelled", "Your {service} request #{request_id} has been cancelled"),
    "completed": ("success", "Request Completed", "Your {service} request #{request_id} has been completed"),
}


# ===============================
# cache
# ===============================
class TimedCache:
    """
    Key/value cache whose entries expire `ttl` seconds after they were set.

    get_or_load() holds a per-key lock while loading, so concurrent callers
    for the same key wait for one fetch instead of issuing their own.
    """

    def __init__(self, ttl: float = 30, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._entries: Dict[Hashable, tuple] = {}
        self._lock = threading.Lock()
        self._key_locks: Dict[Hashable, threading.Lock] = {}

    def is_fresh(self, key: Hashable) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and self.clock() - entry[1] < self.ttl

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self.clock() - entry[1] >= self.ttl:
                del self._entries[key]
                return None
            return entry[0]

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._entries[key] = (value, self.clock())

    def invalidate(self, *keys: Hashable) -> None:
        """Drop the given keys, or everything when called without keys."""
        with self._lock:
            if not keys:
                self._entries.clear()
                return
            for key in keys:
                self._entries.pop(key, None)

    def _key_lock(self, key: Hashable) -> threading.Lock:
        with self._lock:
            return self._key_locks.setdefault(key, threading.Lock())

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        with self._key_lock(key):
            with self._lock:
                entry = self._entries.get(key)
                if entry is not None and self.clock() - entry[1] < self.ttl:
                    return entry[0]
            value = loader()
            self.set(key, value)
            return value


# ===============================
# service
# ===============================
def to_notification(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "type": row.get("type") or "info",
        "title": row.get("title") or "",
        "message": row.get("message") or "",
        "timestamp": row.get("created_at"),
        "read": bool(row.get("read")),
        "action_url": row.get("action_url"),
        "metadata": row.get("metadata"),
        "user_id": row.get("user_id"),
    }


class NotificationService:
    def __init__(self, supabase: Client, cache: TimedCache):
        self.supabase = supabase
        self.cache = cache

    def _invalidate(self, user_id: str) -> None:
        self.cache.invalidate(("notifications", user_id), ("unread", user_id))

    def get_notifications(self, user_id: str) -> List[Dict[str, Any]]:
        def load():
            try:
                result = (
                    self.supabase.table(TABLE)
                    .select("*")
                    .eq("user_id", user_id)
                    .order("created_at", desc=True)
                    .execute()
                )
            except Exception as e:
                if is_missing_relation(e):
                    logger.warning(f"notifications table missing, returning no notifications: {e}")
                    return []
                raise
            return [to_notification(row) for row in (result.data or [])]

        return self.cache.get_or_load(("notifications", user_id), load)

    def get_unread_count(self, user_id: str) -> int:
        def load():
            try:
                result = (
                    self.supabase.table(TABLE)
                    .select("id", count="exact")
                    .eq("user_id", user_id)
                    .eq("read", False)
                    .execute()
                )
            except Exception as e:
                if is_missing_relation(e):
                    logger.warning(f"notifications table missing, unread count is 0: {e}")
                    return 0
                raise
            return result.count if result.count is not None else len(result.data or [])

        return self.cache.get_or_load(("unread", user_id), load)

    def create_notification(
        self,
        user_id: str,
        type: str,
        title: str,
        message: str,
        action_url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        if type not in NOTIFICATION_TYPES:
            raise ValidationError(f"Unknown notification type: {type}")
        if not title or not message:
            raise ValidationError("Notification title and message are required")

        result = self.supabase.table(TABLE).insert({
            "user_id": user_id,
            "type": type,
            "title": title,
            "message": message,
            "action_url": action_url,
            "metadata": metadata,
            "read": False,
        }).execute()
        self._invalidate(user_id)

        row = first_row(result)
        if row is None:
            raise ValidationError("Failed to create notification")
        return to_notification(row)

    def mark_as_read(self, user_id: str, notification_id: str) -> None:
        result = (
            self.supabase.table(TABLE)
            .update({"read": True})
            .eq("id", notification_id)
            .eq("user_id", user_id)
            .execute()
        )
        self._invalidate(user_id)
        if not result.data:
            raise NotFoundError(f"Notification {notification_id} not found")

    def mark_all_as_read(self, user_id: str) -> int:
        result = (
            self.supabase.table(TABLE)
            .update({"read": True})
            .eq("user_id", user_id)
            .eq("read", False)
            .execute()
        )
        self._invalidate(user_id)
        return len(result.data or [])

    def delete_notification(self, user_id: str, notification_id: str) -> None:
        result = (
            self.supabase.table(TABLE)
            .delete()
            .eq("id", notification_id)
            .eq("user_id", user_id)
            .execute()
        )
        self._invalidate(user_id)
        if not result.data:
            raise NotFoundError(f"Notification {notification_id} not found")

    def clear_all_notifications(self, user_id: str) -> int:
        result = self.supabase.table(TABLE).delete().eq("user_id", user_id).execute()
        self._invalidate(user_id)
        return len(result.data or [])

    # ===============================
    # fan-out helpers
    # ===============================
    def send_notification_to_role(self, role: str, **notification) -> List[Dict[str, Any]]:
        result = self.supabase.table("profiles").select("id").eq("role", role).execute()
        sent = []
        for profile in result.data or []:
            try:
                sent.append(self.create_notification(profile["id"], **notification))
            except Exception as e:
                logger.error(f"Failed to notify user {profile['id']}: {e}", exc_info=True)
        return sent

    def notify_service_request_event(self, request: Dict[str, Any], event: str) -> None:
        """Best effort: failures are logged, never raised."""
        if event not in SERVICE_REQUEST_EVENTS:
            raise ValueError(f"Unknown service request event: {event}")

        type_, title, template = SERVICE_REQUEST_EVENTS[event]
        service = request.get("service_name") or "Service"
        message = template.format(service=service, request_id=request["id"])
        try:
            self.create_notification(
                request["requester_id"],
                type=type_,
                title=title,
                message=message,
                action_url=f"/service-requests/{request['id']}",
                metadata={"request_id": request["id"], "service": service, "event_type": event},
            )
        except Exception as e:
            logger.warning(f"Could not send '{event}' notification for request {request['id']}: {e}")
