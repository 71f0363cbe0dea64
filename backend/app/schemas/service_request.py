# app/schemas/service_request.py
from pydantic import BaseModel
from typing import List, Literal, Optional

RequestStatus = Literal["pending", "approved", "rejected", "cancelled", "completed"]


class ServiceRequest(BaseModel):
    id: str
    service_id: str
    service_name: str = "Unknown Service"
    requester_id: str
    requester_name: str = "Unknown User"
    status: RequestStatus
    level: int = 1  # current approval level
    max_approval_level: int = 1
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    allowed_actions: List[str] = []  # for the calling actor


class ServiceRequestCreate(BaseModel):
    service_id: str


class ApprovalLevel(BaseModel):
    id: Optional[str] = None
    level: int
    staff_id: str
    staff_name: Optional[str] = None


class ApprovalLevelsUpdate(BaseModel):
    levels: List[ApprovalLevel]
