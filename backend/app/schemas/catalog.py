# app/schemas/catalog.py
from pydantic import BaseModel
from typing import Any, Dict, Literal, Optional

ApplicableTo = Literal["student", "staff", "both"]
PaymentMethod = Literal["prepaid", "postpaid", "free"]
ServiceStatus = Literal["active", "inactive"]


class ServiceCategoryCreate(BaseModel):
    name: str
    code: str  # upper-cased before saving
    description: Optional[str] = None


class ServiceCategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class ServiceCreate(BaseModel):
    category_id: str
    request_no: str  # SNO<n>
    name: str
    description: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    applicable_to: ApplicableTo
    status: ServiceStatus = "active"
    service_limit: Optional[int] = None
    attachment_url: Optional[str] = None
    sla_period: Optional[int] = None  # days
    payment_method: PaymentMethod
    amount: Optional[float] = None
    currency: Optional[str] = "INR"


class ServiceUpdate(BaseModel):
    category_id: Optional[str] = None
    request_no: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    applicable_to: Optional[ApplicableTo] = None
    status: Optional[ServiceStatus] = None
    service_limit: Optional[int] = None
    attachment_url: Optional[str] = None
    sla_period: Optional[int] = None
    payment_method: Optional[PaymentMethod] = None
    amount: Optional[float] = None
    currency: Optional[str] = None


class CategoryDelete(BaseModel):
    reassign_to: Optional[str] = None  # None leaves the services uncategorized


class Service(BaseModel):
    id: str
    category_id: Optional[str] = None
    request_no: str
    name: str
    description: Optional[str] = None
    applicable_to: ApplicableTo
    status: ServiceStatus
    payment_method: PaymentMethod
    amount: Optional[float] = None
    currency: Optional[str] = None
    service_limit: Optional[int] = None
    sla_period: Optional[int] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    attachment_url: Optional[str] = None
    created_at: Optional[str] = None
    service_categories: Optional[Dict[str, Any]] = None
