# app/schemas/transaction.py
from pydantic import BaseModel
from typing import Any, Dict, List, Literal, Optional


class DashboardListing(BaseModel):
    success: bool = True
    data: List[Dict[str, Any]] = []
    message: Optional[str] = None
    error: Optional[str] = None


class SecurityEventCreate(BaseModel):
    event_type: str
    severity: Literal["low", "medium", "high", "critical"]
    description: str
    order_id: Optional[str] = None
    vulnerability_type: Optional[str] = None
    event_data: Optional[Dict[str, Any]] = None
    test_case_id: Optional[str] = None


class BankTestCaseResult(BaseModel):
    status: Optional[str] = None
    actual_result: Optional[str] = None
    test_output: Optional[Any] = None
    error_messages: Optional[str] = None
    vulnerabilities_found: Optional[str] = None
    execution_duration: Optional[str] = None


class AuditTrail(BaseModel):
    payment_session: Optional[Dict[str, Any]] = None
    transactions: List[Dict[str, Any]] = []
    status_history: List[Dict[str, Any]] = []
    security_logs: List[Dict[str, Any]] = []
