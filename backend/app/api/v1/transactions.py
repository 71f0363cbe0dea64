# app/api/v1/transactions.py
"""
Payment audit dashboard (admins only). Listings read through the
service-role client and degrade to empty panels when it is unavailable.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from supabase import Client

from app.api.deps import Actor, require_admin
from app.schemas.transaction import AuditTrail, BankTestCaseResult, DashboardListing, SecurityEventCreate
from app.services.errors import as_http_error
from app.services.supabase_client import get_service_supabase
from app.services.transaction_tracking import TransactionTrackingService, list_dashboard_rows

router = APIRouter(prefix="/admin", tags=["Transaction Tracking"])


def get_tracking_service(supabase: Optional[Client] = Depends(get_service_supabase)) -> TransactionTrackingService:
    if supabase is None:
        raise HTTPException(status_code=503, detail="SUPABASE_SERVICE_ROLE_KEY is not configured")
    return TransactionTrackingService(supabase)


# ===============================
# dashboard panels
# ===============================
@router.get("/payment-sessions", response_model=DashboardListing)
def payment_sessions(supabase: Optional[Client] = Depends(get_service_supabase), actor: Actor = Depends(require_admin)):
    return list_dashboard_rows(supabase, "payment-sessions")


@router.get("/transaction-details", response_model=DashboardListing)
def transaction_details(supabase: Optional[Client] = Depends(get_service_supabase), actor: Actor = Depends(require_admin)):
    return list_dashboard_rows(supabase, "transaction-details")


@router.get("/security-audit-logs", response_model=DashboardListing)
def security_audit_logs(supabase: Optional[Client] = Depends(get_service_supabase), actor: Actor = Depends(require_admin)):
    return list_dashboard_rows(supabase, "security-audit-logs")


@router.get("/bank-test-cases", response_model=DashboardListing)
def bank_test_cases(supabase: Optional[Client] = Depends(get_service_supabase), actor: Actor = Depends(require_admin)):
    return list_dashboard_rows(supabase, "bank-test-cases")


# ===============================
# audit trail
# ===============================
@router.get("/transactions/{order_id}", response_model=AuditTrail)
def audit_trail(
    order_id: str,
    service: TransactionTrackingService = Depends(get_tracking_service),
    actor: Actor = Depends(require_admin),
):
    try:
        return service.get_transaction_audit_trail(order_id)
    except Exception as e:
        raise as_http_error("Fetching audit trail", e)


@router.post("/security-events", status_code=201)
def log_security_event(
    body: SecurityEventCreate,
    service: TransactionTrackingService = Depends(get_tracking_service),
    actor: Actor = Depends(require_admin),
):
    try:
        event_id = service.log_security_event(**body.model_dump())
        return {"id": event_id}
    except Exception as e:
        raise as_http_error("Logging security event", e)


@router.put("/bank-test-cases/{test_case_id}")
def update_bank_test_case(
    test_case_id: str,
    body: BankTestCaseResult,
    service: TransactionTrackingService = Depends(get_tracking_service),
    actor: Actor = Depends(require_admin),
):
    try:
        service.update_test_case_result(test_case_id, **body.model_dump())
        return {"success": True}
    except Exception as e:
        raise as_http_error("Updating bank test case", e)
