# app/services/transaction_tracking.py
"""
Payment audit trail
Payment sessions, bank responses, status history and security events are
recorded through database functions; this module wraps those RPCs and the
read side used by the admin dashboard.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from supabase import Client

from app.services.errors import ValidationError
from app.services.supabase_client import first_row, is_missing_relation

logger = logging.getLogger(__name__)

SEVERITIES = ("low", "medium", "high", "critical")


class TransactionTrackingService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _rpc(self, name: str, params: Dict[str, Any]) -> Any:
        try:
            return self.supabase.rpc(name, params).execute().data
        except Exception as e:
            logger.error(f"{name} failed: {e}", exc_info=True)
            raise

    # ===============================
    # RPC writes
    # ===============================
    def create_payment_session(
        self,
        order_id: str,
        customer_id: str,
        customer_email: str,
        customer_phone: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        amount: Optional[float] = None,
        currency: str = "INR",
        description: Optional[str] = None,
        service_id: Optional[str] = None,
        user_id: Optional[str] = None,
        test_case_id: Optional[str] = None,
        test_scenario: Optional[str] = None,
    ) -> Any:
        return self._rpc("create_tracked_payment_session", {
            "p_order_id": order_id,
            "p_customer_id": customer_id,
            "p_customer_email": customer_email,
            "p_customer_phone": customer_phone,
            "p_first_name": first_name,
            "p_last_name": last_name,
            "p_amount": amount,
            "p_currency": currency or "INR",
            "p_description": description,
            "p_service_id": service_id,
            "p_user_id": user_id,
            "p_test_case_id": test_case_id,
            "p_test_scenario": test_scenario,
        })

    def record_transaction_response(
        self,
        order_id: str,
        transaction_id: Optional[str] = None,
        payment_session_id: Optional[str] = None,
        status: Optional[str] = None,
        bank_response: Optional[Dict[str, Any]] = None,
        form_data: Optional[Dict[str, Any]] = None,
        signature_data: Optional[Dict[str, Any]] = None,
        test_case_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Any:
        return self._rpc("record_transaction_response", {
            "p_order_id": order_id,
            "p_transaction_id": transaction_id,
            "p_payment_session_id": payment_session_id,
            "p_status": status,
            "p_hdfc_response": bank_response,
            "p_form_data": form_data,
            "p_signature_data": signature_data,
            "p_test_case_id": test_case_id,
            "p_ip_address": ip_address,
            "p_user_agent": user_agent,
        })

    def log_security_event(
        self,
        event_type: str,
        severity: str,
        description: str,
        order_id: Optional[str] = None,
        vulnerability_type: Optional[str] = None,
        event_data: Optional[Dict[str, Any]] = None,
        test_case_id: Optional[str] = None,
    ) -> Any:
        if severity not in SEVERITIES:
            raise ValidationError(f"severity must be one of {', '.join(SEVERITIES)}")
        return self._rpc("log_security_event", {
            "p_event_type": event_type,
            "p_severity": severity,
            "p_description": description,
            "p_order_id": order_id,
            "p_vulnerability_type": vulnerability_type,
            "p_event_data": event_data,
            "p_test_case_id": test_case_id,
        })

    # ===============================
    # table access
    # ===============================
    def update_session_response(self, order_id: str, session: Dict[str, Any]) -> None:
        links = session.get("payment_links") or {}
        self.supabase.table("payment_sessions").update({
            "session_id": session.get("session_id"),
            "payment_link_web": links.get("web"),
            "payment_link_mobile": links.get("mobile"),
            "hdfc_session_response": session,
            "session_status": "active",
            "updated_at": datetime.now().isoformat(),
        }).eq("order_id", order_id).execute()

    def get_payment_session(self, order_id: str) -> Optional[Dict[str, Any]]:
        return first_row(
            self.supabase.table("payment_sessions").select("*").eq("order_id", order_id).limit(1).execute()
        )

    def _by_order(self, table: str, order_id: str, order_column: str) -> List[Dict[str, Any]]:
        result = (
            self.supabase.table(table)
            .select("*")
            .eq("order_id", order_id)
            .order(order_column, desc=True)
            .execute()
        )
        return result.data or []

    def get_transaction_details(self, order_id: str) -> List[Dict[str, Any]]:
        return self._by_order("transaction_details", order_id, "created_at")

    def get_security_audit_logs(self, order_id: str) -> List[Dict[str, Any]]:
        return self._by_order("security_audit_log", order_id, "detected_at")

    def get_payment_status_history(self, order_id: str) -> List[Dict[str, Any]]:
        return self._by_order("payment_status_history", order_id, "changed_at")

    def get_bank_test_cases(self) -> List[Dict[str, Any]]:
        return self.supabase.table("bank_test_cases").select("*").order("test_case_id").execute().data or []

    def update_test_case_result(
        self,
        test_case_id: str,
        status: Optional[str] = None,
        actual_result: Optional[str] = None,
        test_output: Optional[Any] = None,
        error_messages: Optional[str] = None,
        vulnerabilities_found: Optional[str] = None,
        execution_duration: Optional[str] = None,
    ) -> None:
        now = datetime.now().isoformat()
        self.supabase.table("bank_test_cases").update({
            "test_status": status,
            "actual_result": actual_result,
            "test_output": test_output,
            "error_messages": error_messages,
            "vulnerabilities_found": vulnerabilities_found,
            "execution_date": now,
            "execution_duration": execution_duration,
            "updated_at": now,
        }).eq("test_case_id", test_case_id).execute()

    def create_hash_verification(
        self,
        order_id: str,
        transaction_id: str,
        hash_type: str,
        original_data: str,
        computed_hash: str,
        received_hash: Optional[str] = None,
        verified: bool = False,
        algorithm: Optional[str] = None,
        test_case_reference: Optional[str] = None,
    ) -> None:
        self.supabase.table("hash_verification").insert({
            "order_id": order_id,
            "transaction_id": transaction_id,
            "hash_type": hash_type,
            "original_data": original_data,
            "computed_hash": computed_hash,
            "received_hash": received_hash,
            "hash_verified": verified,
            "verification_algorithm": algorithm,
            "test_case_reference": test_case_reference,
            "generated_at": datetime.now().isoformat(),
        }).execute()

    def get_transaction_audit_trail(self, order_id: str) -> Dict[str, Any]:
        return {
            "payment_session": self.get_payment_session(order_id),
            "transactions": self.get_transaction_details(order_id),
            "status_history": self.get_payment_status_history(order_id),
            "security_logs": self.get_security_audit_logs(order_id),
        }


# ===============================
# admin dashboard listings
# ===============================
DASHBOARD_LISTINGS = {
    "payment-sessions": {
        "table": "payment_sessions",
        "label": "Payment sessions",
        "columns": "id, order_id, customer_email, customer_phone, amount, currency, "
                   "session_status, test_case_id, test_scenario, created_at",
        "order": "created_at",
        "desc": True,
        "limit": 100,
    },
    "transaction-details": {
        "table": "transaction_details",
        "label": "Transaction details",
        "columns": "id, order_id, transaction_id, status, signature_verified, "
                   "hdfc_response_raw, form_data_received, created_at",
        "order": "created_at",
        "desc": True,
        "limit": 100,
    },
    "security-audit-logs": {
        "table": "security_audit_log",
        "label": "Security audit log",
        "columns": "id, event_type, severity, event_description, order_id, detected_at",
        "order": "detected_at",
        "desc": True,
        "limit": 200,
    },
    "bank-test-cases": {
        "table": "bank_test_cases",
        "label": "Bank test cases",
        "columns": "id, test_case_id, test_scenario, test_description, test_amount, test_currency, "
                   "expected_result, actual_result, test_status, error_messages, vulnerabilities_found, "
                   "executed_by, execution_date, execution_duration, testing_phase, phase_notes, "
                   "created_at, updated_at",
        "order": "test_case_id",
        "desc": False,
        "limit": None,
    },
}

NO_SERVICE_KEY_MESSAGE = (
    "Service role key not configured. Please add SUPABASE_SERVICE_ROLE_KEY to environment variables."
)


def list_dashboard_rows(supabase: Optional[Client], listing: str) -> Dict[str, Any]:
    """
    Rows for one admin dashboard panel. Never raises for a missing key or
    table: the panel gets an empty list with an explanatory message.
    """
    table_def = DASHBOARD_LISTINGS[listing]
    if supabase is None:
        return {"success": True, "data": [], "message": NO_SERVICE_KEY_MESSAGE}

    try:
        query = supabase.table(table_def["table"]).select(table_def["columns"]).order(table_def["order"], desc=table_def["desc"])
        if table_def["limit"]:
            query = query.limit(table_def["limit"])
        result = query.execute()
    except Exception as e:
        if is_missing_relation(e):
            logger.warning(f"{table_def['table']} table missing: {e}")
            return {
                "success": True,
                "data": [],
                "message": f"{table_def['label']} table not yet created. Run migration first.",
            }
        logger.error(f"Failed to load {table_def['table']}: {e}", exc_info=True)
        return {"success": True, "data": [], "error": str(e)}

    return {"success": True, "data": result.data or []}
