"""
Tests for payment audit tracking
"""
import pytest

from app.services.errors import ValidationError
from app.services.transaction_tracking import (
    NO_SERVICE_KEY_MESSAGE,
    TransactionTrackingService,
    list_dashboard_rows,
)


class TestDashboardListings:
    def test_without_service_key(self):
        assert list_dashboard_rows(None, 'payment-sessions') == {
            'success': True,
            'data': [],
            'message': NO_SERVICE_KEY_MESSAGE,
        }

    def test_rows_are_returned(self, supabase):
        supabase.respond('security_audit_log', [{'id': 'e1', 'severity': 'high'}])

        result = list_dashboard_rows(supabase, 'security-audit-logs')

        assert result == {'success': True, 'data': [{'id': 'e1', 'severity': 'high'}]}
        query = supabase.queries('security_audit_log')[0]
        assert query.called('order') == [('detected_at',)]
        assert query.called('limit') == [(200,)]

    def test_bank_test_cases_are_not_limited(self, supabase):
        list_dashboard_rows(supabase, 'bank-test-cases')

        assert supabase.queries('bank_test_cases')[0].called('limit') == []

    def test_missing_table(self, supabase):
        supabase.respond('payment_sessions', error=Exception(
            "{'code': 'PGRST205', 'message': \"Could not find the table 'public.payment_sessions'\"}"
        ))

        result = list_dashboard_rows(supabase, 'payment-sessions')

        assert result['data'] == []
        assert result['message'] == 'Payment sessions table not yet created. Run migration first.'

    def test_other_errors_are_reported(self, supabase):
        supabase.respond('transaction_details', error=Exception('permission denied'))

        result = list_dashboard_rows(supabase, 'transaction-details')

        assert result == {'success': True, 'data': [], 'error': 'permission denied'}


class TestTrackingService:
    def test_create_payment_session_rpc(self, supabase):
        supabase.respond('rpc:create_tracked_payment_session', 'session-1')

        session_id = TransactionTrackingService(supabase).create_payment_session(
            order_id='ORD1', customer_id='c1', customer_email='c1@jkkn.ac.in', amount=500.0,
        )

        rpc = supabase.queries('rpc:create_tracked_payment_session')[0]
        assert session_id == 'session-1'
        assert rpc.params['p_order_id'] == 'ORD1'
        assert rpc.params['p_currency'] == 'INR'
        assert rpc.params['p_amount'] == 500.0

    def test_security_event_severity(self, supabase):
        with pytest.raises(ValidationError):
            TransactionTrackingService(supabase).log_security_event('tamper', 'extreme', 'bad hash')

    def test_rpc_errors_propagate(self, supabase):
        supabase.respond('rpc:log_security_event', error=Exception('function missing'))

        with pytest.raises(Exception, match='function missing'):
            TransactionTrackingService(supabase).log_security_event('tamper', 'high', 'bad hash')

    def test_audit_trail(self, supabase):
        supabase.respond('payment_sessions', [{'order_id': 'ORD1'}])
        supabase.respond('transaction_details', [{'id': 't1'}])
        supabase.respond('payment_status_history', [{'id': 'h1'}, {'id': 'h2'}])

        trail = TransactionTrackingService(supabase).get_transaction_audit_trail('ORD1')

        assert trail['payment_session'] == {'order_id': 'ORD1'}
        assert len(trail['transactions']) == 1
        assert len(trail['status_history']) == 2
        assert trail['security_logs'] == []

    def test_update_test_case_result(self, supabase):
        TransactionTrackingService(supabase).update_test_case_result('TC01', status='passed')

        query = supabase.queries('bank_test_cases')[0]
        assert query.payload('update')['test_status'] == 'passed'
        assert query.eqs == {'test_case_id': 'TC01'}
