"""
Tests for approval chain configuration
"""
import pytest

from app.services import approval_levels
from app.services.errors import ValidationError


class TestSaveLevels:
    def test_replaces_existing_chain(self, supabase):
        supabase.respond('service_approval_levels', [])
        supabase.respond('service_approval_levels', [{'id': 'a1'}, {'id': 'a2'}])

        saved = approval_levels.save_service_approval_levels(supabase, 'svc-1', [
            {'level': 2, 'staff_id': 'hod-1'},
            {'level': 1, 'staff_id': 'clerk-1'},
        ])

        delete, insert = supabase.queries('service_approval_levels')
        assert delete.called('delete') == [()]
        assert delete.eqs == {'service_id': 'svc-1'}
        assert insert.payload('insert') == [
            {'service_id': 'svc-1', 'level': 2, 'staff_id': 'hod-1'},
            {'service_id': 'svc-1', 'level': 1, 'staff_id': 'clerk-1'},
        ]
        assert len(saved) == 2

    def test_empty_chain_only_deletes(self, supabase):
        assert approval_levels.save_service_approval_levels(supabase, 'svc-1', []) == []
        assert len(supabase.queries('service_approval_levels')) == 1

    @pytest.mark.parametrize('levels', [
        [{'level': 1, 'staff_id': 'a'}, {'level': 3, 'staff_id': 'b'}],
        [{'level': 2, 'staff_id': 'a'}],
        [{'level': 1, 'staff_id': 'a'}, {'level': 1, 'staff_id': 'b'}],
    ])
    def test_levels_must_be_contiguous(self, supabase, levels):
        with pytest.raises(ValidationError):
            approval_levels.save_service_approval_levels(supabase, 'svc-1', levels)
        assert supabase.executed == []

    def test_every_level_needs_staff(self, supabase):
        with pytest.raises(ValidationError):
            approval_levels.save_service_approval_levels(supabase, 'svc-1', [{'level': 1, 'staff_id': ''}])


class TestReads:
    def test_levels_carry_staff_names(self, supabase):
        supabase.respond('service_approval_levels', [
            {'id': 'a1', 'level': 1, 'staff_id': 'clerk-1', 'profiles': {'full_name': 'Lakshmi'}},
            {'id': 'a2', 'level': 2, 'staff_id': 'hod-1', 'profiles': None},
        ])

        levels = approval_levels.get_service_approval_levels(supabase, 'svc-1')

        assert [level['staff_name'] for level in levels] == ['Lakshmi', 'Unknown Staff']

    def test_max_level(self, supabase):
        supabase.respond('service_approval_levels', [{'level': 3}])
        assert approval_levels.get_max_approval_level(supabase, 'svc-1') == 3

    def test_max_level_without_levels(self, supabase):
        assert approval_levels.get_max_approval_level(supabase, 'svc-1') == 0

    def test_max_level_without_service_id(self, supabase):
        assert approval_levels.get_max_approval_level(supabase, '') == 1
        assert supabase.executed == []

    def test_is_user_approver_for_current_level(self, supabase):
        supabase.respond('service_requests', [{'service_id': 'svc-1', 'level': 2}])
        supabase.respond('service_approval_levels', [{'id': 'a2'}])

        assert approval_levels.is_user_approver_for_request(supabase, 'hod-1', 'r1')
        assert supabase.queries('service_approval_levels')[0].eqs == {
            'service_id': 'svc-1', 'level': 2, 'staff_id': 'hod-1',
        }

    def test_is_user_approver_for_missing_request(self, supabase):
        assert not approval_levels.is_user_approver_for_request(supabase, 'hod-1', 'missing')
