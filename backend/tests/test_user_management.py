"""
Tests for portal user management
"""
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from app.services import user_management
from app.services.errors import NotFoundError, PortalError, ValidationError


def profile(user_id, role='student', status='active', **extra):
    return {'id': user_id, 'email': f'{user_id}@jkkn.ac.in', 'full_name': user_id.title(),
            'role': role, 'status': status, **extra}


@pytest.fixture
def admin_client():
    admin = MagicMock()
    admin.auth.admin.create_user.return_value = SimpleNamespace(
        user=SimpleNamespace(id='new-1', email='new@jkkn.ac.in')
    )
    return admin


class TestCreateUser:
    def test_creates_auth_account_then_profile(self, supabase, admin_client):
        supabase.respond('profiles', [profile('new-1', role='staff', email='new@jkkn.ac.in')])

        user = user_management.create_user(
            supabase, admin_client, email='new@jkkn.ac.in', full_name='New Staff', role='staff',
        )

        sent = admin_client.auth.admin.create_user.call_args[0][0]
        assert sent['email'] == 'new@jkkn.ac.in'
        assert sent['email_confirm'] is True
        assert sent['password']
        update = supabase.queries('profiles')[0]
        assert update.payload('update')['role'] == 'staff'
        assert update.eqs == {'id': 'new-1'}
        assert user['role'] == 'staff'

    def test_requires_service_role_client(self, supabase):
        with pytest.raises(PortalError) as exc:
            user_management.create_user(supabase, None, email='a@jkkn.ac.in', full_name='A', role='staff')
        assert exc.value.code == 'NOT_CONFIGURED'

    def test_profile_failure_removes_auth_account(self, supabase, admin_client):
        supabase.respond('profiles', error=Exception('profiles update failed'))

        with pytest.raises(Exception, match='profiles update failed'):
            user_management.create_user(
                supabase, admin_client, email='new@jkkn.ac.in', full_name='New', role='student',
            )
        admin_client.auth.admin.delete_user.assert_called_once_with('new-1')

    def test_invalid_role(self, supabase, admin_client):
        with pytest.raises(ValidationError):
            user_management.create_user(supabase, admin_client, email='a@jkkn.ac.in', full_name='A', role='root')
        admin_client.auth.admin.create_user.assert_not_called()


class TestUpdates:
    def test_update_ignores_unknown_fields(self, supabase):
        supabase.respond('profiles', [profile('u1', role='staff')])

        user_management.update_user(supabase, 'u1', {'role': 'staff', 'email': 'x@y.z', 'full_name': None})

        payload = supabase.queries('profiles')[0].payload('update')
        assert set(payload) == {'role', 'updated_at'}

    def test_update_missing_user(self, supabase):
        with pytest.raises(NotFoundError):
            user_management.update_user(supabase, 'ghost', {'status': 'active'})

    def test_delete_deactivates(self, supabase):
        supabase.respond('profiles', [profile('u1', status='inactive')])

        user_management.delete_user(supabase, 'u1')

        assert supabase.queries('profiles')[0].payload('update')['status'] == 'inactive'

    def test_toggle_status(self, supabase):
        supabase.respond('profiles', [profile('u1', status='active')])
        supabase.respond('profiles', [profile('u1', status='inactive')])

        assert user_management.toggle_user_status(supabase, 'u1') == 'inactive'

    def test_role_update_validates(self, supabase):
        with pytest.raises(ValidationError):
            user_management.update_user_role(supabase, 'u1', 'superuser')


class TestQueries:
    def test_stats(self, supabase):
        supabase.respond('profiles', [
            profile('a1', role='admin'),
            profile('s1', role='staff'),
            profile('s2', role='staff', status='inactive'),
            profile('st1'),
        ])

        assert user_management.get_user_stats(supabase) == {
            'total': 4, 'active': 3, 'inactive': 1, 'admin': 1, 'staff': 2, 'student': 1,
        }

    def test_search_by_email_or_name(self, supabase):
        supabase.respond('profiles', [
            profile('kavya', full_name='Kavya R'),
            profile('arun', full_name='Arun S'),
        ])

        assert [u['id'] for u in user_management.search_users(supabase, 'KAVYA')] == ['kavya']

    def test_get_missing_user(self, supabase):
        with pytest.raises(NotFoundError):
            user_management.get_user_by_id(supabase, 'ghost')
