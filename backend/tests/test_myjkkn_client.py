"""
Tests for the MyJKKN API client and the typed resource methods
"""
import httpx
import pytest

from app.services.myjkkn.client import (
    INVALID_KEY_ERROR,
    MOCK_DISABLED_ERROR,
    is_valid_api_key,
    reshape_paginated,
    status_error,
)

VALID_KEY = 'jk_abc123_xyz789'


class TestApiKeyFormat:
    @pytest.mark.parametrize('key', ['jk_abc123_xyz789', 'jkkn_A1b2_C3d4'])
    def test_valid_keys(self, key):
        assert is_valid_api_key(key)

    @pytest.mark.parametrize('key', ['', None, 'invalid-key', 'jk_abc', 'jk_abc_xyz_', 'jk_ab-c_xyz'])
    def test_invalid_keys(self, key):
        assert not is_valid_api_key(key)


class TestRequest:
    def test_invalid_key_fails_without_network(self, config_store, myjkkn_client, upstream):
        config_store.save(api_key='invalid-key')

        result = myjkkn_client.request('/api-management/students')

        assert not result.success
        assert result.error == INVALID_KEY_ERROR
        assert upstream.requests == []

    def test_mock_mode_is_rejected(self, config_store, myjkkn_client, upstream):
        config_store.save(mock_mode=True)

        result = myjkkn_client.request('/api-management/students')

        assert not result.success
        assert result.error == MOCK_DISABLED_ERROR
        assert upstream.requests == []

    def test_sends_bearer_key_and_query(self, myjkkn_client, upstream):
        myjkkn_client.request('/api-management/staff', params={'page': 2, 'is_active': True, 'gender': None})

        sent = upstream.requests[0]
        assert sent.headers['authorization'] == f'Bearer {VALID_KEY}'
        assert sent.url.path == '/api/api-management/staff'
        assert dict(sent.url.params) == {'page': '2', 'is_active': 'true'}

    def test_proxy_mode_uses_proxy_url(self, config_store, myjkkn_client, upstream):
        config_store.save(proxy_mode=True)

        myjkkn_client.request('/api-management/students')

        assert str(upstream.requests[0].url).startswith('http://localhost:8000/api/myjkkn/api-management/students')

    def test_paginated_envelope_is_reshaped(self, myjkkn_client, upstream):
        upstream.handler = lambda request: httpx.Response(200, json={
            'data': [{'id': 's1', 'department': {'id': 'd1', 'department_name': 'EEE'}}],
            'total': 25,
            'page': 2,
        })

        result = myjkkn_client.request('/api-management/students', params={'page': 2, 'limit': 10})

        assert result.success
        assert result.data['data'] == [{'id': 's1', 'department': 'EEE'}]
        assert result.data['metadata'] == {'page': 2, 'totalPages': 3, 'total': 25}

    def test_plain_payload_is_normalized(self, myjkkn_client, upstream):
        upstream.handler = lambda request: httpx.Response(200, json={
            'id': 'i1', 'name': 'JKKN Pharmacy', 'is_active': False,
        })

        result = myjkkn_client.request('/api-management/organizations/institutions/i1')

        assert result.data == {'id': 'i1', 'name': 'JKKN Pharmacy', 'is_active': False, 'status': 'Inactive'}

    @pytest.mark.parametrize('status_code,message', [
        (401, 'Authentication failed. Please check your API key.'),
        (403, 'Access forbidden. Please check your API permissions.'),
        (404, 'API endpoint not found. Please check your configuration.'),
        (429, 'Rate limit exceeded. Please try again later.'),
        (503, 'Server error. Please try again later.'),
    ])
    def test_status_codes_map_to_messages(self, myjkkn_client, upstream, status_code, message):
        upstream.handler = lambda request: httpx.Response(status_code, json={'error': 'nope'})

        result = myjkkn_client.request('/api-management/students')

        assert not result.success
        assert result.error == message

    def test_other_client_errors_include_status(self):
        assert status_error(418, "I'm a teapot") == "HTTP 418: I'm a teapot"

    def test_network_failure(self, myjkkn_client, upstream):
        def fail(request):
            raise httpx.ConnectError('connection refused', request=request)

        upstream.handler = fail

        result = myjkkn_client.request('/api-management/students')

        assert not result.success
        assert 'Network failure' in result.error

    def test_invalid_json(self, myjkkn_client, upstream):
        upstream.handler = lambda request: httpx.Response(200, text='<html>oops</html>')

        result = myjkkn_client.request('/api-management/students')

        assert result.error == 'Invalid JSON response from server'


class TestReshape:
    def test_total_pages_from_limit(self):
        assert reshape_paginated({'data': [], 'total': 25, 'page': 2}, limit=10)['metadata']['totalPages'] == 3

    def test_empty_result_has_one_page(self):
        assert reshape_paginated({'data': [], 'total': 0}, limit=10)['metadata'] == {
            'page': 1, 'totalPages': 1, 'total': 0,
        }

    def test_upstream_total_pages_wins(self):
        assert reshape_paginated({'data': [], 'total': 25, 'totalPages': 7}, limit=10)['metadata']['totalPages'] == 7

    def test_missing_page_falls_back_to_requested_page(self):
        assert reshape_paginated({'data': [], 'total': 25}, limit=10, page=2)['metadata']['page'] == 2

    def test_request_passes_requested_page(self, myjkkn_client, upstream):
        upstream.handler = lambda request: httpx.Response(200, json={'data': [], 'total': 25})

        result = myjkkn_client.request('/api-management/students', params={'page': 2, 'limit': 10})

        assert result.data['metadata'] == {'page': 2, 'totalPages': 3, 'total': 25}


class TestConnectionHelpers:
    def test_connection_success(self, myjkkn_client, upstream):
        result = myjkkn_client.test_connection()

        assert result.success
        assert result.data['mode'] == 'direct'
        assert dict(upstream.requests[0].url.params) == {'page': '1', 'limit': '1'}

    def test_connection_in_mock_mode_does_not_call_upstream(self, config_store, myjkkn_client, upstream):
        config_store.save(mock_mode=True)

        result = myjkkn_client.test_connection()

        assert result.success
        assert result.data['mode'] == 'mock'
        assert upstream.requests == []

    def test_config_info_hides_key(self, myjkkn_client):
        info = myjkkn_client.get_config_info()

        assert info['key_preview'] == 'jk_abc12...'
        assert info['is_valid_key'] is True
        assert myjkkn_client.is_configured()


class TestResources:
    def test_filter_methods_send_one_filter(self, myjkkn_api, upstream):
        myjkkn_api.get_students_by_department('CSE', page=3)

        assert upstream.requests[0].url.path.endswith('/api-management/students')
        assert dict(upstream.requests[0].url.params) == {'department': 'CSE', 'page': '3', 'limit': '20'}

    def test_profile_status_filter(self, myjkkn_api, upstream):
        myjkkn_api.get_students_by_profile_status(False)

        assert upstream.requests[0].url.params['is_profile_complete'] == 'false'

    def test_get_by_id(self, myjkkn_api, upstream):
        myjkkn_api.get_department_by_id('d7')

        assert upstream.requests[0].url.path.endswith('/api-management/organizations/departments/d7')
