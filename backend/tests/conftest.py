"""
JKKN Service Portal - Test Configuration and Fixtures

Supabase is replaced by a recording fake: every table()/rpc() chain is kept
so tests can assert on the filters a service applied, and responses are
queued per table in the order the service is expected to execute them.
"""
import os
from collections import defaultdict, deque
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import pytest

# Keep local .env values out of the tests
os.environ['SUPABASE_URL'] = 'http://supabase.test'
os.environ['SUPABASE_KEY'] = 'test-anon-key'
os.environ['SUPABASE_SERVICE_ROLE_KEY'] = ''
os.environ['MYJKKN_API_KEY'] = ''

from fastapi.testclient import TestClient

from app.api.deps import Actor, get_current_actor
from app.main import app
from app.services.myjkkn.client import MyJkknClient
from app.services.myjkkn.config_store import ConfigStore, EnvOverrides
from app.services.myjkkn.resources import MyJkknApi
from app.services.supabase_client import get_supabase

VALID_KEY = 'jk_abc123_xyz789'


# ===============================
# Supabase fake
# ===============================
class FakeQuery:
    """One table()/rpc() chain. Builder calls are recorded and return self."""

    def __init__(self, client, name, params=None):
        self.client = client
        self.name = name
        self.params = params
        self.calls = []

    def __getattr__(self, method):
        if method.startswith('__'):
            raise AttributeError(method)

        def record(*args, **kwargs):
            self.calls.append((method, args, kwargs))
            return self

        return record

    def execute(self):
        self.client.executed.append(self)
        return self.client.next_response(self.name)

    # helpers for assertions
    def called(self, method):
        return [args for name, args, _ in self.calls if name == method]

    def payload(self, method):
        return self.called(method)[0][0]

    @property
    def eqs(self):
        return {args[0]: args[1] for args in self.called('eq')}


class FakeSupabase:
    def __init__(self):
        self._responses = defaultdict(deque)
        self.executed = []
        self.auth = MagicMock()

    def respond(self, name, data=None, count=None, error=None):
        """Queue the next result for a table (or 'rpc:<function>')."""
        self._responses[name].append((data, count, error))
        return self

    def next_response(self, name):
        if not self._responses[name]:
            return SimpleNamespace(data=[], count=None)
        data, count, error = self._responses[name].popleft()
        if error is not None:
            raise error
        return SimpleNamespace(data=data if data is not None else [], count=count)

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, name, params=None):
        return FakeQuery(self, f'rpc:{name}', params)

    def queries(self, name):
        return [q for q in self.executed if q.name == name]


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def clock():
    return FakeClock()


# ===============================
# MyJKKN
# ===============================
@pytest.fixture
def config_path(tmp_path):
    return str(tmp_path / 'myjkkn_api_config.json')


@pytest.fixture
def config_store(config_path):
    store = ConfigStore(config_path, EnvOverrides())
    store.save(api_key=VALID_KEY, mock_mode=False, proxy_mode=False)
    return store


class UpstreamRecorder:
    """httpx.MockTransport handler with a swappable response function."""

    def __init__(self):
        self.requests = []
        self.handler = lambda request: httpx.Response(200, json={'data': [], 'total': 0})

    def __call__(self, request):
        self.requests.append(request)
        return self.handler(request)


@pytest.fixture
def upstream():
    return UpstreamRecorder()


@pytest.fixture
def myjkkn_client(config_store, upstream):
    client = MyJkknClient(config_store, http_client=httpx.Client(transport=httpx.MockTransport(upstream)))
    yield client
    client.close()


@pytest.fixture
def myjkkn_api(myjkkn_client):
    return MyJkknApi(myjkkn_client)


# ===============================
# API
# ===============================
def make_actor(role='admin', user_id='user-1'):
    return Actor(id=user_id, email=f'{user_id}@jkkn.ac.in', role=role)


@pytest.fixture
def api_client(supabase):
    """TestClient with Supabase replaced; set the caller with `as_actor`."""
    app.dependency_overrides[get_supabase] = lambda: supabase

    client = TestClient(app)

    def as_actor(role='admin', user_id='user-1'):
        actor = make_actor(role, user_id)
        app.dependency_overrides[get_current_actor] = lambda: actor
        return actor

    client.as_actor = as_actor
    yield client
    app.dependency_overrides.clear()
