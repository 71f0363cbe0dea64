"""
Tests for the paginated MyJKKN resource browsers
"""
import threading

import pytest

from app.schemas.myjkkn import ApiResult
from app.services.myjkkn.browser import (
    ConfigChangeDebouncer,
    DepartmentBrowser,
    StaffBrowser,
    StudentBrowser,
    build_browser,
    page_window,
)


class FakeApi:
    """Records MyJkknApi calls and answers them with a canned page."""

    def __init__(self, result=None):
        self.calls = []
        self.result = result or ApiResult.ok({
            'data': [{'id': 'r1'}, {'id': 'r2'}],
            'metadata': {'page': 1, 'totalPages': 3, 'total': 25},
        })

    def __getattr__(self, name):
        if name.startswith('__'):
            raise AttributeError(name)

        def call(*args):
            self.calls.append((name, args))
            return self.result

        return call


class TestPageWindow:
    @pytest.mark.parametrize('page,limit,total,expected', [
        (1, 10, 25, (1, 10)),
        (2, 10, 25, (11, 20)),
        (3, 10, 25, (21, 25)),
        (1, 10, 0, (1, 0)),
    ])
    def test_window(self, page, limit, total, expected):
        assert page_window(page, limit, total) == expected


class TestFetching:
    def test_plain_list(self):
        api = FakeApi()
        browser = StudentBrowser(api, page=2, limit=10)

        browser.refetch()

        assert api.calls == [('get_students', (2, 10))]
        assert browser.records == [{'id': 'r1'}, {'id': 'r2'}]
        assert browser.pagination == {'page': 1, 'totalPages': 3, 'total': 25}
        assert browser.loading is False
        assert browser.error is None

    def test_auto_fetch_loads_on_creation(self):
        api = FakeApi()
        StaffBrowser(api, auto_fetch=True)

        assert api.calls == [('get_staff', (1, 100))]

    def test_initial_filter_is_dispatched(self):
        api = FakeApi()
        DepartmentBrowser(api, institution_id='i1').refetch()

        assert api.calls == [('get_departments_by_institution', ('i1', 1, 100))]

    def test_unknown_initial_filter(self):
        with pytest.raises(TypeError):
            StudentBrowser(FakeApi(), designation='Professor')

    def test_search_takes_priority(self):
        api = FakeApi()
        browser = StudentBrowser(api, search='ravi', department='CSE')

        browser.refetch()

        assert api.calls == [('search_students', ('ravi', 1, 100))]

    def test_failure_clears_records_and_pagination(self):
        api = FakeApi()
        browser = StudentBrowser(api)
        browser.refetch()

        api.result = ApiResult.fail('Rate limit exceeded. Please try again later.')
        browser.fetch_page(2)

        assert browser.error == 'Rate limit exceeded. Please try again later.'
        assert browser.records == []
        assert browser.pagination is None
        assert browser.loading is False

    def test_pagination_from_top_level_total(self):
        api = FakeApi(ApiResult.ok({'data': [{'id': 'x'}], 'total': 45, 'page': 2}))
        browser = StaffBrowser(api, limit=20)

        browser.refetch()

        assert browser.pagination == {'page': 2, 'totalPages': 3, 'total': 45}

    def test_pagination_without_metadata(self):
        api = FakeApi(ApiResult.ok({'data': [{'id': 'x'}, {'id': 'y'}]}))
        browser = StaffBrowser(api, page=4)

        browser.refetch()

        assert browser.pagination == {'page': 4, 'totalPages': 1, 'total': 2}


class TestFilters:
    def test_setting_a_filter_clears_the_others(self):
        api = FakeApi()
        browser = StaffBrowser(api, page=3, search='kumar')

        browser.filter_by_gender('Female')

        assert browser.filters['page'] == 1
        assert browser.filters['search'] == ''
        assert browser.filters['gender'] == 'Female'
        assert api.calls == [('get_staff_by_gender', ('Female', 1, 100))]

        browser.filter_by_department('Mechanical')

        assert browser.filters['gender'] is None
        assert api.calls[-1] == ('get_staff_by_department', ('Mechanical', 1, 100))

    def test_boolean_false_is_a_filter(self):
        api = FakeApi()
        StudentBrowser(api).filter_by_profile_status(False)

        assert api.calls == [('get_students_by_profile_status', (False, 1, 100))]

    def test_search_resets_filters(self):
        api = FakeApi()
        browser = StudentBrowser(api, program='MBA', page=5)

        browser.search('anu')

        assert browser.filters['program'] is None
        assert browser.filters['page'] == 1
        assert api.calls == [('search_students', ('anu', 1, 100))]

    def test_clear_filters_fetches_once(self):
        api = FakeApi()
        browser = StaffBrowser(api, designation='Professor', page=2)

        browser.clear_filters()

        assert api.calls == [('get_staff', (1, 100))]
        assert all(browser.filters[field] is None for field in browser.filter_fields)

    def test_unknown_filter_field(self):
        with pytest.raises(ValueError):
            StudentBrowser(FakeApi()).filter_by('gender', 'Male')

    def test_limit_survives_reset(self):
        api = FakeApi()
        browser = StudentBrowser(api, limit=25)

        browser.filter_by_institution('JKKN Arts')

        assert api.calls == [('get_students_by_institution', ('JKKN Arts', 1, 25))]


class TestSnapshot:
    def test_snapshot_window(self):
        browser = StudentBrowser(FakeApi(), limit=10)
        browser.refetch()

        snapshot = browser.snapshot()

        assert snapshot['start_item'] == 1
        assert snapshot['end_item'] == 10
        assert snapshot['metadata']['total'] == 25

    def test_snapshot_before_fetch(self):
        snapshot = StudentBrowser(FakeApi()).snapshot()

        assert snapshot['data'] == []
        assert (snapshot['start_item'], snapshot['end_item']) == (1, 0)


class TestRegistry:
    def test_build_browser(self):
        assert isinstance(build_browser('staff', FakeApi()), StaffBrowser)

    def test_unknown_resource(self):
        with pytest.raises(KeyError):
            build_browser('alumni', FakeApi())


class TestConfigChanges:
    def test_debouncer_collapses_a_burst(self):
        calls = []
        done = threading.Event()

        def callback():
            calls.append(1)
            done.set()

        debouncer = ConfigChangeDebouncer(callback, delay=0.05)
        for _ in range(5):
            debouncer()

        assert done.wait(2)
        assert calls == [1]

    def test_config_change_refetches_auto_fetch_browser(self, config_store):
        api = FakeApi()
        browser = StudentBrowser(api, auto_fetch=True, config_store=config_store, debounce=60)
        api.calls.clear()

        browser._on_config_changed()

        assert api.calls == [('get_students', (1, 100))]
        browser.close()

    def test_config_change_ignored_without_auto_fetch(self, config_store):
        api = FakeApi()
        browser = StudentBrowser(api, config_store=config_store)

        browser._on_config_changed()

        assert api.calls == []
        browser.close()

    def test_close_unsubscribes(self, config_store):
        browser = StudentBrowser(FakeApi(), auto_fetch=True, config_store=config_store, debounce=60)
        debouncer = browser._debouncer

        browser.close()

        assert debouncer not in config_store._listeners
