"""
Tests for service categories and services
"""
import pytest

from app.services import catalog
from app.services.errors import ConflictError, NotFoundError, ValidationError


def service_payload(**overrides):
    service = {
        'name': 'Bonafide Certificate',
        'request_no': 'SNO4',
        'category_id': 'cat-1',
        'applicable_to': 'student',
        'payment_method': 'free',
        'status': 'active',
    }
    service.update(overrides)
    return service


class TestCategories:
    def test_code_is_upper_cased(self, supabase):
        supabase.respond('service_categories', [])
        supabase.respond('service_categories', [{'id': 'cat-1', 'code': 'ACADEMIC_01'}])

        catalog.create_service_category(supabase, {'name': 'Academic', 'code': ' academic_01 '})

        insert = supabase.queries('service_categories')[1].payload('insert')
        assert insert['code'] == 'ACADEMIC_01'

    @pytest.mark.parametrize('code', ['bad-code', 'HAS SPACE', ''])
    def test_invalid_code(self, supabase, code):
        with pytest.raises(ValidationError):
            catalog.create_service_category(supabase, {'name': 'Academic', 'code': code})

    def test_duplicate_code(self, supabase):
        supabase.respond('service_categories', [{'id': 'cat-0'}])

        with pytest.raises(ConflictError):
            catalog.create_service_category(supabase, {'name': 'Academic', 'code': 'ACAD'})

    def test_unique_violation_on_insert(self, supabase):
        supabase.respond('service_categories', [])
        supabase.respond('service_categories', error=Exception(
            'duplicate key value violates unique constraint "service_categories_code_key" (23505)'
        ))

        with pytest.raises(ConflictError):
            catalog.create_service_category(supabase, {'name': 'Academic', 'code': 'ACAD'})

    def test_update_only_touches_name_and_description(self, supabase):
        supabase.respond('service_categories', [{'id': 'cat-1', 'name': 'Exams'}])

        catalog.update_service_category(supabase, 'cat-1', {'name': 'Exams', 'code': 'HACK', 'description': 'd'})

        assert supabase.queries('service_categories')[0].payload('update') == {'name': 'Exams', 'description': 'd'}

    def test_update_missing_category(self, supabase):
        with pytest.raises(NotFoundError):
            catalog.update_service_category(supabase, 'nope', {'name': 'Exams'})

    def test_category_in_use_cannot_be_deleted(self, supabase):
        supabase.respond('services', [{'id': 's1'}, {'id': 's2'}], count=2)

        with pytest.raises(ConflictError):
            catalog.delete_service_category(supabase, 'cat-1')
        assert supabase.queries('service_categories') == []

    def test_unused_category_is_deleted(self, supabase):
        supabase.respond('services', [], count=0)

        catalog.delete_service_category(supabase, 'cat-1')

        assert supabase.queries('service_categories')[0].eqs == {'id': 'cat-1'}

    def test_delete_with_reassign(self, supabase):
        supabase.respond('services', [{'id': 's1'}], count=1)

        moved = catalog.delete_service_category_with_reassign(supabase, 'cat-1', 'cat-2')

        update = supabase.queries('services')[1]
        assert update.payload('update') == {'category_id': 'cat-2'}
        assert update.eqs == {'category_id': 'cat-1'}
        assert supabase.queries('service_categories')[0].called('delete') == [()]
        assert moved == 1

    def test_reassign_to_itself(self, supabase):
        with pytest.raises(ValidationError):
            catalog.delete_service_category_with_reassign(supabase, 'cat-1', 'cat-1')

    def test_cleanup_removes_only_unused(self, supabase):
        supabase.respond('service_categories', [{'id': 'cat-1'}, {'id': 'cat-2'}, {'id': 'cat-3'}])
        supabase.respond('services', [{'category_id': 'cat-2'}, {'category_id': None}])

        assert catalog.cleanup_orphaned_categories(supabase) == 2
        assert supabase.queries('service_categories')[1].called('in_') == [('id', ['cat-1', 'cat-3'])]

    def test_next_code_is_numeric(self, supabase):
        supabase.respond('service_categories', [{'code': 'SNO9'}, {'code': 'SNO10'}, {'code': 'EXAMS'}])

        assert catalog.get_next_category_code(supabase) == 'SNO11'

    def test_first_code(self, supabase):
        assert catalog.get_next_category_code(supabase) == 'SNO1'


class TestServices:
    def test_create_defaults_service_limit(self, supabase):
        supabase.respond('services', [])
        supabase.respond('services', [{'id': 'svc-1'}])
        supabase.respond('services', [{'id': 'svc-1', 'service_categories': {'name': 'Academic'}}])

        created = catalog.create_service(supabase, service_payload())

        assert supabase.queries('services')[1].payload('insert')['service_limit'] == 1
        assert created['service_categories'] == {'name': 'Academic'}

    @pytest.mark.parametrize('field,value', [
        ('applicable_to', 'alumni'),
        ('payment_method', 'barter'),
        ('status', 'archived'),
    ])
    def test_enum_fields_are_checked(self, supabase, field, value):
        with pytest.raises(ValidationError):
            catalog.create_service(supabase, service_payload(**{field: value}))

    def test_required_fields(self, supabase):
        with pytest.raises(ValidationError, match='request no is required'):
            catalog.create_service(supabase, service_payload(request_no=' '))

    def test_duplicate_request_no(self, supabase):
        supabase.respond('services', [{'id': 'svc-0'}])

        with pytest.raises(ConflictError):
            catalog.create_service(supabase, service_payload())

    def test_update_rejects_request_no_of_another_service(self, supabase):
        supabase.respond('services', [{'id': 'svc-2'}])

        with pytest.raises(ConflictError):
            catalog.update_service(supabase, 'svc-1', {'request_no': 'SNO2'})
        assert supabase.queries('services')[0].called('neq') == [('id', 'svc-1')]

    def test_update_missing_service(self, supabase):
        with pytest.raises(NotFoundError):
            catalog.update_service(supabase, 'nope', {'fee': 100})

    def test_delete_missing_service(self, supabase):
        with pytest.raises(NotFoundError):
            catalog.delete_service(supabase, 'nope')

    def test_next_request_no(self, supabase):
        supabase.respond('services', [{'request_no': 'SNO2'}, {'request_no': 'SNO12'}, {'request_no': None}])

        assert catalog.get_next_service_request_no(supabase) == 'SNO13'
