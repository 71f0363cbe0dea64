# app/services/myjkkn/resources.py
"""
Typed MyJKKN resource methods
Each method only assembles query parameters; exactly one filter is sent
per call and combining filters is left to the caller.
"""
from typing import Optional

from app.schemas.myjkkn import ApiResult
from app.services.myjkkn.client import MyJkknClient

STUDENTS_PATH = "/api-management/students"
STAFF_PATH = "/api-management/staff"
INSTITUTIONS_PATH = "/api-management/organizations/institutions"
DEPARTMENTS_PATH = "/api-management/organizations/departments"
PROGRAMS_PATH = "/api-management/organizations/programs"

LIST_LIMIT = 100
FILTER_LIMIT = 20


class MyJkknApi:
    def __init__(self, client: MyJkknClient):
        self.client = client

    def _list(self, path: str, page: int, limit: int, **filters) -> ApiResult:
        params = {**filters, "page": page, "limit": limit}
        return self.client.request(path, method="GET", params=params)

    def _get(self, path: str, item_id: str) -> ApiResult:
        return self.client.request(f"{path}/{item_id}")

    # ===============================
    # Students
    # ===============================
    def get_students(self, page: int = 1, limit: int = LIST_LIMIT) -> ApiResult:
        return self._list(STUDENTS_PATH, page, limit)

    def get_student_by_id(self, student_id: str) -> ApiResult:
        return self._get(STUDENTS_PATH, student_id)

    def search_students(self, query: str, page: int = 1, limit: int = FILTER_LIMIT) -> ApiResult:
        return self._list(STUDENTS_PATH, page, limit, search=query)

    def get_students_by_institution(self, institution: str, page: int = 1, limit: int = FILTER_LIMIT) -> ApiResult:
        return self._list(STUDENTS_PATH, page, limit, institution=institution)

    def get_students_by_department(self, department: str, page: int = 1, limit: int = FILTER_LIMIT) -> ApiResult:
        return self._list(STUDENTS_PATH, page, limit, department=department)

    def get_students_by_program(self, program: str, page: int = 1, limit: int = FILTER_LIMIT) -> ApiResult:
        return self._list(STUDENTS_PATH, page, limit, program=program)

    def get_students_by_profile_status(self, is_complete: bool, page: int = 1, limit: int = FILTER_LIMIT) -> ApiResult:
        return self._list(STUDENTS_PATH, page, limit, is_profile_complete=is_complete)

    # ===============================
    # Staff
    # ===============================
    def get_staff(self, page: int = 1, limit: int = LIST_LIMIT) -> ApiResult:
        return self._list(STAFF_PATH, page, limit)

    def get_staff_by_id(self, staff_id: str) -> ApiResult:
        return self._get(STAFF_PATH, staff_id)

    def search_staff(self, query: str, page: int = 1, limit: int = FILTER_LIMIT) -> ApiResult:
        return self._list(STAFF_PATH, page, limit, search=query)

    def get_staff_by_institution(self, institution: str, page: int = 1, limit: int = FILTER_LIMIT) -> ApiResult:
        return self._list(STAFF_PATH, page, limit, institution=institution)

    def get_staff_by_department(self, department: str, page: int = 1, limit: int = FILTER_LIMIT) -> ApiResult:
        return self._list(STAFF_PATH, page, limit, department=department)

    def get_staff_by_designation(self, designation: str, page: int = 1, limit: int = FILTER_LIMIT) -> ApiResult:
        return self._list(STAFF_PATH, page, limit, designation=designation)

    def get_staff_by_gender(self, gender: str, page: int = 1, limit: int = FILTER_LIMIT) -> ApiResult:
        return self._list(STAFF_PATH, page, limit, gender=gender)

    def get_staff_by_status(self, is_active: bool, page: int = 1, limit: int = FILTER_LIMIT) -> ApiResult:
        return self._list(STAFF_PATH, page, limit, is_active=is_active)

    # ===============================
    # Institutions
    # ===============================
    def get_institutions(self, page: int = 1, limit: int = LIST_LIMIT) -> ApiResult:
        return self._list(INSTITUTIONS_PATH, page, limit)

    def get_institution_by_id(self, institution_id: str) -> ApiResult:
        return self._get(INSTITUTIONS_PATH, institution_id)

    def search_institutions(self, query: str, page: int = 1, limit: int = FILTER_LIMIT) -> ApiResult:
        return self._list(INSTITUTIONS_PATH, page, limit, search=query)

    def get_institutions_by_category(self, category: str, page: int = 1, limit: int = FILTER_LIMIT) -> ApiResult:
        return self._list(INSTITUTIONS_PATH, page, limit, category=category)

    def get_institutions_by_type(self, institution_type: str, page: int = 1, limit: int = FILTER_LIMIT) -> ApiResult:
        return self._list(INSTITUTIONS_PATH, page, limit, institution_type=institution_type)

    def get_institutions_by_status(self, is_active: bool, page: int = 1, limit: int = FILTER_LIMIT) -> ApiResult:
        return self._list(INSTITUTIONS_PATH, page, limit, is_active=is_active)

    # ===============================
    # Departments
    # ===============================
    def get_departments(self, page: int = 1, limit: int = LIST_LIMIT) -> ApiResult:
        return self._list(DEPARTMENTS_PATH, page, limit)

    def get_department_by_id(self, department_id: str) -> ApiResult:
        return self._get(DEPARTMENTS_PATH, department_id)

    def search_departments(self, query: str, page: int = 1, limit: int = FILTER_LIMIT) -> ApiResult:
        return self._list(DEPARTMENTS_PATH, page, limit, search=query)

    def get_departments_by_institution(self, institution_id: str, page: int = 1, limit: int = FILTER_LIMIT) -> ApiResult:
        return self._list(DEPARTMENTS_PATH, page, limit, institution_id=institution_id)

    def get_departments_by_degree(self, degree_id: str, page: int = 1, limit: int = FILTER_LIMIT) -> ApiResult:
        return self._list(DEPARTMENTS_PATH, page, limit, degree_id=degree_id)

    def get_departments_by_status(self, is_active: bool, page: int = 1, limit: int = FILTER_LIMIT) -> ApiResult:
        return self._list(DEPARTMENTS_PATH, page, limit, is_active=is_active)

    # ===============================
    # Programs
    # ===============================
    def get_programs(self, page: int = 1, limit: int = LIST_LIMIT) -> ApiResult:
        return self._list(PROGRAMS_PATH, page, limit)

    def get_program_by_id(self, program_id: str) -> ApiResult:
        return self._get(PROGRAMS_PATH, program_id)

    def search_programs(self, query: str, page: int = 1, limit: int = FILTER_LIMIT) -> ApiResult:
        return self._list(PROGRAMS_PATH, page, limit, search=query)

    def get_programs_by_status(self, is_active: Optional[bool], page: int = 1, limit: int = FILTER_LIMIT) -> ApiResult:
        return self._list(PROGRAMS_PATH, page, limit, is_active=is_active)
