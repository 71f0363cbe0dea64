# app/services/myjkkn/browser.py
"""
Stateful paginated browsing of one MyJKKN resource.

A browser holds the current page of records, the loading flag, the last
error and the pagination metadata. Filters are mutually exclusive: setting
search or any filter resets the page to 1 and clears every other filter.
"""
import logging
import math
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

from app.services.myjkkn.config_store import ConfigStore
from app.services.myjkkn.resources import MyJkknApi

logger = logging.getLogger(__name__)

CONFIG_CHANGE_DEBOUNCE = 0.5


def page_window(page: int, limit: int, total: int) -> Tuple[int, int]:
    """
    First and last item numbers shown for a page ("Showing 11 to 20 of 25").
    An empty result gives (1, 0).
    """
    page = max(page, 1)
    limit = max(limit, 1)
    total = max(total, 0)
    start_item = (page - 1) * limit + 1
    end_item = min(page * limit, total)
    return start_item, end_item


def _is_set(value: Any) -> bool:
    return value is not None and value != ""


class ConfigChangeDebouncer:
    """Runs `callback` once `delay` seconds after the last signal in a burst."""

    def __init__(self, callback: Callable[[], None], delay: float = CONFIG_CHANGE_DEBOUNCE):
        self.callback = callback
        self.delay = delay
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    def __call__(self, *_args) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay, self.callback)
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None


class ResourceBrowser:
    resource = ""
    list_method = ""
    search_method = ""
    get_method = ""
    # (filter field, MyJkknApi method) in dispatch order
    filter_methods: List[Tuple[str, str]] = []

    def __init__(
        self,
        api: MyJkknApi,
        page: int = 1,
        limit: int = 100,
        search: str = "",
        auto_fetch: bool = False,
        config_store: Optional[ConfigStore] = None,
        debounce: float = CONFIG_CHANGE_DEBOUNCE,
        **initial_filters,
    ):
        unknown = set(initial_filters) - set(self.filter_fields)
        if unknown:
            raise TypeError(f"Unknown {self.resource} filters: {sorted(unknown)}")

        self.api = api
        self.auto_fetch = auto_fetch
        self.records: List[Dict[str, Any]] = []
        self.loading = False
        self.error: Optional[str] = None
        self.pagination: Optional[Dict[str, int]] = None
        self.filters: Dict[str, Any] = {"page": page, "limit": limit, "search": search}
        for field in self.filter_fields:
            self.filters[field] = initial_filters.get(field)

        self._lock = threading.RLock()
        self._config_store = config_store
        self._debouncer: Optional[ConfigChangeDebouncer] = None
        if config_store is not None:
            self._debouncer = ConfigChangeDebouncer(self._on_config_changed, delay=debounce)
            config_store.subscribe(self._debouncer)

        if auto_fetch:
            self.refetch()

    @property
    def filter_fields(self) -> List[str]:
        return [field for field, _ in self.filter_methods]

    # ===============================
    # fetching
    # ===============================
    def _dispatch(self, filters: Dict[str, Any]):
        page, limit = filters["page"], filters["limit"]
        if _is_set(filters.get("search")):
            return getattr(self.api, self.search_method)(filters["search"], page, limit)
        for field, method in self.filter_methods:
            if _is_set(filters.get(field)):
                return getattr(self.api, method)(filters[field], page, limit)
        return getattr(self.api, self.list_method)(page, limit)

    def _fetch(self, filters: Optional[Dict[str, Any]] = None) -> None:
        with self._lock:
            if filters is not None:
                self.filters = filters
            filters = dict(self.filters)
            self.loading = True
            self.error = None
            try:
                result = self._dispatch(filters)
                if not result.success or result.data is None:
                    raise RuntimeError(result.error or f"Failed to fetch {self.resource}")

                payload = result.data
                self.records = payload.get("data") or []
                self.pagination = self._pagination_from(payload, filters)
            except Exception as e:
                logger.warning(f"Fetching {self.resource} failed: {e}")
                self.error = str(e) or "An unknown error occurred"
                self.records = []
                self.pagination = None
            finally:
                self.loading = False

    def _pagination_from(self, payload: Dict[str, Any], filters: Dict[str, Any]) -> Dict[str, int]:
        if payload.get("metadata"):
            return dict(payload["metadata"])
        if payload.get("total") is not None:
            total = payload.get("total") or 0
            return {
                "page": payload.get("page") or 1,
                "totalPages": payload.get("totalPages") or math.ceil(total / filters["limit"]),
                "total": total,
            }
        return {"page": filters["page"], "totalPages": 1, "total": len(self.records)}

    def _reset_filters(self, **selected) -> Dict[str, Any]:
        filters = {"page": 1, "limit": self.filters["limit"], "search": ""}
        for field in self.filter_fields:
            filters[field] = None
        filters.update(selected)
        return filters

    # ===============================
    # actions
    # ===============================
    def refetch(self) -> None:
        self._fetch()

    def fetch_page(self, page: int) -> None:
        self._fetch({**self.filters, "page": page})

    def search(self, query: str) -> None:
        self._fetch(self._reset_filters(search=query))

    def filter_by(self, field: str, value: Any) -> None:
        if field not in self.filter_fields:
            raise ValueError(f"{self.resource} cannot be filtered by '{field}'")
        self._fetch(self._reset_filters(**{field: value}))

    def clear_filters(self) -> None:
        self._fetch(self._reset_filters())

    def window(self) -> Tuple[int, int]:
        if not self.pagination:
            return page_window(self.filters["page"], self.filters["limit"], 0)
        return page_window(self.pagination["page"], self.filters["limit"], self.pagination["total"])

    def snapshot(self) -> Dict[str, Any]:
        start_item, end_item = self.window()
        return {
            "data": self.records,
            "metadata": self.pagination,
            "start_item": start_item,
            "end_item": end_item,
            "loading": self.loading,
            "error": self.error,
        }

    # ===============================
    # configuration changes
    # ===============================
    def _on_config_changed(self) -> None:
        if self.auto_fetch:
            logger.info(f"MyJKKN configuration changed, refetching {self.resource}")
            self.refetch()

    def close(self) -> None:
        if self._debouncer is not None:
            self._debouncer.cancel()
            if self._config_store is not None:
                self._config_store.unsubscribe(self._debouncer)
            self._debouncer = None


class StudentBrowser(ResourceBrowser):
    resource = "students"
    list_method = "get_students"
    search_method = "search_students"
    get_method = "get_student_by_id"
    filter_methods = [
        ("institution", "get_students_by_institution"),
        ("department", "get_students_by_department"),
        ("program", "get_students_by_program"),
        ("profile_complete", "get_students_by_profile_status"),
    ]

    def filter_by_institution(self, institution: str) -> None:
        self.filter_by("institution", institution)

    def filter_by_department(self, department: str) -> None:
        self.filter_by("department", department)

    def filter_by_program(self, program: str) -> None:
        self.filter_by("program", program)

    def filter_by_profile_status(self, is_complete: Optional[bool]) -> None:
        self.filter_by("profile_complete", is_complete)


class StaffBrowser(ResourceBrowser):
    resource = "staff"
    list_method = "get_staff"
    search_method = "search_staff"
    get_method = "get_staff_by_id"
    filter_methods = [
        ("institution", "get_staff_by_institution"),
        ("department", "get_staff_by_department"),
        ("designation", "get_staff_by_designation"),
        ("gender", "get_staff_by_gender"),
        ("is_active", "get_staff_by_status"),
    ]

    def filter_by_institution(self, institution: str) -> None:
        self.filter_by("institution", institution)

    def filter_by_department(self, department: str) -> None:
        self.filter_by("department", department)

    def filter_by_designation(self, designation: str) -> None:
        self.filter_by("designation", designation)

    def filter_by_gender(self, gender: str) -> None:
        self.filter_by("gender", gender)

    def filter_by_status(self, is_active: Optional[bool]) -> None:
        self.filter_by("is_active", is_active)


class InstitutionBrowser(ResourceBrowser):
    resource = "institutions"
    list_method = "get_institutions"
    search_method = "search_institutions"
    get_method = "get_institution_by_id"
    filter_methods = [
        ("is_active", "get_institutions_by_status"),
        ("category", "get_institutions_by_category"),
        ("institution_type", "get_institutions_by_type"),
    ]

    def filter_by_status(self, is_active: Optional[bool]) -> None:
        self.filter_by("is_active", is_active)

    def filter_by_category(self, category: str) -> None:
        self.filter_by("category", category)

    def filter_by_type(self, institution_type: str) -> None:
        self.filter_by("institution_type", institution_type)


class DepartmentBrowser(ResourceBrowser):
    resource = "departments"
    list_method = "get_departments"
    search_method = "search_departments"
    get_method = "get_department_by_id"
    filter_methods = [
        ("is_active", "get_departments_by_status"),
        ("institution_id", "get_departments_by_institution"),
        ("degree_id", "get_departments_by_degree"),
    ]

    def filter_by_status(self, is_active: Optional[bool]) -> None:
        self.filter_by("is_active", is_active)

    def filter_by_institution(self, institution_id: str) -> None:
        self.filter_by("institution_id", institution_id)

    def filter_by_degree(self, degree_id: str) -> None:
        self.filter_by("degree_id", degree_id)


class ProgramBrowser(ResourceBrowser):
    resource = "programs"
    list_method = "get_programs"
    search_method = "search_programs"
    get_method = "get_program_by_id"
    filter_methods = [
        ("is_active", "get_programs_by_status"),
    ]

    def filter_by_status(self, is_active: Optional[bool]) -> None:
        self.filter_by("is_active", is_active)


BROWSERS = {
    cls.resource: cls
    for cls in (StudentBrowser, StaffBrowser, InstitutionBrowser, DepartmentBrowser, ProgramBrowser)
}


def build_browser(resource: str, api: MyJkknApi, **kwargs) -> ResourceBrowser:
    if resource not in BROWSERS:
        raise KeyError(resource)
    return BROWSERS[resource](api, **kwargs)
