# app/services/myjkkn/verification.py
"""
MyJKKN user verification
Checks whether a signed-in email belongs to a MyJKKN staff member or student.
Results are cached per lowercased email for `ttl` seconds.
"""
import logging
import threading
import time
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from app.schemas.myjkkn import VerificationResult
from app.services.myjkkn.resources import MyJkknApi

logger = logging.getLogger(__name__)

VERIFY_PAGE_SIZE = 50
MAX_PAGES_TO_SEARCH = 10


class _LookupFailed(Exception):
    pass


def _not_found(error: str) -> VerificationResult:
    return VerificationResult(is_valid=False, user_type=None, user_data=None, error=error)


def staff_matches(staff: Dict[str, Any], email: str) -> bool:
    email = email.lower()
    return any(
        isinstance(staff.get(field), str) and staff[field].lower() == email
        for field in ("email", "institution_email")
    )


def student_matches(student: Dict[str, Any], email: str) -> bool:
    """
    Students may not carry an email. When they do, it must match exactly;
    otherwise the email's local part is looked for in the roll number or in
    the name with whitespace removed. An empty local part never matches.
    """
    email = email.lower()
    if student.get("email"):
        return str(student["email"]).lower() == email

    prefix = email.split("@")[0]
    if not prefix:
        return False
    roll_number = str(student.get("roll_number") or "").lower()
    name = "".join(str(student.get("student_name") or "").lower().split())
    return prefix in roll_number or prefix in name


class UserVerificationService:
    def __init__(
        self,
        api: MyJkknApi,
        ttl: float = 900,
        clock: Callable[[], float] = time.monotonic,
        max_pages: int = MAX_PAGES_TO_SEARCH,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api = api
        self.ttl = ttl
        self.clock = clock
        self.max_pages = max_pages
        self.sleep = sleep
        self._cache: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    # ===============================
    # cache
    # ===============================
    def _cached(self, email: str) -> Optional[VerificationResult]:
        key = email.lower()
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            if self.clock() < entry["expires_at"]:
                return entry["result"]
            del self._cache[key]
            return None

    def _store(self, email: str, result: VerificationResult) -> None:
        now = self.clock()
        with self._lock:
            self._cache[email.lower()] = {
                "result": result,
                "cached_at": now,
                "expires_at": now + self.ttl,
                "stored_on": datetime.now(),
            }
            expired = [k for k, v in self._cache.items() if now >= v["expires_at"]]
            for k in expired:
                del self._cache[k]

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def get_cache_stats(self) -> Dict[str, Any]:
        with self._lock:
            entries = [
                {
                    "email": email,
                    "is_valid": entry["result"].is_valid,
                    "user_type": entry["result"].user_type,
                    "timestamp": entry["stored_on"].isoformat(),
                    "expires_at": (entry["stored_on"] + timedelta(seconds=self.ttl)).isoformat(),
                }
                for email, entry in self._cache.items()
            ]
        return {"size": len(entries), "entries": entries}

    # ===============================
    # lookups
    # ===============================
    def _scan(self, fetch_page: Callable[..., Any], matches: Callable[[Dict[str, Any], str], bool], email: str):
        page = 1
        while page <= self.max_pages:
            result = fetch_page(page, VERIFY_PAGE_SIZE)
            if not result.success or not result.data:
                raise _LookupFailed(result.error or "Failed to fetch data")

            records = result.data.get("data") or []
            for record in records:
                if matches(record, email):
                    return record

            total_pages = (result.data.get("metadata") or {}).get("totalPages") or 1
            if page >= total_pages:
                break
            page += 1
        return None

    def _search_staff(self, email: str) -> VerificationResult:
        staff = self._scan(self.api.get_staff, staff_matches, email)
        if staff:
            logger.info(f"Verified {email} as staff")
            return VerificationResult(is_valid=True, user_type="staff", user_data=staff)
        return _not_found("Not found in staff list")

    def _search_students(self, email: str) -> VerificationResult:
        student = self._scan(self.api.get_students, student_matches, email)
        if student:
            logger.info(f"Verified {email} as student")
            return VerificationResult(is_valid=True, user_type="student", user_data=student)
        return _not_found("Not found in student list")

    def verify_user(self, email: str) -> VerificationResult:
        cached = self._cached(email)
        if cached is not None:
            logger.debug(f"Using cached verification result for {email}")
            return cached

        errors: List[str] = []
        result: Optional[VerificationResult] = None
        for search in (self._search_staff, self._search_students):
            try:
                found = search(email)
            except _LookupFailed as e:
                logger.warning(f"Verification lookup failed for {email}: {e}")
                errors.append(str(e))
                continue
            if found.is_valid:
                result = found
                break

        if result is None:
            message = "User not found in MyJKKN staff or student lists."
            if errors:
                message = f"{message} Errors: {', '.join(errors)}"
            result = _not_found(message)

        self._store(email, result)
        return result

    def search_user_by_name(self, full_name: str) -> VerificationResult:
        staff = self.api.search_staff(full_name, 1, 20)
        if staff.success and staff.data and staff.data.get("data"):
            return VerificationResult(is_valid=True, user_type="staff", user_data=staff.data["data"][0])

        students = self.api.search_students(full_name, 1, 20)
        if students.success and students.data and students.data.get("data"):
            return VerificationResult(is_valid=True, user_type="student", user_data=students.data["data"][0])

        return _not_found("User not found by name")

    def verify_multiple_users(
        self, emails: List[str], batch_size: int = 5, pause: float = 1.0
    ) -> Dict[str, VerificationResult]:
        results: Dict[str, VerificationResult] = {}
        for start in range(0, len(emails), batch_size):
            for email in emails[start:start + batch_size]:
                results[email] = self.verify_user(email)
            if start + batch_size < len(emails):
                self.sleep(pause)
        return results
