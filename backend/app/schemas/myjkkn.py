# app/schemas/myjkkn.py
from pydantic import BaseModel, EmailStr
from typing import Any, Dict, List, Optional


class ApiResult(BaseModel):
    """Tagged result of one MyJKKN call: check `success` before reading `data`."""
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None, message: Optional[str] = None) -> "ApiResult":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, error: str) -> "ApiResult":
        return cls(success=False, error=error)


class PaginationMeta(BaseModel):
    page: int = 1
    totalPages: int = 1
    total: int = 0


class PaginatedResponse(BaseModel):
    data: List[Dict[str, Any]] = []
    metadata: PaginationMeta


class ProgramData(BaseModel):
    id: str
    program_id: Optional[str] = None
    program_name: Optional[str] = None
    institution_id: Optional[str] = None  # raw id, not resolved
    department_id: Optional[str] = None
    degree_id: Optional[str] = None
    is_active: Optional[bool] = None
    status: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class InstitutionData(BaseModel):
    id: str
    name: Optional[str] = None
    counselling_code: Optional[str] = None
    category: Optional[str] = None
    institution_type: Optional[str] = None
    is_active: Optional[bool] = None
    status: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class DepartmentData(BaseModel):
    id: str
    department_name: Optional[str] = None
    department_code: Optional[str] = None
    institution_id: Optional[str] = None
    degree_id: Optional[str] = None
    is_active: Optional[bool] = None
    status: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class StudentData(BaseModel):
    id: str
    student_name: Optional[str] = None
    roll_number: Optional[str] = None
    email: Optional[str] = None
    institution: Optional[str] = None
    department: Optional[str] = None
    program: Optional[str] = None
    is_profile_complete: Optional[bool] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class StaffData(BaseModel):
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    name: Optional[str] = None
    gender: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    institution_email: Optional[str] = None
    designation: Optional[str] = None
    department: Optional[str] = None
    institution: Optional[str] = None
    employee_id: Optional[str] = None
    date_of_joining: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


# ===============================
# API configuration
# ===============================
class ApiConfigUpdate(BaseModel):
    api_key: Optional[str] = None
    mock_mode: Optional[bool] = None
    proxy_mode: Optional[bool] = None
    base_url: Optional[str] = None


class ApiConfigInfo(BaseModel):
    base_url: str
    has_api_key: bool
    is_valid_key: bool
    key_preview: str
    mock_mode: bool
    proxy_mode: bool
    configured_via_env: bool


# ===============================
# user verification
# ===============================
class VerifyRequest(BaseModel):
    email: Optional[EmailStr] = None


class VerificationResult(BaseModel):
    is_valid: bool
    user_type: Optional[str] = None  # staff / student
    user_data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
