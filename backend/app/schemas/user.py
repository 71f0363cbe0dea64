# app/schemas/user.py
from pydantic import BaseModel, EmailStr
from typing import Literal, Optional

UserRole = Literal["admin", "staff", "student"]
UserStatus = Literal["active", "inactive"]


class UserProfile(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: UserRole = "student"
    status: UserStatus = "active"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    last_sign_in_at: Optional[str] = None


class UserCreate(BaseModel):
    email: EmailStr
    full_name: str
    role: UserRole
    status: UserStatus = "active"
    password: Optional[str] = None  # generated when omitted


class UserUpdate(BaseModel):
    full_name: Optional[str] = None
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None


class RoleUpdate(BaseModel):
    role: UserRole


class UserStats(BaseModel):
    total: int = 0
    active: int = 0
    inactive: int = 0
    admin: int = 0
    staff: int = 0
    student: int = 0
