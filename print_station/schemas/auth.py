"""Staff auth schemas (admins and clerks)."""
from datetime import datetime

from pydantic import EmailStr, field_validator

from print_station.models.permissions import UserRole
from print_station.schemas.common import CamelModel, check_name, check_password


class AdminRegister(CamelModel):
    email: EmailStr
    password: str
    name: str
    location: dict | None = None

    @field_validator("name")
    @classmethod
    def name_length(cls, v: str) -> str:
        return check_name(v)

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return check_password(v)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def password_present(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return v


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return check_password(v)


class StaffProfileUpdate(CamelModel):
    name: str | None = None
    email: EmailStr | None = None
    location: dict | None = None

    @field_validator("name")
    @classmethod
    def name_length(cls, v: str | None) -> str | None:
        return check_name(v)


class StaffResponse(CamelModel):
    id: int
    email: str
    name: str
    role: UserRole
    permissions: list[str] = []
    location: dict | None = None
    is_active: bool
    last_login: datetime | None = None
    created_at: datetime | None = None
    admin_id: int | None = None
    is_temporary_password: bool | None = None
