"""Clerk management schemas (admin only)."""
from pydantic import EmailStr, field_validator

from print_station.models.permissions import Permission
from print_station.schemas.common import CamelModel, check_name, check_password


class ClerkCreate(CamelModel):
    email: EmailStr
    name: str
    password: str | None = None  # generated when omitted
    permissions: list[Permission] | None = None
    location: dict | None = None

    @field_validator("name")
    @classmethod
    def name_length(cls, v: str) -> str:
        return check_name(v)

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str | None) -> str | None:
        return check_password(v)


class ClerkUpdate(CamelModel):
    email: EmailStr | None = None
    name: str | None = None
    permissions: list[Permission] | None = None
    is_active: bool | None = None
    location: dict | None = None

    @field_validator("name")
    @classmethod
    def name_length(cls, v: str | None) -> str | None:
        return check_name(v)


class ResetPasswordRequest(CamelModel):
    new_password: str | None = None

    @field_validator("new_password")
    @classmethod
    def password_length(cls, v: str | None) -> str | None:
        return check_password(v)
