"""Client (job submitter) schemas."""
import re
from datetime import datetime

from pydantic import EmailStr, field_validator

from print_station.schemas.common import CamelModel, check_name, check_password

PHONE_MIN_DIGITS = 7
PHONE_MAX_DIGITS = 15


def check_phone(v: str | None) -> str | None:
    if v is None:
        return v
    digits = re.sub(r"\D", "", v)
    if not (PHONE_MIN_DIGITS <= len(digits) <= PHONE_MAX_DIGITS):
        raise ValueError(f"Phone number must have {PHONE_MIN_DIGITS} to {PHONE_MAX_DIGITS} digits")
    return v.strip()


class ClientRegister(CamelModel):
    email: EmailStr
    password: str
    full_name: str
    phone_number: str

    @field_validator("full_name")
    @classmethod
    def name_length(cls, v: str) -> str:
        return check_name(v)

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return check_password(v)

    @field_validator("phone_number")
    @classmethod
    def phone_valid(cls, v: str) -> str:
        return check_phone(v)


class ClientProfileUpdate(CamelModel):
    email: EmailStr | None = None
    full_name: str | None = None
    phone_number: str | None = None

    @field_validator("full_name")
    @classmethod
    def name_length(cls, v: str | None) -> str | None:
        return check_name(v)

    @field_validator("phone_number")
    @classmethod
    def phone_valid(cls, v: str | None) -> str | None:
        return check_phone(v)


class ClientAdminUpdate(ClientProfileUpdate):
    is_active: bool | None = None


class ClientResponse(CamelModel):
    id: int
    email: str
    full_name: str
    phone_number: str
    is_active: bool
    last_login: datetime | None = None
    created_at: datetime | None = None
