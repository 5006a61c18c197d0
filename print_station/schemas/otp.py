"""OTP request schemas."""
from pydantic import EmailStr, field_validator

from print_station.schemas.common import CamelModel


class OtpRequest(CamelModel):
    email: EmailStr


class OtpVerifyRequest(CamelModel):
    email: EmailStr
    otp: str

    @field_validator("otp")
    @classmethod
    def six_digits(cls, v: str) -> str:
        v = (v or "").strip()
        if len(v) != 6 or not v.isdigit():
            raise ValueError("OTP must be a 6-digit number")
        return v
