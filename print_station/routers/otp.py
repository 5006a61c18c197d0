"""Email verification by one-time code, used before client registration."""
from fastapi import APIRouter, Depends
from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from print_station.config import get_settings
from print_station.database import get_db
from print_station.dependencies import get_mailer
from print_station.errors import ValidationError
from print_station.schemas.common import ok
from print_station.schemas.otp import OtpRequest, OtpVerifyRequest
from print_station.services import otp as otp_service
from print_station.services.notifications import Mailer

router = APIRouter(prefix="/otp", tags=["otp"])

_email = TypeAdapter(EmailStr)


@router.post("/send-otp")
def send_otp(data: OtpRequest, db: Session = Depends(get_db), mailer: Mailer = Depends(get_mailer)):
    settings = get_settings()
    otp = otp_service.send_otp(db, data.email, mailer, settings)
    return ok(
        {"email": otp.email, "expiresIn": f"{settings.otp_expire_minutes} minutes"},
        "OTP sent successfully to your email",
    )


@router.post("/verify-otp")
def verify_otp(data: OtpVerifyRequest, db: Session = Depends(get_db)):
    otp = otp_service.verify_otp(db, data.email, data.otp)
    return ok({"email": otp.email, "verified": True}, "Email verified successfully")


@router.post("/resend-otp")
def resend_otp(data: OtpRequest, db: Session = Depends(get_db), mailer: Mailer = Depends(get_mailer)):
    settings = get_settings()
    otp = otp_service.resend_otp(db, data.email, mailer, settings)
    return ok(
        {"email": otp.email, "expiresIn": f"{settings.otp_expire_minutes} minutes"},
        "OTP resent successfully to your email",
    )


@router.get("/check-verification/{email}")
def check_verification(email: str, db: Session = Depends(get_db)):
    try:
        email = _email.validate_python(email)
    except PydanticValidationError:
        raise ValidationError("Invalid email address", errors=[{"field": "email", "message": "Invalid email address"}])
    otp = otp_service.check_verified(db, email)
    return ok(
        {
            "email": email.lower(),
            "isVerified": otp is not None,
            "verifiedAt": otp_service.verified_at(otp).isoformat() if otp else None,
        }
    )
