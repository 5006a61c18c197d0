"""Email verification codes: send, resend, verify and check.

At most one unverified code exists per email. ``send_otp`` reuses an outstanding
valid code; ``resend_otp`` always replaces it with a fresh one.
"""
from __future__ import annotations

import logging
import secrets
from datetime import timedelta

from sqlalchemy.orm import Session

from print_station.config import Settings, get_settings
from print_station.database import SessionLocal
from print_station.errors import AttemptsExhausted, InvalidOtp, OtpExpired
from print_station.models.otp import OTP
from print_station.services.notifications import Mailer, send_otp_email
from print_station.utils import as_utc, normalize_email, utcnow

logger = logging.getLogger(__name__)

OTP_LENGTH = 6


def generate_otp() -> str:
    return "".join(secrets.choice("0123456789") for _ in range(OTP_LENGTH))


def _outstanding(db: Session, email: str) -> OTP | None:
    return (
        db.query(OTP)
        .filter(OTP.email == email, OTP.verified.is_(False))
        .order_by(OTP.created_at.desc(), OTP.id.desc())
        .first()
    )


def _issue(db: Session, email: str, settings: Settings) -> OTP:
    db.query(OTP).filter(OTP.email == email, OTP.verified.is_(False)).delete(synchronize_session=False)
    otp = OTP(
        email=email,
        code=generate_otp(),
        expires_at=utcnow() + timedelta(minutes=settings.otp_expire_minutes),
        verified=False,
        attempts=0,
    )
    db.add(otp)
    db.commit()
    db.refresh(otp)
    return otp


def _deliver(db: Session, otp: OTP, mailer: Mailer, settings: Settings) -> None:
    try:
        send_otp_email(mailer, otp.email, otp.code, settings.otp_expire_minutes)
    except Exception:
        # A code the user never received must not block the next request
        db.delete(otp)
        db.commit()
        raise


def send_otp(db: Session, email: str, mailer: Mailer, settings: Settings | None = None) -> OTP:
    settings = settings or get_settings()
    email = normalize_email(email)
    otp = _outstanding(db, email)
    if otp is not None and (otp.is_expired() or otp.attempts >= settings.otp_max_attempts):
        otp = None
    if otp is None:
        otp = _issue(db, email, settings)
        logger.info("Issued OTP for %s", email)
    else:
        logger.info("Re-sending outstanding OTP for %s", email)
    _deliver(db, otp, mailer, settings)
    return otp


def resend_otp(db: Session, email: str, mailer: Mailer, settings: Settings | None = None) -> OTP:
    settings = settings or get_settings()
    email = normalize_email(email)
    otp = _issue(db, email, settings)
    logger.info("Rotated OTP for %s", email)
    _deliver(db, otp, mailer, settings)
    return otp


def verify_otp(db: Session, email: str, code: str, settings: Settings | None = None) -> OTP:
    settings = settings or get_settings()
    email = normalize_email(email)
    otp = _outstanding(db, email)
    if otp is None:
        raise InvalidOtp("Invalid or expired OTP. Please request a new one.")

    if otp.is_expired():
        db.delete(otp)
        db.commit()
        raise OtpExpired()

    if otp.attempts >= settings.otp_max_attempts:
        db.delete(otp)
        db.commit()
        raise AttemptsExhausted()

    if not secrets.compare_digest(otp.code, (code or "").strip()):
        otp_id = otp.id
        # Increment and cap check in one statement so parallel guesses all count
        bumped = (
            db.query(OTP)
            .filter(OTP.id == otp_id, OTP.attempts < settings.otp_max_attempts)
            .update({OTP.attempts: OTP.attempts + 1}, synchronize_session=False)
        )
        db.commit()
        if not bumped:
            db.query(OTP).filter(OTP.id == otp_id).delete(synchronize_session=False)
            db.commit()
            raise AttemptsExhausted()
        attempts = db.query(OTP.attempts).filter(OTP.id == otp_id).scalar()
        remaining = settings.otp_max_attempts - (attempts or settings.otp_max_attempts)
        if remaining <= 0:
            # Kept so the next attempt reports exhaustion and removes it
            raise InvalidOtp("Invalid OTP. No attempts remaining. Please request a new one.", remainingAttempts=0)
        raise InvalidOtp(f"Invalid OTP. {remaining} attempts remaining.", remainingAttempts=remaining)

    otp.verified = True
    db.commit()
    db.refresh(otp)
    logger.info("Email verified: %s", email)
    return otp


def check_verified(db: Session, email: str) -> OTP | None:
    """The verified, still unexpired record for email, if any."""
    email = normalize_email(email)
    return (
        db.query(OTP)
        .filter(OTP.email == email, OTP.verified.is_(True), OTP.expires_at > utcnow())
        .order_by(OTP.updated_at.desc(), OTP.id.desc())
        .first()
    )


def consume_verification(db: Session, email: str) -> None:
    """Drop all codes for email once the account exists."""
    db.query(OTP).filter(OTP.email == normalize_email(email)).delete(synchronize_session=False)
    db.commit()


def verified_at(otp: OTP):
    return as_utc(otp.updated_at or otp.created_at)


def purge_expired_otps() -> int:
    """Scheduled job: delete every expired code."""
    db: Session = SessionLocal()
    try:
        deleted = db.query(OTP).filter(OTP.expires_at <= utcnow()).delete(synchronize_session=False)
        db.commit()
        if deleted:
            logging.getLogger("uvicorn.error").info("OTP cleanup: deleted %d expired code(s).", deleted)
        return deleted
    finally:
        db.close()
