"""One-time email verification codes. At most one outstanding code per email."""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Index
from print_station.database import Base
from print_station.utils import utcnow, as_utc


class OTP(Base):
    __tablename__ = "otps"
    __table_args__ = (
        Index("ix_otps_email_verified", "email", "verified"),
        Index("ix_otps_email_expires_at", "email", "expires_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, index=True)
    code = Column(String(6), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    verified = Column(Boolean, default=False, nullable=False)
    attempts = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def is_expired(self, now=None) -> bool:
        return (now or utcnow()) >= as_utc(self.expires_at)
