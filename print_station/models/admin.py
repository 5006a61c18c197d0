"""Admin: root of a tenancy. Every clerk and print job traces back to one admin."""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON
from print_station.database import Base
from print_station.utils import utcnow


class Admin(Base):
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)

    # {latitude, longitude, address}
    location = Column(JSON, nullable=True)
    permissions = Column(JSON, nullable=False, default=list)

    # Soft delete only; admins are never removed while referenced
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    last_login = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
