"""Clerk: tenant member created by an admin."""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from print_station.database import Base
from print_station.utils import utcnow


class Clerk(Base):
    __tablename__ = "clerks"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)

    # Owning admin; set at creation and never reassigned
    admin_id = Column(Integer, ForeignKey("admins.id"), nullable=False, index=True)

    location = Column(JSON, nullable=True)
    permissions = Column(JSON, nullable=False, default=list)

    is_active = Column(Boolean, default=True, nullable=False, index=True)
    # True until the clerk changes the generated password themselves
    is_temporary_password = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    admin = relationship("Admin", backref="clerks")
