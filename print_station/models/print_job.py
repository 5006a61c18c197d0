"""Print jobs submitted by clients to an admin's station."""
import enum
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, Index
from print_station.database import Base
from print_station.utils import utcnow


class PrintJobStatus(str, enum.Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"


TERMINAL_STATUSES = frozenset({PrintJobStatus.completed, PrintJobStatus.failed})

ALLOWED_TRANSITIONS: dict[PrintJobStatus, frozenset[PrintJobStatus]] = {
    PrintJobStatus.pending: frozenset({PrintJobStatus.processing, PrintJobStatus.failed}),
    PrintJobStatus.processing: frozenset({PrintJobStatus.completed, PrintJobStatus.failed}),
    PrintJobStatus.completed: frozenset(),
    PrintJobStatus.failed: frozenset(),
}


class PrintJob(Base):
    __tablename__ = "print_jobs"
    __table_args__ = (
        Index("ix_print_jobs_status_created_at", "status", "created_at"),
        Index("ix_print_jobs_admin_created_at", "admin_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)

    file_name = Column(String(255), nullable=False)
    # Remote URL when the upload reached storage, otherwise the local path
    file_path = Column(String(1024), nullable=False)
    file_size = Column(Integer, nullable=False)
    original_name = Column(String(255), nullable=False)
    mime_type = Column(String(255), nullable=False, default="application/pdf")

    status = Column(String(20), nullable=False, default=PrintJobStatus.pending.value, index=True)
    printer_name = Column(String(100), nullable=False, default="default")
    copies = Column(Integer, nullable=False, default=1)
    duplex = Column(Boolean, nullable=False, default=False)
    color = Column(Boolean, nullable=False, default=False)
    page_range = Column(String(100), nullable=True)

    artwork = Column(String(255), nullable=False)
    width = Column(String(50), nullable=False)
    height = Column(String(50), nullable=False)
    size = Column(String(120), nullable=False)
    quantity = Column(Integer, nullable=False)
    location = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")

    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    # Tenant partition key; set from the submission and never changed
    admin_id = Column(Integer, ForeignKey("admins.id"), nullable=False, index=True)

    storage_key = Column(String(1024), nullable=True)
    storage_url = Column(String(1024), nullable=True)

    error_message = Column(Text, nullable=True)
    print_job_id = Column(String(64), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
