"""Print job schemas. Submission arrives as multipart form fields, see routers.print_jobs."""
from datetime import datetime

from print_station.models.print_job import PrintJobStatus
from print_station.schemas.common import CamelModel


class StatusUpdate(CamelModel):
    status: PrintJobStatus
    error_message: str | None = None


class PrintJobResponse(CamelModel):
    id: int
    file_name: str
    file_path: str
    file_size: int
    original_name: str
    mime_type: str
    status: PrintJobStatus
    printer_name: str
    copies: int
    duplex: bool
    color: bool
    page_range: str | None = None
    artwork: str
    width: str
    height: str
    size: str
    quantity: int
    location: str
    description: str = ""
    client_id: int
    admin_id: int
    error_message: str | None = None
    print_job_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
