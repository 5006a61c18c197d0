"""Print jobs: client submission and tenant-scoped staff management."""
import secrets
import time
from datetime import datetime
from pathlib import Path

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from print_station.config import get_settings
from print_station.database import get_db
from print_station.dependencies import (
    get_optional_principal,
    get_storage,
    get_tenant_filter,
    require_permission_dep,
)
from print_station.errors import Forbidden, ValidationError
from print_station.models.permissions import Permission
from print_station.schemas.common import ok
from print_station.schemas.print_job import PrintJobResponse, StatusUpdate
from print_station.services import print_jobs
from print_station.services.auth import ClientPrincipal, Principal, TenantFilter
from print_station.services.storage import AssetStorage

router = APIRouter(prefix="/print", tags=["print"])

CHUNK_SIZE = 1024 * 1024


def job_to_response(job) -> dict:
    return PrintJobResponse.model_validate(job).dump()


async def _save_upload(file: UploadFile) -> print_jobs.StoredUpload:
    settings = get_settings()
    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    suffix = Path(file.filename or "").suffix.lower()
    dest = upload_dir / f"{int(time.time() * 1000)}-{secrets.token_hex(6)}{suffix}"
    max_bytes = settings.max_upload_mb * 1024 * 1024
    size = 0
    try:
        with dest.open("wb") as out:
            while chunk := await file.read(CHUNK_SIZE):
                size += len(chunk)
                if size > max_bytes:
                    raise ValidationError(f"File too large. Maximum size is {settings.max_upload_mb}MB")
                out.write(chunk)
    except BaseException:
        dest.unlink(missing_ok=True)
        raise
    finally:
        await file.close()
    return print_jobs.StoredUpload(
        path=dest,
        original_name=file.filename or dest.name,
        size=size,
        mime_type=(file.content_type or "").lower(),
    )


@router.post("/submit/client/{client_id}", status_code=201)
async def submit_job(
    client_id: int,
    pdf_file: UploadFile | None = File(None, alias="pdfFile"),
    file: UploadFile | None = File(None),
    artwork: str | None = Form(None),
    width: str | None = Form(None),
    height: str | None = Form(None),
    quantity: str | None = Form(None),
    location: str | None = Form(None),
    admin_id: str | None = Form(None, alias="adminId"),
    description: str | None = Form(None),
    printer_name: str | None = Form(None, alias="printerName"),
    copies: str | None = Form(None),
    duplex: str | None = Form(None),
    color: str | None = Form(None),
    page_range: str | None = Form(None, alias="pageRange"),
    principal: Principal | None = Depends(get_optional_principal),
    db: Session = Depends(get_db),
    storage: AssetStorage = Depends(get_storage),
):
    if isinstance(principal, ClientPrincipal) and principal.id != client_id:
        raise Forbidden("Cannot submit print jobs for another client")
    fields = {
        "artwork": artwork,
        "width": width,
        "height": height,
        "quantity": quantity,
        "location": location,
        "adminId": admin_id,
        "description": description,
        "printerName": printer_name,
        "copies": copies,
        "duplex": duplex,
        "color": color,
        "pageRange": page_range,
    }
    # Reject bad forms before anything touches the disk
    print_jobs.validate_submission(fields)
    file = pdf_file if pdf_file is not None else file
    if file is None:
        raise ValidationError("No file uploaded")
    print_jobs.validate_upload_type(file.filename, file.content_type)

    upload = await _save_upload(file)
    try:
        job = await run_in_threadpool(
            print_jobs.create_job, db, fields=fields, upload=upload, client_id=client_id, storage=storage
        )
    except Exception:
        upload.path.unlink(missing_ok=True)
        raise
    return ok({"job": job_to_response(job)}, "Print job submitted successfully")


def _list(db, tf, status, start, end, page, limit):
    jobs, total = print_jobs.list_jobs(
        db,
        tf,
        statuses=print_jobs.parse_statuses(status),
        start=start,
        end=end,
        page=page,
        limit=limit,
    )
    return ok({"jobs": [job_to_response(j) for j in jobs], "pagination": print_jobs.pagination(page, limit, total)})


@router.get("/jobs")
def list_jobs(
    status: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    tf: TenantFilter = Depends(get_tenant_filter),
    db: Session = Depends(get_db),
):
    return _list(db, tf, status, None, None, page, limit)


@router.get("/jobs/filter")
def filter_jobs(
    status: str | None = None,
    start_date: datetime | None = Query(None, alias="startDate"),
    end_date: datetime | None = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    tf: TenantFilter = Depends(get_tenant_filter),
    db: Session = Depends(get_db),
):
    return _list(db, tf, status, start_date, end_date, page, limit)


@router.get("/jobs/{job_id}")
def get_job(job_id: int, tf: TenantFilter = Depends(get_tenant_filter), db: Session = Depends(get_db)):
    return ok({"job": job_to_response(print_jobs.get_job(db, job_id, tf))})


@router.put("/jobs/{job_id}/status")
def update_status(
    job_id: int,
    data: StatusUpdate,
    _=Depends(require_permission_dep(Permission.manage_jobs)),
    tf: TenantFilter = Depends(get_tenant_filter),
    db: Session = Depends(get_db),
    storage: AssetStorage = Depends(get_storage),
):
    job = print_jobs.update_status(db, job_id, data.status, tf, storage, error_message=data.error_message)
    return ok({"job": job_to_response(job)}, "Print job status updated successfully")


@router.post("/jobs/{job_id}/process")
def process_job(
    job_id: int,
    _=Depends(require_permission_dep(Permission.manage_jobs)),
    tf: TenantFilter = Depends(get_tenant_filter),
    db: Session = Depends(get_db),
    storage: AssetStorage = Depends(get_storage),
):
    job = print_jobs.process_job(db, job_id, tf, storage)
    return ok({"job": job_to_response(job)}, f"Print job {job.status}")


@router.delete("/jobs/{job_id}")
def delete_job(
    job_id: int,
    _=Depends(require_permission_dep(Permission.manage_jobs)),
    tf: TenantFilter = Depends(get_tenant_filter),
    db: Session = Depends(get_db),
    storage: AssetStorage = Depends(get_storage),
):
    print_jobs.delete_job(db, job_id, tf, storage)
    return ok(message="Print job deleted successfully")


@router.get("/stats")
def stats(tf: TenantFilter = Depends(get_tenant_filter), db: Session = Depends(get_db)):
    return ok(print_jobs.job_stats(db, tf))
