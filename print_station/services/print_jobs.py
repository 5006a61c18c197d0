"""Print job store: submission, tenant-scoped queries and the status lifecycle.

Every read or mutation takes a TenantFilter computed once per request by
services.auth.tenant_filter. A job outside the filter is reported as NotFound,
never Forbidden, so other tenants' job ids are not disclosed.

Status machine: pending -> processing -> completed, and pending|processing -> failed.
completed and failed are terminal.
"""
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

from sqlalchemy import func
from sqlalchemy.orm import Session

from print_station.errors import InvalidState, NotFound, ValidationError
from print_station.models.admin import Admin
from print_station.models.client import Client
from print_station.models.print_job import ALLOWED_TRANSITIONS, TERMINAL_STATUSES, PrintJob, PrintJobStatus
from print_station.services.auth import TenantFilter
from print_station.services.storage import AssetStorage

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = frozenset({
    "application/pdf",
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/bmp",
    "image/tiff",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "text/plain",
    "text/csv",
    "application/postscript",
})

REQUIRED_FIELDS = ("artwork", "width", "height", "quantity", "location", "adminId")

MAX_PAGE_SIZE = 100


@dataclass
class StoredUpload:
    """A file already written to the local upload directory."""

    path: Path
    original_name: str
    size: int
    mime_type: str


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in {"true", "1", "yes", "on"}


def _positive_int(value: Any, field: str, errors: list[dict]) -> int | None:
    try:
        n = int(str(value).strip())
    except (TypeError, ValueError):
        errors.append({"field": field, "message": f"{field} must be a whole number"})
        return None
    if n < 1:
        errors.append({"field": field, "message": f"{field} must be at least 1"})
        return None
    return n


def _text(value: Any, field: str, max_len: int, errors: list[dict]) -> str | None:
    s = str(value).strip() if value is not None else ""
    if len(s) > max_len:
        errors.append({"field": field, "message": f"{field} cannot exceed {max_len} characters"})
        return None
    return s


def validate_submission(fields: dict[str, Any]) -> dict[str, Any]:
    """Check and coerce the submission form. Raises ValidationError listing every problem."""
    missing = [f for f in REQUIRED_FIELDS if fields.get(f) is None or str(fields.get(f)).strip() == ""]
    if missing:
        raise ValidationError(
            "Missing required fields: artwork, width, height, quantity, location and adminId are required",
            errors=[{"field": f, "message": f"{f} is required"} for f in missing],
        )
    errors: list[dict] = []
    clean = {
        "artwork": _text(fields["artwork"], "artwork", 255, errors),
        "width": _text(fields["width"], "width", 50, errors),
        "height": _text(fields["height"], "height", 50, errors),
        "quantity": _positive_int(fields["quantity"], "quantity", errors),
        "location": _text(fields["location"], "location", 255, errors),
        "admin_id": _positive_int(fields["adminId"], "adminId", errors),
        "description": _text(fields.get("description") or "", "description", 2000, errors),
        "printer_name": _text(fields.get("printerName") or "default", "printerName", 100, errors),
        "page_range": _text(fields.get("pageRange"), "pageRange", 100, errors) or None,
        "copies": 1,
        "duplex": _as_bool(fields.get("duplex")),
        "color": _as_bool(fields.get("color")),
    }
    if fields.get("copies") not in (None, ""):
        clean["copies"] = _positive_int(fields["copies"], "copies", errors)
    if errors:
        raise ValidationError("Validation failed", errors=errors)
    return clean


def validate_upload_type(filename: str | None, content_type: str | None) -> None:
    if not filename:
        raise ValidationError("No file uploaded")
    if (content_type or "").lower() not in ALLOWED_MIME_TYPES:
        raise ValidationError(
            "File type not allowed",
            errors=[{"field": "file", "message": f"Unsupported file type: {content_type or 'unknown'}"}],
        )


def create_job(
    db: Session,
    *,
    fields: dict[str, Any],
    upload: StoredUpload,
    client_id: int,
    storage: AssetStorage,
) -> PrintJob:
    """Create a pending job. Remote upload is attempted but never required."""
    clean = validate_submission(fields)

    client = db.query(Client).filter(Client.id == client_id, Client.is_active.is_(True)).first()
    if client is None:
        raise NotFound("Client not found")
    admin = db.query(Admin).filter(Admin.id == clean["admin_id"], Admin.is_active.is_(True)).first()
    if admin is None:
        raise ValidationError(
            "Selected print station does not exist",
            errors=[{"field": "adminId", "message": "Unknown or inactive print station"}],
        )

    file_name = upload.path.name
    file_path = str(upload.path)
    storage_key = storage_url = None
    try:
        stored = storage.store(upload.path, storage.key_for(file_name), content_type=upload.mime_type)
    except Exception as e:
        logger.warning("Remote upload raised, using local file: %s", e)
        stored = None
    if stored is not None:
        storage_key, storage_url = stored.key, stored.url
        file_name = Path(stored.key).name
        file_path = stored.url
        try:
            upload.path.unlink()
        except OSError as e:
            logger.warning("Failed to delete local file after remote upload: %s", e)

    job = PrintJob(
        file_name=file_name,
        file_path=file_path,
        file_size=upload.size,
        original_name=upload.original_name,
        mime_type=upload.mime_type or "application/pdf",
        status=PrintJobStatus.pending.value,
        printer_name=clean["printer_name"],
        copies=clean["copies"],
        duplex=clean["duplex"],
        color=clean["color"],
        page_range=clean["page_range"],
        artwork=clean["artwork"],
        width=clean["width"],
        height=clean["height"],
        size=f"{clean['width']} x {clean['height']}",
        quantity=clean["quantity"],
        location=clean["location"],
        description=clean["description"],
        client_id=client.id,
        admin_id=admin.id,
        storage_key=storage_key,
        storage_url=storage_url,
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    logger.info("Print job %s submitted by client %s to admin %s (remote=%s)", job.id, client.id, admin.id, bool(storage_key))
    return job


def parse_statuses(status: str | Iterable[str] | None) -> list[str]:
    """Accept 'pending', 'pending,processing' or an iterable. Unknown values are rejected."""
    if status is None:
        return []
    raw = status.split(",") if isinstance(status, str) else list(status)
    out: list[str] = []
    for s in raw:
        s = str(s).strip().lower()
        if not s:
            continue
        try:
            value = PrintJobStatus(s).value
        except ValueError:
            valid = ", ".join(p.value for p in PrintJobStatus)
            raise ValidationError(f"Invalid status. Must be one of: {valid}")
        if value not in out:
            out.append(value)
    return out


def _scoped(db: Session, tf: TenantFilter):
    return tf.apply(db.query(PrintJob), PrintJob.admin_id)


def list_jobs(
    db: Session,
    tf: TenantFilter,
    *,
    statuses: list[str] | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    page: int = 1,
    limit: int = 10,
    client_id: int | None = None,
) -> tuple[list[PrintJob], int]:
    if page < 1 or limit < 1:
        raise ValidationError("page and limit must be positive")
    limit = min(limit, MAX_PAGE_SIZE)
    q = _scoped(db, tf)
    if statuses:
        q = q.filter(PrintJob.status.in_(statuses))
    if start is not None:
        q = q.filter(PrintJob.created_at >= start)
    if end is not None:
        q = q.filter(PrintJob.created_at <= end)
    if client_id is not None:
        q = q.filter(PrintJob.client_id == client_id)
    total = q.count()
    items = (
        q.order_by(PrintJob.created_at.desc(), PrintJob.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return items, total


def pagination(page: int, limit: int, total: int) -> dict[str, int]:
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    return {"current": page, "total": math.ceil(total / limit) if total else 0, "totalRecords": total}


def get_job(db: Session, job_id: int, tf: TenantFilter) -> PrintJob:
    job = _scoped(db, tf).filter(PrintJob.id == job_id).first()
    if job is None:
        raise NotFound("Print job not found")
    return job


def _delete_remote(storage: AssetStorage, job: PrintJob) -> bool:
    if not job.storage_key:
        return False
    try:
        ok = storage.delete(job.storage_key)
    except Exception as e:
        logger.error("Error deleting remote asset %s for job %s: %s", job.storage_key, job.id, e)
        return False
    if not ok:
        logger.warning("Remote asset %s for job %s was not deleted", job.storage_key, job.id)
    return ok


def update_status(
    db: Session,
    job_id: int,
    new_status: str | PrintJobStatus,
    tf: TenantFilter,
    storage: AssetStorage,
    error_message: str | None = None,
) -> PrintJob:
    try:
        target = PrintJobStatus(new_status)
    except ValueError:
        valid = ", ".join(p.value for p in PrintJobStatus)
        raise ValidationError(f"Invalid status. Must be one of: {valid}")

    job = get_job(db, job_id, tf)
    current = PrintJobStatus(job.status)
    if target == current:
        return job
    if current in TERMINAL_STATUSES:
        raise InvalidState(f"Print job is already {current.value} and can no longer change status")
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidState(f"Cannot change print job status from {current.value} to {target.value}")

    values: dict[str, Any] = {"status": target.value}
    if error_message:
        values["error_message"] = error_message
    if target == PrintJobStatus.completed:
        values["print_job_id"] = f"PRINT_{int(time.time() * 1000)}"

    # Compare-and-set on the previous status so concurrent updates cannot both win
    updated = (
        db.query(PrintJob)
        .filter(PrintJob.id == job.id, PrintJob.status == current.value)
        .update(values, synchronize_session=False)
    )
    db.commit()
    if updated == 0:
        raise InvalidState("Print job status was changed by another request; reload and retry")
    db.refresh(job)
    logger.info("Print job %s: %s -> %s", job.id, current.value, target.value)

    if target == PrintJobStatus.completed and _delete_remote(storage, job):
        job.storage_key = None
        db.commit()
        db.refresh(job)
    return job


def process_job(db: Session, job_id: int, tf: TenantFilter, storage: AssetStorage) -> PrintJob:
    """Simulated print run: pending -> processing -> completed, or failed on error."""
    job = get_job(db, job_id, tf)
    if job.status != PrintJobStatus.pending.value:
        raise InvalidState(f"Only pending jobs can be processed (current status: {job.status})")
    update_status(db, job.id, PrintJobStatus.processing, tf, storage)
    try:
        return update_status(db, job.id, PrintJobStatus.completed, tf, storage)
    except InvalidState:
        raise
    except Exception as e:
        logger.exception("Error processing print job %s", job.id)
        db.rollback()
        return update_status(db, job.id, PrintJobStatus.failed, tf, storage, error_message=str(e))


def delete_job(db: Session, job_id: int, tf: TenantFilter, storage: AssetStorage) -> None:
    job = get_job(db, job_id, tf)
    _delete_remote(storage, job)
    if not job.storage_url and job.file_path:
        local = Path(job.file_path)
        if local.is_file():
            try:
                local.unlink()
            except OSError as e:
                logger.error("Error deleting local file %s: %s", local, e)
    db.delete(job)
    db.commit()
    logger.info("Print job %s deleted", job_id)


def job_stats(db: Session, tf: TenantFilter) -> dict[str, Any]:
    q = tf.apply(
        db.query(PrintJob.status, func.count(PrintJob.id), func.coalesce(func.sum(PrintJob.file_size), 0)),
        PrintJob.admin_id,
    )
    rows = q.group_by(PrintJob.status).all()
    counts = {s.value: 0 for s in PrintJobStatus}
    stats = []
    for status, count, total_size in rows:
        counts[status] = int(count)
        stats.append({"status": status, "count": int(count), "totalSize": int(total_size or 0)})
    total = sum(counts.values())
    completed = counts[PrintJobStatus.completed.value]
    return {
        "stats": stats,
        "countsByStatus": counts,
        "totalJobs": total,
        "completedJobs": completed,
        "successRate": (completed / total) * 100 if total > 0 else 0,
    }
