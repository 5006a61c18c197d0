"""Dashboard counts over the tenant-scoped print job set. Days are UTC calendar days."""
from __future__ import annotations

from datetime import date, timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session

from print_station.errors import ValidationError
from print_station.models.print_job import PrintJob, PrintJobStatus
from print_station.services.auth import TenantFilter
from print_station.utils import day_bounds, parse_day, utcnow

WEEK_DAYS = 7


def _scoped(db: Session, tf: TenantFilter, *columns):
    q = db.query(*columns) if columns else db.query(PrintJob)
    return tf.apply(q, PrintJob.admin_id)


def _in_day(q, day: date):
    start, end = day_bounds(day)
    return q.filter(PrintJob.created_at >= start, PrintJob.created_at < end)


def _coerce_day(value) -> date:
    try:
        return parse_day(value)
    except (TypeError, ValueError):
        raise ValidationError("Invalid date. Use YYYY-MM-DD")


def dashboard_stats(db: Session, tf: TenantFilter, selected_date=None, today: date | None = None) -> dict[str, int]:
    today = today or utcnow().date()
    todays_jobs = _in_day(_scoped(db, tf), today).count()

    q = _scoped(db, tf, PrintJob.status, func.count(PrintJob.id))
    if selected_date not in (None, ""):
        q = _in_day(q, _coerce_day(selected_date))
    counts = dict(q.group_by(PrintJob.status).all())

    pending = counts.get(PrintJobStatus.pending.value, 0) + counts.get(PrintJobStatus.processing.value, 0)
    return {
        "todaysJobs": todays_jobs,
        "completedJobs": counts.get(PrintJobStatus.completed.value, 0),
        "pendingJobs": pending,
        "failedJobs": counts.get(PrintJobStatus.failed.value, 0),
        "totalJobs": sum(counts.values()),
    }


def weekly_activity(db: Session, tf: TenantFilter, today: date | None = None) -> list[dict]:
    """Seven entries, oldest first, ending today."""
    today = today or utcnow().date()
    out = []
    for offset in range(WEEK_DAYS - 1, -1, -1):
        day = today - timedelta(days=offset)
        out.append({"date": day.isoformat(), "count": _in_day(_scoped(db, tf), day).count()})
    return out


def jobs_by_date(db: Session, tf: TenantFilter, day) -> list[PrintJob]:
    if day in (None, ""):
        raise ValidationError("Date parameter is required")
    q = _in_day(_scoped(db, tf), _coerce_day(day))
    return q.order_by(PrintJob.created_at.desc(), PrintJob.id.desc()).all()
