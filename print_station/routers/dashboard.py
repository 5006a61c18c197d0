"""Staff dashboard: job counts, weekly activity and jobs for a day."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from print_station.database import get_db
from print_station.dependencies import get_tenant_filter
from print_station.routers.print_jobs import job_to_response
from print_station.schemas.common import ok
from print_station.schemas.dashboard import DashboardStats, DayCount
from print_station.services import dashboard
from print_station.services.auth import TenantFilter

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats")
def stats(
    selected_date: str | None = Query(None, alias="date"),
    tf: TenantFilter = Depends(get_tenant_filter),
    db: Session = Depends(get_db),
):
    """Today's count plus status counts for the selected day (all time when no date is given)."""
    data = dashboard.dashboard_stats(db, tf, selected_date)
    return ok(DashboardStats.model_validate(data).dump())


@router.get("/weekly")
def weekly(tf: TenantFilter = Depends(get_tenant_filter), db: Session = Depends(get_db)):
    days = dashboard.weekly_activity(db, tf)
    return ok([DayCount.model_validate(d).dump() for d in days])


@router.get("/jobs-by-date")
def jobs_by_date(
    day: str | None = Query(None, alias="date"),
    tf: TenantFilter = Depends(get_tenant_filter),
    db: Session = Depends(get_db),
):
    jobs = dashboard.jobs_by_date(db, tf, day)
    return ok({"date": day, "jobs": [job_to_response(j) for j in jobs], "count": len(jobs)})
