"""Dashboard response shapes."""
from print_station.schemas.common import CamelModel


class DashboardStats(CamelModel):
    todays_jobs: int
    completed_jobs: int
    pending_jobs: int  # pending + processing
    failed_jobs: int
    total_jobs: int


class DayCount(CamelModel):
    date: str
    count: int
