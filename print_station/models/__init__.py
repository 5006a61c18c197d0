"""
All SQLAlchemy models. Schema is the source of truth for new DBs.
Base.metadata.create_all() creates every table; no migration scripts needed for fresh installs.
"""
from print_station.models.permissions import UserRole, Permission, ROLE_PERMISSIONS
from print_station.models.admin import Admin
from print_station.models.clerk import Clerk
from print_station.models.client import Client
from print_station.models.otp import OTP
from print_station.models.print_job import PrintJob, PrintJobStatus

__all__ = [
    "UserRole",
    "Permission",
    "ROLE_PERMISSIONS",
    "Admin",
    "Clerk",
    "Client",
    "OTP",
    "PrintJob",
    "PrintJobStatus",
]
