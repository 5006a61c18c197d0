"""Clerk management. Admins only see and change clerks they created."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from print_station.database import get_db
from print_station.dependencies import get_mailer, require_admin, require_permission_dep
from print_station.models.permissions import Permission
from print_station.routers.auth import staff_to_response
from print_station.schemas.common import ok
from print_station.schemas.users import ClerkCreate, ClerkUpdate, ResetPasswordRequest
from print_station.services import credentials
from print_station.services.auth import AdminPrincipal
from print_station.services.notifications import Mailer, send_clerk_welcome_email
from print_station.services.print_jobs import pagination

router = APIRouter(prefix="/users", tags=["users"])


@router.get("")
def list_clerks(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = None,
    is_active: bool | None = Query(None, alias="isActive"),
    admin: AdminPrincipal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    clerks, total = credentials.list_clerks(db, admin.id, page=page, limit=limit, search=search, is_active=is_active)
    return ok({"users": [staff_to_response(c) for c in clerks], "pagination": pagination(page, limit, total)})


@router.get("/stats")
def clerk_stats(admin: AdminPrincipal = Depends(require_admin), db: Session = Depends(get_db)):
    stats = credentials.clerk_stats(db, admin.id)
    stats["recentClerks"] = [staff_to_response(c) for c in stats["recentClerks"]]
    return ok(stats)


@router.get("/{clerk_id}")
def get_clerk(clerk_id: int, admin: AdminPrincipal = Depends(require_admin), db: Session = Depends(get_db)):
    return ok({"user": staff_to_response(credentials.get_clerk_for_admin(db, admin.id, clerk_id))})


@router.post("", status_code=201)
def create_clerk(
    data: ClerkCreate,
    admin: AdminPrincipal = Depends(require_admin),
    _=Depends(require_permission_dep(Permission.manage_users)),
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    clerk, plain = credentials.create_clerk(
        db,
        admin_id=admin.id,
        email=data.email,
        name=data.name,
        password=data.password,
        permissions=data.permissions,
        location=data.location,
    )
    owner = credentials.load_account(db, admin)
    email_sent = send_clerk_welcome_email(mailer, clerk.email, clerk.name, plain, admin_name=owner.name)
    data_out = {"user": staff_to_response(clerk), "emailSent": email_sent}
    if not data.password and not email_sent:
        # Shown once so the admin can hand it over when email is unavailable
        data_out["temporaryPassword"] = plain
    return ok(data_out, "Clerk created successfully")


@router.put("/{clerk_id}")
def update_clerk(
    clerk_id: int,
    data: ClerkUpdate,
    admin: AdminPrincipal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    clerk = credentials.get_clerk_for_admin(db, admin.id, clerk_id)
    clerk = credentials.update_clerk(
        db,
        clerk,
        name=data.name,
        email=data.email,
        permissions=data.permissions,
        is_active=data.is_active,
        location=data.location,
    )
    return ok({"user": staff_to_response(clerk)}, "Clerk updated successfully")


@router.delete("/{clerk_id}")
def delete_clerk(clerk_id: int, admin: AdminPrincipal = Depends(require_admin), db: Session = Depends(get_db)):
    clerk = credentials.get_clerk_for_admin(db, admin.id, clerk_id)
    credentials.deactivate_clerk(db, clerk)
    return ok(message="Clerk deactivated successfully")


@router.put("/{clerk_id}/reset-password")
def reset_password(
    clerk_id: int,
    data: ResetPasswordRequest | None = None,
    admin: AdminPrincipal = Depends(require_admin),
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    clerk = credentials.get_clerk_for_admin(db, admin.id, clerk_id)
    plain = credentials.reset_clerk_password(db, clerk, data.new_password if data else None)
    owner = credentials.load_account(db, admin)
    email_sent = send_clerk_welcome_email(mailer, clerk.email, clerk.name, plain, admin_name=owner.name)
    data_out = {"emailSent": email_sent}
    if (data is None or not data.new_password) and not email_sent:
        data_out["temporaryPassword"] = plain
    return ok(data_out, "Password reset successfully")
