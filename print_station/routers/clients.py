"""Clients: self-service registration, login and profile, plus staff views of clients."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from print_station.config import get_settings
from print_station.database import get_db
from print_station.dependencies import get_tenant_filter, require_admin, require_client, require_staff
from print_station.errors import ValidationError
from print_station.routers.print_jobs import job_to_response
from print_station.schemas.auth import ChangePasswordRequest, LoginRequest
from print_station.schemas.client import (
    ClientAdminUpdate,
    ClientProfileUpdate,
    ClientRegister,
    ClientResponse,
)
from print_station.schemas.common import ok
from print_station.services import credentials, otp as otp_service, print_jobs
from print_station.services.auth import (
    UNSCOPED,
    AdminPrincipal,
    ClientPrincipal,
    StaffPrincipal,
    TenantFilter,
    create_access_token,
)

router = APIRouter(prefix="/clients", tags=["clients"])


def client_to_response(client) -> dict:
    return ClientResponse.model_validate(client).dump()


@router.post("/register", status_code=201)
def register(data: ClientRegister, db: Session = Depends(get_db)):
    settings = get_settings()
    if settings.verified_email_required and otp_service.check_verified(db, data.email) is None:
        raise ValidationError("Email not verified. Please verify your email with OTP first.")
    client = credentials.register_client(
        db,
        email=data.email,
        password=data.password,
        full_name=data.full_name,
        phone_number=data.phone_number,
    )
    otp_service.consume_verification(db, client.email)
    return ok(
        {"client": client_to_response(client), "token": create_access_token(client)},
        "Client registered successfully",
    )


@router.post("/login")
def login(data: LoginRequest, db: Session = Depends(get_db)):
    client = credentials.authenticate_client(db, data.email, data.password)
    return ok({"client": client_to_response(client), "token": create_access_token(client)}, "Login successful")


@router.get("/profile")
def get_profile(principal: ClientPrincipal = Depends(require_client), db: Session = Depends(get_db)):
    return ok({"client": client_to_response(credentials.load_account(db, principal))})


@router.put("/profile")
def update_profile(
    data: ClientProfileUpdate,
    principal: ClientPrincipal = Depends(require_client),
    db: Session = Depends(get_db),
):
    client = credentials.update_client_profile(
        db,
        credentials.load_account(db, principal),
        full_name=data.full_name,
        phone_number=data.phone_number,
        email=data.email,
    )
    return ok({"client": client_to_response(client)}, "Profile updated successfully")


@router.put("/profile/change-password")
def change_password(
    data: ChangePasswordRequest,
    principal: ClientPrincipal = Depends(require_client),
    db: Session = Depends(get_db),
):
    credentials.change_password(db, principal, data.current_password, data.new_password)
    return ok(message="Password changed successfully")


@router.get("/jobs")
def my_jobs(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: str | None = None,
    principal: ClientPrincipal = Depends(require_client),
    db: Session = Depends(get_db),
):
    # Clients are not tenant-bound; ownership is the client_id constraint
    jobs, total = print_jobs.list_jobs(
        db,
        UNSCOPED,
        statuses=print_jobs.parse_statuses(status),
        page=page,
        limit=limit,
        client_id=principal.id,
    )
    return ok({"jobs": [job_to_response(j) for j in jobs], "pagination": print_jobs.pagination(page, limit, total)})


@router.get("")
def list_clients(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = None,
    is_active: bool | None = Query(None, alias="isActive"),
    staff: StaffPrincipal = Depends(require_staff),
    db: Session = Depends(get_db),
):
    clients, total = credentials.list_clients(db, page=page, limit=limit, search=search, is_active=is_active)
    return ok({"clients": [client_to_response(c) for c in clients], "pagination": print_jobs.pagination(page, limit, total)})


@router.get("/stats")
def client_stats(staff: StaffPrincipal = Depends(require_staff), db: Session = Depends(get_db)):
    stats = credentials.client_stats(db)
    stats["recentClients"] = [client_to_response(c) for c in stats["recentClients"]]
    return ok(stats)


@router.get("/{client_id}")
def get_client(client_id: int, staff: StaffPrincipal = Depends(require_staff), db: Session = Depends(get_db)):
    return ok({"client": client_to_response(credentials.get_client(db, client_id))})


@router.get("/{client_id}/jobs")
def client_jobs(
    client_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    tf: TenantFilter = Depends(get_tenant_filter),
    db: Session = Depends(get_db),
):
    credentials.get_client(db, client_id)
    jobs, total = print_jobs.list_jobs(db, tf, page=page, limit=limit, client_id=client_id)
    return ok({"jobs": [job_to_response(j) for j in jobs], "pagination": print_jobs.pagination(page, limit, total)})


@router.put("/{client_id}")
def update_client(
    client_id: int,
    data: ClientAdminUpdate,
    admin: AdminPrincipal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    client = credentials.update_client_profile(
        db,
        credentials.get_client(db, client_id),
        full_name=data.full_name,
        phone_number=data.phone_number,
        email=data.email,
    )
    if data.is_active is not None:
        client = credentials.set_client_active(db, client, data.is_active)
    return ok({"client": client_to_response(client)}, "Client updated successfully")


@router.delete("/{client_id}")
def delete_client(client_id: int, admin: AdminPrincipal = Depends(require_admin), db: Session = Depends(get_db)):
    credentials.set_client_active(db, credentials.get_client(db, client_id), False)
    return ok(message="Client deactivated successfully")
