"""Staff authentication: admin registration, staff login, profile and password."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from print_station.database import get_db
from print_station.dependencies import require_staff
from print_station.models.clerk import Clerk
from print_station.models.permissions import UserRole
from print_station.schemas.auth import (
    AdminRegister,
    ChangePasswordRequest,
    LoginRequest,
    StaffProfileUpdate,
    StaffResponse,
)
from print_station.schemas.common import ok
from print_station.services.auth import StaffPrincipal, create_access_token
from print_station.services import credentials

router = APIRouter(prefix="/auth", tags=["auth"])


def staff_to_response(account) -> dict:
    """Admins and clerks share one response shape; clerk-only fields stay null for admins."""
    is_clerk = isinstance(account, Clerk)
    return StaffResponse(
        id=account.id,
        email=account.email,
        name=account.name,
        role=UserRole.clerk if is_clerk else UserRole.admin,
        permissions=list(account.permissions or []),
        location=account.location,
        is_active=account.is_active,
        last_login=account.last_login,
        created_at=account.created_at,
        admin_id=account.admin_id if is_clerk else None,
        is_temporary_password=account.is_temporary_password if is_clerk else None,
    ).dump()


@router.post("/register", status_code=201)
def register(data: AdminRegister, db: Session = Depends(get_db)):
    admin = credentials.register_admin(
        db, email=data.email, password=data.password, name=data.name, location=data.location
    )
    return ok(
        {"user": staff_to_response(admin), "token": create_access_token(admin)},
        "User registered successfully",
    )


@router.post("/login")
def login(data: LoginRequest, db: Session = Depends(get_db)):
    account = credentials.authenticate_staff(db, data.email, data.password)
    return ok({"user": staff_to_response(account), "token": create_access_token(account)}, "Login successful")


@router.get("/profile")
def get_profile(principal: StaffPrincipal = Depends(require_staff), db: Session = Depends(get_db)):
    return ok({"user": staff_to_response(credentials.load_account(db, principal))})


@router.put("/profile")
def update_profile(
    data: StaffProfileUpdate,
    principal: StaffPrincipal = Depends(require_staff),
    db: Session = Depends(get_db),
):
    account = credentials.update_staff_profile(
        db, principal, name=data.name, email=data.email, location=data.location
    )
    return ok({"user": staff_to_response(account)}, "Profile updated successfully")


@router.put("/change-password")
def change_password(
    data: ChangePasswordRequest,
    principal: StaffPrincipal = Depends(require_staff),
    db: Session = Depends(get_db),
):
    credentials.change_password(db, principal, data.current_password, data.new_password)
    return ok(message="Password changed successfully")


@router.post("/logout")
def logout(principal: StaffPrincipal = Depends(require_staff)):
    # Tokens are stateless; the client discards its copy
    return ok(message="Logout successful")


@router.post("/refresh")
def refresh(principal: StaffPrincipal = Depends(require_staff), db: Session = Depends(get_db)):
    account = credentials.load_account(db, principal)
    return ok({"token": create_access_token(account)}, "Token refreshed successfully")
