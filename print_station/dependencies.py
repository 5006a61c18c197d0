"""Shared dependencies: DB session, principals, tenant filter and collaborators."""
from dataclasses import replace
from functools import lru_cache

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from print_station.config import get_settings
from print_station.database import get_db
from print_station.errors import Forbidden, InvalidToken, NotFound
from print_station.models.permissions import Permission, UserRole
from print_station.services.auth import (
    AdminPrincipal,
    ClerkPrincipal,
    ClientPrincipal,
    Principal,
    StaffPrincipal,
    TenantFilter,
    decode_principal,
    require_permission,
    tenant_filter,
)
from print_station.services.credentials import load_account
from print_station.services.notifications import Mailer, build_mailer
from print_station.services.storage import AssetStorage, build_storage

security = HTTPBearer(auto_error=False)


def get_optional_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Principal | None:
    """No header means anonymous; a header that does not verify is still rejected."""
    if not credentials:
        return None
    return decode_principal((credentials.credentials or "").strip(), get_settings())


def get_principal(principal: Principal | None = Depends(get_optional_principal)) -> Principal:
    if principal is None:
        raise InvalidToken("Access token required")
    return principal


def _ensure_active(db: Session, principal: Principal):
    try:
        return load_account(db, principal)
    except NotFound:
        raise InvalidToken("Account not found or inactive")


def require_staff(
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> StaffPrincipal:
    if not isinstance(principal, (AdminPrincipal, ClerkPrincipal)):
        raise Forbidden("Staff access required")
    account = _ensure_active(db, principal)
    # Stored permissions win over the token claim so edits apply immediately
    return replace(principal, permissions=frozenset(account.permissions or []))


def require_admin(principal: StaffPrincipal = Depends(require_staff)) -> AdminPrincipal:
    if principal.role != UserRole.admin:
        raise Forbidden("Admin role required")
    return principal


def require_client(
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> ClientPrincipal:
    if not isinstance(principal, ClientPrincipal):
        raise Forbidden("Client access required")
    _ensure_active(db, principal)
    return principal


def require_permission_dep(permission: Permission):
    def _check(principal: StaffPrincipal = Depends(require_staff)) -> StaffPrincipal:
        require_permission(principal, permission)
        return principal

    return _check


def get_tenant_filter(principal: StaffPrincipal = Depends(require_staff)) -> TenantFilter:
    return tenant_filter(principal)


@lru_cache
def get_mailer() -> Mailer:
    return build_mailer(get_settings())


@lru_cache
def get_storage() -> AssetStorage:
    return build_storage(get_settings())
