"""Credential store: register, authenticate and change passwords for admins, clerks and clients.

Email uniqueness is checked per account kind (admins, clerks and clients each
have their own table and unique index).
"""
from __future__ import annotations

import logging
import secrets
import string

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from print_station.errors import Conflict, InvalidCredentials, NotFound
from print_station.models.admin import Admin
from print_station.models.clerk import Clerk
from print_station.models.client import Client
from print_station.models.permissions import UserRole, default_permissions, normalize_permissions
from print_station.services.auth import (
    AdminPrincipal,
    ClerkPrincipal,
    ClientPrincipal,
    Principal,
    get_password_hash,
    verify_password,
)
from print_station.utils import normalize_email, utcnow

logger = logging.getLogger(__name__)

TEMP_PASSWORD_LENGTH = 12

_MODELS = {UserRole.admin: Admin, UserRole.clerk: Clerk, UserRole.client: Client}
_KIND_LABEL = {UserRole.admin: "User", UserRole.clerk: "Clerk", UserRole.client: "Client"}


def generate_temporary_password(length: int = TEMP_PASSWORD_LENGTH) -> str:
    alphabet = string.ascii_letters + string.digits
    # Guarantee at least one letter and one digit
    while True:
        pw = "".join(secrets.choice(alphabet) for _ in range(length))
        if any(c.isalpha() for c in pw) and any(c.isdigit() for c in pw):
            return pw


def email_taken(db: Session, kind: UserRole, email: str, exclude_id: int | None = None) -> bool:
    model = _MODELS[kind]
    q = db.query(model).filter(model.email == normalize_email(email))
    if exclude_id is not None:
        q = q.filter(model.id != exclude_id)
    return q.first() is not None


def _ensure_email_free(db: Session, kind: UserRole, email: str, exclude_id: int | None = None) -> None:
    if email_taken(db, kind, email, exclude_id):
        raise Conflict(f"{_KIND_LABEL[kind]} with this email already exists")


def _commit_new(db: Session, account, kind: UserRole):
    db.add(account)
    try:
        db.commit()
    except IntegrityError:
        # Concurrent registration with the same email
        db.rollback()
        raise Conflict(f"{_KIND_LABEL[kind]} with this email already exists")
    db.refresh(account)
    return account


def register_admin(db: Session, *, email: str, password: str, name: str, location: dict | None = None) -> Admin:
    _ensure_email_free(db, UserRole.admin, email)
    admin = Admin(
        email=normalize_email(email),
        hashed_password=get_password_hash(password),
        name=name.strip(),
        location=location,
        permissions=default_permissions(UserRole.admin),
        is_active=True,
    )
    admin = _commit_new(db, admin, UserRole.admin)
    logger.info("Registered admin id=%s email=%s", admin.id, admin.email)
    return admin


def register_client(db: Session, *, email: str, password: str, full_name: str, phone_number: str) -> Client:
    _ensure_email_free(db, UserRole.client, email)
    client = Client(
        email=normalize_email(email),
        hashed_password=get_password_hash(password),
        full_name=full_name.strip(),
        phone_number=phone_number.strip(),
        is_active=True,
    )
    client = _commit_new(db, client, UserRole.client)
    logger.info("Registered client id=%s email=%s", client.id, client.email)
    return client


def create_clerk(
    db: Session,
    *,
    admin_id: int,
    email: str,
    name: str,
    password: str | None = None,
    permissions: list | None = None,
    location: dict | None = None,
) -> tuple[Clerk, str]:
    """Create a clerk under admin_id. Returns (clerk, plaintext password used)."""
    _ensure_email_free(db, UserRole.clerk, email)
    plain = password or generate_temporary_password()
    clerk = Clerk(
        email=normalize_email(email),
        hashed_password=get_password_hash(plain),
        name=name.strip(),
        admin_id=admin_id,
        location=location,
        permissions=normalize_permissions(permissions, UserRole.clerk),
        is_active=True,
        is_temporary_password=True,
    )
    clerk = _commit_new(db, clerk, UserRole.clerk)
    logger.info("Admin %s created clerk id=%s email=%s", admin_id, clerk.id, clerk.email)
    return clerk, plain


def _check_login(account, password: str):
    if account is None or not account.is_active or not verify_password(password, account.hashed_password):
        raise InvalidCredentials("Invalid email or password")
    return account


def authenticate_staff(db: Session, email: str, password: str) -> Admin | Clerk:
    """Staff login: admins first, then clerks. Same error for unknown, inactive and wrong password.

    An address may belong to both an admin and a clerk; the password decides which one signs in.
    """
    normalized = normalize_email(email)
    account = db.query(Admin).filter(Admin.email == normalized, Admin.is_active.is_(True)).first()
    if account is None or not verify_password(password, account.hashed_password):
        account = db.query(Clerk).filter(Clerk.email == normalized, Clerk.is_active.is_(True)).first()
        _check_login(account, password)
    account.last_login = utcnow()
    db.commit()
    db.refresh(account)
    return account


def authenticate_client(db: Session, email: str, password: str) -> Client:
    normalized = normalize_email(email)
    client = db.query(Client).filter(Client.email == normalized, Client.is_active.is_(True)).first()
    _check_login(client, password)
    client.last_login = utcnow()
    db.commit()
    db.refresh(client)
    return client


def load_account(db: Session, principal: Principal, *, active_only: bool = True):
    """Fetch the stored account behind a principal, or raise NotFound."""
    if isinstance(principal, ClerkPrincipal):
        account = db.query(Clerk).filter(Clerk.id == principal.id, Clerk.admin_id == principal.admin_id).first()
        label = "Clerk"
    elif isinstance(principal, AdminPrincipal):
        account = db.query(Admin).filter(Admin.id == principal.id).first()
        label = "User"
    elif isinstance(principal, ClientPrincipal):
        account = db.query(Client).filter(Client.id == principal.id).first()
        label = "Client"
    else:
        raise NotFound("Account not found")
    if account is None or (active_only and not account.is_active):
        raise NotFound(f"{label} not found")
    return account


def change_password(db: Session, principal: Principal, current_password: str, new_password: str) -> None:
    account = load_account(db, principal)
    if not verify_password(current_password, account.hashed_password):
        raise InvalidCredentials("Current password is incorrect")
    account.hashed_password = get_password_hash(new_password)
    if isinstance(account, Clerk):
        account.is_temporary_password = False
    db.commit()
    logger.info("Password changed for %s id=%s", principal.role.value, account.id)


def update_staff_profile(
    db: Session,
    principal: Principal,
    *,
    name: str | None = None,
    email: str | None = None,
    location: dict | None = None,
) -> Admin | Clerk:
    account = load_account(db, principal)
    kind = UserRole.clerk if isinstance(account, Clerk) else UserRole.admin
    if email and normalize_email(email) != account.email:
        _ensure_email_free(db, kind, email, exclude_id=account.id)
        account.email = normalize_email(email)
    if name:
        account.name = name.strip()
    if location is not None:
        account.location = location
    db.commit()
    db.refresh(account)
    return account


def update_client_profile(
    db: Session,
    client: Client,
    *,
    full_name: str | None = None,
    phone_number: str | None = None,
    email: str | None = None,
) -> Client:
    if email and normalize_email(email) != client.email:
        _ensure_email_free(db, UserRole.client, email, exclude_id=client.id)
        client.email = normalize_email(email)
    if full_name:
        client.full_name = full_name.strip()
    if phone_number:
        client.phone_number = phone_number.strip()
    db.commit()
    db.refresh(client)
    return client


def get_clerk_for_admin(db: Session, admin_id: int, clerk_id: int) -> Clerk:
    """Clerks outside the admin's tenancy are reported as missing."""
    clerk = db.query(Clerk).filter(Clerk.id == clerk_id, Clerk.admin_id == admin_id).first()
    if clerk is None:
        raise NotFound("Clerk not found")
    return clerk


def update_clerk(
    db: Session,
    clerk: Clerk,
    *,
    name: str | None = None,
    email: str | None = None,
    permissions: list | None = None,
    is_active: bool | None = None,
    location: dict | None = None,
) -> Clerk:
    if email and normalize_email(email) != clerk.email:
        _ensure_email_free(db, UserRole.clerk, email, exclude_id=clerk.id)
        clerk.email = normalize_email(email)
    if name:
        clerk.name = name.strip()
    if permissions is not None:
        clerk.permissions = normalize_permissions(permissions, UserRole.clerk)
    if is_active is not None:
        clerk.is_active = is_active
    if location is not None:
        clerk.location = location
    db.commit()
    db.refresh(clerk)
    return clerk


def reset_clerk_password(db: Session, clerk: Clerk, new_password: str | None = None) -> str:
    """Admin-initiated reset. The clerk is flagged to change it again."""
    plain = new_password or generate_temporary_password()
    clerk.hashed_password = get_password_hash(plain)
    clerk.is_temporary_password = True
    db.commit()
    return plain


def deactivate_clerk(db: Session, clerk: Clerk) -> Clerk:
    clerk.is_active = False
    db.commit()
    db.refresh(clerk)
    logger.info("Clerk id=%s deactivated", clerk.id)
    return clerk


def _search(q, search: str | None, *columns):
    if not search:
        return q
    pattern = f"%{search.strip()}%"
    return q.filter(or_(*(col.ilike(pattern) for col in columns)))


def list_clerks(
    db: Session,
    admin_id: int,
    *,
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
    is_active: bool | None = None,
) -> tuple[list[Clerk], int]:
    q = db.query(Clerk).filter(Clerk.admin_id == admin_id)
    q = _search(q, search, Clerk.name, Clerk.email)
    if is_active is not None:
        q = q.filter(Clerk.is_active.is_(is_active))
    total = q.count()
    items = q.order_by(Clerk.created_at.desc(), Clerk.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return items, total


def clerk_stats(db: Session, admin_id: int) -> dict:
    base = db.query(Clerk).filter(Clerk.admin_id == admin_id)
    active = base.filter(Clerk.is_active.is_(True)).count()
    inactive = base.filter(Clerk.is_active.is_(False)).count()
    recent = base.filter(Clerk.is_active.is_(True)).order_by(Clerk.created_at.desc(), Clerk.id.desc()).limit(5).all()
    return {"totalClerks": active + inactive, "activeClerks": active, "inactiveClerks": inactive, "recentClerks": recent}


def list_clients(
    db: Session,
    *,
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
    is_active: bool | None = None,
) -> tuple[list[Client], int]:
    q = _search(db.query(Client), search, Client.full_name, Client.email, Client.phone_number)
    if is_active is not None:
        q = q.filter(Client.is_active.is_(is_active))
    total = q.count()
    items = q.order_by(Client.created_at.desc(), Client.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return items, total


def client_stats(db: Session) -> dict:
    active = db.query(Client).filter(Client.is_active.is_(True)).count()
    inactive = db.query(Client).filter(Client.is_active.is_(False)).count()
    recent = (
        db.query(Client)
        .filter(Client.is_active.is_(True))
        .order_by(Client.created_at.desc(), Client.id.desc())
        .limit(5)
        .all()
    )
    return {"totalClients": active + inactive, "activeClients": active, "inactiveClients": inactive, "recentClients": recent}


def get_client(db: Session, client_id: int) -> Client:
    client = db.query(Client).filter(Client.id == client_id).first()
    if client is None:
        raise NotFound("Client not found")
    return client


def set_client_active(db: Session, client: Client, is_active: bool) -> Client:
    client.is_active = is_active
    db.commit()
    db.refresh(client)
    logger.info("Client id=%s is_active=%s", client.id, is_active)
    return client
