"""Auth service: password hashing, JWT issuance, principal decoding and tenant scoping.

Three token shapes are issued:

* admin  ``{userId, email, role: "admin", permissions}``
* clerk  ``{clerkId, adminId, email, role: "clerk", permissions}``
* client ``{clientId, email, type: "client"}``

``decode_principal`` is the single place that turns a bearer token into a typed
principal; ``tenant_filter`` is the single place that turns a principal into the
``admin_id`` constraint applied to every print job query.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import ClassVar, Iterable, Union

import bcrypt
import jwt

from print_station.config import Settings, get_settings
from print_station.errors import Forbidden, InvalidToken
from print_station.models.admin import Admin
from print_station.models.clerk import Clerk
from print_station.models.client import Client
from print_station.models.permissions import Permission, UserRole
from print_station.utils import utcnow

# Fixed work factor; not configurable per call
BCRYPT_ROUNDS = 12

CLIENT_TOKEN_TYPE = "client"


def _pwd_bytes(password: str, max_len: int = 72) -> bytes:
    return password.encode("utf-8")[:max_len]


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(_pwd_bytes(plain or ""), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(_pwd_bytes(password), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


@dataclass(frozen=True)
class AdminPrincipal:
    id: int
    email: str
    permissions: frozenset[str] = field(default_factory=frozenset)
    role: ClassVar[UserRole] = UserRole.admin


@dataclass(frozen=True)
class ClerkPrincipal:
    id: int
    admin_id: int
    email: str
    permissions: frozenset[str] = field(default_factory=frozenset)
    role: ClassVar[UserRole] = UserRole.clerk


@dataclass(frozen=True)
class ClientPrincipal:
    id: int
    email: str
    permissions: frozenset[str] = field(default_factory=frozenset)
    role: ClassVar[UserRole] = UserRole.client

    @property
    def type(self) -> str:
        return CLIENT_TOKEN_TYPE


Principal = Union[AdminPrincipal, ClerkPrincipal, ClientPrincipal]
StaffPrincipal = Union[AdminPrincipal, ClerkPrincipal]


@dataclass(frozen=True)
class TenantFilter:
    """Constraint ``admin_id == X`` for print job queries; unscoped when admin_id is None."""

    admin_id: int | None = None

    @property
    def is_scoped(self) -> bool:
        return self.admin_id is not None

    def apply(self, query, column):
        if self.admin_id is None:
            return query
        return query.filter(column == self.admin_id)

    def allows(self, admin_id: int | None) -> bool:
        return self.admin_id is None or self.admin_id == admin_id

    def as_dict(self) -> dict[str, int]:
        return {} if self.admin_id is None else {"adminId": self.admin_id}


UNSCOPED = TenantFilter()


def tenant_filter(principal: Principal | None) -> TenantFilter:
    """Clerks see their creator's jobs, admins their own; anything else is unrestricted.

    Client-token routes must be gated separately: an unscoped filter is not an authorization.
    """
    if isinstance(principal, ClerkPrincipal):
        return TenantFilter(principal.admin_id)
    if isinstance(principal, AdminPrincipal):
        return TenantFilter(principal.id)
    return UNSCOPED


def require_permission(principal: Principal | None, permission: Permission | str) -> None:
    value = permission.value if isinstance(permission, Permission) else permission
    if principal is None or value not in principal.permissions:
        raise Forbidden("Insufficient permissions")


def require_role(principal: Principal | None, roles: Iterable[UserRole]) -> None:
    if principal is None or principal.role not in set(roles):
        raise Forbidden("Insufficient role privileges")


def _encode(payload: dict, settings: Settings) -> str:
    now = utcnow()
    payload = {**payload, "iat": now, "exp": now + timedelta(days=settings.jwt_expire_days)}
    raw = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return raw if isinstance(raw, str) else raw.decode("utf-8")


def create_access_token(account: Admin | Clerk | Client, settings: Settings | None = None) -> str:
    settings = settings or get_settings()
    if isinstance(account, Clerk):
        payload = {
            "clerkId": account.id,
            "adminId": account.admin_id,
            "email": account.email,
            "role": UserRole.clerk.value,
            "permissions": list(account.permissions or []),
        }
    elif isinstance(account, Admin):
        payload = {
            "userId": account.id,
            "email": account.email,
            "role": UserRole.admin.value,
            "permissions": list(account.permissions or []),
        }
    elif isinstance(account, Client):
        payload = {"clientId": account.id, "email": account.email, "type": CLIENT_TOKEN_TYPE}
    else:
        raise TypeError(f"cannot issue token for {type(account).__name__}")
    return _encode(payload, settings)


def decode_token_with_error(token: str, settings: Settings | None = None) -> tuple[dict | None, str | None]:
    """Decode JWT; returns (payload, error_message)."""
    settings = settings or get_settings()
    if not token or not isinstance(token, str):
        return None, "empty token"
    try:
        payload = jwt.decode(token.strip(), settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        return payload, None
    except jwt.ExpiredSignatureError as e:
        return None, str(e)
    except jwt.PyJWTError as e:
        return None, str(e)


def _int_claim(payload: dict, key: str) -> int:
    try:
        value = int(payload[key])
    except (KeyError, TypeError, ValueError):
        raise InvalidToken("Invalid token")
    if value <= 0:
        raise InvalidToken("Invalid token")
    return value


def _permissions_claim(payload: dict) -> frozenset[str]:
    perms = payload.get("permissions") or []
    if not isinstance(perms, list):
        raise InvalidToken("Invalid token")
    return frozenset(str(p) for p in perms)


def principal_from_payload(payload: dict) -> Principal:
    has_user = "userId" in payload
    has_clerk = "clerkId" in payload
    has_client = "clientId" in payload
    token_type = payload.get("type")
    email = str(payload.get("email") or "")

    if token_type is not None:
        if token_type != CLIENT_TOKEN_TYPE or has_user or has_clerk or not has_client:
            raise InvalidToken("Invalid token")
        return ClientPrincipal(id=_int_claim(payload, "clientId"), email=email)

    if has_clerk:
        if has_user or has_client or "adminId" not in payload:
            raise InvalidToken("Invalid token")
        if payload.get("role", UserRole.clerk.value) != UserRole.clerk.value:
            raise InvalidToken("Invalid token")
        return ClerkPrincipal(
            id=_int_claim(payload, "clerkId"),
            admin_id=_int_claim(payload, "adminId"),
            email=email,
            permissions=_permissions_claim(payload),
        )

    if has_user:
        if has_client or "adminId" in payload:
            raise InvalidToken("Invalid token")
        if payload.get("role", UserRole.admin.value) != UserRole.admin.value:
            raise InvalidToken("Invalid token")
        return AdminPrincipal(
            id=_int_claim(payload, "userId"),
            email=email,
            permissions=_permissions_claim(payload),
        )

    raise InvalidToken("Invalid token")


def decode_principal(token: str, settings: Settings | None = None) -> Principal:
    """Verify signature and expiry, then classify the payload. Fails closed."""
    payload, _ = decode_token_with_error(token, settings)
    if not payload:
        raise InvalidToken("Invalid or expired token")
    return principal_from_payload(payload)
