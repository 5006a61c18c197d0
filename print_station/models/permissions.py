"""Roles, permissions and the fixed role -> permission policy."""
import enum


class UserRole(str, enum.Enum):
    admin = "admin"
    clerk = "clerk"
    client = "client"


class Permission(str, enum.Enum):
    # Admin
    manage_users = "manage_users"
    view_analytics = "view_analytics"
    manage_system = "manage_system"
    view_all_jobs = "view_all_jobs"
    # Clerk
    manage_jobs = "manage_jobs"
    submit_prints = "submit_prints"
    view_agents = "view_agents"
    # Manager
    view_reports = "view_reports"
    manage_agents = "manage_agents"
    # Technician
    maintain_printers = "maintain_printers"
    view_logs = "view_logs"
    # Customer
    submit_jobs = "submit_jobs"
    view_own_jobs = "view_own_jobs"


ROLE_PERMISSIONS: dict[UserRole, list[Permission]] = {
    UserRole.admin: [
        Permission.manage_users,
        Permission.view_analytics,
        Permission.manage_system,
        Permission.view_all_jobs,
        Permission.manage_jobs,
        Permission.submit_prints,
        Permission.view_agents,
        Permission.view_reports,
        Permission.manage_agents,
        Permission.maintain_printers,
        Permission.view_logs,
    ],
    UserRole.clerk: [
        Permission.manage_jobs,
        Permission.submit_prints,
        Permission.view_agents,
        Permission.view_own_jobs,
    ],
}


def default_permissions(role: UserRole) -> list[str]:
    return [p.value for p in ROLE_PERMISSIONS.get(role, [])]


def normalize_permissions(values, role: UserRole) -> list[str]:
    """Dedupe and validate; an empty selection falls back to the role's default set."""
    out: list[str] = []
    for v in values or []:
        p = Permission(v.value if isinstance(v, Permission) else v)
        if p.value not in out:
            out.append(p.value)
    return out or default_permissions(role)
