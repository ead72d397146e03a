from typing import Optional

from app.core.enum import UserRole

SIGN_IN_PATH = "/sign-in"
AUTH_PAGES = ("/sign-in", "/sign-up")

DASHBOARDS = {
    UserRole.TEACHER.value: "/dashboard/teacher/courses",
    UserRole.ADMIN.value: "/dashboard/admin/staff",
    UserRole.SUPERVISOR.value: "/dashboard/supervisor/staff",
    UserRole.PARENT.value: "/dashboard/parent",
    UserRole.USER.value: "/dashboard",
}

# section prefix → roles allowed in it
PROTECTED_SECTIONS = [
    ("/dashboard/teacher", [UserRole.TEACHER.value, UserRole.ADMIN.value]),
    ("/dashboard/parent", [UserRole.PARENT.value]),
    ("/dashboard/admin", [UserRole.ADMIN.value]),
    ("/dashboard/supervisor", [UserRole.SUPERVISOR.value]),
]


def dashboard_for(role: Optional[str]) -> str:
    return DASHBOARDS.get(role or "", DASHBOARDS[UserRole.USER.value])


def _in_section(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def is_guarded_path(path: str) -> bool:
    return _in_section(path, "/dashboard") or any(_in_section(path, p) for p in AUTH_PAGES)


def resolve_redirect(path: str, role: Optional[str]) -> Optional[str]:
    """
    Where a page request must be redirected, or None when it may proceed.
    - role None means anonymous
    - auth pages bounce logged-in users to their dashboard
    - dashboard sections are gated by role
    """
    if any(_in_section(path, p) for p in AUTH_PAGES):
        return dashboard_for(role) if role else None

    if not _in_section(path, "/dashboard"):
        return None

    if not role:
        return SIGN_IN_PATH

    for prefix, allowed in PROTECTED_SECTIONS:
        if _in_section(path, prefix):
            if role in allowed:
                return None
            return dashboard_for(role)

    # bare /dashboard belongs to students
    if path.rstrip("/") == "/dashboard" and role != UserRole.USER.value:
        return dashboard_for(role)

    return None
