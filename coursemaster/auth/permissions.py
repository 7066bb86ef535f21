"""Role-based access control for CourseMaster.

Two roles exist:
- ADMIN (level 1): back office (grading, catalog authoring, reports)
- STUDENT (level 0): enrolls, completes lessons, takes quizzes
"""

from enum import Enum


class UserRole(str, Enum):
    """User roles, higher level = more permissions."""

    STUDENT = "student"
    ADMIN = "admin"


ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.STUDENT: 0,
    UserRole.ADMIN: 1,
}


def get_role_level(role: UserRole | str) -> int:
    """Get the permission level for a role.

    Unknown roles get level -1 so they never pass a permission check.
    """
    if isinstance(role, str):
        try:
            role = UserRole(role)
        except ValueError:
            return -1
    return ROLE_HIERARCHY.get(role, -1)


def has_permission(user_role: UserRole | str, required_role: UserRole | str) -> bool:
    """Check if user has at least the required permission level.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.STUDENT)
        True
        >>> has_permission("student", "admin")
        False
    """
    return get_role_level(user_role) >= max(get_role_level(required_role), 0)


def is_admin(role: UserRole | str) -> bool:
    return get_role_level(role) == ROLE_HIERARCHY[UserRole.ADMIN]
