"""Tests for auth permissions."""

import pytest

from coursemaster.auth.permissions import (
    ROLE_HIERARCHY,
    UserRole,
    get_role_level,
    has_permission,
    is_admin,
)


class TestUserRole:
    """Tests for UserRole enum."""

    def test_role_values(self) -> None:
        """Roles should have correct string values."""
        assert UserRole.STUDENT.value == "student"
        assert UserRole.ADMIN.value == "admin"

    def test_role_hierarchy(self) -> None:
        """Admin should rank above student."""
        assert ROLE_HIERARCHY[UserRole.STUDENT] == 0
        assert ROLE_HIERARCHY[UserRole.ADMIN] == 1

    def test_all_roles_have_levels(self) -> None:
        """All UserRole members should have defined levels."""
        for role in UserRole:
            assert role in ROLE_HIERARCHY


class TestGetRoleLevel:
    """Tests for get_role_level function."""

    @pytest.mark.parametrize(
        "role,expected_level",
        [
            (UserRole.STUDENT, 0),
            (UserRole.ADMIN, 1),
            ("student", 0),
            ("admin", 1),
        ],
    )
    def test_known_roles(self, role: UserRole | str, expected_level: int) -> None:
        """Should return correct level for enum and string roles."""
        assert get_role_level(role) == expected_level

    def test_invalid_role_is_below_every_role(self) -> None:
        """Unknown roles should get a level below student."""
        assert get_role_level("instructor") == -1
        assert get_role_level("superadmin") == -1


class TestHasPermission:
    """Tests for has_permission function."""

    def test_admin_has_all_permissions(self) -> None:
        assert has_permission(UserRole.ADMIN, UserRole.STUDENT) is True
        assert has_permission(UserRole.ADMIN, UserRole.ADMIN) is True

    def test_student_permissions(self) -> None:
        assert has_permission(UserRole.STUDENT, UserRole.STUDENT) is True
        assert has_permission(UserRole.STUDENT, UserRole.ADMIN) is False

    def test_unknown_role_has_no_permissions(self) -> None:
        """An unrecognized role should not even pass the student check."""
        assert has_permission("guest", UserRole.STUDENT) is False

    def test_string_roles(self) -> None:
        assert has_permission("admin", "student") is True
        assert has_permission("student", "admin") is False


class TestIsAdmin:
    def test_is_admin(self) -> None:
        assert is_admin(UserRole.ADMIN) is True
        assert is_admin("admin") is True
        assert is_admin(UserRole.STUDENT) is False
        assert is_admin("root") is False
