"""Tests for auth permissions."""

from uuid import uuid4

import pytest

from lingala.auth.permissions import UserRole, is_admin
from lingala.auth.schemas import UserResponse


class TestUserRole:
    """Tests for UserRole enum."""

    def test_role_values(self) -> None:
        """Roles should have correct string values."""
        assert UserRole.USER.value == "user"
        assert UserRole.ADMIN.value == "admin"


class TestIsAdmin:
    @pytest.mark.parametrize(
        ("role", "expected"),
        [
            (UserRole.ADMIN, True),
            ("admin", True),
            (UserRole.USER, False),
            ("user", False),
            ("moderator", False),
            ("", False),
        ],
    )
    def test_is_admin(self, role, expected) -> None:
        assert is_admin(role) is expected

    def test_user_response_property(self) -> None:
        admin = UserResponse(id=uuid4(), email="a@lingala.cd", role="admin")
        learner = UserResponse(id=uuid4(), email="b@lingala.cd")

        assert admin.is_admin is True
        assert learner.is_admin is False
