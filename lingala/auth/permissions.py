"""User roles carried in access tokens."""

from enum import Enum


class UserRole(str, Enum):
    """Roles known to the learning core.

    Only ADMIN changes behaviour here (manual enrollment grants).
    """

    USER = "user"
    ADMIN = "admin"


def is_admin(role: UserRole | str) -> bool:
    """Check a role value, tolerating unknown strings."""
    try:
        return UserRole(role) is UserRole.ADMIN
    except ValueError:
        return False
