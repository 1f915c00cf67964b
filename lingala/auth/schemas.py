"""Pydantic schemas for the authenticated caller."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict

from lingala.auth.permissions import UserRole, is_admin


class UserResponse(BaseModel):
    """Caller identity extracted from the access token."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str | None = None
    role: str = UserRole.USER.value

    @property
    def is_admin(self) -> bool:
        return is_admin(self.role)
