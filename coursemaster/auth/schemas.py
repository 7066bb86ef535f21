"""Identity schemas."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict

from coursemaster.auth.permissions import UserRole, is_admin


class Principal(BaseModel):
    """Verified caller identity, as carried by the access token."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    role: UserRole
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        return is_admin(self.role)
