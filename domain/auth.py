"""Domain Entities - Auth"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from typing import List, Optional

from domain.exceptions import AuthorizationError

STAFF_ROLE = "STAFF"


class User(BaseModel):
    """User Entity"""
    user_id: UUID = Field(default_factory=uuid4)
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    disabled: bool = False
    roles: List[str] = []

    class Config:
        from_attributes = True

    def has_role(self, role: str) -> bool:
        if not role:
            return False
        wanted = role.upper().removeprefix("ROLE_")
        return any(r.upper().removeprefix("ROLE_") == wanted for r in self.roles)

    @property
    def is_staff(self) -> bool:
        return self.has_role(STAFF_ROLE)


class UserInDB(User):
    """User with hashed password for DB storage"""
    hashed_password: str


def require_staff(user: User) -> None:
    if not user.is_staff:
        raise AuthorizationError("Staff role required")


def require_owner_or_staff(user: User, owner: str) -> None:
    """Allow the resource owner or any staff member"""
    if user.is_staff:
        return
    if not owner or owner != user.username:
        raise AuthorizationError("Access denied")
