from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from app.core.enums import UserRole
from app.core.schemas import CamelModel, NameStr, RowId


class SignUpRequest(CamelModel):
    name: NameStr
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: UserRole = UserRole.STUDENT
    department_id: Optional[RowId] = None
    image: Optional[str] = Field(None, max_length=255)

    @field_validator("role")
    @classmethod
    def no_self_promoted_admins(cls, v: UserRole) -> UserRole:
        if v == UserRole.ADMIN:
            raise ValueError("Admin accounts cannot be created through sign-up")
        return v


class SignInRequest(CamelModel):
    email: EmailStr
    password: str


class CurrentUser(CamelModel):
    """Authenticated caller resolved from the bearer token."""

    id: str
    name: str
    email: str
    role: UserRole
    department_id: Optional[int] = None
    image: Optional[str] = None


class SessionResponse(CamelModel):
    token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: CurrentUser
