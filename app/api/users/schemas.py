from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from app.api.departments.schemas import DepartmentResponse
from app.core.enums import UserRole
from app.core.schemas import CamelModel, NameStr, RowId


class UserCreate(CamelModel):
    name: NameStr
    email: EmailStr
    role: UserRole
    department_id: Optional[RowId] = None
    image: Optional[str] = Field(None, max_length=255)


class UserUpdate(CamelModel):
    name: Optional[NameStr] = None
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    department_id: Optional[RowId] = None
    image: Optional[str] = Field(None, max_length=255)


class UserResponse(CamelModel):
    """Public user shape. The password hash never leaves the service layer."""

    id: str
    name: str
    email: str
    role: str
    department_id: Optional[RowId] = None
    image: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class UserWithDepartment(UserResponse):
    department: Optional[DepartmentResponse] = None
