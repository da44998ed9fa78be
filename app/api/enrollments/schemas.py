from datetime import datetime
from typing import Optional

from pydantic import Field

from app.api.users.schemas import UserResponse
from app.core.schemas import CamelModel, RowId


class EnrollmentCreate(CamelModel):
    student_id: str = Field(..., min_length=1, max_length=255)
    class_id: RowId


class EnrollmentResponse(CamelModel):
    id: int
    student_id: str
    class_id: int
    created_at: datetime
    updated_at: datetime


class EnrollmentWithStudent(EnrollmentResponse):
    student: Optional[UserResponse] = None
