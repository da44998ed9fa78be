from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field

from app.api.departments.schemas import DepartmentResponse
from app.api.subjects.schemas import SubjectResponse
from app.api.users.schemas import UserResponse
from app.core.enums import ClassStatus
from app.core.models.class_model import DEFAULT_CAPACITY
from app.core.schemas import MAX_ROW_ID, CamelModel, NameStr, RowId


class ClassCreate(CamelModel):
    subject_id: RowId
    teacher_id: str = Field(..., min_length=1, max_length=255)
    name: NameStr
    description: Optional[str] = None
    banner_url: Optional[str] = None
    capacity: int = Field(DEFAULT_CAPACITY, ge=1, le=MAX_ROW_ID)
    status: ClassStatus = ClassStatus.ACTIVE


class ClassUpdate(CamelModel):
    subject_id: Optional[RowId] = None
    teacher_id: Optional[str] = Field(None, min_length=1, max_length=255)
    name: Optional[NameStr] = None
    description: Optional[str] = None
    banner_url: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1, le=MAX_ROW_ID)
    status: Optional[ClassStatus] = None
    schedules: Optional[List[Any]] = None


class ClassResponse(CamelModel):
    id: int
    subject_id: int
    teacher_id: str
    invite_code: str
    name: str
    description: Optional[str] = None
    banner_url: Optional[str] = None
    capacity: int
    status: ClassStatus
    schedules: List[Any] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class ClassListItem(ClassResponse):
    subject: Optional[SubjectResponse] = None
    teacher: Optional[UserResponse] = None


class ClassDetail(ClassListItem):
    department: Optional[DepartmentResponse] = None
