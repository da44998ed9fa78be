from datetime import datetime
from typing import Optional

from app.api.departments.schemas import DepartmentResponse
from app.core.schemas import CamelModel, CodeStr, NameStr, RowId


class SubjectCreate(CamelModel):
    department_id: RowId
    name: NameStr
    code: CodeStr
    description: Optional[str] = None


class SubjectUpdate(CamelModel):
    department_id: Optional[RowId] = None
    name: Optional[NameStr] = None
    code: Optional[CodeStr] = None
    description: Optional[str] = None


class SubjectResponse(CamelModel):
    id: int
    department_id: int
    name: str
    code: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class SubjectWithDepartment(SubjectResponse):
    department: Optional[DepartmentResponse] = None


class SubjectTotals(CamelModel):
    classes: int
    enrolled_students: int


class SubjectDetail(CamelModel):
    subject: SubjectWithDepartment
    totals: SubjectTotals
