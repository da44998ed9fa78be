from datetime import datetime
from typing import Optional

from app.core.schemas import CamelModel, CodeStr, NameStr


class DepartmentCreate(CamelModel):
    code: CodeStr
    name: NameStr
    description: Optional[str] = None


class DepartmentUpdate(CamelModel):
    code: Optional[CodeStr] = None
    name: Optional[NameStr] = None
    description: Optional[str] = None


class DepartmentResponse(CamelModel):
    id: int
    code: str
    name: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class DepartmentTotals(CamelModel):
    subjects: int
    classes: int
    enrolled_students: int


class DepartmentDetail(CamelModel):
    department: DepartmentResponse
    totals: DepartmentTotals
