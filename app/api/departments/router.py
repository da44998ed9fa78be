from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.classes import service as class_service
from app.api.classes.schemas import ClassListItem
from app.api.query.membership import Scope
from app.api.query.params import ListParams, PathId, list_params
from app.api.subjects import service as subject_service
from app.api.subjects.schemas import SubjectWithDepartment
from app.api.users import service as user_service
from app.api.users.schemas import UserResponse
from app.auth.rbac import require_admin
from app.core.rate_limit import enforce_rate_limit
from app.core.schemas import DataResponse, PaginatedResponse
from app.db.session import get_db

from .schemas import DepartmentCreate, DepartmentDetail, DepartmentResponse, DepartmentUpdate
from . import service

router = APIRouter(
    prefix="/api/departments",
    tags=["departments"],
    dependencies=[Depends(enforce_rate_limit)],
)


@router.get("", response_model=PaginatedResponse[DepartmentResponse])
async def list_departments(
    params: ListParams = Depends(list_params()),
    db: AsyncSession = Depends(get_db),
):
    """Departments, newest first. `search` matches name or code."""
    return await service.list_departments(db, params)


@router.get("/{department_id}", response_model=DataResponse[DepartmentDetail])
async def get_department(department_id: PathId, db: AsyncSession = Depends(get_db)):
    return {"data": await service.get_department(db, department_id)}


@router.get("/{department_id}/subjects", response_model=PaginatedResponse[SubjectWithDepartment])
async def list_department_subjects(
    department_id: PathId,
    params: ListParams = Depends(list_params()),
    db: AsyncSession = Depends(get_db),
):
    return await subject_service.list_department_subjects(db, department_id, params)


@router.get("/{department_id}/classes", response_model=PaginatedResponse[ClassListItem])
async def list_department_classes(
    department_id: PathId,
    params: ListParams = Depends(list_params()),
    db: AsyncSession = Depends(get_db),
):
    return await class_service.list_classes(db, params, department_id=department_id)


@router.get("/{department_id}/users", response_model=PaginatedResponse[UserResponse])
async def list_department_users(
    department_id: PathId,
    params: ListParams = Depends(list_params()),
    db: AsyncSession = Depends(get_db),
):
    """
    Users of a department.

    - **role=student**: students enrolled in a class of the department
    - **role=teacher**: teachers of a class of the department
    - anything else: users assigned to the department directly
    """
    return await user_service.list_scoped_users(db, Scope.department(department_id), params)


@router.post(
    "",
    response_model=DataResponse[DepartmentResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_department(payload: DepartmentCreate, db: AsyncSession = Depends(get_db)):
    return {"data": await service.create_department(db, payload)}


@router.patch(
    "/{department_id}",
    response_model=DataResponse[DepartmentResponse],
    dependencies=[Depends(require_admin)],
)
async def update_department(
    department_id: PathId,
    payload: DepartmentUpdate,
    db: AsyncSession = Depends(get_db),
):
    return {"data": await service.update_department(db, department_id, payload)}


@router.delete(
    "/{department_id}",
    response_model=DataResponse[DepartmentResponse],
    dependencies=[Depends(require_admin)],
)
async def delete_department(department_id: PathId, db: AsyncSession = Depends(get_db)):
    return {"data": await service.delete_department(db, department_id)}
