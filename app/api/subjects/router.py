from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.classes import service as class_service
from app.api.classes.schemas import ClassListItem
from app.api.query.membership import Scope
from app.api.query.params import ListParams, PathId, list_params
from app.api.users import service as user_service
from app.api.users.schemas import UserResponse
from app.auth.rbac import require_admin
from app.core.rate_limit import enforce_rate_limit
from app.core.schemas import DataResponse, PaginatedResponse
from app.db.session import get_db

from .schemas import SubjectCreate, SubjectDetail, SubjectResponse, SubjectUpdate, SubjectWithDepartment
from . import service

router = APIRouter(
    prefix="/api/subjects",
    tags=["subjects"],
    dependencies=[Depends(enforce_rate_limit)],
)


@router.get("", response_model=PaginatedResponse[SubjectWithDepartment])
async def list_subjects(
    params: ListParams = Depends(list_params()),
    db: AsyncSession = Depends(get_db),
):
    """Subjects with their department. `search` matches name or code, `department` the department name."""
    return await service.list_subjects(db, params)


@router.get("/{subject_id}", response_model=DataResponse[SubjectDetail])
async def get_subject(subject_id: PathId, db: AsyncSession = Depends(get_db)):
    return {"data": await service.get_subject(db, subject_id)}


@router.get("/{subject_id}/classes", response_model=PaginatedResponse[ClassListItem])
async def list_subject_classes(
    subject_id: PathId,
    params: ListParams = Depends(list_params()),
    db: AsyncSession = Depends(get_db),
):
    return await class_service.list_classes(db, params, subject_id=subject_id)


@router.get("/{subject_id}/users", response_model=PaginatedResponse[UserResponse])
async def list_subject_users(
    subject_id: PathId,
    params: ListParams = Depends(list_params()),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.list_scoped_users(db, Scope.subject(subject_id), params)


@router.post(
    "",
    response_model=DataResponse[SubjectResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_subject(payload: SubjectCreate, db: AsyncSession = Depends(get_db)):
    return {"data": await service.create_subject(db, payload)}


@router.patch(
    "/{subject_id}",
    response_model=DataResponse[SubjectResponse],
    dependencies=[Depends(require_admin)],
)
async def update_subject(subject_id: PathId, payload: SubjectUpdate, db: AsyncSession = Depends(get_db)):
    return {"data": await service.update_subject(db, subject_id, payload)}


@router.delete(
    "/{subject_id}",
    response_model=DataResponse[SubjectResponse],
    dependencies=[Depends(require_admin)],
)
async def delete_subject(subject_id: PathId, db: AsyncSession = Depends(get_db)):
    return {"data": await service.delete_subject(db, subject_id)}
