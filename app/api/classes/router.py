from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.query.params import ListParams, PathId, list_params
from app.api.stats import service as stats_service
from app.api.stats.schemas import DashboardStats
from app.api.users.schemas import UserResponse
from app.auth.rbac import require_staff
from app.core.rate_limit import enforce_rate_limit
from app.core.schemas import DataResponse, PaginatedResponse
from app.db.session import get_db

from .schemas import ClassCreate, ClassDetail, ClassListItem, ClassResponse, ClassUpdate
from . import service

router = APIRouter(
    prefix="/api/classes",
    tags=["classes"],
    dependencies=[Depends(enforce_rate_limit)],
)


@router.get("/stats", response_model=DataResponse[DashboardStats])
async def get_stats(db: AsyncSession = Depends(get_db)):
    return {"data": await stats_service.get_dashboard_stats(db)}


@router.get("", response_model=PaginatedResponse[ClassListItem])
async def list_classes(
    params: ListParams = Depends(list_params()),
    db: AsyncSession = Depends(get_db),
):
    """
    Classes with subject and teacher.

    - **search**: class name or invite code
    - **subject** / **subjectId**: exact subject id (ignored when not a number)
    - **teacher** / **teacherId**: exact teacher id
    - **status**: active, inactive or archived
    """
    return await service.list_classes(db, params)


@router.get("/{class_id}", response_model=DataResponse[ClassDetail])
async def get_class(class_id: PathId, db: AsyncSession = Depends(get_db)):
    return {"data": await service.get_class(db, class_id)}


@router.get("/{class_id}/users", response_model=PaginatedResponse[UserResponse])
async def list_class_users(
    class_id: PathId,
    params: ListParams = Depends(list_params()),
    db: AsyncSession = Depends(get_db),
):
    return await service.list_class_users(db, class_id, params)


@router.post(
    "",
    response_model=DataResponse[ClassResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_staff)],
)
async def create_class(payload: ClassCreate, db: AsyncSession = Depends(get_db)):
    return {"data": await service.create_class(db, payload)}


@router.patch(
    "/{class_id}",
    response_model=DataResponse[ClassResponse],
    dependencies=[Depends(require_staff)],
)
async def update_class(class_id: PathId, payload: ClassUpdate, db: AsyncSession = Depends(get_db)):
    return {"data": await service.update_class(db, class_id, payload)}


@router.delete(
    "/{class_id}",
    response_model=DataResponse[ClassResponse],
    dependencies=[Depends(require_staff)],
)
async def delete_class(class_id: PathId, db: AsyncSession = Depends(get_db)):
    return {"data": await service.delete_class(db, class_id)}
