from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.query.params import ListParams, PathId, list_params
from app.auth.rbac import require_admin
from app.core.rate_limit import enforce_rate_limit
from app.core.schemas import DataResponse, PaginatedResponse
from app.db.session import get_db

from .schemas import UserCreate, UserResponse, UserUpdate, UserWithDepartment
from . import service

router = APIRouter(
    prefix="/api/users",
    tags=["users"],
    dependencies=[Depends(enforce_rate_limit)],
)


@router.get("", response_model=PaginatedResponse[UserWithDepartment])
async def list_users(
    params: ListParams = Depends(list_params()),
    db: AsyncSession = Depends(get_db),
):
    """Users with their department. `search` matches name or email; `role` and `departmentId` are exact."""
    return await service.list_users(db, params)


@router.get("/{user_id}", response_model=DataResponse[UserWithDepartment])
async def get_user(user_id: str, db: AsyncSession = Depends(get_db)):
    return {"data": await service.get_user(db, user_id)}


@router.post(
    "",
    response_model=DataResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_user(payload: UserCreate, db: AsyncSession = Depends(get_db)):
    return {"data": await service.create_user(db, payload)}


@router.patch(
    "/{user_id}",
    response_model=DataResponse[UserResponse],
    dependencies=[Depends(require_admin)],
)
async def update_user(user_id: str, payload: UserUpdate, db: AsyncSession = Depends(get_db)):
    return {"data": await service.update_user(db, user_id, payload)}


@router.delete(
    "/{user_id}",
    response_model=DataResponse[UserResponse],
    dependencies=[Depends(require_admin)],
)
async def delete_user(user_id: str, db: AsyncSession = Depends(get_db)):
    return {"data": await service.delete_user(db, user_id)}
