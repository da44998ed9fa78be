from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.query.params import ENROLLMENT_DEFAULT_LIMIT, ENROLLMENT_MAX_LIMIT, ListParams, PathId, list_params
from app.auth.dependencies import get_current_user
from app.core.rate_limit import enforce_rate_limit
from app.core.schemas import DataResponse, PaginatedResponse
from app.db.session import get_db

from .schemas import EnrollmentCreate, EnrollmentResponse, EnrollmentWithStudent
from . import service

router = APIRouter(
    prefix="/api/enrollments",
    tags=["enrollments"],
    dependencies=[Depends(enforce_rate_limit)],
)


@router.get("", response_model=PaginatedResponse[EnrollmentWithStudent])
async def list_enrollments(
    params: ListParams = Depends(list_params(ENROLLMENT_DEFAULT_LIMIT, ENROLLMENT_MAX_LIMIT)),
    db: AsyncSession = Depends(get_db),
):
    """Enrollments with the student. Filter with `classId` and/or `studentId`; up to 1000 per page."""
    return await service.list_enrollments(db, params)


@router.post(
    "",
    response_model=DataResponse[EnrollmentResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_current_user)],
)
async def enroll_student(payload: EnrollmentCreate, db: AsyncSession = Depends(get_db)):
    return {"data": await service.enroll(db, payload)}


@router.delete(
    "/{enrollment_id}",
    response_model=DataResponse[EnrollmentResponse],
    dependencies=[Depends(get_current_user)],
)
async def unenroll_student(enrollment_id: PathId, db: AsyncSession = Depends(get_db)):
    return {"data": await service.unenroll(db, enrollment_id)}
