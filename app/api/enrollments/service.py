import logging
from typing import List

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import outerjoin

from app.api.classes.service import get_class_row
from app.api.query.params import ListParams
from app.api.query.service import ListResource, run_list_query
from app.api.users.schemas import UserResponse
from app.auth.models import User
from app.core.exceptions import (
    CapacityExceededError,
    ConflictError,
    NotFoundError,
    ReferentialBlockError,
    classify_integrity_error,
)
from app.core.models import Enrollment
from app.core.schemas import PaginatedResponse

from .schemas import EnrollmentCreate, EnrollmentResponse, EnrollmentWithStudent

logger = logging.getLogger(__name__)

ENROLLMENT_NOT_FOUND = "Enrollment not found"

ENROLLMENT_LIST = ListResource(
    entities=(Enrollment, User),
    from_clause=outerjoin(Enrollment, User, Enrollment.student_id == User.id),
    order_column=Enrollment.created_at,
    tiebreak_column=Enrollment.id,
)


def enrollment_filters(params: ListParams) -> List:
    conditions = []
    class_id = params.int_param("classId")
    if class_id is not None:
        conditions.append(Enrollment.class_id == class_id)
    student_id = params.first("studentId")
    if student_id:
        conditions.append(Enrollment.student_id == student_id)
    return conditions


async def list_enrollments(db: AsyncSession, params: ListParams) -> PaginatedResponse[EnrollmentWithStudent]:
    page = await run_list_query(db, ENROLLMENT_LIST, params, enrollment_filters)
    data = []
    for enrollment, student in page.rows:
        item = EnrollmentWithStudent.model_validate(enrollment)
        item.student = UserResponse.model_validate(student) if student else None
        data.append(item)
    return PaginatedResponse[EnrollmentWithStudent](data=data, pagination=page.pagination)


async def count_class_enrollments(db: AsyncSession, class_id: int) -> int:
    result = await db.execute(
        select(func.count()).select_from(Enrollment).where(Enrollment.class_id == class_id)
    )
    return int(result.scalar() or 0)


async def enroll(db: AsyncSession, payload: EnrollmentCreate) -> EnrollmentResponse:
    """
    Enroll a student after checking the class capacity.

    The count and the insert are separate statements, so two concurrent
    requests for the last seat can both pass the check.
    """
    target_class = await get_class_row(db, payload.class_id)
    enrolled = await count_class_enrollments(db, payload.class_id)
    if enrolled >= target_class.capacity:
        raise CapacityExceededError("Class is full")

    enrollment = Enrollment(student_id=payload.student_id, class_id=payload.class_id)
    db.add(enrollment)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        kind = classify_integrity_error(e)
        if kind == "unique":
            raise ConflictError("Student already enrolled in this class") from e
        if kind == "foreign_key":
            raise ReferentialBlockError("Student not found") from e
        raise
    await db.refresh(enrollment)
    logger.info("Enrolled student %s in class %s", enrollment.student_id, enrollment.class_id)
    return EnrollmentResponse.model_validate(enrollment)


async def unenroll(db: AsyncSession, enrollment_id: int) -> EnrollmentResponse:
    enrollment = await db.get(Enrollment, enrollment_id)
    if not enrollment:
        raise NotFoundError(ENROLLMENT_NOT_FOUND)
    deleted = EnrollmentResponse.model_validate(enrollment)
    await db.execute(delete(Enrollment).where(Enrollment.id == enrollment_id))
    await db.commit()
    logger.info("Removed enrollment %s", enrollment_id)
    return deleted
